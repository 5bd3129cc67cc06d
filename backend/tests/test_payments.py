from storefront.payments import MockPaymentGateway


def test_initialize_returns_reference_and_checkout_url():
    gateway = MockPaymentGateway(checkout_url="https://pay.test/checkout")

    result = gateway.initialize_payment("ama@example.com", 12.345, "mobile_money")

    assert result["success"] is True
    assert result["authorizationUrl"] == f"https://pay.test/checkout/{result['reference']}"


def test_verify_known_reference_reports_minor_units_and_metadata():
    gateway = MockPaymentGateway()
    reference = gateway.initialize_payment("ama@example.com", 12.345, "card", {"orderNote": "gift"})["reference"]

    result = gateway.verify_payment(reference)

    assert result["success"] is True
    assert result["data"]["status"] == "success"
    assert result["data"]["reference"] == reference
    assert result["data"]["amount"] == 1234
    metadata = result["data"]["metadata"]
    assert metadata["paymentMethod"] == "card"
    assert metadata["orderNote"] == "gift"
    assert metadata["custom_fields"] == [
        {"display_name": "Payment Method", "variable_name": "payment_method", "value": "card"},
    ]


def test_verify_unknown_reference_keeps_response_shape():
    result = MockPaymentGateway().verify_payment("nope")

    assert result == {
        "success": False,
        "data": {"status": "failed", "reference": "nope", "amount": 0, "metadata": {}},
    }


def test_payment_endpoints_require_login(client):
    assert client.post("/api/payments/initialize", json={"email": "a@example.com", "amount": 1}).status_code == 401
    assert client.get("/api/payments/verify/abc").status_code == 401


def test_payment_endpoints_round_trip(customer_client):
    init = customer_client.post("/api/payments/initialize", json={
        "email": "customer_one@example.com", "amount": 99.99, "paymentMethod": "mobile_money",
    })

    assert init.status_code == 200
    body = init.json()
    assert set(body) == {"success", "authorizationUrl", "reference"}

    verify = customer_client.get(f"/api/payments/verify/{body['reference']}").json()
    assert verify["success"] is True
    assert verify["data"]["amount"] == 9999
    assert verify["data"]["metadata"]["userId"] == customer_client.user["id"]
    assert verify["data"]["metadata"]["paymentMethod"] == "mobile_money"


def test_initialize_validates_amount(customer_client):
    response = customer_client.post("/api/payments/initialize", json={"email": "a@example.com", "amount": 0})

    assert response.status_code == 400
