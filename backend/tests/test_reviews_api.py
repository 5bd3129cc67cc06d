from conftest import create_product


def test_customer_review_is_attributed_to_them(customer_client, supplier_client):
    product = create_product(supplier_client)

    response = customer_client.post("/api/reviews", json={
        "productId": product["id"], "rating": 4, "comment": "Lovely", "customerId": 999,
    })

    assert response.status_code == 201
    assert response.json()["customerId"] == customer_client.user["id"]


def test_admin_review_has_no_customer(admin_client, supplier_client):
    product = create_product(supplier_client)

    response = admin_client.post("/api/reviews", json={"productId": product["id"], "rating": 5})

    assert response.status_code == 201
    assert response.json()["customerId"] is None


def test_rating_must_be_between_one_and_five(customer_client, supplier_client):
    product = create_product(supplier_client)

    for rating in (0, 6):
        response = customer_client.post("/api/reviews", json={"productId": product["id"], "rating": rating})
        assert response.status_code == 400


def test_review_for_missing_product_is_404(customer_client):
    assert customer_client.post("/api/reviews", json={"productId": 77, "rating": 3}).status_code == 404


def test_suppliers_cannot_review(supplier_client):
    product = create_product(supplier_client)

    assert supplier_client.post("/api/reviews", json={"productId": product["id"], "rating": 5}).status_code == 403


def test_listing_and_top_reviews(client, customer_client, supplier_client):
    product = create_product(supplier_client)
    ids = [
        customer_client.post("/api/reviews", json={"productId": product["id"], "rating": rating}).json()["id"]
        for rating in (5, 3, 4, 5, 2)
    ]

    newest_first = client.get(f"/api/products/{product['id']}/reviews").json()
    top = client.get("/api/reviews/top", params={"limit": 2}).json()

    assert [r["id"] for r in newest_first] == list(reversed(ids))
    assert {r["id"] for r in top} == {ids[0], ids[3]}
    assert len(client.get("/api/reviews/top").json()) == 5


def test_only_admin_deletes_reviews(admin_client, customer_client, supplier_client):
    product = create_product(supplier_client)
    review = customer_client.post("/api/reviews", json={"productId": product["id"], "rating": 2}).json()

    assert customer_client.delete(f"/api/reviews/{review['id']}").status_code == 403
    assert admin_client.delete(f"/api/reviews/{review['id']}").status_code == 204
    assert admin_client.delete(f"/api/reviews/{review['id']}").status_code == 404
