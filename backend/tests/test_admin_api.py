from conftest import create_product


def test_admin_routes_are_admin_only(client, customer_client, supplier_client):
    assert client.get("/api/admin/stats").status_code == 401
    assert customer_client.get("/api/admin/stats").status_code == 403
    assert supplier_client.get("/api/admin/users").status_code == 403


def test_list_users_without_passwords(admin_client, customer_client, supplier_client):
    users = admin_client.get("/api/admin/users").json()
    suppliers = admin_client.get("/api/admin/users", params={"role": "supplier"}).json()

    assert [u["username"] for u in users] == ["admin", "customer_one", "supplier_one"]
    assert all("password" not in u for u in users)
    assert [u["username"] for u in suppliers] == ["supplier_one"]


def test_stats(admin_client, customer_client, supplier_client):
    product = create_product(supplier_client, price=10.0)
    create_product(supplier_client, name="draft", isActive=False)
    customer_client.post("/api/orders", json={"items": [{"productId": product["id"], "quantity": 2}]})
    cancelled = customer_client.post("/api/orders", json={"items": [{"productId": product["id"], "quantity": 1}]}).json()
    admin_client.patch(f"/api/orders/{cancelled['id']}", json={"status": "cancelled"})
    customer_client.post("/api/reviews", json={"productId": product["id"], "rating": 5})

    stats = admin_client.get("/api/admin/stats").json()

    assert stats["products"] == 2
    assert stats["activeProducts"] == 1
    assert stats["orders"] == 2
    assert stats["customers"] == 1
    assert stats["suppliers"] == 1
    assert stats["reviews"] == 1
    assert stats["revenue"] == 20.0
    assert stats["ordersByStatus"]["pending"] == 1
    assert stats["ordersByStatus"]["cancelled"] == 1
    assert stats["ordersByStatus"]["shipped"] == 0
