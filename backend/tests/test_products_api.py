from conftest import create_product, register


def test_supplier_creates_product_they_own(supplier_client):
    product = create_product(supplier_client, supplierId=999)

    assert product["supplierId"] == supplier_client.user["id"]
    assert product["imageUrls"] == ["/uploads/a.png", "/uploads/b.png"]
    assert product["isActive"] is True


def test_creating_a_product_seeds_inventory(supplier_client):
    product = create_product(supplier_client, stock=12)

    rows = supplier_client.get("/api/inventory").json()

    assert [(r["productId"], r["availableStock"]) for r in rows] == [(product["id"], 12)]


def test_admin_can_create_for_a_supplier(admin_client, supplier_client):
    product = create_product(admin_client, supplierId=supplier_client.user["id"])

    assert product["supplierId"] == supplier_client.user["id"]


def test_admin_supplier_id_must_be_a_supplier(admin_client, customer_client):
    response = admin_client.post("/api/products", json={
        "name": "x", "price": 1, "supplierId": customer_client.user["id"],
    })

    assert response.status_code == 400


def test_invalid_product_payload_is_rejected(supplier_client):
    response = supplier_client.post("/api/products", json={"name": "", "price": -1, "stock": -5})

    assert response.status_code == 400
    assert set(response.json()["errors"]) == {"name", "price", "stock"}


def test_shoppers_only_see_active_products(client, supplier_client, admin_client):
    active = create_product(supplier_client, name="active")
    hidden = create_product(supplier_client, name="hidden", isActive=False)

    assert [p["id"] for p in client.get("/api/products").json()] == [active["id"]]
    assert [p["id"] for p in client.get("/api/products", params={"isActive": "false"}).json()] == [active["id"]]
    assert client.get(f"/api/products/{hidden['id']}").status_code == 404

    assert [p["id"] for p in admin_client.get("/api/products").json()] == [active["id"], hidden["id"]]
    own = supplier_client.get("/api/products", params={"supplierId": supplier_client.user["id"]}).json()
    assert [p["id"] for p in own] == [active["id"], hidden["id"]]
    assert supplier_client.get(f"/api/products/{hidden['id']}").status_code == 200


def test_list_products_filters(client, supplier_client):
    shoe = create_product(supplier_client, name="shoe", category="shoes")
    create_product(supplier_client, name="bag", category="bags")
    soon = create_product(supplier_client, name="soon", category="shoes", comingSoon=True)

    shoes = client.get("/api/products", params={"category": "shoes"}).json()
    upcoming = client.get("/api/products", params={"comingSoon": "true"}).json()

    assert [p["id"] for p in shoes] == [shoe["id"], soon["id"]]
    assert [p["id"] for p in upcoming] == [soon["id"]]


def test_get_missing_product_is_404(client):
    assert client.get("/api/products/12345").status_code == 404


def test_patch_merges_fields_and_syncs_stock_to_inventory(supplier_client):
    product = create_product(supplier_client, stock=10, description="keep me")

    response = supplier_client.patch(f"/api/products/{product['id']}", json={"price": 55.5, "stock": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["price"] == 55.5
    assert body["stock"] == 3
    assert body["description"] == "keep me"
    rows = supplier_client.get("/api/inventory").json()
    assert rows[0]["availableStock"] == 3


def test_other_supplier_cannot_touch_product(app, supplier_client):
    product = create_product(supplier_client)
    rival = register(app, "rival", role="supplier")

    assert rival.patch(f"/api/products/{product['id']}", json={"price": 1}).status_code == 403
    assert rival.delete(f"/api/products/{product['id']}").status_code == 403


def test_delete_product_removes_reviews(client, supplier_client, customer_client):
    product = create_product(supplier_client)
    customer_client.post("/api/reviews", json={"productId": product["id"], "rating": 4})

    assert supplier_client.delete(f"/api/products/{product['id']}").status_code == 204

    assert client.get(f"/api/products/{product['id']}").status_code == 404
    assert client.get("/api/reviews", params={"productId": product["id"]}).json() == []
    assert supplier_client.get("/api/inventory").json() == []
    assert supplier_client.delete(f"/api/products/{product['id']}").status_code == 404


def test_trending_and_top_selling_endpoints(client, supplier_client, customer_client):
    first = create_product(supplier_client, name="first")
    second = create_product(supplier_client, name="second")
    customer_client.post("/api/reviews", json={"productId": second["id"], "rating": 5})
    customer_client.post("/api/orders", json={"items": [{"productId": first["id"], "quantity": 2}]})

    trending = client.get("/api/products/trending").json()
    top_selling = client.get("/api/products/top-selling", params={"limit": 1}).json()

    assert [p["id"] for p in trending] == [second["id"], first["id"]]
    assert [p["id"] for p in top_selling] == [first["id"]]
