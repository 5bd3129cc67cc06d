from fastapi.testclient import TestClient

from storefront import config

from conftest import PASSWORD, register


def test_register_starts_a_session_and_hides_password(app):
    client = register(app, "ama")

    assert client.user["username"] == "ama"
    assert client.user["role"] == "customer"
    assert client.user["fullName"] == "Ama"
    assert "password" not in client.user
    assert config.SESSION_COOKIE_NAME in client.cookies

    me = client.get("/api/user")
    assert me.status_code == 200
    assert me.json()["id"] == client.user["id"]
    assert "password" not in me.json()


def test_register_rejects_duplicate_username(app):
    register(app, "ama")

    response = TestClient(app).post("/api/register", json={"username": "ama", "password": PASSWORD})

    assert response.status_code == 400


def test_register_cannot_create_admins(app):
    response = TestClient(app).post("/api/register", json={
        "username": "mallory", "password": PASSWORD, "role": "admin",
    })

    assert response.status_code == 400
    assert "role" in response.json()["errors"]


def test_register_validation_errors_are_per_field(client):
    response = client.post("/api/register", json={"username": "ab", "password": "123"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Validation failed"
    assert set(body["errors"]) == {"username", "password"}


def test_passwords_are_stored_hashed(app, mem_storage):
    register(app, "kofi")

    stored = mem_storage.get_user_by_username("kofi").password
    assert stored != PASSWORD
    assert "." in stored


def test_login_and_logout(app):
    register(app, "ama")
    client = TestClient(app)

    response = client.post("/api/login", json={"username": "ama", "password": PASSWORD})
    assert response.status_code == 200
    assert client.get("/api/user").status_code == 200

    assert client.post("/api/logout").status_code == 204
    assert client.get("/api/user").status_code == 401


def test_logout_destroys_server_side_session(app):
    client = register(app, "ama")
    sid = client.cookies.get(config.SESSION_COOKIE_NAME)

    client.post("/api/logout")

    replay = TestClient(app, cookies={config.SESSION_COOKIE_NAME: sid})
    assert replay.get("/api/user").status_code == 401


def test_login_failures_look_the_same(app):
    register(app, "ama")
    client = TestClient(app)

    wrong_password = client.post("/api/login", json={"username": "ama", "password": "nope-nope"})
    unknown_user = client.post("/api/login", json={"username": "nobody", "password": "nope-nope"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()


def test_legacy_plaintext_account_can_log_in(app, mem_storage):
    from storefront import schemas

    mem_storage.create_user(schemas.UserCreate(username="oldtimer", password="plain-old"))

    response = TestClient(app).post("/api/login", json={"username": "oldtimer", "password": "plain-old"})

    assert response.status_code == 200


def test_unknown_session_cookie_is_unauthenticated(app):
    client = TestClient(app, cookies={config.SESSION_COOKIE_NAME: "forged"})

    assert client.get("/api/user").status_code == 401


def test_role_guard_distinguishes_401_and_403(app, client):
    customer = register(app, "ama")

    assert client.post("/api/products", json={"name": "x", "price": 1}).status_code == 401
    assert customer.post("/api/products", json={"name": "x", "price": 1}).status_code == 403


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_metrics_endpoint_exposes_request_counters(client):
    client.get("/health")

    body = client.get("/metrics").text

    assert "http_requests_total" in body
