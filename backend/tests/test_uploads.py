from pathlib import Path

import pytest

from storefront import config


def test_upload_image_returns_relative_url(app, supplier_client):
    response = supplier_client.post("/api/upload", files={"image": ("shoe.PNG", b"\x89PNG fake", "image/png")})

    assert response.status_code == 201
    url = response.json()["url"]
    assert url.startswith("/uploads/") and url.endswith(".png")
    assert (Path(app.state.upload_dir) / url.rsplit("/", 1)[1]).read_bytes() == b"\x89PNG fake"
    assert supplier_client.get(url).content == b"\x89PNG fake"


def test_upload_rejects_non_images(supplier_client):
    response = supplier_client.post("/api/upload", files={"image": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400


def test_upload_rejects_files_over_limit(supplier_client):
    too_big = b"0" * (config.MAX_UPLOAD_BYTES + 1)

    response = supplier_client.post("/api/upload", files={"image": ("big.jpg", too_big, "image/jpeg")})

    assert response.status_code == 400


def test_upload_is_for_admins_and_suppliers(client, customer_client):
    files = {"image": ("a.png", b"x", "image/png")}

    assert client.post("/api/upload", files=files).status_code == 401
    assert customer_client.post("/api/upload", files=files).status_code == 403


def test_upload_extension_follows_content_type(supplier_client):
    response = supplier_client.post("/api/upload", files={
        "image": ("x.html", b"<script>alert(1)</script>", "image/png"),
    })

    assert response.status_code == 201
    url = response.json()["url"]
    assert url.endswith(".png")
    assert supplier_client.get(url).headers["content-type"] == "image/png"


@pytest.mark.parametrize("content_type", ["image/svg+xml", "image/x-icon", "text/html"])
def test_upload_rejects_unlisted_image_types(supplier_client, content_type):
    response = supplier_client.post("/api/upload", files={"image": ("logo.svg", b"<svg/>", content_type)})

    assert response.status_code == 400
