"""Catalog endpoints, including hosted image handling."""
import uuid

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import UpstreamFailure
from storefront.core.image_hosting import InMemoryImageHost, get_image_host
from storefront.models.product import Product

CROISSANT = {
    "name": "Butter Croissant",
    "price": 3.5,
    "category": "Pastries",
    "stock": 20,
    "description": "Flaky and golden.",
    "image": "https://example.com/croissant.jpg",
}

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


async def _create(client, headers, **overrides):
    resp = await client.post("/products", json={**CROISSANT, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["product"]


async def _create_with_upload(client, headers, filename="loaf.jpg"):
    form = {"name": "Sourdough Loaf", "price": "7.25", "category": "Breads", "stock": "5"}
    files = {"image": (filename, JPEG, "image/jpeg")}
    resp = await client.post("/products", data=form, files=files, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["product"]


class FailingDeleteHost(InMemoryImageHost):
    async def delete(self, public_id: str) -> None:
        raise UpstreamFailure("Image delete failed")


# ── Reads ─────────────────────────────────────────────────────

async def test_list_products_empty(client):
    resp = await client.get("/products")
    assert resp.status_code == 200
    assert resp.json() == {"products": []}


async def test_list_products_newest_first(client, admin_headers):
    first = await _create(client, admin_headers, name="First")
    second = await _create(client, admin_headers, name="Second")

    resp = await client.get("/products")
    ids = [p["id"] for p in resp.json()["products"]]
    assert ids == [second["id"], first["id"]]


async def test_get_product(client, admin_headers):
    created = await _create(client, admin_headers)
    resp = await client.get(f"/products/{created['id']}")
    assert resp.status_code == 200
    product = resp.json()["product"]
    assert product["name"] == "Butter Croissant"
    assert product["price"] == 3.5
    assert product["image_public_id"] is None


@pytest.mark.parametrize("product_id", [str(uuid.uuid4()), "not-a-uuid"])
async def test_get_missing_product(client, product_id):
    resp = await client.get(f"/products/{product_id}")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Product not found"}


async def test_products_by_category_is_case_insensitive_substring(client, admin_headers):
    await _create(client, admin_headers, name="Croissant", category="Pastries")
    await _create(client, admin_headers, name="Danish", category="Sweet Pastries")
    await _create(client, admin_headers, name="Baguette", category="Breads")

    resp = await client.get("/products/category/PASTR")
    names = sorted(p["name"] for p in resp.json()["products"])
    assert names == ["Croissant", "Danish"]

    resp = await client.get("/products/category/cakes")
    assert resp.json() == {"products": []}


async def test_category_pattern_is_literal(client, admin_headers):
    await _create(client, admin_headers, name="Croissant", category="Pastries")
    resp = await client.get("/products/category/%25")
    assert resp.json() == {"products": []}


# ── Authorization ─────────────────────────────────────────────

async def test_create_requires_token(client):
    resp = await client.post("/products", json=CROISSANT)
    assert resp.status_code == 401
    assert resp.json() == {"message": "Access token required"}


async def test_create_requires_admin(client, customer_headers):
    resp = await client.post("/products", json=CROISSANT, headers=customer_headers)
    assert resp.status_code == 403
    assert resp.json() == {"message": "Admin access required"}


async def test_customer_cannot_update_or_delete(client, admin_headers, customer_headers):
    created = await _create(client, admin_headers)
    resp = await client.put(
        f"/products/{created['id']}", json={"price": 1}, headers=customer_headers
    )
    assert resp.status_code == 403
    resp = await client.delete(f"/products/{created['id']}", headers=customer_headers)
    assert resp.status_code == 403


# ── Create ────────────────────────────────────────────────────

async def test_create_product_with_url(client, admin_headers):
    resp = await client.post("/products", json=CROISSANT, headers=admin_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Product created successfully"
    assert body["product"]["image"] == CROISSANT["image"]
    assert body["product"]["stock"] == 20


async def test_create_product_validation(client, admin_headers):
    resp = await client.post(
        "/products", json={"name": "", "price": -1, "stock": -2}, headers=admin_headers
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert {"name", "price", "stock"} <= {err["field"] for err in body["errors"]}


async def test_create_product_with_upload(client, admin_headers, image_host):
    product = await _create_with_upload(client, admin_headers)
    assert product["price"] == 7.25
    assert product["stock"] == 5
    assert product["image_public_id"] in image_host.images
    assert product["image"] == f"memory://{product['image_public_id']}"


async def test_upload_rejects_non_image(client, admin_headers, image_host, sessionmaker):
    resp = await client.post(
        "/products",
        data={"name": "Notes", "price": "1"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Not an image! Please upload an image."}
    assert image_host.images == {}

    async with sessionmaker() as db:
        assert await db.scalar(select(func.count()).select_from(Product)) == 0


async def test_upload_rejects_oversized_image(client, admin_headers, image_host):
    from storefront.config import get_settings

    big = b"\x00" * (get_settings().max_image_bytes + 1)
    resp = await client.post(
        "/products",
        data={"name": "Huge", "price": "1"},
        files={"image": ("huge.jpg", big, "image/jpeg")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert image_host.images == {}


# ── Update ────────────────────────────────────────────────────

async def test_update_is_partial(client, admin_headers):
    created = await _create(client, admin_headers)
    resp = await client.put(
        f"/products/{created['id']}", json={"price": 4.25, "stock": 0}, headers=admin_headers
    )
    assert resp.status_code == 200
    product = resp.json()["product"]
    assert resp.json()["message"] == "Product updated successfully"
    assert product["price"] == 4.25
    assert product["stock"] == 0
    assert product["name"] == CROISSANT["name"]
    assert product["image"] == CROISSANT["image"]


async def test_update_ignores_empty_strings(client, admin_headers):
    created = await _create(client, admin_headers)
    resp = await client.put(
        f"/products/{created['id']}",
        json={"name": "", "image": "", "description": "Now with almonds"},
        headers=admin_headers,
    )
    product = resp.json()["product"]
    assert product["name"] == CROISSANT["name"]
    assert product["image"] == CROISSANT["image"]
    assert product["description"] == "Now with almonds"


async def test_update_missing_product(client, admin_headers):
    resp = await client.put(
        f"/products/{uuid.uuid4()}", json={"price": 1}, headers=admin_headers
    )
    assert resp.status_code == 404


async def test_replacing_uploaded_image_deletes_old_asset_once(client, admin_headers, image_host):
    product = await _create_with_upload(client, admin_headers)
    old_public_id = product["image_public_id"]

    resp = await client.put(
        f"/products/{product['id']}",
        data={"name": "Sourdough Loaf"},
        files={"image": ("new.jpg", JPEG, "image/jpeg")},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()["product"]
    assert updated["image_public_id"] != old_public_id
    assert updated["image_public_id"] in image_host.images
    assert image_host.deleted == [old_public_id]


async def test_replacing_uploaded_image_with_url(client, admin_headers, image_host):
    product = await _create_with_upload(client, admin_headers)
    old_public_id = product["image_public_id"]

    resp = await client.put(
        f"/products/{product['id']}",
        json={"image": "https://example.com/new.jpg"},
        headers=admin_headers,
    )
    updated = resp.json()["product"]
    assert updated["image"] == "https://example.com/new.jpg"
    assert updated["image_public_id"] is None
    assert image_host.deleted == [old_public_id]


async def test_update_without_image_keeps_asset(client, admin_headers, image_host):
    product = await _create_with_upload(client, admin_headers)
    resp = await client.put(
        f"/products/{product['id']}", json={"stock": 9}, headers=admin_headers
    )
    assert resp.json()["product"]["image_public_id"] == product["image_public_id"]
    assert image_host.deleted == []


async def test_failed_old_asset_delete_still_updates_record(client, app, admin_headers):
    host = FailingDeleteHost(folder="test-bakery")
    app.dependency_overrides[get_image_host] = lambda: host
    product = await _create_with_upload(client, admin_headers)

    resp = await client.put(
        f"/products/{product['id']}",
        data={"name": "Renamed"},
        files={"image": ("new.jpg", JPEG, "image/jpeg")},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()["product"]
    assert updated["name"] == "Renamed"
    assert updated["image_public_id"] != product["image_public_id"]


# ── Delete ────────────────────────────────────────────────────

async def test_delete_product_removes_hosted_image(client, admin_headers, image_host):
    product = await _create_with_upload(client, admin_headers)

    resp = await client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Product deleted successfully"}
    assert image_host.deleted == [product["image_public_id"]]

    resp = await client.get(f"/products/{product['id']}")
    assert resp.status_code == 404


async def test_delete_keeps_record_when_image_delete_fails(client, app, admin_headers):
    host = FailingDeleteHost(folder="test-bakery")
    app.dependency_overrides[get_image_host] = lambda: host
    product = await _create_with_upload(client, admin_headers)

    resp = await client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json() == {"message": "Image delete failed"}

    resp = await client.get(f"/products/{product['id']}")
    assert resp.status_code == 200


async def test_delete_missing_product(client, admin_headers):
    resp = await client.delete(f"/products/{uuid.uuid4()}", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Product not found"}


async def test_create_list_delete_scenario(client, admin_headers):
    resp = await client.post(
        "/products", json={"name": "Loaf", "price": 5, "stock": 3}, headers=admin_headers
    )
    assert resp.status_code == 201
    product_id = resp.json()["product"]["id"]

    listed = (await client.get("/products")).json()["products"]
    assert [p["id"] for p in listed] == [product_id]
    assert listed[0]["category"] == ""

    resp = await client.delete(f"/products/{product_id}", headers=admin_headers)
    assert resp.status_code == 200
    resp = await client.get(f"/products/{product_id}")
    assert resp.status_code == 404


# ── Rejected input ────────────────────────────────────────────

async def test_create_rejects_infinite_price_in_form(client, admin_headers, image_host):
    resp = await client.post(
        "/products",
        data={"name": "Loaf", "price": "inf"},
        files={"image": ("a.jpg", JPEG, "image/jpeg")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"
    assert image_host.images == {}


async def test_create_rejects_infinite_price_in_json(client, admin_headers):
    resp = await client.post(
        "/products",
        content=b'{"name": "Loaf", "price": Infinity}',
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"


async def test_price_above_column_range_is_rejected(client, admin_headers):
    resp = await client.post(
        "/products", json={"name": "Gold Loaf", "price": 1e12}, headers=admin_headers
    )
    assert resp.status_code == 400


async def test_update_rejects_nan_price(client, admin_headers):
    created = await _create(client, admin_headers)
    resp = await client.put(
        f"/products/{created['id']}",
        content=b'{"price": NaN}',
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    product = (await client.get(f"/products/{created['id']}")).json()["product"]
    assert product["price"] == CROISSANT["price"]


async def test_create_rejects_blank_name(client, admin_headers):
    resp = await client.post(
        "/products", json={"name": "   ", "price": 1}, headers=admin_headers
    )
    assert resp.status_code == 400


async def test_update_ignores_whitespace_only_fields(client, admin_headers):
    created = await _create(client, admin_headers)
    resp = await client.put(
        f"/products/{created['id']}",
        json={"name": "   ", "category": " ", "stock": 4},
        headers=admin_headers,
    )
    product = resp.json()["product"]
    assert product["name"] == CROISSANT["name"]
    assert product["category"] == CROISSANT["category"]
    assert product["stock"] == 4


async def test_update_strips_name(client, admin_headers):
    created = await _create(client, admin_headers)
    resp = await client.put(
        f"/products/{created['id']}", json={"name": "  Almond Croissant "}, headers=admin_headers
    )
    assert resp.json()["product"]["name"] == "Almond Croissant"


# ── Failed record writes ──────────────────────────────────────

async def _failing_commit(self):
    raise OperationalError("COMMIT", {}, Exception("database is locked"))


@pytest.fixture
async def tolerant_client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api") as c:
        yield c


async def test_failed_create_deletes_uploaded_image(
    tolerant_client, admin_headers, image_host, sessionmaker, monkeypatch
):
    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    resp = await tolerant_client.post(
        "/products",
        data={"name": "Sourdough Loaf", "price": "7.25"},
        files={"image": ("loaf.jpg", JPEG, "image/jpeg")},
        headers=admin_headers,
    )
    monkeypatch.undo()

    assert resp.status_code == 500
    assert len(image_host.deleted) == 1
    assert image_host.images == {}
    async with sessionmaker() as db:
        assert await db.scalar(select(func.count()).select_from(Product)) == 0


async def test_failed_update_deletes_new_image_and_keeps_old(
    tolerant_client, client, admin_headers, image_host, monkeypatch
):
    product = await _create_with_upload(client, admin_headers)
    old_public_id = product["image_public_id"]

    monkeypatch.setattr(AsyncSession, "commit", _failing_commit)
    resp = await tolerant_client.put(
        f"/products/{product['id']}",
        data={"name": "Renamed"},
        files={"image": ("new.jpg", JPEG, "image/jpeg")},
        headers=admin_headers,
    )
    monkeypatch.undo()

    assert resp.status_code == 500
    assert len(image_host.deleted) == 1
    assert image_host.deleted[0] != old_public_id
    assert list(image_host.images) == [old_public_id]

    stored = (await client.get(f"/products/{product['id']}")).json()["product"]
    assert stored["name"] == "Sourdough Loaf"
    assert stored["image_public_id"] == old_public_id
