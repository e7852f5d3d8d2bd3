"""Client catalog controller against the running app."""
import httpx
import pytest

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD
from storefront_client.api import ApiError, ImageFile, StorefrontAPI
from storefront_client.catalog import DEFAULT_HOME_SETTINGS, CatalogController
from storefront_client.session import SessionController
from storefront_client.token_store import MemoryTokenStore


@pytest.fixture
async def api(app):
    api = StorefrontAPI(
        "http://test/api", MemoryTokenStore(), transport=httpx.ASGITransport(app=app)
    )
    yield api
    await api.aclose()


@pytest.fixture
async def admin_catalog(api):
    await SessionController(api).login(ADMIN_EMAIL, ADMIN_PASSWORD)
    catalog = CatalogController(api)
    await catalog.load()
    return catalog


async def test_load_fetches_products_and_settings(api):
    catalog = CatalogController(api)
    assert catalog.loading is True
    await catalog.load()
    assert catalog.loading is False
    assert catalog.products == []
    assert catalog.home_settings["hero_title"] == DEFAULT_HOME_SETTINGS["hero_title"]
    assert len(catalog.home_settings["collage_images"]) > 0


async def test_load_keeps_defaults_when_server_is_down():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    async with StorefrontAPI("http://shop/api", transport=httpx.MockTransport(handler)) as api:
        catalog = CatalogController(api)
        await catalog.load()
    assert catalog.loading is False
    assert catalog.products == []
    assert catalog.home_settings == DEFAULT_HOME_SETTINGS


async def test_admin_crud_refreshes_products(admin_catalog):
    await admin_catalog.add_product(
        {"name": "Croissant", "price": "3.5", "category": "Pastries", "stock": "12"}
    )
    assert len(admin_catalog.products) == 1
    product = admin_catalog.products[0]
    assert product["price"] == 3.5
    assert product["stock"] == 12

    await admin_catalog.update_product(product["id"], {**product, "price": 4})
    assert admin_catalog.find(product["id"])["price"] == 4.0

    await admin_catalog.delete_product(product["id"])
    assert admin_catalog.products == []


async def test_add_product_with_image_upload(admin_catalog):
    await admin_catalog.add_product(
        {"name": "Loaf", "price": 6, "category": "Breads"},
        ImageFile("loaf.jpg", b"\xff\xd8\xffjpeg", "image/jpeg"),
    )
    product = admin_catalog.products[0]
    assert product["image_public_id"]
    assert product["image"].startswith("memory://")


async def test_by_category_and_featured(admin_catalog):
    await admin_catalog.add_product({"name": "Croissant", "price": 3, "category": "Pastries"})
    await admin_catalog.add_product({"name": "Baguette", "price": 2, "category": "Breads"})
    croissant = next(p for p in admin_catalog.products if p["name"] == "Croissant")

    assert [p["name"] for p in admin_catalog.by_category("past")] == ["Croissant"]

    await admin_catalog.update_home_settings({"featured_product_ids": [croissant["id"], "gone"]})
    assert [p["name"] for p in admin_catalog.featured_products()] == ["Croissant"]


async def test_deleting_featured_product_unfeatures_it(admin_catalog):
    await admin_catalog.add_product({"name": "Croissant", "price": 3, "category": "Pastries"})
    pid = admin_catalog.products[0]["id"]
    await admin_catalog.update_home_settings({"featured_product_ids": [pid]})

    await admin_catalog.delete_product(pid)
    assert admin_catalog.home_settings["featured_product_ids"] == []


async def test_update_about_settings(admin_catalog):
    await admin_catalog.update_about_settings({"founder_quote": "Patience."})
    assert admin_catalog.about_settings["founder_quote"] == "Patience."


async def test_customer_mutation_raises(api):
    catalog = CatalogController(api)
    with pytest.raises(ApiError) as exc_info:
        await catalog.add_product({"name": "Croissant", "price": 3})
    assert exc_info.value.status_code == 401


async def test_category_with_reserved_characters(api, admin_catalog):
    await admin_catalog.add_product({"name": "Fruit Tart", "price": 4, "category": "Cakes/Tarts?"})
    await admin_catalog.add_product({"name": "Baguette", "price": 2, "category": "Breads"})

    data = await api.products_by_category("Cakes/Tarts?")
    assert [p["name"] for p in data["products"]] == ["Fruit Tart"]


async def test_category_is_sent_as_one_path_segment():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"products": []})

    async with StorefrontAPI("http://shop/api", transport=httpx.MockTransport(handler)) as api:
        await api.products_by_category("Cakes/Tarts?")

    assert seen[0].url.raw_path == b"/api/products/category/Cakes%2FTarts%3F"
    assert seen[0].url.query == b""
