"""Catalog administration API and its effect on cached listings."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def new_product(categories) -> dict:
    return {
        "name": "Kilo Turntable",
        "slug": "kilo-turntable",
        "description": "Belt driven",
        "price": "149.00",
        "stock": 3,
        "image_url": "products/kilo-turntable.jpg",
        "category_id": categories["audio"].id,
    }


class TestCreateProduct:
    def test_create(self, client: TestClient, catalog_products, new_product):
        response = client.post("/api/admin/products", json=new_product)

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "kilo-turntable"
        assert Decimal(body["price"]) == Decimal("149.00")
        assert body["id"]

    def test_new_product_replaces_cached_listing(
        self, client: TestClient, catalog_products, new_product
    ):
        before = client.get("/api/products")
        assert client.get("/api/products").headers["X-Cache"] == "HIT"

        client.post("/api/admin/products", json=new_product)
        after = client.get("/api/products")

        assert after.headers["X-Cache"] == "MISS"
        assert after.json()["total"] == before.json()["total"] + 1
        assert after.json()["products"][0]["slug"] == "kilo-turntable"
        assert after.headers["ETag"] != before.headers["ETag"]

    def test_duplicate_slug(self, client: TestClient, catalog_products, new_product):
        new_product["slug"] = "alpha-speaker"

        response = client.post("/api/admin/products", json=new_product)

        assert response.status_code == 409

    def test_unknown_category(self, client: TestClient, catalog_products, new_product):
        new_product["category_id"] = "missing"

        response = client.post("/api/admin/products", json=new_product)

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "field, value",
        [("slug", "Not A Slug"), ("price", "-1"), ("stock", -5), ("name", "")],
    )
    def test_invalid_body(
        self, client: TestClient, catalog_products, new_product, field, value
    ):
        new_product[field] = value

        response = client.post("/api/admin/products", json=new_product)

        assert response.status_code == 422


class TestReadUpdateDelete:
    def test_get_includes_inactive_products(self, client: TestClient, catalog_products):
        product_id = catalog_products["juliet-hidden"].id

        response = client.get(f"/api/admin/products/{product_id}")

        assert response.status_code == 200
        assert response.json()["is_active"] is False

    def test_get_unknown(self, client: TestClient, catalog_products):
        assert client.get("/api/admin/products/missing").status_code == 404

    def test_update_refreshes_cached_detail(self, client: TestClient, catalog_products):
        product = catalog_products["echo-speaker"]
        assert Decimal(client.get("/api/products/echo-speaker").json()["price"]) == 25

        body = product.model_dump(mode="json", exclude={"id"})
        body["price"] = "19.99"
        response = client.put(f"/api/admin/products/{product.id}", json=body)

        assert response.status_code == 200
        assert response.json()["id"] == product.id
        detail = client.get("/api/products/echo-speaker").json()
        assert Decimal(detail["price"]) == Decimal("19.99")

    def test_deactivating_hides_product(self, client: TestClient, catalog_products):
        product = catalog_products["golf-amp"]
        body = product.model_dump(mode="json")
        body["is_active"] = False

        client.put(f"/api/admin/products/{product.id}", json=body)

        assert client.get("/api/products/golf-amp").status_code == 404
        assert client.get("/api/products").json()["total"] == 8

    def test_update_to_taken_slug(self, client: TestClient, catalog_products):
        product = catalog_products["golf-amp"]
        body = product.model_dump(mode="json")
        body["slug"] = "india-radio"

        response = client.put(f"/api/admin/products/{product.id}", json=body)

        assert response.status_code == 409

    def test_update_unknown(self, client: TestClient, catalog_products, new_product):
        response = client.put("/api/admin/products/missing", json=new_product)

        assert response.status_code == 404

    def test_delete(self, client: TestClient, catalog_products):
        product_id = catalog_products["delta-atlas"].id
        assert client.get("/api/products/delta-atlas").status_code == 200

        response = client.delete(f"/api/admin/products/{product_id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Product deleted successfully"}
        assert client.get("/api/products/delta-atlas").status_code == 404
        assert client.delete(f"/api/admin/products/{product_id}").status_code == 404


class TestCategories:
    def test_create_category(self, client: TestClient, categories):
        response = client.post(
            "/api/admin/categories", json={"name": "Games", "slug": "games"}
        )

        assert response.status_code == 201
        slugs = {c["slug"] for c in client.get("/api/categories").json()}
        assert slugs == {"audio", "books", "games"}

    def test_duplicate_category(self, client: TestClient, categories):
        response = client.post(
            "/api/admin/categories", json={"name": "Audio again", "slug": "audio"}
        )

        assert response.status_code == 409
