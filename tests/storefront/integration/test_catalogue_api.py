"""Integration tests for the public catalogue endpoints."""

from protean import current_domain
from storefront.catalogue.category import Category


class TestProducts:
    def test_list_is_paginated_newest_first(self, client, make_product):
        for name in ("First", "Second", "Third"):
            make_product(name=name)

        page_one = client.get("/products", params={"limit": 2}).json()
        page_two = client.get("/products", params={"limit": 2, "page": 2}).json()

        assert page_one["total"] == 3
        assert [p["name"] for p in page_one["items"]] == ["Third", "Second"]
        assert [p["name"] for p in page_two["items"]] == ["First"]

    def test_featured_filter(self, client, make_product):
        make_product(name="Plain")
        make_product(name="Star", is_featured=True)
        items = client.get("/products", params={"featured": "true"}).json()["items"]
        assert [p["name"] for p in items] == ["Star"]

    def test_inactive_products_are_hidden(self, client, make_product):
        make_product(name="Retired", is_active=False)
        assert client.get("/products").json()["total"] == 0
        assert client.get("/products/retired").status_code == 404

    def test_unknown_category_gives_empty_page(self, client, make_product):
        make_product()
        assert client.get("/products", params={"category": "nope"}).json()["items"] == []

    def test_product_by_slug(self, client, make_product):
        make_product(name="Neon Overlay", colors=[{"name": "Red", "hex": "#FF0000"}])
        body = client.get("/products/neon-overlay").json()
        assert body["name"] == "Neon Overlay"
        assert body["colors"] == [{"name": "Red", "hex": "#FF0000"}]


class TestCategories:
    def test_sorted_by_display_order_then_name(self, client):
        repo = current_domain.repository_for(Category)
        repo.add(Category.create(name="Logos", display_order=2))
        repo.add(Category.create(name="Banners", display_order=1))
        repo.add(Category.create(name="Alerts", display_order=2))

        names = [c["name"] for c in client.get("/categories").json()]

        assert names == ["Banners", "Alerts", "Logos"]


class TestPromoValidation:
    def test_unknown_code_answers_200_with_reason(self, client, make_product):
        product = make_product()
        response = client.post(
            "/promo-codes/validate",
            json={"code": "NOPE", "cartItems": [{"productId": str(product.id), "quantity": 1}]},
        )
        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert response.json()["message"] == "كود الخصم غير موجود"

    def test_empty_cart_is_rejected(self, client):
        response = client.post("/promo-codes/validate", json={"code": "X", "cartItems": []})
        assert response.status_code == 400
