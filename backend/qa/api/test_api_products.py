"""
API tests - products and stock overview
"""
from decimal import Decimal


def dec(value) -> Decimal:
    return Decimal(str(value))


class TestProductsAPI:

    def test_create_returns_joined_names(self, client, make_product):
        product = make_product(stock_quantity=12, unit_price="100", tax_rate="0.18")
        assert product["unit_abbreviation"] == "PCS"
        assert product["category_name"] == "Stationery"
        assert dec(product["inclusive_rate"]) == Decimal("118.00")
        assert product["stock_quantity"] == 12

    def test_unknown_unit_rejected(self, client):
        r = client.post("/products", json={"name": "X", "unit_id": 999})
        assert r.status_code == 404

    def test_negative_tax_rejected(self, client):
        r = client.post("/products", json={"name": "X", "tax_rate": "-0.1"})
        assert r.status_code == 400

    def test_search_and_update(self, client, make_product):
        make_product(name="Blue Pen", sku="PEN-B")
        make_product(name="Notebook")
        r = client.get("/products", params={"q": "pen"})
        items = r.json()["items"]
        assert [p["name"] for p in items] == ["Blue Pen"]

        r = client.patch(f"/products/{items[0]['id']}", json={"unit_price": "12.50"})
        assert dec(r.json()["unit_price"]) == Decimal("12.50")

    def test_delete_without_history(self, client, make_product):
        product = make_product()
        assert client.delete(f"/products/{product['id']}").status_code == 200
        assert client.get(f"/products/{product['id']}").status_code == 404

    def test_delete_with_history_conflicts(self, client, make_product):
        product = make_product()
        client.post("/purchases", json={"product_id": product["id"], "purchase_date": "2024-01-05", "quantity": 3})
        assert client.delete(f"/products/{product['id']}").status_code == 409


class TestStockOverviewAPI:

    def test_status_thresholds(self, client, make_product):
        make_product(name="A Plenty", stock_quantity=11)
        make_product(name="B Edge", stock_quantity=10)
        make_product(name="C Few", stock_quantity=1)
        make_product(name="D None", stock_quantity=0)
        r = client.get("/stock")
        assert r.status_code == 200
        statuses = {row["name"]: row["status"] for row in r.json()["items"]}
        assert statuses == {
            "A Plenty": "IN_STOCK",
            "B Edge": "LOW_STOCK",
            "C Few": "LOW_STOCK",
            "D None": "OUT_OF_STOCK",
        }

    def test_default_page_size(self, client, make_product):
        for i in range(12):
            make_product(name=f"Item {i:02d}")
        body = client.get("/stock").json()
        assert len(body["items"]) == 10
        assert body["total_pages"] == 2


class TestStockAdjustment:

    def test_adjustments_from_two_sessions_both_apply(self, client, make_product, session_factory):
        from gstdesk.infrastructure.unit_of_work import UnitOfWork

        product_id = make_product(stock_quantity=10)["id"]
        first, second = UnitOfWork(session_factory()), UnitOfWork(session_factory())
        try:
            stale = first.products.get(product_id)
            assert stale.stock_quantity == 10

            second.products.adjust_stock(second.products.get(product_id), 5)
            second.commit()

            first.products.adjust_stock(stale, -3)
            first.commit()
            assert stale.stock_quantity == 12
        finally:
            first.db.close()
            second.db.close()

        assert client.get(f"/products/{product_id}").json()["stock_quantity"] == 12
