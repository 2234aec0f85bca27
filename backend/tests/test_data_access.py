"""
Database-backed data access: upserts, category registration, stock movement.
"""

import pytest

from hardware_pos.extensions import db
from hardware_pos.models import Category, Product, Sale, SaleItem
from hardware_pos.services import (
    categories_service,
    deliveries_service,
    expenses_service,
    products_service,
    sales_service,
    suppliers_service,
)
from hardware_pos.validation import InsufficientStockError, ValidationError


def cash_sale(**fields):
    sale = {"payment_method": "cash", "staff_id": "1", "staff_name": "Alice Admin"}
    sale.update(fields)
    return sale


def line(product, quantity):
    price = product["selling_price_cents"]
    return {"product_id": product["id"], "quantity": quantity, "price_cents": price, "total_cents": price * quantity}


# =============================================================================
# UPSERT
# =============================================================================

class TestUpsert:
    def test_insert_generates_id_and_timestamps(self, db_session):
        supplier = suppliers_service.save_supplier({"name": "Acme"})

        assert supplier["id"]
        assert supplier["created_at"] is not None
        assert supplier["created_at"] == supplier["updated_at"]

    def test_update_changes_only_supplied_fields(self, make_product):
        product = make_product(sku="B1")

        updated = products_service.save_product({"id": product["id"], "quantity": 4})

        assert updated["id"] == product["id"]
        assert updated["quantity"] == 4
        assert updated["name"] == "Bolt"
        assert updated["sku"] == "B1"
        assert updated["selling_price_cents"] == 500

    def test_update_unknown_id_returns_none(self, db_session):
        assert products_service.save_product({"id": "missing", "name": "Ghost"}) is None
        assert suppliers_service.save_supplier({"id": "missing", "name": "Ghost"}) is None
        assert expenses_service.save_expense({"id": "missing", "name": "Ghost"}) is None
        assert db.session.query(Product).count() == 0

    def test_expense_defaults_to_today(self, db_session):
        expense = expenses_service.save_expense({"name": "Tea", "amount_cents": 12000, "category": "Other"})
        assert expense["date"] is not None

    def test_lookup_missing_returns_none(self, db_session):
        assert products_service.get_product("missing") is None
        assert sales_service.get_sale("missing") is None
        assert deliveries_service.get_delivery("missing") is None


# =============================================================================
# CATEGORIES
# =============================================================================

class TestCategories:
    def test_saving_product_registers_category_once(self, make_product):
        make_product(name="Bolt", category="Fasteners")
        make_product(name="Nut", category="Fasteners")

        assert categories_service.list_categories().count("Fasteners") == 1

    def test_save_category_is_idempotent(self, db_session):
        assert categories_service.save_category("Tools") is True
        assert categories_service.save_category(" Tools ") is True
        assert db.session.query(Category).count() == 1

    def test_blank_category_is_rejected(self, db_session):
        assert categories_service.save_category("  ") is False

    def test_delete_category(self, db_session):
        categories_service.save_category("Paint")
        assert categories_service.delete_category("Paint") is True
        assert categories_service.delete_category("Paint") is False


# =============================================================================
# STOCK
# =============================================================================

class TestStock:
    def test_sale_decrements_stock(self, make_product):
        bolt = make_product(quantity=10)

        sale = sales_service.save_sale(cash_sale(total_cents=1500), [line(bolt, 3)])

        assert sale["items"][0]["product_name"] == "Bolt"
        assert products_service.get_product(bolt["id"])["quantity"] == 7

    def test_delivery_increments_stock(self, make_product, supplier):
        bolt = make_product(quantity=2)

        delivery = deliveries_service.save_delivery(
            {"supplier_id": supplier["id"]},
            [{"product_id": bolt["id"], "quantity": 8, "cost_cents": 2400}],
        )

        assert delivery["supplier_name"] == "Acme"
        assert delivery["cost_cents"] == 2400
        assert products_service.get_product(bolt["id"])["quantity"] == 10

    def test_quantity_is_conserved(self, make_product, supplier):
        bolt = make_product(quantity=5)

        deliveries_service.save_delivery(
            {"supplier_id": supplier["id"]},
            [{"product_id": bolt["id"], "quantity": 6, "cost_cents": 100}],
        )
        sales_service.save_sale(cash_sale(), [line(bolt, 4)])
        sales_service.save_sale(cash_sale(), [line(bolt, 2), line(bolt, 1)])

        assert products_service.get_product(bolt["id"])["quantity"] == 5 + 6 - 4 - 3

    def test_insufficient_stock_rejects_before_writing(self, make_product):
        bolt = make_product(quantity=2)

        with pytest.raises(InsufficientStockError) as exc:
            sales_service.save_sale(cash_sale(), [line(bolt, 3)])

        assert exc.value.details["items"][0]["on_hand"] == 2
        assert db.session.query(Sale).count() == 0
        assert products_service.get_product(bolt["id"])["quantity"] == 2

    def test_split_lines_are_checked_together(self, make_product):
        bolt = make_product(quantity=3)
        with pytest.raises(InsufficientStockError):
            sales_service.save_sale(cash_sale(), [line(bolt, 2), line(bolt, 2)])

    def test_guarded_decrement_refuses_to_go_negative(self, make_product):
        bolt = make_product(quantity=1)

        assert products_service.adjust_quantity(bolt["id"], -2) is False
        db.session.commit()
        assert products_service.get_product(bolt["id"])["quantity"] == 1

        assert products_service.adjust_quantity(bolt["id"], -2, allow_negative=True) is True
        db.session.commit()
        assert products_service.get_product(bolt["id"])["quantity"] == -1

    def test_stock_drained_after_check_fails_the_save(self, make_product, monkeypatch):
        bolt = make_product(quantity=5)
        original_check = sales_service.check_stock

        def check_then_drain(items):
            original_check(items)
            products_service.adjust_quantity(bolt["id"], -4)
            db.session.commit()

        monkeypatch.setattr(sales_service, "check_stock", check_then_drain)

        assert sales_service.save_sale(cash_sale(), [line(bolt, 3)]) is None

        assert products_service.get_product(bolt["id"])["quantity"] == 1
        assert db.session.query(Sale).count() == 1
        assert db.session.query(SaleItem).count() == 1

    def test_failed_decrement_applies_no_lines(self, make_product, monkeypatch):
        bolt = make_product(name="Bolt", quantity=5)
        nut = make_product(name="Nut", quantity=5)
        original_check = sales_service.check_stock

        def check_then_drain(items):
            original_check(items)
            products_service.adjust_quantity(nut["id"], -5)
            db.session.commit()

        monkeypatch.setattr(sales_service, "check_stock", check_then_drain)

        assert sales_service.save_sale(cash_sale(), [line(bolt, 2), line(nut, 1)]) is None

        assert products_service.get_product(bolt["id"])["quantity"] == 5
        assert products_service.get_product(nut["id"])["quantity"] == 0

    def test_adjust_unknown_product(self, db_session):
        assert products_service.adjust_quantity("missing", 5) is False

    def test_low_stock(self, make_product):
        make_product(name="Plenty", quantity=50, reorder_level=5)
        make_product(name="Short", quantity=2, reorder_level=5)

        assert [p["name"] for p in products_service.list_low_stock()] == ["Short"]
        assert products_service.list_low_stock()[0]["is_low_stock"] is True


# =============================================================================
# SALES
# =============================================================================

class TestSales:
    def test_invalid_payment_method(self, make_product):
        bolt = make_product()
        with pytest.raises(ValidationError):
            sales_service.save_sale(cash_sale(payment_method="barter"), [line(bolt, 1)])

    def test_total_defaults_to_line_sum(self, make_product):
        bolt = make_product(quantity=10)
        untotalled = {"product_id": bolt["id"], "quantity": 3, "price_cents": 500}

        sale = sales_service.save_sale(cash_sale(), [untotalled, line(bolt, 1)])

        assert sale["total_cents"] == 2000
        assert sorted(i["total_cents"] for i in sale["items"]) == [500, 1500]

    def test_total_must_match_lines(self, make_product):
        bolt = make_product(quantity=10)

        with pytest.raises(ValidationError):
            sales_service.save_sale(cash_sale(total_cents=0), [line(bolt, 3)])

        assert db.session.query(Sale).count() == 0
        assert products_service.get_product(bolt["id"])["quantity"] == 10

    def test_legacy_total_kept_without_stock_adjustment(self, make_product):
        bolt = make_product(quantity=10)

        sale = sales_service.save_sale(cash_sale(total_cents=1400), [line(bolt, 3)], adjust_stock=False)

        assert sale["total_cents"] == 1400

    def test_migration_mode_skips_stock(self, make_product):
        bolt = make_product(quantity=1)

        sales_service.save_sale(cash_sale(), [line(bolt, 5)], adjust_stock=False)

        assert products_service.get_product(bolt["id"])["quantity"] == 1

    def test_stale_product_leaves_header_without_items(self, db_session):
        stale = {"product_id": "gone", "product_name": "Gone", "quantity": 1, "price_cents": 100}

        assert sales_service.save_sale(cash_sale(), [stale], adjust_stock=False) is None

        assert db.session.query(Sale).count() == 1
        assert db.session.query(SaleItem).count() == 0

    def test_list_newest_first(self, make_product):
        from datetime import datetime

        bolt = make_product(quantity=10)
        sales_service.save_sale(cash_sale(created_at=datetime(2026, 1, 1, 9)), [line(bolt, 1)])
        sales_service.save_sale(cash_sale(created_at=datetime(2026, 1, 2, 9)), [line(bolt, 1)])

        sales = sales_service.list_sales()
        assert [s["created_at"] for s in sales] == ["2026-01-02T09:00:00Z", "2026-01-01T09:00:00Z"]
        assert sales_service.list_sales(limit=1)[0]["created_at"] == "2026-01-02T09:00:00Z"

    def test_delete_sale_cascades_items(self, make_product):
        bolt = make_product(quantity=10)
        sale = sales_service.save_sale(cash_sale(), [line(bolt, 1)])

        assert sales_service.delete_sale(sale["id"]) is True
        assert db.session.query(SaleItem).count() == 0
        assert sales_service.delete_sale(sale["id"]) is False


# =============================================================================
# DELETES WITH REFERENCES
# =============================================================================

class TestReferentialDeletes:
    def test_product_with_sales_cannot_be_deleted(self, make_product):
        bolt = make_product(quantity=10)
        sales_service.save_sale(cash_sale(), [line(bolt, 1)])

        assert products_service.delete_product(bolt["id"]) is False
        assert products_service.get_product(bolt["id"]) is not None

    def test_deleting_supplier_unlinks_products(self, make_product, supplier):
        bolt = make_product(supplier_id=supplier["id"])
        assert suppliers_service.has_deliveries(supplier["id"]) is False

        assert suppliers_service.delete_supplier(supplier["id"]) is True
        assert products_service.get_product(bolt["id"])["supplier_id"] is None

    def test_supplier_with_deliveries_cannot_be_deleted(self, make_product, supplier):
        bolt = make_product()
        deliveries_service.save_delivery(
            {"supplier_id": supplier["id"]},
            [{"product_id": bolt["id"], "quantity": 1, "cost_cents": 10}],
        )

        assert suppliers_service.has_deliveries(supplier["id"]) is True
        assert suppliers_service.delete_supplier(supplier["id"]) is False
        assert suppliers_service.get_supplier(supplier["id"]) is not None
