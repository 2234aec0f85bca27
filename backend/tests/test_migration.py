"""
Local -> remote migration.

Runs the migration from an in-memory local store into the test database and
checks identifier rewriting, ordering, stock handling and abort behaviour.
"""

import pytest

from hardware_pos.extensions import db
from hardware_pos.local_store import LocalDataAccess, LocalRecordStore
from hardware_pos.local_store import record_store as rs
from hardware_pos.models import Category, Delivery, DeliveryItem, Product, Sale, SaleItem, Supplier
from hardware_pos.services import (
    categories_service,
    deliveries_service,
    products_service,
    sales_service,
    settings_service,
    suppliers_service,
)
from hardware_pos.services.migration_service import (
    UNKNOWN_STAFF_ID,
    UNKNOWN_STAFF_NAME,
    IdentifierMap,
    MigrationError,
    MigrationRun,
    migrate_local_to_remote,
)


def acme_bolt_document():
    return {
        rs.SUPPLIERS: [{"id": "S1", "name": "Acme", "phone": "0700", "company": "Acme Ltd"}],
        rs.PRODUCTS: [{
            "id": "P1",
            "name": "Bolt",
            "category": "Fasteners",
            "sku": "BLT1",
            "buyingPrice": 3,
            "sellingPrice": 5,
            "quantity": 10,
            "supplier": "S1",
            "reorderLevel": 2,
        }],
        rs.SALES: [{
            "id": "SL1",
            "items": [{"productId": "P1", "productName": "Bolt", "quantity": 3, "price": 5, "total": 15}],
            "total": 15,
            "paymentMethod": "cash",
            "staffId": "1",
            "staffName": "Admin",
            "createdAt": "2026-01-10T09:30:00Z",
        }],
        rs.CATEGORIES: ["Fasteners"],
    }


def count(model):
    return db.session.query(model).count()


# =============================================================================
# IDENTIFIER MAP
# =============================================================================

class TestIdentifierMap:
    def test_bind_and_lookup(self):
        ids = IdentifierMap("product")
        ids.bind("P1", "new-1")
        ids.bind(7, "new-7")

        assert ids.get("P1") == "new-1"
        assert ids.get("7") == "new-7"
        assert ids.old_id("new-1") == "P1"
        assert "P1" in ids
        assert None not in ids
        assert ids.get("P2") is None
        assert ids.get("P2", "P2") == "P2"
        assert len(ids) == 2

    def test_rebinding_same_pair_is_allowed(self):
        ids = IdentifierMap("supplier")
        ids.bind("S1", "a")
        ids.bind("S1", "a")
        assert len(ids) == 1

    def test_old_id_cannot_map_twice(self):
        ids = IdentifierMap("supplier")
        ids.bind("S1", "a")
        with pytest.raises(MigrationError):
            ids.bind("S1", "b")

    def test_new_id_cannot_map_twice(self):
        ids = IdentifierMap("supplier")
        ids.bind("S1", "a")
        with pytest.raises(MigrationError):
            ids.bind("S2", "a")


# =============================================================================
# HAPPY PATH
# =============================================================================

class TestMigration:
    def test_acme_bolt_scenario(self, db_session, local_access):
        local = local_access(acme_bolt_document())

        assert migrate_local_to_remote(local) is True

        suppliers = suppliers_service.list_suppliers()
        assert len(suppliers) == 1
        acme = suppliers[0]
        assert acme["name"] == "Acme"
        assert acme["id"] != "S1"

        products = products_service.list_products()
        assert len(products) == 1
        bolt = products[0]
        assert bolt["name"] == "Bolt"
        assert bolt["id"] != "P1"
        assert bolt["supplier_id"] == acme["id"]
        # Migrated quantity already reflects the sale
        assert bolt["quantity"] == 10
        assert bolt["buying_price_cents"] == 300
        assert bolt["selling_price_cents"] == 500

        sales = sales_service.list_sales(include_items=True)
        assert len(sales) == 1
        sale = sales[0]
        assert sale["total_cents"] == 1500
        assert sale["created_at"] == "2026-01-10T09:30:00Z"
        assert len(sale["items"]) == 1
        item = sale["items"][0]
        assert item["product_id"] == bolt["id"]
        assert item["quantity"] == 3
        assert item["total_cents"] == 1500

        assert categories_service.list_categories() == ["Fasteners"]

    def test_every_reference_resolves(self, db_session, local_access):
        document = acme_bolt_document()
        document[rs.SUPPLIERS].append({"id": "S2", "name": "Zed"})
        document[rs.PRODUCTS].append({"id": "P2", "name": "Nut", "supplier": "S2", "quantity": 4})
        document[rs.SALES].append({
            "id": "SL2",
            "items": [
                {"productId": "P1", "quantity": 1, "price": 5},
                {"productId": "P2", "quantity": 2, "price": 1},
            ],
            "total": 7,
            "paymentMethod": "mpesa",
            "reference": "QX12",
            "createdAt": "2026-01-11T09:30:00Z",
        })

        assert migrate_local_to_remote(local_access(document)) is True

        supplier_ids = {s.id for s in db.session.query(Supplier).all()}
        product_ids = {p.id for p in db.session.query(Product).all()}
        for product in db.session.query(Product).all():
            assert product.supplier_id in supplier_ids
        for item in db.session.query(SaleItem).all():
            assert item.product_id in product_ids

        mobile = [s for s in sales_service.list_sales() if s["payment_method"] == "mobile_money"]
        assert len(mobile) == 1
        assert mobile[0]["reference"] == "QX12"
        # Unrecorded staff falls back to the placeholder
        assert mobile[0]["staff_id"] == UNKNOWN_STAFF_ID
        assert mobile[0]["staff_name"] == UNKNOWN_STAFF_NAME

    def test_products_before_suppliers_loses_supplier_link(self, db_session, local_access):
        run = MigrationRun(local_access(acme_bolt_document()))

        run.migrate_products()
        run.migrate_suppliers()

        bolt = products_service.list_products()[0]
        assert bolt["supplier_id"] is None

    def test_run_records_step_counts(self, db_session, local_access):
        run = MigrationRun(local_access(acme_bolt_document()))

        assert run.run() is True

        assert run.counts["Categories"] == 1
        assert run.counts["Suppliers"] == 1
        assert run.counts["Products"] == 1
        assert run.counts["Sales"] == 1
        assert run.counts["Expenses"] == 0
        assert run.products.get("P1") == products_service.list_products()[0]["id"]

    def test_running_twice_duplicates_rows(self, db_session, local_access):
        assert migrate_local_to_remote(local_access(acme_bolt_document())) is True
        assert migrate_local_to_remote(local_access(acme_bolt_document())) is True

        assert count(Supplier) == 2
        assert count(Product) == 2
        assert count(Sale) == 2
        assert count(SaleItem) == 2
        # Categories are keyed by name
        assert count(Category) == 1

    def test_expenses_are_migrated_in_cents(self, db_session, local_access):
        local = local_access({
            rs.EXPENSES: [
                {"id": "E1", "name": "Rent", "amount": "15,000.50", "category": "Rent", "date": "2026-01-01"},
                {"id": "E2", "name": "Tea", "amount": 120, "date": "2026-01-02T08:00:00Z"},
            ]
        })

        assert migrate_local_to_remote(local) is True

        expenses = {e["name"]: e for e in settings_service.export_backup()["expenses"]}
        assert expenses["Rent"]["amount_cents"] == 1500050
        assert expenses["Tea"]["category"] == "Other"
        assert expenses["Tea"]["date"] == "2026-01-02"

    def test_legacy_seed_products_lose_supplier_link(self, db_session):
        store = LocalRecordStore(data={})
        store.initialize()

        assert migrate_local_to_remote(LocalDataAccess(store)) is True

        assert count(Supplier) == 5
        assert count(Product) == 5
        # Seed rows hold a company name rather than a supplier id
        assert all(p["supplier_id"] is None for p in products_service.list_products())
        assert len(categories_service.list_categories()) == 7


# =============================================================================
# DELIVERIES
# =============================================================================

class TestDeliveryMigration:
    def _document(self, supplier_id="S1"):
        document = acme_bolt_document()
        document[rs.DELIVERIES] = [{
            "id": "D1",
            "supplierId": supplier_id,
            "supplierName": "Acme",
            "date": "2026-01-05",
            "items": [{"productId": "P1", "quantity": 4, "cost": 3}],
        }]
        return document

    def test_deliveries_are_mapped_without_restocking(self, db_session, local_access):
        assert migrate_local_to_remote(local_access(self._document())) is True

        acme = suppliers_service.list_suppliers()[0]
        bolt = products_service.list_products()[0]
        deliveries = deliveries_service.list_deliveries(include_items=True)

        assert len(deliveries) == 1
        delivery = deliveries[0]
        assert delivery["supplier_id"] == acme["id"]
        assert delivery["cost_cents"] == 300
        assert delivery["items"][0]["product_id"] == bolt["id"]
        assert bolt["quantity"] == 10

    def test_unknown_supplier_aborts(self, db_session, local_access):
        assert migrate_local_to_remote(local_access(self._document("S404"))) is False
        assert count(Delivery) == 0
        # Earlier steps stay written
        assert count(Sale) == 1

    def test_deliveries_can_be_skipped(self, db_session, local_access):
        local = local_access(self._document("S404"))
        assert migrate_local_to_remote(local, include_deliveries=False) is True
        assert count(Delivery) == 0
        assert count(DeliveryItem) == 0


# =============================================================================
# FAILURES
# =============================================================================

class TestMigrationFailures:
    def test_stale_product_reference_aborts_and_leaves_header(self, db_session, local_access):
        document = acme_bolt_document()
        document[rs.SALES][0]["items"][0]["productId"] = "P-deleted"

        assert migrate_local_to_remote(local_access(document)) is False

        # Header commits before the items, and nothing rolls it back
        assert count(Sale) == 1
        assert count(SaleItem) == 0

    def test_malformed_local_record_aborts(self, db_session, local_access):
        document = acme_bolt_document()
        document[rs.PRODUCTS][0]["quantity"] = "lots"

        assert migrate_local_to_remote(local_access(document)) is False
        assert count(Supplier) == 1
        assert count(Product) == 0
        assert count(Sale) == 0


# =============================================================================
# STORE PROFILE
# =============================================================================

class TestStoreInfoMigration:
    def test_copied_only_when_remote_is_unset(self, db_session, local_access):
        assert migrate_local_to_remote(local_access({rs.STORE_INFO: {"name": "Mic3", "phone": "0700"}})) is True
        assert settings_service.get_store_info(defaults=False) == {"name": "Mic3", "phone": "0700"}

        assert migrate_local_to_remote(local_access({rs.STORE_INFO: {"name": "Other"}})) is True
        assert settings_service.get_store_info(defaults=False)["name"] == "Mic3"
