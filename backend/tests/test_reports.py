"""
Reports, CSV exports and the dashboard.

Figures are computed against a fixed "now" so date windows are stable.
"""

from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from hardware_pos.services import expenses_service, reporting_service, sales_service
from hardware_pos.services.reporting_service import ReportError

NOW = datetime(2026, 3, 15, 12, 0)


@pytest.fixture
def shop(make_product):
    """One product sold three times across a few months, plus expenses."""
    bolt = make_product(name="Bolt", quantity=10, buying_price_cents=300, selling_price_cents=500)
    short = make_product(name="Anchor", quantity=1, reorder_level=5)
    make_product(name="Loose Nails", category=None, quantity=7, reorder_level=0)

    def sell(when, qty, method, **extra):
        item = {"product_id": bolt["id"], "quantity": qty, "price_cents": 500, "total_cents": qty * 500}
        sale = {
            "payment_method": method,
            "staff_id": "1",
            "staff_name": "Alice Admin",
            "total_cents": qty * 500,
            "created_at": when,
        }
        sale.update(extra)
        return sales_service.save_sale(sale, [item])

    sell(datetime(2026, 3, 15, 9, 0), 3, "cash")
    sell(datetime(2026, 3, 10, 16, 30), 1, "mobile_money", reference="QX1")
    sell(datetime(2025, 12, 1, 10, 0), 2, "credit", customer_name="Jane")

    expenses_service.save_expense({"name": "Rent", "amount_cents": 2000, "category": "Rent", "date": date(2026, 3, 1)})
    expenses_service.save_expense({"name": "Tea", "amount_cents": 100, "category": "Other", "date": date(2026, 3, 15)})
    expenses_service.save_expense({"name": "Paint", "amount_cents": 500, "category": "Repairs", "date": date(2025, 11, 1)})

    return {"bolt": bolt, "short": short}


# =============================================================================
# SUMMARY
# =============================================================================

class TestSummary:
    def test_month(self, shop):
        report = reporting_service.summary("month", now=NOW)

        assert report["total_sales_cents"] == 2000
        assert report["total_expenses_cents"] == 2100
        assert report["net_profit_cents"] == -100
        assert report["payment_breakdown"] == {"cash": 1500, "mobile_money": 500, "credit": 0}
        assert report["top_products"] == [{
            "product_id": shop["bolt"]["id"],
            "product_name": "Bolt",
            "quantity": 4,
            "total_cents": 2000,
        }]

    def test_today(self, shop):
        report = reporting_service.summary("today", now=NOW)
        assert report["total_sales_cents"] == 1500
        assert report["total_expenses_cents"] == 100

    def test_all(self, shop):
        report = reporting_service.summary("all", now=NOW)
        assert report["total_sales_cents"] == 3000
        assert report["total_expenses_cents"] == 2600
        assert report["payment_breakdown"]["credit"] == 1000

    def test_unknown_range(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.summary("decade", now=NOW)


# =============================================================================
# CHARTS
# =============================================================================

class TestCharts:
    def test_sales_per_day(self, shop):
        assert reporting_service.chart_series("sales", "month", now=NOW) == [
            {"name": "2026-03-10", "value": 500},
            {"name": "2026-03-15", "value": 1500},
        ]

    def test_expenses_per_category(self, shop):
        assert reporting_service.chart_series("expenses", "month", now=NOW) == [
            {"name": "Other", "value": 100},
            {"name": "Rent", "value": 2000},
        ]

    def test_inventory_per_category(self, shop):
        # Bolt sold 6 of 10
        assert reporting_service.chart_series("inventory", "all", now=NOW) == [
            {"name": "Hardware", "value": 4 + 1},
            {"name": "Uncategorized", "value": 7},
        ]

    def test_profit_per_day(self, shop):
        assert reporting_service.chart_series("profit", "month", now=NOW) == [
            {"name": "2026-03-01", "value": -2000},
            {"name": "2026-03-10", "value": 500},
            {"name": "2026-03-15", "value": 1400},
        ]

    def test_unknown_type(self, db_session):
        with pytest.raises(ReportError):
            reporting_service.chart_series("weather", "month", now=NOW)


# =============================================================================
# CSV EXPORT
# =============================================================================

class TestExport:
    def test_sales_csv(self, shop):
        filename, text = reporting_service.export_csv("sales", "month", now=NOW)

        assert filename == "sales_report_2026-03-15.csv"
        assert text.splitlines() == [
            "Date,Total,Payment Method,Items",
            "2026-03-15,15.00,cash,1",
            "2026-03-10,5.00,mobile_money,1",
        ]

    def test_expenses_csv(self, shop):
        _, text = reporting_service.export_csv("expenses", "month", now=NOW)
        assert text.splitlines() == [
            "Date,Name,Category,Amount",
            "2026-03-15,Tea,Other,1.00",
            "2026-03-01,Rent,Rent,20.00",
        ]

    def test_inventory_csv(self, shop):
        _, text = reporting_service.export_csv("inventory", "all", now=NOW)
        lines = text.splitlines()

        assert lines[0] == "Name,SKU,Category,Quantity,Buying Price,Selling Price,Reorder Level"
        assert lines[2] == "Bolt,,Hardware,4,3.00,5.00,2"
        assert len(lines) == 4

    def test_profit_csv(self, shop):
        _, text = reporting_service.export_csv("profit", "month", now=NOW)
        assert text.splitlines() == [
            "Period,Sales,Expenses,Profit",
            "month,20.00,21.00,-1.00",
        ]


# =============================================================================
# DASHBOARD
# =============================================================================

class TestDashboard:
    def test_today(self, shop):
        board = reporting_service.dashboard(now=NOW)

        assert board["date"] == "2026-03-15"
        assert board["today_sales_cents"] == 1500
        assert board["today_sales_count"] == 1
        # 3 x (500 - 300)
        assert board["today_profit_cents"] == 600
        assert [p["name"] for p in board["low_stock"]] == ["Anchor"]
        assert [s["payment_method"] for s in board["recent_sales"]] == ["cash", "mobile_money", "credit"]

    def test_empty_store(self, db_session):
        board = reporting_service.dashboard(now=NOW)
        assert board["today_sales_cents"] == 0
        assert board["today_profit_cents"] == 0
        assert board["low_stock"] == []
        assert board["recent_sales"] == []


# =============================================================================
# ROUTES
# =============================================================================

class TestReportRoutes:
    def test_summary(self, client, admin_headers, shop):
        response = client.get("/api/reports/summary?range=all", headers=admin_headers)
        assert response.status_code == 200
        assert response.json["total_sales_cents"] == 3000

    def test_invalid_range(self, client, admin_headers):
        response = client.get("/api/reports/summary?range=decade", headers=admin_headers)
        assert response.status_code == 400

    def test_chart(self, client, admin_headers, shop):
        response = client.get("/api/reports/chart/inventory", headers=admin_headers)
        assert response.status_code == 200
        assert response.json["type"] == "inventory"
        assert response.json["range"] == "month"
        assert response.json["series"][0]["name"] == "Hardware"

    def test_invalid_chart_type(self, client, admin_headers):
        assert client.get("/api/reports/chart/weather", headers=admin_headers).status_code == 400

    def test_export_download(self, client, admin_headers, shop):
        response = client.get("/api/reports/export/inventory", headers=admin_headers)

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "inventory_report_" in response.headers["Content-Disposition"]
        assert response.get_data(as_text=True).startswith("Name,SKU,Category")

    def test_dashboard_route(self, client, cashier_headers, shop):
        response = client.get("/api/dashboard", headers=cashier_headers)
        assert response.status_code == 200
        assert "low_stock" in response.json


class TestStoreFailures:
    @pytest.fixture
    def broken_store(self, monkeypatch):
        def fail(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        monkeypatch.setattr(reporting_service, "range_start", fail)

    def test_service_returns_none(self, db_session, broken_store):
        assert reporting_service.summary("month", now=NOW) is None
        assert reporting_service.chart_series("sales", "month", now=NOW) is None
        assert reporting_service.export_csv("sales", "month", now=NOW) is None
        assert reporting_service.dashboard(now=NOW) is None

    def test_routes_answer_500(self, client, admin_headers, broken_store):
        assert client.get("/api/reports/summary", headers=admin_headers).status_code == 500
        assert client.get("/api/reports/chart/sales", headers=admin_headers).status_code == 500
        assert client.get("/api/reports/export/sales", headers=admin_headers).status_code == 500
        assert client.get("/api/dashboard", headers=admin_headers).status_code == 500
