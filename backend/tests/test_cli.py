"""
Flask CLI commands, invoked through the app's test runner.
"""

import json

from hardware_pos.extensions import db
from hardware_pos.local_store import record_store as rs
from hardware_pos.models import Product, Supplier, User


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["system", "init"])
    assert first.exit_code == 0, first.output
    assert "PASS Created admin admin@mic3hardware.com" in first.output

    second = runner.invoke(args=["system", "init"])
    assert "SKIP admin@mic3hardware.com already exists" in second.output
    assert db.session.query(User).count() == 2


def test_users_create(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create",
        "--name", "Jane", "--email", "jane@example.com",
        "--password", "Password123!", "--role", "admin",
    ])

    assert result.exit_code == 0, result.output
    assert "jane@example.com (admin)" in result.output


def test_users_create_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create", "--name", "Jane", "--email", "jane@example.com", "--password", "weak",
    ])
    assert result.exit_code != 0


def test_local_init_and_show(app, tmp_path):
    path = tmp_path / "local_store.json"
    runner = app.test_cli_runner()

    result = runner.invoke(args=["local", "init", "--path", str(path)])
    assert result.exit_code == 0, result.output
    assert "PASS Seeded" in result.output
    assert set(json.loads(path.read_text(encoding="utf-8"))) == set(rs.COLLECTIONS)

    again = runner.invoke(args=["local", "init", "--path", str(path)])
    assert "SKIP" in again.output

    shown = runner.invoke(args=["local", "show", "--path", str(path)])
    assert shown.exit_code == 0
    assert "pos_products" in shown.output


def test_local_show_reports_malformed_record(app, local_file):
    path = local_file({rs.PRODUCTS: [{"id": "1"}]})

    result = app.test_cli_runner().invoke(args=["local", "show", "--path", str(path)])

    assert result.exit_code != 0
    assert "pos_products[0].name" in result.output


def test_migrate_local_run(app, db_session, local_file):
    path = local_file({
        rs.SUPPLIERS: [{"id": "S1", "name": "Acme"}],
        rs.PRODUCTS: [{"id": "P1", "name": "Bolt", "supplier": "S1", "quantity": 10}],
    })

    result = app.test_cli_runner().invoke(args=["migrate-local", "run", "--path", str(path), "--yes"])

    assert result.exit_code == 0, result.output
    assert "PASS Migration completed" in result.output
    assert db.session.query(Supplier).count() == 1
    assert db.session.query(Product).one().supplier_id == db.session.query(Supplier).one().id


def test_migrate_local_run_failure_exits_nonzero(app, db_session, local_file):
    path = local_file({rs.DELIVERIES: [{"id": "D1", "supplierId": "nobody", "date": "2026-01-01"}]})

    result = app.test_cli_runner().invoke(args=["migrate-local", "run", "--path", str(path), "--yes"])

    assert result.exit_code != 0
    assert "Migration failed" in result.output


def test_reports_export(app, db_session, make_product, tmp_path):
    make_product(name="Bolt", sku="BLT1")
    out = tmp_path / "inventory.csv"

    result = app.test_cli_runner().invoke(args=["reports", "export", "inventory", "--out", str(out)])

    assert result.exit_code == 0, result.output
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Name,SKU")
    assert lines[1].startswith("Bolt,BLT1,Hardware,10")


def test_cleanup_sessions(app, db_session, admin_user):
    from datetime import timedelta

    from hardware_pos.models import SessionToken
    from hardware_pos.services import session_service
    from hardware_pos.time_utils import utcnow

    session_service.create_session(admin_user.id)
    old, _ = session_service.create_session(admin_user.id)
    old.created_at = utcnow() - timedelta(days=40)
    old.expires_at = utcnow() - timedelta(days=39)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])

    assert "Deleted 1 " in result.output
    assert db.session.query(SessionToken).count() == 1
