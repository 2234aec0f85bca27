# Overview: First-run rows for an empty local store.

from __future__ import annotations

from ..time_utils import to_utc_z, utcnow

DEFAULT_CATEGORIES = ["Cement", "Tools", "Plumbing", "Electrical", "Paint", "Hardware", "Other"]

# (id, name, email, role, password); the legacy store kept passwords in clear
DEFAULT_USERS = [
    ("1", "Admin", "admin@mic3hardware.com", "admin", "admin123"),
    ("2", "Cashier", "cashier@mic3hardware.com", "cashier", "cashier123"),
]

# (id, name, category, sku, buying, selling, quantity, supplier, reorder level)
DEFAULT_PRODUCTS = [
    ("1", "Bamburi Cement 50kg", "Cement", "CEM001", 650, 750, 50, "Bamburi Distributors", 10),
    ("2", "Hammer", "Tools", "TL001", 300, 450, 15, "Tools Supplier Ltd", 5),
    ("3", "PVC Pipe 1/2 inch", "Plumbing", "PL001", 120, 180, 100, "Plumbing World", 20),
    ("4", "Light Bulb 60W", "Electrical", "EL001", 50, 100, 30, "Electrical Supplies Kenya", 10),
    ("5", "Crown Paint 4L White", "Paint", "PT001", 800, 1200, 10, "Crown Paints", 3),
]

# (id, name, phone, company)
DEFAULT_SUPPLIERS = [
    ("1", "John Supplier", "0700123456", "Bamburi Distributors"),
    ("2", "Mary Supplier", "0711234567", "Tools Supplier Ltd"),
    ("3", "Peter Supplier", "0722345678", "Plumbing World"),
    ("4", "Susan Supplier", "0733456789", "Electrical Supplies Kenya"),
    ("5", "Robert Supplier", "0744567890", "Crown Paints"),
]


def default_collections() -> dict[str, list]:
    now = to_utc_z(utcnow())
    return {
        "pos_users": [
            {"id": i, "name": n, "email": e, "role": r, "password": p}
            for i, n, e, r, p in DEFAULT_USERS
        ],
        "pos_products": [
            {
                "id": i,
                "name": n,
                "category": c,
                "sku": sku,
                "buyingPrice": bp,
                "sellingPrice": sp,
                "quantity": q,
                # Legacy rows name the supplier company here, not a supplier id
                "supplier": sup,
                "reorderLevel": rl,
                "createdAt": now,
                "updatedAt": now,
            }
            for i, n, c, sku, bp, sp, q, sup, rl in DEFAULT_PRODUCTS
        ],
        "pos_suppliers": [
            {"id": i, "name": n, "phone": ph, "company": co, "createdAt": now, "updatedAt": now}
            for i, n, ph, co in DEFAULT_SUPPLIERS
        ],
        "pos_sales": [],
        "pos_expenses": [],
        "pos_deliveries": [],
        "pos_categories": list(DEFAULT_CATEGORIES),
    }
