"""
Checkout over the HTTP API.
"""

import pytest

from hardware_pos.services import products_service, sales_service


def checkout(client, headers, items, **fields):
    payload = {"payment_method": "cash", "items": items}
    payload.update(fields)
    return client.post("/api/sales", json=payload, headers=headers)


class TestCheckout:
    def test_cash_sale(self, client, cashier_headers, cashier_user, make_product):
        bolt = make_product(quantity=10, selling_price_cents=500)

        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 3}])

        assert response.status_code == 201
        sale = response.json
        assert sale["total_cents"] == 1500
        assert sale["payment_method"] == "cash"
        assert sale["staff_id"] == str(cashier_user.id)
        assert sale["staff_name"] == "Carl Cashier"
        assert sale["items"][0]["product_name"] == "Bolt"
        assert products_service.get_product(bolt["id"])["quantity"] == 7

    def test_price_comes_from_product_not_client(self, client, cashier_headers, make_product):
        bolt = make_product(selling_price_cents=500)

        response = checkout(client, cashier_headers, [
            {"product_id": bolt["id"], "quantity": 1, "price_cents": 1, "total_cents": 1},
        ], total_cents=1)

        assert response.status_code == 201
        assert response.json["items"][0]["price_cents"] == 500
        assert response.json["total_cents"] == 500

    def test_staff_cannot_be_spoofed(self, client, cashier_headers, cashier_user, make_product):
        bolt = make_product()

        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}],
                            staff_id="999", staff_name="Someone Else")

        assert response.json["staff_id"] == str(cashier_user.id)
        assert response.json["staff_name"] == "Carl Cashier"

    def test_mobile_money_with_reference(self, client, cashier_headers, make_product):
        bolt = make_product()

        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}],
                            payment_method="mobile_money", reference="QX7Y")

        assert response.status_code == 201
        assert response.json["reference"] == "QX7Y"

    def test_credit_with_customer(self, client, cashier_headers, make_product):
        bolt = make_product()

        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}],
                            payment_method="credit", customer_name="Jane Builder")

        assert response.status_code == 201
        assert response.json["customer_name"] == "Jane Builder"


class TestCheckoutValidation:
    def test_empty_cart(self, client, cashier_headers, db_session):
        response = checkout(client, cashier_headers, [])
        assert response.status_code == 400
        assert response.json["error"] == "Cart is empty"

    def test_unknown_payment_method(self, client, cashier_headers, make_product):
        bolt = make_product()
        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}],
                            payment_method="barter")
        assert response.status_code == 400

    def test_mobile_money_needs_reference(self, client, cashier_headers, make_product):
        bolt = make_product()
        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}],
                            payment_method="mobile_money", reference="  ")
        assert response.status_code == 400
        assert "reference" in response.json["error"]

    def test_credit_needs_customer(self, client, cashier_headers, make_product):
        bolt = make_product()
        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}],
                            payment_method="credit")
        assert response.status_code == 400
        assert "customer_name" in response.json["error"]

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
    def test_quantity_must_be_positive_integer(self, client, cashier_headers, make_product, quantity):
        bolt = make_product()
        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": quantity}])
        assert response.status_code == 400

    def test_unknown_product(self, client, cashier_headers, db_session):
        response = checkout(client, cashier_headers, [{"product_id": "missing", "quantity": 1}])
        assert response.status_code == 400
        assert response.json["error"] == "Product not found: missing"

    def test_insufficient_stock(self, client, cashier_headers, make_product):
        bolt = make_product(quantity=2)

        response = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 3}])

        assert response.status_code == 409
        detail = response.json["details"]["items"][0]
        assert detail["product_id"] == bolt["id"]
        assert detail["requested_quantity"] == 3
        assert detail["on_hand"] == 2
        assert sales_service.list_sales() == []
        assert products_service.get_product(bolt["id"])["quantity"] == 2


class TestSalesHistory:
    def test_list_and_get(self, client, cashier_headers, make_product):
        bolt = make_product()
        created = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 1}]).json

        listing = client.get("/api/sales?include_items=true", headers=cashier_headers)
        assert listing.status_code == 200
        assert listing.json["items"][0]["id"] == created["id"]
        assert len(listing.json["items"][0]["items"]) == 1

        single = client.get(f"/api/sales/{created['id']}", headers=cashier_headers)
        assert single.json["total_cents"] == 500

        assert client.get("/api/sales/missing", headers=cashier_headers).status_code == 404

    def test_admin_deletes_sale(self, client, admin_headers, make_product):
        bolt = make_product()
        created = checkout(client, admin_headers, [{"product_id": bolt["id"], "quantity": 1}]).json

        assert client.delete(f"/api/sales/{created['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/sales/{created['id']}", headers=admin_headers).status_code == 404

    def test_sale_items(self, client, cashier_headers, make_product):
        bolt = make_product()
        created = checkout(client, cashier_headers, [{"product_id": bolt["id"], "quantity": 2}]).json

        response = client.get(f"/api/sales/{created['id']}/items", headers=cashier_headers)

        assert response.status_code == 200
        assert [(i["product_id"], i["quantity"]) for i in response.json["items"]] == [(bolt["id"], 2)]
        assert client.get("/api/sales/missing/items", headers=cashier_headers).status_code == 404
