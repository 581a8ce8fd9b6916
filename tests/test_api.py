import logging
from decimal import Decimal

from sqlalchemy import select

from kiosk.models import Order, OrderItem


def cart_line(product_id, name, qty, unit):
    return {
        "cart_item_id": 1700000000000 + product_id,
        "product_id": product_id,
        "product_name": name,
        "quantity": qty,
        "price_per_unit": unit,
        "subtotal": round(unit * qty, 2),
    }

def inventory(client):
    r = client.get("/api/cashier/inventory")
    assert r.status_code == 200
    return {row["item_id"]: row["quantity"] for row in r.json()}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.text == "ok"


def test_menu(client, seed):
    r = client.get("/api/menu")
    assert r.status_code == 200
    body = r.json()
    # ordered by category, then name
    assert [p["name"] for p in body] == ["Lychee Green Tea", "Classic Milk Tea", "Bottled Water"]
    assert body[1] == {"product_id": 1, "name": "Classic Milk Tea", "category": "Milk Tea", "price": 4.5}
    assert client.get("/api/cashier/products").json() == body


def test_customizations_offer_in_stock_toppings(client, seed):
    r = client.get("/api/customizations")
    assert r.status_code == 200
    body = r.json()
    assert body["sizes"] == ["Small", "Medium", "Large"]
    assert "Regular Ice" in body["iceOptions"]
    assert body["sweetnessOptions"][-1] == "100%"
    names = [t["name"] for t in body["toppings"]]
    assert "Lychee Jelly" not in names
    assert names == sorted(names)
    assert all(t["price"] == 0.5 for t in body["toppings"])


def test_cashier_order(client, seed):
    assert client.get("/api/cashier/next-order-id").json() == {"nextOrderId": 1}

    r = client.post("/api/cashier/orders", json={"items": [
        cart_line(1, "Classic Milk Tea", 2, 4.5),
        cart_line(2, "Lychee Green Tea", 1, 5.0),
    ]})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["orderId"] == 1
    assert body["totalPrice"] == 14.0
    assert body["message"] == "Order placed successfully"

    assert inventory(client) == {1: 97, 2: 48, 3: 6, 4: 4, 5: 0}
    assert client.get("/api/cashier/next-order-id").json() == {"nextOrderId": 2}


def test_cashier_order_insufficient_stock(client, seed):
    before = inventory(client)
    r = client.post("/api/cashier/orders", json={"items": [cart_line(1, "Classic Milk Tea", 6, 4.5)]})
    assert r.status_code == 400
    assert "Insufficient inventory for ingredient ID 3" in r.json()["detail"]
    assert inventory(client) == before
    assert client.get("/api/cashier/next-order-id").json() == {"nextOrderId": 1}


def test_cashier_order_empty(client, seed):
    r = client.post("/api/cashier/orders", json={"items": []})
    assert r.status_code == 400
    assert r.json()["detail"] == "Order must contain at least one item"

    r = client.post("/api/cashier/orders", json={})
    assert r.status_code == 400


def test_cashier_order_unknown_product(client, seed):
    r = client.post("/api/cashier/orders", json={"items": [cart_line(9, "Ghost", 1, 1.0)]})
    assert r.status_code == 400
    assert "unknown product" in r.json()["detail"]


def test_cashier_order_rejects_bad_quantity(client, seed):
    line = cart_line(1, "Classic Milk Tea", 1, 4.5)
    line["quantity"] = 0
    r = client.post("/api/cashier/orders", json={"items": [line]})
    assert r.status_code == 422


def test_customer_order(client, seed, session_factory):
    r = client.post("/api/orders", json={
        "items": [{
            "menuItemId": 1,
            "name": "Classic Milk Tea",
            "size": "Large",
            "iceLevel": "Less Ice",
            "sweetnessLevel": "50%",
            "toppings": [{"id": 3, "name": "Tapioca Pearls", "price": 0.5}],
            "price": 14.5,
            "quantity": 2,
        }],
        "total": 14.5,
        "customerEmail": "guest@example.com",
    })
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "order placed"
    assert body["totalPrice"] == 14.5

    with session_factory() as s:
        item = s.execute(select(OrderItem).where(OrderItem.order_id == body["orderId"])).scalar_one()
        assert item.product_name == (
            "Classic Milk Tea (Size: Large, Ice: Less Ice, Sweetness: 50%, Toppings: Tapioca Pearls)"
        )
        assert float(item.price_per_unit) == 7.25
        assert item.product_id == 1

    # customer orders consume inventory like cashier orders
    assert inventory(client)[3] == 6


def test_customer_order_insufficient_stock(client, seed):
    r = client.post("/api/orders", json={"items": [
        {"menuItemId": 2, "name": "Lychee Green Tea", "price": 30.0, "quantity": 6},
    ]})
    assert r.status_code == 400
    assert inventory(client)[4] == 5


def test_metrics_count_orders(client, seed):
    client.post("/api/cashier/orders", json={"items": []})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert 'order_create_failures_total{reason="empty"}' in r.text


def stored_order(session_factory, order_id):
    with session_factory() as s:
        order = s.get(Order, order_id)
        return order.total_price, [i.subtotal for i in order.items]


def test_cashier_order_rounds_sub_cent_amounts(client, seed, session_factory):
    line = {"product_id": 3, "product_name": "Bottled Water", "quantity": 1,
            "price_per_unit": "1.005", "subtotal": "1.005"}
    r = client.post("/api/cashier/orders", json={"items": [line, dict(line)]})
    assert r.status_code == 200, r.text
    assert r.json()["totalPrice"] == 2.02

    total, subtotals = stored_order(session_factory, r.json()["orderId"])
    assert subtotals == [Decimal("1.01"), Decimal("1.01")]
    assert sum(subtotals) == total


def test_customer_order_rounds_sub_cent_amounts(client, seed, session_factory):
    item = {"menuItemId": 3, "name": "Bottled Water", "price": "0.015", "quantity": 1}
    r = client.post("/api/orders", json={"items": [item, dict(item)]})
    assert r.status_code == 200, r.text
    assert r.json()["totalPrice"] == 0.04

    total, subtotals = stored_order(session_factory, r.json()["orderId"])
    assert sum(subtotals) == total == Decimal("0.04")


def test_customer_order_logs_customer_email(client, seed, caplog):
    item = {"menuItemId": 3, "name": "Bottled Water", "price": 1.0, "quantity": 1}
    with caplog.at_level(logging.INFO, logger="kiosk.routers.menu"):
        r = client.post("/api/orders", json={"items": [item], "customerEmail": "guest@example.com"})
        client.post("/api/orders", json={"items": [item]})
    assert r.status_code == 200
    messages = [rec.getMessage() for rec in caplog.records if rec.name == "kiosk.routers.menu"]
    assert messages == [
        f"kiosk order {r.json()['orderId']} placed by guest@example.com",
        f"kiosk order {r.json()['orderId'] + 1} placed by guest",
    ]
