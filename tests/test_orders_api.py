import pytest

from storefront.common.config import settings
from storefront.inventory import ledger
from tests.helpers import auth_headers, fill_cart, make_product, order_count, stock_of

ADDRESS = {
    "full_name": "Jo Doe",
    "phone": "+49 30 123456",
    "address1": "Main Street 1",
    "city": "Berlin",
    "postal_code": "10115",
    "country": "DE",
}


async def _create(client, identity, body=None):
    return await client.post("/api/orders", json=body or {}, headers=auth_headers(identity))


class TestCreateOrder:

    async def test_requires_token(self, client):
        response = await client.post("/api/orders", json={})
        assert response.status_code == 401
        assert (await response.get_json())["message"] == "Missing token"

    async def test_rejects_bad_token(self, client):
        response = await client.post("/api/orders", json={}, headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert (await response.get_json())["message"] == "Invalid token"

    async def test_created(self, client, buyer):
        pid = await make_product(price="10.00", stock=5)
        await fill_cart(buyer.id, (pid, 2))

        response = await _create(client, buyer, {"shipping_address": ADDRESS, "payment_method": "cod"})

        assert response.status_code == 201
        order = (await response.get_json())["order"]
        assert order["subtotal"] == 20.0
        assert order["grand_total"] == 20.0
        assert order["status"] == "pending"
        assert order["payment_status"] == "unpaid"
        assert order["shipping_address"]["city"] == "Berlin"
        assert "address2" not in order["shipping_address"]
        assert order["items"] == [
            {"product_id": pid, "title": "Product A", "slug": "product-a", "price": 10.0, "qty": 2, "line_total": 20.0}
        ]
        assert await stock_of(pid) == 3

    async def test_empty_cart(self, client, buyer):
        response = await _create(client, buyer)
        assert response.status_code == 400
        assert await response.get_json() == {"status": 400, "message": "Cart is empty"}

    async def test_insufficient_stock(self, client, buyer):
        pid = await make_product(slug="product-b", stock=1)
        await fill_cart(buyer.id, (pid, 2))

        response = await _create(client, buyer)

        assert response.status_code == 400
        assert (await response.get_json())["message"] == "Insufficient stock for product-b"

    async def test_unknown_payment_method_is_a_validation_error(self, client, buyer):
        response = await _create(client, buyer, {"payment_method": "bitcoin"})

        assert response.status_code == 400
        body = await response.get_json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "payment_method"

    async def test_incomplete_address_is_a_validation_error(self, client, buyer):
        response = await _create(client, buyer, {"shipping_address": {"full_name": "Jo"}})

        assert response.status_code == 400
        fields = {e["field"] for e in (await response.get_json())["errors"]}
        assert "shipping_address.city" in fields


class TestReadOrders:

    async def test_my_orders_newest_first(self, client, buyer, other_buyer):
        pid = await make_product(stock=10)
        for _ in range(2):
            await client.post("/api/cart/items", json={"product_slug": "product-a", "qty": 1}, headers=auth_headers(buyer))
            await _create(client, buyer)
        await fill_cart(other_buyer.id, (pid, 1))
        await _create(client, other_buyer)

        response = await client.get("/api/orders", headers=auth_headers(buyer))

        items = (await response.get_json())["items"]
        assert len(items) == 2
        assert items[0]["id"] > items[1]["id"]
        assert {o["user_id"] for o in items} == {buyer.id}

    async def test_get_order_permissions(self, client, buyer, other_buyer, admin):
        pid = await make_product()
        await fill_cart(buyer.id, (pid, 1))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]

        own = await client.get(f"/api/orders/{order_id}", headers=auth_headers(buyer))
        other = await client.get(f"/api/orders/{order_id}", headers=auth_headers(other_buyer))
        as_admin = await client.get(f"/api/orders/{order_id}", headers=auth_headers(admin))
        missing = await client.get("/api/orders/9999", headers=auth_headers(buyer))

        assert own.status_code == 200
        assert other.status_code == 403
        assert as_admin.status_code == 200
        assert missing.status_code == 404

    async def test_admin_list_all(self, client, buyer, admin):
        pid = await make_product()
        await fill_cart(buyer.id, (pid, 1))
        await _create(client, buyer)

        denied = await client.get("/api/orders/admin/all", headers=auth_headers(buyer))
        allowed = await client.get("/api/orders/admin/all", headers=auth_headers(admin))

        assert denied.status_code == 403
        assert (await denied.get_json())["message"] == "Admin only"
        assert len((await allowed.get_json())["items"]) == 1


class TestStatusAndCancel:

    async def test_admin_status_update_is_unrestricted(self, client, buyer, admin):
        pid = await make_product()
        await fill_cart(buyer.id, (pid, 1))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]
        url = f"/api/orders/{order_id}/status"

        delivered = await client.patch(url, json={"status": "delivered", "payment_status": "paid"}, headers=auth_headers(admin))
        back = await client.patch(url, json={"status": "pending"}, headers=auth_headers(admin))

        assert (await delivered.get_json())["order"]["status"] == "delivered"
        body = (await back.get_json())["order"]
        assert body["status"] == "pending"
        assert body["payment_status"] == "paid"

    async def test_status_update_rejects_unknown_values(self, client, admin):
        response = await client.patch("/api/orders/1/status", json={"status": "lost"}, headers=auth_headers(admin))
        assert response.status_code == 400

    async def test_status_update_requires_admin(self, client, buyer):
        response = await client.patch("/api/orders/1/status", json={"status": "paid"}, headers=auth_headers(buyer))
        assert response.status_code == 403

    async def test_cancel_flow(self, client, buyer, admin):
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 2))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]

        first = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(buyer))
        second = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(buyer))

        assert first.status_code == 200
        assert await first.get_json() == {"ok": True}
        assert second.status_code == 400
        assert (await second.get_json())["message"] == "Already cancelled"
        assert await stock_of(pid) == 5

    async def test_cancel_after_payment(self, client, buyer, admin):
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]
        await client.patch(f"/api/orders/{order_id}/status", json={"payment_status": "paid"}, headers=auth_headers(admin))

        response = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(buyer))

        assert response.status_code == 400
        assert (await response.get_json())["message"] == "Cannot cancel after payment or processing"

    async def test_cancel_someone_elses_order(self, client, buyer, other_buyer):
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]

        response = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(other_buyer))

        assert response.status_code == 403

    async def test_cancel_missing_order(self, client, buyer):
        response = await client.delete("/api/orders/12345", headers=auth_headers(buyer))
        assert response.status_code == 404


class TestMalformedBody:

    async def test_unparseable_order_body_is_rejected(self, client, buyer):
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))

        response = await client.post(
            "/api/orders",
            data=b"{not json",
            headers={**auth_headers(buyer), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = await response.get_json()
        assert body["message"] == "Validation failed"
        assert body["errors"] == [{"field": "body", "message": "Malformed JSON"}]
        assert await order_count() == 0
        assert await stock_of(pid) == 5

    async def test_unparseable_status_body_is_rejected(self, client, buyer, admin):
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]

        response = await client.patch(
            f"/api/orders/{order_id}/status",
            data=b"{status:",
            headers={**auth_headers(admin), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert (await response.get_json())["errors"][0]["field"] == "body"

    async def test_missing_body_still_means_defaults(self, client, buyer):
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))

        response = await client.post("/api/orders", headers=auth_headers(buyer))

        assert response.status_code == 201
        assert (await response.get_json())["order"]["payment_method"] == "cod"


@pytest.fixture()
def broken_decrement(monkeypatch):
    async def fail(session, product_id, quantity, slug=None):
        raise RuntimeError("disk I/O error")

    monkeypatch.setattr(ledger, "decrement", fail)


class TestTransactionFailures:

    async def test_checkout_failure_shows_stack_outside_production(self, client, buyer, broken_decrement, monkeypatch):
        monkeypatch.setattr(settings, "APP_ENV", "development")
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))

        response = await _create(client, buyer)

        assert response.status_code == 500
        body = await response.get_json()
        assert body["status"] == 500
        assert body["message"] == "disk I/O error"
        assert "RuntimeError" in body["stack"]
        assert await order_count() == 0
        assert await stock_of(pid) == 5

    async def test_checkout_failure_hides_stack_in_production(self, client, buyer, broken_decrement, monkeypatch):
        monkeypatch.setattr(settings, "APP_ENV", "production")
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 1))

        response = await _create(client, buyer)

        assert response.status_code == 500
        assert await response.get_json() == {"status": 500, "message": "disk I/O error"}

    async def test_cancel_failure_is_a_500(self, client, buyer, monkeypatch):
        monkeypatch.setattr(settings, "APP_ENV", "production")
        pid = await make_product(stock=5)
        await fill_cart(buyer.id, (pid, 2))
        order_id = (await (await _create(client, buyer)).get_json())["order"]["id"]

        async def fail(session, product_id, quantity):
            raise RuntimeError("disk full")

        monkeypatch.setattr(ledger, "increment", fail)
        response = await client.delete(f"/api/orders/{order_id}", headers=auth_headers(buyer))

        assert response.status_code == 500
        assert await response.get_json() == {"status": 500, "message": "Cancel failed"}
        assert await stock_of(pid) == 3
