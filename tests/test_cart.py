from decimal import Decimal

from conftest import cart_lines


def test_add_item_and_summary(client, user, make_product):
    product = make_product(price="1000.00")

    resp = client.post(f"/cart/items?user_id={user.id}", json={"product_id": product.id, "quantity": 2})

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["items"][0]["quantity"] == 2
    assert Decimal(body["subtotal"]) == Decimal("2000.00")
    assert Decimal(body["shipping"]) == Decimal("500.00")
    assert Decimal(body["tax"]) == Decimal("360.00")
    assert Decimal(body["total"]) == Decimal("2860.00")


def test_same_product_and_color_is_merged(client, user, make_product):
    product = make_product(colors=["grey", "beige"])

    client.post(f"/cart/items?user_id={user.id}", json={"product_id": product.id, "quantity": 1, "color": "grey"})
    client.post(f"/cart/items?user_id={user.id}", json={"product_id": product.id, "quantity": 2, "color": "grey"})
    client.post(f"/cart/items?user_id={user.id}", json={"product_id": product.id, "quantity": 1, "color": "beige"})

    assert cart_lines(user.id) == [(product.id, "grey", 3), (product.id, "beige", 1)]


def test_unknown_color_is_rejected(client, user, make_product):
    product = make_product(colors=["grey"])

    resp = client.post(
        f"/cart/items?user_id={user.id}",
        json={"product_id": product.id, "quantity": 1, "color": "pink"},
    )

    assert resp.status_code == 400
    assert cart_lines(user.id) == []


def test_unknown_product_is_rejected(client, user):
    resp = client.post(f"/cart/items?user_id={user.id}", json={"product_id": 999, "quantity": 1})
    assert resp.status_code == 400


def test_update_quantity(client, user, make_product, add_to_cart):
    product = make_product()
    item = add_to_cart(user.id, product.id, 1)

    resp = client.patch(f"/cart/items/{item.id}?user_id={user.id}", json={"quantity": 4})
    assert resp.status_code == 200
    assert resp.json()["items"][0]["quantity"] == 4

    resp = client.patch(f"/cart/items/{item.id}?user_id={user.id}", json={"quantity": 0})
    assert resp.status_code == 400


def test_cannot_touch_someone_elses_cart_item(client, user, make_product, add_to_cart):
    from conftest import _add
    from app.data.models import UserModel

    other = _add(UserModel(id=2, name="Ravi"))
    product = make_product()
    item = add_to_cart(other.id, product.id, 1)

    assert client.patch(f"/cart/items/{item.id}?user_id={user.id}", json={"quantity": 3}).status_code == 403
    assert client.delete(f"/cart/items/{item.id}?user_id={user.id}").status_code == 403
    assert client.delete(f"/cart/items/12345?user_id={user.id}").status_code == 404
    assert cart_lines(other.id) == [(product.id, "", 1)]


def test_remove_and_clear(client, user, make_product, add_to_cart):
    p1, p2 = make_product(), make_product()
    item = add_to_cart(user.id, p1.id, 1)
    add_to_cart(user.id, p2.id, 2)

    resp = client.delete(f"/cart/items/{item.id}?user_id={user.id}")
    assert resp.status_code == 200
    assert cart_lines(user.id) == [(p2.id, "", 2)]

    resp = client.delete(f"/cart/?user_id={user.id}")
    assert resp.status_code == 200
    assert resp.json()["count"] == 0
    assert cart_lines(user.id) == []
