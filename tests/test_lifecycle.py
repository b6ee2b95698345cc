from datetime import datetime, timezone

import pytest

import config
from lifecycle import (
    Cart,
    EmptyCart,
    InvalidCredentials,
    InvalidTransition,
    NotAuthenticated,
    find_or_create_customer,
    normalize_name,
    order_total,
    place_order,
    set_order_status,
)
from schemas import (
    AdminSession,
    CartItem,
    CheckoutInput,
    CustomerSession,
    OrderStatus,
    PaymentMethod,
    Product,
    ProductType,
    RecurrenceType,
)

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


def _items(store):
    products = store.get_products()
    return [
        CartItem(**products[0].model_dump(), cart_quantity=1),  # 22.00
        CartItem(**products[1].model_dump(), cart_quantity=2),  # 24.00
    ]


def test_order_total_includes_delivery_fee(store):
    assert order_total(_items(store), 5.00) == 75.00


def test_place_order_builds_pending_order(store, customer, checkout_input):
    order = place_order(store, _items(store), customer, checkout_input, delivery_fee=5.00, now=NOW)

    assert order.total == 75.00
    assert order.delivery_fee == 5.00
    assert order.status == OrderStatus.PENDING
    assert order.created_at == NOW
    assert order.customer_id == "c1"
    assert order.customer_name == "Ana"
    assert order.customer_phone == customer.phone
    assert order.address == checkout_input.address
    assert order.payment_method == PaymentMethod.CASH
    assert order.recurrence == RecurrenceType.NONE
    assert store.get_orders()[0].id == order.id


def test_place_order_prepends(store, customer, checkout_input):
    a = place_order(store, _items(store), customer, checkout_input)
    b = place_order(store, _items(store), store.get_customer_by_phone(customer.phone), checkout_input)
    orders = store.get_orders()
    assert orders[0].id == b.id
    assert orders[1].id == a.id


def test_order_ids_are_unique(store, customer, checkout_input):
    ids = {place_order(store, _items(store), customer, checkout_input).id for _ in range(50)}
    assert len(ids) == 50


@pytest.mark.parametrize("prior", [0, 1, 17])
def test_place_order_bumps_customer(store, customer, checkout_input, prior):
    start = customer.model_copy(update={"total_orders": prior})
    store.save_customer(start)

    place_order(store, _items(store), start, checkout_input, now=NOW)

    saved = store.get_customer_by_phone(customer.phone)
    assert saved.total_orders == prior + 1
    assert saved.last_order_date == NOW
    assert saved.address == checkout_input.address
    assert len(store.get_customers()) == 1


def test_place_order_refreshes_session(store, customer, checkout_input):
    place_order(store, _items(store), customer, checkout_input, now=NOW)
    session = store.get_session()
    assert isinstance(session, CustomerSession)
    assert session.data.total_orders == 1
    assert session.data.address == checkout_input.address


def test_order_items_are_a_snapshot(store, customer, checkout_input):
    items = _items(store)
    order = place_order(store, items, customer, checkout_input)
    items[0].cart_quantity = 99
    store.save_product(Product(id="1", name="Renamed", type=ProductType.WHITE,
                               quantity_per_package=30, price=1.0))
    stored = store.get_orders()[0]
    assert stored.id == order.id
    assert stored.items[0].cart_quantity == 1
    assert stored.items[0].name == "Ovos Brancos Grandes"


def test_set_order_status_is_idempotent(store, customer, checkout_input, backend):
    order = place_order(store, _items(store), customer, checkout_input)

    first = set_order_status(store, order.id, OrderStatus.PREPARING)
    blob = backend.get("app_ovo_orders")
    second = set_order_status(store, order.id, OrderStatus.PREPARING)

    assert first == second
    assert first.status == OrderStatus.PREPARING
    assert backend.get("app_ovo_orders") == blob


def test_set_order_status_unknown_id_is_noop(store):
    assert set_order_status(store, "nope", OrderStatus.COMPLETED) is None
    assert store.get_orders() == []


def test_status_changes_are_permissive_by_default(store, customer, checkout_input):
    order = place_order(store, _items(store), customer, checkout_input)
    set_order_status(store, order.id, OrderStatus.COMPLETED, strict=False)
    back = set_order_status(store, order.id, OrderStatus.PENDING, strict=False)
    assert back.status == OrderStatus.PENDING


def test_strict_status_changes_follow_the_table(store, customer, checkout_input):
    order = place_order(store, _items(store), customer, checkout_input)
    with pytest.raises(InvalidTransition):
        set_order_status(store, order.id, OrderStatus.COMPLETED, strict=True)

    set_order_status(store, order.id, OrderStatus.PREPARING, strict=True)
    set_order_status(store, order.id, OrderStatus.CANCELLED, strict=True)
    with pytest.raises(InvalidTransition):
        set_order_status(store, order.id, OrderStatus.DELIVERING, strict=True)
    assert store.get_orders()[0].status == OrderStatus.CANCELLED


def test_find_or_create_customer(store):
    created = find_or_create_customer(store, "5511", "Bia")
    assert created.total_orders == 0
    assert created.address is None
    assert created.id

    again = find_or_create_customer(store, "5511", "Other Name")
    assert again.id == created.id
    assert again.name == "Bia"
    assert len(store.get_customers()) == 1


def test_cart_add_and_update(store):
    p1, p2 = store.get_products()[:2]
    cart = Cart()
    cart.add(p1)
    cart.add(p1)
    cart.add(p2)
    assert [i.cart_quantity for i in cart.items] == [2, 1]
    assert cart.item_count == 3
    assert cart.subtotal == 68.00

    cart.update_quantity(p1.id, -1)
    assert cart.items[0].cart_quantity == 1
    cart.update_quantity(p1.id, -5)
    assert [i.id for i in cart.items] == [p2.id]

    cart.clear()
    assert len(cart) == 0


def test_normalize_name():
    assert normalize_name("  ROGÉRIO ") == "rogerio"


def test_controller_checkout_requires_customer(shop, checkout_input):
    shop.cart.add(shop.list_products()[0])
    with pytest.raises(NotAuthenticated):
        shop.checkout(checkout_input)


def test_controller_checkout_rejects_empty_cart(shop, checkout_input):
    shop.login_customer("Ana", "123")
    with pytest.raises(EmptyCart):
        shop.checkout(checkout_input)


def test_controller_checkout_clears_cart(shop, address):
    shop.login_customer("Ana", "123")
    products = shop.list_products()
    shop.cart.add(products[0])
    shop.cart.add(products[1])
    shop.cart.add(products[1])

    order = shop.checkout(CheckoutInput(address=address, payment_method=PaymentMethod.PIX))

    assert order.total == 75.00
    assert order.payment_method == PaymentMethod.PIX
    assert shop.cart.items == []
    assert shop.current_customer().total_orders == 1
    assert shop.orders_for_customer(order.customer_id) == [order]


def test_controller_admin_login(shop, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_NAME", "rogerio")
    monkeypatch.setattr(config, "ADMIN_CODE", "166480")

    with pytest.raises(InvalidCredentials):
        shop.login_admin("Rogério", "000000")
    assert shop.session is None

    session = shop.login_admin(" Rogério", "166480")
    assert isinstance(session, AdminSession)
    assert shop.is_admin()


def test_controller_logout_clears_session_and_cart(shop):
    shop.login_customer("Ana", "123")
    shop.cart.add(shop.list_products()[0])
    shop.logout()
    assert shop.session is None
    assert shop.cart.items == []


def test_controller_hides_inactive_products(shop):
    product = shop.list_products()[2].model_copy(update={"active": False})
    shop.upsert_product(product)
    assert product.id not in [p.id for p in shop.list_products()]
    assert product.id in [p.id for p in shop.list_products(include_inactive=True)]


def test_controller_login_as_someone_else_clears_cart(shop):
    shop.login_customer("Ana", "111")
    shop.cart.add(shop.list_products()[0])
    shop.login_customer("Bia", "222")
    assert shop.cart.items == []
