"""
Order and customer lifecycle: cart, checkout, status changes, login.

All state goes through the Store; the only thing held in memory is the
transient cart, owned by ShopController.
"""

import logging
import unicodedata
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

import config
from schemas import (
    AdminIdentity,
    AdminSession,
    CartItem,
    CheckoutInput,
    Customer,
    CustomerSession,
    Order,
    OrderStatus,
    Product,
    Session,
    new_id,
)
from store import Store

logger = logging.getLogger(__name__)


class ShopError(Exception):
    """Base class for errors raised to the HTTP layer."""


class NotAuthenticated(ShopError):
    pass


class EmptyCart(ShopError):
    pass


class InvalidCredentials(ShopError):
    pass


class InvalidTransition(ShopError):
    pass


# Forward path plus cancellation from any open state. Only consulted when
# strict transitions are switched on; otherwise any status can be set.
ALLOWED_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.DELIVERING, OrderStatus.CANCELLED},
    OrderStatus.DELIVERING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def order_total(items: Iterable[CartItem], delivery_fee: float) -> float:
    return round(sum(i.price * i.cart_quantity for i in items) + delivery_fee, 2)


def place_order(
        store: Store,
        items: List[CartItem],
        customer: Customer,
        checkout: CheckoutInput,
        delivery_fee: Optional[float] = None,
        now: Optional[datetime] = None,
) -> Order:
    """
    Turn a cart snapshot into a persisted order and bump the customer.

    The order write, the customer write and the session write are separate;
    if one fails after another succeeded the records stay diverged.
    """
    fee = config.DELIVERY_FEE if delivery_fee is None else delivery_fee
    now = now or datetime.now(timezone.utc)

    order = Order(
        id=new_id(),
        customer_id=customer.id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        items=[i.model_copy(deep=True) for i in items],
        total=order_total(items, fee),
        delivery_fee=fee,
        address=checkout.address,
        status=OrderStatus.PENDING,
        created_at=now,
        payment_method=checkout.payment_method,
        change_for=checkout.change_for,
        recurrence=checkout.recurrence,
        delivery_period=checkout.delivery_period,
    )
    store.save_order(order)
    logger.info("Order %s placed by %s: %d items, total %.2f",
                order.id, customer.phone, len(order.items), order.total)

    updated = customer.model_copy(update={
        "address": checkout.address,
        "total_orders": customer.total_orders + 1,
        "last_order_date": now,
    })
    store.save_customer(updated)
    store.set_session(CustomerSession(data=updated))
    return order


def set_order_status(
        store: Store,
        order_id: str,
        status: OrderStatus,
        strict: Optional[bool] = None,
) -> Optional[Order]:
    """Returns the updated order, or None when no order has that id."""
    strict = config.STRICT_STATUS_TRANSITIONS if strict is None else strict
    order = next((o for o in store.get_orders() if o.id == order_id), None)
    if order is None:
        return None
    if order.status == status:
        return order
    if strict and status not in ALLOWED_TRANSITIONS[order.status]:
        raise InvalidTransition(f"Cannot move order from {order.status.value} to {status.value}")

    updated = order.model_copy(update={"status": status})
    store.save_order(updated)
    logger.info("Order %s status %s -> %s", order_id, order.status.value, status.value)
    return updated


def find_or_create_customer(store: Store, phone: str, name: str = "") -> Customer:
    existing = store.get_customer_by_phone(phone)
    if existing is not None:
        return existing
    customer = Customer(id=new_id(), name=name, phone=phone, total_orders=0)
    store.save_customer(customer)
    logger.info("New customer %s", phone)
    return customer


def normalize_name(name: str) -> str:
    # "Rogério " -> "rogerio"
    decomposed = unicodedata.normalize("NFD", name.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


class Cart:
    def __init__(self):
        self.items: List[CartItem] = []

    def add(self, product: Product) -> None:
        for item in self.items:
            if item.id == product.id:
                item.cart_quantity += 1
                return
        self.items.append(CartItem(**product.model_dump(), cart_quantity=1))

    def update_quantity(self, product_id: str, delta: int) -> None:
        kept = []
        for item in self.items:
            if item.id == product_id:
                qty = max(0, item.cart_quantity + delta)
                if qty == 0:
                    continue
                item.cart_quantity = qty
            kept.append(item)
        self.items = kept

    def clear(self) -> None:
        self.items = []

    @property
    def subtotal(self) -> float:
        return round(sum(i.price * i.cart_quantity for i in self.items), 2)

    @property
    def item_count(self) -> int:
        return sum(i.cart_quantity for i in self.items)

    def __len__(self):
        return len(self.items)


class ShopController:
    """
    Application state for one storefront: the store plus the cart of
    whoever is logged in. The session itself is always re-read from the
    store.
    """

    def __init__(self, store: Store, delivery_fee: Optional[float] = None,
                 strict_transitions: Optional[bool] = None):
        self.store = store
        self.cart = Cart()
        self.delivery_fee = config.DELIVERY_FEE if delivery_fee is None else delivery_fee
        self.strict_transitions = strict_transitions

    # --- session ----------------------------------------------------------

    @property
    def session(self) -> Optional[Session]:
        return self.store.get_session()

    def current_customer(self) -> Optional[Customer]:
        session = self.session
        if isinstance(session, CustomerSession):
            return session.data
        return None

    def is_admin(self) -> bool:
        return isinstance(self.session, AdminSession)

    def _start_session(self, session: Session) -> None:
        # a cart never carries over to a different actor
        previous = self.session
        if previous is None or previous.role != session.role or previous.data.id != session.data.id:
            self.cart.clear()
        self.store.set_session(session)

    def login_customer(self, name: str, phone: str) -> CustomerSession:
        customer = find_or_create_customer(self.store, phone, name)
        session = CustomerSession(data=customer)
        self._start_session(session)
        logger.info("Customer %s logged in", phone)
        return session

    def login_admin(self, name: str, code: str) -> AdminSession:
        if normalize_name(name) != normalize_name(config.ADMIN_NAME) or code != config.ADMIN_CODE:
            logger.info("Rejected admin login for %r", name)
            raise InvalidCredentials("Invalid credentials")
        session = AdminSession(data=AdminIdentity(name=config.ADMIN_DISPLAY_NAME, id="admin"))
        self._start_session(session)
        logger.info("Admin logged in")
        return session

    def logout(self) -> None:
        self.store.clear_session()
        self.cart.clear()
        logger.info("Logged out")

    # --- products ---------------------------------------------------------

    def list_products(self, include_inactive: bool = False) -> List[Product]:
        products = self.store.get_products()
        if include_inactive:
            return products
        return [p for p in products if p.active]

    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.store.get_products() if p.id == product_id), None)

    def upsert_product(self, product: Product) -> Product:
        self.store.save_product(product)
        logger.info("Product %s saved", product.id)
        return product

    def remove_product(self, product_id: str) -> None:
        self.store.delete_product(product_id)
        logger.info("Product %s removed", product_id)

    # --- orders -----------------------------------------------------------

    def list_orders(self) -> List[Order]:
        return self.store.get_orders()

    def orders_for_customer(self, customer_id: str) -> List[Order]:
        return [o for o in self.store.get_orders() if o.customer_id == customer_id]

    def get_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.store.get_orders() if o.id == order_id), None)

    def checkout(self, checkout: CheckoutInput) -> Order:
        customer = self.current_customer()
        if customer is None:
            raise NotAuthenticated("Customer login required")
        if not self.cart.items:
            raise EmptyCart("Cart is empty")
        order = place_order(self.store, self.cart.items, customer, checkout,
                            delivery_fee=self.delivery_fee)
        self.cart.clear()
        return order

    def set_order_status(self, order_id: str, status: OrderStatus) -> Optional[Order]:
        return set_order_status(self.store, order_id, status, strict=self.strict_transitions)
