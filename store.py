"""
Typed access to the four shop collections over a key-value backend.

Every collection lives under one key as a whole JSON blob. Writes are
read-modify-write of the full collection with no locking: two writers racing
on the same key lose one update (last writer wins).

Unreadable blobs are logged and treated as absent, so products fall back to
the seed catalog and everything else to empty.
"""

import json
import logging
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

import config
from schemas import Customer, Order, Product, Session
from seed import seed_products

logger = logging.getLogger(__name__)

_products = TypeAdapter(List[Product])
_orders = TypeAdapter(List[Order])
_customers = TypeAdapter(List[Customer])
_session = TypeAdapter(Session)


class Store:
    def __init__(self, backend, prefix: Optional[str] = None):
        self.backend = backend
        prefix = config.STORE_KEY_PREFIX if prefix is None else prefix
        self.keys = {
            "products": f"{prefix}products",
            "orders": f"{prefix}orders",
            "customers": f"{prefix}customers",
            "session": f"{prefix}session",
        }

    # ---------- raw blobs ----------

    def _read(self, collection: str, adapter: TypeAdapter):
        key = self.keys[collection]
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("Malformed %s in store (key=%s), ignoring: %s",
                           collection, key, e.errors()[0]["msg"])
            return None

    def _write(self, collection: str, records: list) -> None:
        key = self.keys[collection]
        blob = json.dumps([r.to_doc() for r in records], ensure_ascii=False)
        logger.debug("Writing %d %s to %s", len(records), collection, key)
        self.backend.set(key, blob)

    # ---------- products ----------

    def get_products(self) -> List[Product]:
        products = self._read("products", _products)
        if products is None:
            products = seed_products()
            logger.info("Seeding store with %d products", len(products))
            self._write("products", products)
        return products

    def save_product(self, product: Product) -> None:
        products = self.get_products()
        for i, p in enumerate(products):
            if p.id == product.id:
                products[i] = product
                break
        else:
            products.append(product)
        self._write("products", products)

    def delete_product(self, product_id: str) -> None:
        products = [p for p in self.get_products() if p.id != product_id]
        self._write("products", products)

    # ---------- orders ----------

    def get_orders(self) -> List[Order]:
        return self._read("orders", _orders) or []

    def save_order(self, order: Order) -> None:
        orders = self.get_orders()
        for i, o in enumerate(orders):
            if o.id == order.id:
                orders[i] = order
                break
        else:
            orders.insert(0, order)
        self._write("orders", orders)

    # ---------- customers ----------

    def get_customers(self) -> List[Customer]:
        return self._read("customers", _customers) or []

    def save_customer(self, customer: Customer) -> None:
        """
        Upsert by phone. On a match the stored record is shallow-merged with
        the fields explicitly set on `customer`; anything the caller did not
        set keeps its stored value.
        """
        customers = self.get_customers()
        for i, c in enumerate(customers):
            if c.phone == customer.phone:
                merged = {**c.model_dump(), **customer.model_dump(exclude_unset=True)}
                customers[i] = Customer.model_validate(merged)
                break
        else:
            customers.append(customer)
        self._write("customers", customers)

    def get_customer_by_phone(self, phone: str) -> Optional[Customer]:
        return next((c for c in self.get_customers() if c.phone == phone), None)

    # ---------- session ----------

    def get_session(self) -> Optional[Session]:
        return self._read("session", _session)

    def set_session(self, session: Session) -> None:
        self.backend.set(self.keys["session"], json.dumps(session.to_doc(), ensure_ascii=False))

    def clear_session(self) -> None:
        self.backend.remove(self.keys["session"])
