import pytest
from fastapi.testclient import TestClient

import main
from database import MemoryBackend
from lifecycle import ShopController
from schemas import Address, CheckoutInput, Customer
from store import Store


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return Store(backend)


@pytest.fixture
def shop(store):
    return ShopController(store, delivery_fee=5.00, strict_transitions=False)


@pytest.fixture
def client(shop):
    previous = main.app.state.shop
    main.app.state.shop = shop
    try:
        yield TestClient(main.app)
    finally:
        main.app.state.shop = previous


@pytest.fixture
def address():
    return Address(
        street="Rua das Galinhas",
        number="42",
        neighborhood="Centro",
        city="Campinas",
        zip_code="13010-000",
        reference="Portão azul",
    )


@pytest.fixture
def checkout_input(address):
    return CheckoutInput(address=address)


@pytest.fixture
def customer(store):
    c = Customer(id="c1", name="Ana", phone="5519999990000", total_orders=0)
    store.save_customer(c)
    return c
