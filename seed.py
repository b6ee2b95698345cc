"""Catalog written to an empty store on first read."""

from typing import List

from schemas import Product, ProductType

INITIAL_PRODUCTS = [
    {
        "id": "1",
        "name": "Ovos Brancos Grandes",
        "type": ProductType.WHITE,
        "description": "Ovos brancos frescos selecionados.",
        "quantity_per_package": 30,
        "price": 22.00,
        "image_url": "https://picsum.photos/id/102/400/400",
        "active": True,
        "is_promo": False,
    },
    {
        "id": "2",
        "name": "Ovos Vermelhos Extra",
        "type": ProductType.RED,
        "description": "Ovos vermelhos de alta qualidade.",
        "quantity_per_package": 20,
        "price": 24.00,
        "image_url": "https://picsum.photos/id/292/400/400",
        "active": True,
        "is_promo": False,
    },
    {
        "id": "3",
        "name": "Ovos Caipiras",
        "type": ProductType.FREE_RANGE,
        "description": "Ovos caipiras legítimos direto do sítio.",
        "quantity_per_package": 12,
        "price": 18.00,
        "image_url": "https://picsum.photos/id/22/400/400",
        "active": True,
        "is_promo": False,
    },
    {
        "id": "4",
        "name": "Promoção Família",
        "type": ProductType.WHITE,
        "description": "2 Grades de Ovos Brancos (60 un).",
        "quantity_per_package": 60,
        "price": 40.00,
        "image_url": "https://picsum.photos/id/75/400/400",
        "active": True,
        "is_promo": True,
    },
]


def seed_products() -> List[Product]:
    return [Product(**p) for p in INITIAL_PRODUCTS]
