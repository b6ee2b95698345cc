"""
Application configuration, loaded once at startup.
"""

import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "egg_shop")

# file | memory | mongo
STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo" if DATABASE_URL else "file")
STORE_PATH = os.getenv("STORE_PATH", "./egg_shop_store.json")
STORE_KEY_PREFIX = os.getenv("STORE_KEY_PREFIX", "app_ovo_")

DELIVERY_FEE = float(os.getenv("DELIVERY_FEE", "5.00"))

ADMIN_NAME = os.getenv("ADMIN_NAME", "rogerio")
ADMIN_DISPLAY_NAME = os.getenv("ADMIN_DISPLAY_NAME", "Rogério")
ADMIN_CODE = os.getenv("ADMIN_CODE", "166480")

STRICT_STATUS_TRANSITIONS = os.getenv("STRICT_STATUS_TRANSITIONS", "0") == "1"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8000"))
