"""Runtime settings for the Ordering domain, read from the environment."""

import os

# Fixed B2B tax rate applied to the cart subtotal (8%)
CART_TAX_RATE = float(os.getenv("CART_TAX_RATE", "0.08"))

# Free shipping for B2B orders
CART_SHIPPING_COST = 0.0

# Durable cart storage: "memory" or "redis"
CART_STORAGE_ADAPTER = os.getenv("CART_STORAGE_ADAPTER", "memory")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CART_STORAGE_CHANNEL = os.getenv("CART_STORAGE_CHANNEL", "storefront:storage")
CART_STORAGE_PREFIX = os.getenv("CART_STORAGE_PREFIX", "storefront:")

# External collaborators: only "fake" adapters ship with the service
STOCK_ADAPTER = os.getenv("STOCK_ADAPTER", "fake")
ORDER_SERVICE_ADAPTER = os.getenv("ORDER_SERVICE_ADAPTER", "fake")

# Availability reported by the fake stock authority when a size is not configured
FAKE_STOCK_DEFAULT_AVAILABLE = int(os.getenv("FAKE_STOCK_DEFAULT_AVAILABLE", "10"))
