"""Ordering bounded context — Shopping Cart and Order Submission.

Handles the per-identity shopping cart (line items keyed by product and
size), its durable mirror in a key-value store, the guest-to-customer
merge at login, and the stock-checked checkout flow that hands the cart
to the external order service.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
