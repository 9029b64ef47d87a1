"""Human-readable order numbers: ``PD-{year}-{sequence:03d}``.

The sequence is derived from the number of orders placed this year. Two
checkouts racing for the same number are resolved by probing forward, up to
``MAX_ATTEMPTS`` candidates, before giving up.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.order.order import Order

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 5
PREFIX = "PD"


def format_order_number(year: int, sequence: int) -> str:
    return f"{PREFIX}-{year}-{sequence:03d}"


def _orders_this_year(year: int) -> int:
    repo = current_domain.repository_for(Order)
    return repo._dao.query.filter(order_number__contains=f"{PREFIX}-{year}-").all().total


def _number_taken(order_number: str) -> bool:
    repo = current_domain.repository_for(Order)
    return bool(repo._dao.query.filter(order_number=order_number).all().items)


def generate_order_number(now: datetime | None = None) -> str:
    """Return the next free order number for the current year."""
    year = (now or datetime.now(UTC)).year
    count = _orders_this_year(year)
    for attempt in range(MAX_ATTEMPTS):
        candidate = format_order_number(year, count + 1 + attempt)
        if not _number_taken(candidate):
            return candidate
        logger.warning("Order number already taken, retrying", order_number=candidate, attempt=attempt + 1)
    raise ValidationError({"order_number": ["Could not allocate a unique order number"]})
