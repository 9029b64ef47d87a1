"""Promo code lookup, validation and usage bookkeeping."""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from storefront.promotions.promo_code import REASON_NOT_FOUND, PromoCode, PromoCodeUsage, PromoVerdict

logger = structlog.get_logger(__name__)


def find_promo_code(code: str) -> PromoCode | None:
    repo = current_domain.repository_for(PromoCode)
    found = repo._dao.query.filter(code=code.strip().upper()).all().items
    return found[0] if found else None


def times_used_by(user_id: str, code: str) -> int:
    repo = current_domain.repository_for(PromoCodeUsage)
    return repo._dao.query.filter(user_id=str(user_id), promo_code=code.upper(), is_active=True).all().total


def validate_promo_code(
    code: str,
    cart_items: list[dict],
    order_amount: float | None = None,
    user_id: str | None = None,
) -> PromoVerdict:
    """Check ``code`` against a cart. ``cart_items`` are ``{product_id, quantity}`` dicts."""
    promo = find_promo_code(code)
    if promo is None:
        return PromoVerdict(valid=False, code=code.upper(), reason=REASON_NOT_FOUND)
    used = times_used_by(user_id, promo.code) if user_id else 0
    return promo.evaluate(cart_items, order_amount=order_amount, times_used_by_user=used)


def record_usage(order, discount_amount: float) -> list[PromoCodeUsage]:
    """Record one usage per applied code and bump each code's counter."""
    usage_repo = current_domain.repository_for(PromoCodeUsage)
    promo_repo = current_domain.repository_for(PromoCode)
    recorded = []
    for code in order.promo_codes():
        promo = find_promo_code(code)
        if promo is None:
            logger.warning("Applied promo code no longer exists", order_number=order.order_number, code=code)
            continue
        usage = PromoCodeUsage(
            user_id=str(order.customer_id),
            promo_code_id=str(promo.id),
            promo_code=promo.code,
            order_id=str(order.id),
            order_number=order.order_number,
            discount_amount=discount_amount,
            order_total=round(order.total_price + discount_amount, 2),
            used_at=datetime.now(UTC),
        )
        usage_repo.add(usage)
        promo.increment_usage()
        promo_repo.add(promo)
        recorded.append(usage)
    return recorded
