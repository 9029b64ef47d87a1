"""Storefront bounded context — digital design orders and their delivery.

Owns the order lifecycle from checkout through payment reconciliation to
file delivery, plus the catalogue, promo codes and reviews the order flow
reads from. Uses CQRS aggregates: an Order is one document persisted in a
single write, which is what keeps item delivery states consistent.
"""

from protean.domain import Domain

storefront = Domain(name="storefront")
