"""OrderDesignFile aggregate — grants one order access to one design file.

This is the authorization record checked on every download and stream. It
carries its own counter and expiry, independent of the file's limits, and
there is at most one grant per ``(order_id, design_file_id)`` pair.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.utils.dates import as_utc

logger = structlog.get_logger(__name__)


@storefront.aggregate
class OrderDesignFile:
    order_id = Identifier(required=True)
    order_number = String(max_length=30)
    customer_id = Identifier(required=True)
    design_file_id = Identifier(required=True)
    product_id = Identifier()
    download_count = Integer(default=0, min_value=0)
    max_downloads = Integer(min_value=1)
    first_downloaded_at = DateTime()
    last_downloaded_at = DateTime()
    is_active = Boolean(default=True)
    expires_at = DateTime()
    granted_at = DateTime()

    @classmethod
    def grant(cls, order, design_file, expires_at=None, max_downloads=None):
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            design_file_id=str(design_file.id),
            product_id=str(design_file.product_id),
            expires_at=expires_at,
            max_downloads=max_downloads,
            granted_at=datetime.now(UTC),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self.expires_at:
            return False
        return as_utc(self.expires_at) <= (now or datetime.now(UTC))

    def is_limit_reached(self) -> bool:
        return bool(self.max_downloads) and (self.download_count or 0) >= self.max_downloads

    def record_download(self) -> None:
        now = datetime.now(UTC)
        self.download_count = (self.download_count or 0) + 1
        if not self.first_downloaded_at:
            self.first_downloaded_at = now
        self.last_downloaded_at = now

    def extend_until(self, expires_at: datetime) -> None:
        if not self.expires_at or as_utc(self.expires_at) < as_utc(expires_at):
            self.expires_at = expires_at

    def revoke(self) -> None:
        self.is_active = False


def grants_for_order(order_id: str) -> list[OrderDesignFile]:
    repo = current_domain.repository_for(OrderDesignFile)
    return repo._dao.query.filter(order_id=str(order_id)).all().items


def grant_files(order, design_files, expires_at: datetime | None = None) -> list[OrderDesignFile]:
    """Grant the order access to each file, reusing grants that already exist.

    Returns the grants that were newly created.
    """
    repo = current_domain.repository_for(OrderDesignFile)
    existing = {str(g.design_file_id): g for g in grants_for_order(order.id)}
    created = []
    for design_file in design_files:
        grant = existing.get(str(design_file.id))
        if grant is not None:
            if expires_at is not None and grant.is_active:
                grant.extend_until(expires_at)
                repo.add(grant)
            continue
        grant = OrderDesignFile.grant(order, design_file, expires_at=expires_at)
        repo.add(grant)
        existing[str(design_file.id)] = grant
        created.append(grant)

    if created:
        logger.info(
            "Design file access granted",
            order_number=order.order_number,
            granted=len(created),
        )
    return created


def revoke_grants(order_id: str) -> int:
    repo = current_domain.repository_for(OrderDesignFile)
    revoked = 0
    for grant in grants_for_order(order_id):
        if grant.is_active:
            grant.revoke()
            repo.add(grant)
            revoked += 1
    return revoked
