"""Review aggregate (CQRS) — customer testimonials shown on the storefront.

State Machine:
    PENDING → APPROVED | REJECTED
    APPROVED → REJECTED (taken down)
    REJECTED → APPROVED (reinstated)

Only approved reviews are listed publicly.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront

DEFAULT_AVATAR = "👤"


class ReviewStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


_VALID_TRANSITIONS = {
    ReviewStatus.PENDING: {ReviewStatus.APPROVED, ReviewStatus.REJECTED},
    ReviewStatus.APPROVED: {ReviewStatus.REJECTED},
    ReviewStatus.REJECTED: {ReviewStatus.APPROVED},
}


@storefront.event(part_of="Review")
class ReviewSubmitted:
    __version__ = 1

    review_id = Identifier(required=True)
    user_id = Identifier()
    order_id = Identifier()
    rating = Integer(required=True)
    submitted_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewApproved:
    __version__ = 1

    review_id = Identifier(required=True)
    moderator = String(required=True)
    approved_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewRejected:
    __version__ = 1

    review_id = Identifier(required=True)
    moderator = String(required=True)
    reason = String()
    rejected_at = DateTime(required=True)


@storefront.aggregate
class Review:
    name = String(required=True, max_length=100)
    rating = Integer(required=True, min_value=1, max_value=5)
    text = Text(required=True)
    avatar = String(max_length=20, default=DEFAULT_AVATAR)
    status = String(max_length=20, choices=ReviewStatus, default=ReviewStatus.PENDING.value)
    display_order = Integer(default=0)
    order_id = Identifier()
    user_id = Identifier()
    moderation_notes = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def submit(cls, name, rating, text, user_id=None, order_id=None, avatar=None):
        if not (text or "").strip():
            raise ValidationError({"text": ["Review text cannot be empty"]})
        now = datetime.now(UTC)
        review = cls(
            name=name.strip(),
            rating=rating,
            text=text.strip(),
            avatar=avatar or DEFAULT_AVATAR,
            user_id=user_id,
            order_id=order_id,
            created_at=now,
            updated_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                user_id=user_id,
                order_id=order_id,
                rating=rating,
                submitted_at=now,
            )
        )
        return review

    def _assert_can_transition(self, target_status: ReviewStatus) -> None:
        current = ReviewStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def approve(self, moderator: str, display_order: int | None = None) -> None:
        self._assert_can_transition(ReviewStatus.APPROVED)
        now = datetime.now(UTC)
        self.status = ReviewStatus.APPROVED.value
        if display_order is not None:
            self.display_order = display_order
        self.updated_at = now
        self.raise_(ReviewApproved(review_id=str(self.id), moderator=moderator, approved_at=now))

    def reject(self, moderator: str, reason: str | None = None) -> None:
        self._assert_can_transition(ReviewStatus.REJECTED)
        now = datetime.now(UTC)
        self.status = ReviewStatus.REJECTED.value
        self.moderation_notes = reason
        self.updated_at = now
        self.raise_(ReviewRejected(review_id=str(self.id), moderator=moderator, reason=reason, rejected_at=now))
