"""Review submission and moderation — commands, handler and public listing."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order
from storefront.reviews.review import Review, ReviewStatus


@storefront.command(part_of="Review")
class SubmitReview:
    name = String(required=True, max_length=100)
    rating = Integer(required=True, min_value=1, max_value=5)
    text = Text(required=True)
    avatar = String(max_length=20)
    user_id = Identifier()
    order_id = Identifier()


@storefront.command(part_of="Review")
class ApproveReview:
    review_id = Identifier(required=True)
    moderator = String(required=True, max_length=255)
    display_order = Integer()


@storefront.command(part_of="Review")
class RejectReview:
    review_id = Identifier(required=True)
    moderator = String(required=True, max_length=255)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Review)
class ReviewModerationHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        if command.order_id:
            order = current_domain.repository_for(Order).get(command.order_id)
            if str(order.customer_id) != str(command.user_id):
                raise ValidationError({"order_id": ["Reviews can only reference your own orders"]})

        review = Review.submit(
            name=command.name,
            rating=command.rating,
            text=command.text,
            user_id=command.user_id,
            order_id=command.order_id,
            avatar=command.avatar,
        )
        current_domain.repository_for(Review).add(review)
        return str(review.id)

    @handle(ApproveReview)
    def approve_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)
        review.approve(command.moderator, display_order=command.display_order)
        repo.add(review)

    @handle(RejectReview)
    def reject_review(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)
        review.reject(command.moderator, reason=command.reason)
        repo.add(review)


def approved_reviews() -> list[Review]:
    """Approved reviews, by display order then newest first."""
    repo = current_domain.repository_for(Review)
    reviews = repo._dao.query.filter(status=ReviewStatus.APPROVED.value).all().items
    newest_first = sorted(reviews, key=lambda r: r.created_at, reverse=True)
    return sorted(newest_first, key=lambda r: r.display_order or 0)
