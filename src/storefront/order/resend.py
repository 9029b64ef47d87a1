"""Admin follow-ups on an order: resend the completion email, add a note."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class ResendCompletionEmail:
    order_id = Identifier(required=True)
    requested_by = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class AddAdminNote:
    order_id = Identifier(required=True)
    note = Text(required=True)
    added_by = String(required=True, max_length=255)


@storefront.command_handler(part_of=Order)
class OrderFollowUpHandler:
    @handle(ResendCompletionEmail)
    def resend_completion_email(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_completion_email(command.requested_by)
        repo.add(order)

    @handle(AddAdminNote)
    def add_admin_note(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.add_note(command.note, command.added_by)
        repo.add(order)
