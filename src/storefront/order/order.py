"""Order aggregate (CQRS) — one customer purchase of digital designs.

The order is a single document: line items, audit history and processed
webhook event ids live inside it and are persisted in one repository write,
so no reader ever sees half of the items updated.

Order status:
    pending → processing → completed → refunded
    {pending, processing} → cancelled

Payment status:
    pending → {paid, failed, free}
    paid → refunded

All status changes go through the transition methods below. Each one appends
to the history; no method edits an existing history entry.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront import config
from storefront.domain import storefront
from storefront.fulfillment.customization import Customizations
from storefront.fulfillment.resolver import DeliveryOutcome, ItemToResolve
from storefront.order.events import (
    CompletionEmailRequested,
    ItemsAwaitingCustomization,
    OrderCancelled,
    OrderCompleted,
    OrderPaid,
    OrderPlaced,
    OrderRefunded,
    PaymentFailed,
    PaymentFlaggedForReview,
)

# Money comparisons tolerate float rounding up to half a cent.
MONEY_TOLERANCE = 0.005


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    FREE = "free"


class CustomizationStatus(Enum):
    NONE = "none"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


class ItemDeliveryStatus(Enum):
    PENDING = "pending"
    AUTO_DELIVERED = "auto_delivered"
    AWAITING_CUSTOMIZATION = "awaiting_customization"
    DELIVERED = "delivered"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # terminal
    OrderStatus.REFUNDED: set(),  # terminal
}

_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.FREE},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.FREE: set(),
    PaymentStatus.REFUNDED: set(),
}

_TERMINAL_STATUSES = {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
_DONE_ITEM_STATUSES = {ItemDeliveryStatus.AUTO_DELIVERED.value, ItemDeliveryStatus.DELIVERED.value}

SYSTEM = "system"

# History notes shown to staff and customers
NOTE_CREATED = "تم إنشاء الطلب وهو في انتظار الدفع"
NOTE_FREE = "طلب مجاني، لا يتطلب الدفع"
NOTE_PAID = "تم إكمال الدفع عبر PayPal: {transaction_id}"
NOTE_PAYMENT_PENDING = "الدفع قيد المراجعة لدى مزود الدفع"
NOTE_PAYMENT_DENIED = "تم رفض الدفع: {reason}"
NOTE_AWAITING_CUSTOMIZATION = "بعض المنتجات تحتاج إلى تخصيص: {items}"
NOTE_COMPLETED_AUTO = "تم تسليم جميع الملفات تلقائياً"
NOTE_COMPLETED_FREE = "تم قبول الطلب المجاني {order_number} بنجاح"
NOTE_COMPLETED_ADMIN = "تم تحديد الطلب {order_number} كمكتمل من قبل المدير"
NOTE_CUSTOMIZATION_STARTED = "بدأ فريق التصميم العمل على التخصيص"
NOTE_CANCELLED = "تم إلغاء الطلب: {reason}"
NOTE_CANCELLED_REFUNDED = "تم إلغاء الطلب واسترداد المبلغ ({refund_id}): {reason}"
NOTE_REFUND_FAILED = "تم إلغاء الطلب ولكن فشل الاسترداد التلقائي، يلزم استرداد يدوي: {error}"
NOTE_REFUNDED = "تم استرداد المبلغ ({refund_id})"
NOTE_EMAIL_SENT = "تم إرسال البريد الإلكتروني ({kind}) إلى العميل"
NOTE_NOTIFICATION_FAILED = "فشل إرسال الإشعار عبر {channel}: {error}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class CustomerAddress:
    address = String(max_length=500)
    city = String(max_length=100)
    country = String(max_length=100)
    zip_code = String(max_length=20)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """One purchased product line.

    Product id, name and slug are a snapshot taken at checkout. The
    customization payload is written once, at creation.
    """

    position = Integer(required=True, min_value=0)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    product_slug = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    original_price = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    promo_code = String(max_length=50)
    promo_discount = Float(default=0.0, min_value=0.0)
    has_customizations = Boolean(default=False)
    enable_customizations = Boolean(default=False)
    customizations = Text()  # canonical JSON, see Customizations
    delivery_status = String(
        max_length=50,
        choices=ItemDeliveryStatus,
        default=ItemDeliveryStatus.PENDING.value,
    )
    delivered_at = DateTime()
    delivery_notes = Text()
    delivered_file_ids = Text()  # JSON list of DesignFile ids

    @invariant.post
    def line_total_matches_quantity(self):
        if abs((self.unit_price or 0.0) * (self.quantity or 0) - (self.total_price or 0.0)) > MONEY_TOLERANCE:
            raise ValidationError({"total_price": ["Line total must equal unit price times quantity"]})

    def customization_payload(self) -> Customizations | None:
        return Customizations.from_json(self.customizations)

    def to_resolvable(self) -> ItemToResolve:
        return ItemToResolve(
            item_id=str(self.id),
            product_id=str(self.product_id),
            has_customizations=bool(self.has_customizations),
            customizations=self.customization_payload(),
        )

    def is_done(self) -> bool:
        return self.delivery_status in _DONE_ITEM_STATUSES


@storefront.entity(part_of="Order")
class HistoryEntry:
    sequence = Integer(required=True, min_value=1)
    status = String(required=True, max_length=50)
    timestamp = DateTime(required=True)
    note = Text()
    changed_by = String(max_length=255, default=SYSTEM)


@storefront.entity(part_of="Order")
class WebhookEventRecord:
    """A payment provider event already applied to this order."""

    event_id = String(required=True, max_length=255)
    event_type = String(required=True, max_length=100)
    outcome = String(max_length=50)
    received_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=30, unique=True)
    customer_id = Identifier(required=True)
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    customer_address = ValueObject(CustomerAddress)
    customer_notes = Text()

    items = HasMany(OrderItem)
    subtotal = Float(required=True, min_value=0.0)
    total_promo_discount = Float(default=0.0, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    applied_promo_codes = Text()  # JSON list of codes

    payment_method = String(max_length=20, default="paypal")
    payment_status = String(max_length=20, choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(max_length=20, choices=OrderStatus, default=OrderStatus.PENDING.value)
    customization_status = String(
        max_length=20,
        choices=CustomizationStatus,
        default=CustomizationStatus.NONE.value,
    )
    delivery_method = String(max_length=30, default="digital_download")
    has_customizable_products = Boolean(default=False)

    provider_order_id = String(max_length=100)
    transaction_id = String(max_length=100)
    paid_at = DateTime()
    refund_id = String(max_length=100)
    refunded_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)

    requires_review = Boolean(default=False)
    review_reason = String(max_length=500)

    download_expiry = DateTime()
    processed_at = DateTime()
    processed_by = String(max_length=255)
    actual_delivery = DateTime()
    email_sent = Boolean(default=False)
    email_sent_at = DateTime()

    history = HasMany(HistoryEntry)
    webhook_events = HasMany(WebhookEventRecord)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number: str,
        customer_id: str,
        customer_name: str,
        customer_email: str,
        items_data: list[dict],
        subtotal: float,
        total_promo_discount: float,
        total_price: float,
        applied_promo_codes: list[str] | None = None,
        customer_phone: str | None = None,
        customer_address: dict | None = None,
        customer_notes: str | None = None,
        currency: str = "USD",
    ):
        """Create a pending order from a validated cart snapshot."""
        if not items_data:
            raise ValidationError({"items": ["At least one item is required"]})
        _validate_totals(items_data, subtotal, total_promo_discount, total_price)

        now = datetime.now(UTC)
        codes = [code.upper() for code in (applied_promo_codes or [])]
        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            customer_address=CustomerAddress(**customer_address) if customer_address else None,
            customer_notes=customer_notes,
            subtotal=round(subtotal, 2),
            total_promo_discount=round(total_promo_discount, 2),
            total_price=round(total_price, 2),
            currency=currency,
            applied_promo_codes=json.dumps(codes),
            has_customizable_products=any(i.get("enable_customizations") for i in items_data),
            created_at=now,
            updated_at=now,
        )
        for position, item_data in enumerate(items_data):
            data = dict(item_data)
            payload = data.pop("customizations", None)
            order.add_items(
                OrderItem(
                    position=position,
                    customizations=payload.to_json() if payload else None,
                    **data,
                )
            )
        order._append_history(OrderStatus.PENDING.value, NOTE_CREATED, SYSTEM, now)
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=customer_id,
                customer_email=customer_email,
                total_price=order.total_price,
                currency=currency,
                is_free=order.is_free,
                item_count=len(items_data),
                applied_promo_codes=json.dumps(codes),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_free(self) -> bool:
        return (self.total_price or 0.0) <= MONEY_TOLERANCE

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.order_status) in _TERMINAL_STATUSES

    def ordered_items(self) -> list[OrderItem]:
        return sorted(self.items or [], key=lambda i: i.position)

    def timeline(self) -> list[HistoryEntry]:
        return sorted(self.history or [], key=lambda h: h.sequence)

    def promo_codes(self) -> list[str]:
        return json.loads(self.applied_promo_codes) if self.applied_promo_codes else []

    def find_item(self, item_id: str) -> OrderItem | None:
        return next((i for i in (self.items or []) if str(i.id) == str(item_id)), None)

    def pending_items(self) -> list[OrderItem]:
        return [i for i in self.ordered_items() if i.delivery_status == ItemDeliveryStatus.PENDING.value]

    def awaiting_items(self) -> list[OrderItem]:
        return [
            i for i in self.ordered_items() if i.delivery_status == ItemDeliveryStatus.AWAITING_CUSTOMIZATION.value
        ]

    def all_items_delivered(self) -> bool:
        return all(i.is_done() for i in (self.items or []))

    def has_processed_event(self, event_id: str) -> bool:
        return any(e.event_id == event_id for e in (self.webhook_events or []))

    def amount_matches(self, amount: float, currency: str | None = None) -> bool:
        if currency and currency.upper() != (self.currency or "USD").upper():
            return False
        return abs(float(amount) - (self.total_price or 0.0)) <= MONEY_TOLERANCE

    def needs_refund(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.order_status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"order_status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def _assert_can_transition_payment(self, target_status: PaymentStatus) -> None:
        current = PaymentStatus(self.payment_status)
        if target_status not in _VALID_PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def _append_history(self, status: str, note: str, changed_by: str, now: datetime | None = None) -> None:
        now = now or datetime.now(UTC)
        self.add_history(
            HistoryEntry(
                sequence=len(self.history or []) + 1,
                status=status,
                timestamp=now,
                note=note,
                changed_by=changed_by or SYSTEM,
            )
        )
        self.updated_at = now

    def add_note(self, note: str, changed_by: str) -> None:
        """Record a remark without changing any status."""
        self._append_history(self.order_status, note, changed_by)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_free(self) -> bool:
        """Skip payment for a zero-total order and move it to processing."""
        if not self.is_free:
            raise ValidationError({"total_price": ["Only zero-total orders can skip payment"]})
        if self.payment_status == PaymentStatus.FREE.value:
            return False
        self._assert_can_transition_payment(PaymentStatus.FREE)
        self._assert_can_transition(OrderStatus.PROCESSING)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FREE.value
        self.order_status = OrderStatus.PROCESSING.value
        self.paid_at = now
        self._append_history(OrderStatus.PROCESSING.value, NOTE_FREE, SYSTEM, now)
        return True

    def mark_paid(
        self,
        amount: float,
        currency: str,
        transaction_id: str | None = None,
        provider_order_id: str | None = None,
        changed_by: str = "paypal",
    ) -> bool:
        """Accept a captured payment. Returns False when it was already applied.

        The caller is expected to have verified the amount with
        ``amount_matches`` first.
        """
        if self.payment_status != PaymentStatus.PENDING.value or self.order_status != OrderStatus.PENDING.value:
            return False
        self._assert_can_transition_payment(PaymentStatus.PAID)
        self._assert_can_transition(OrderStatus.PROCESSING)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.PAID.value
        self.order_status = OrderStatus.PROCESSING.value
        self.transaction_id = transaction_id
        if provider_order_id:
            self.provider_order_id = provider_order_id
        self.paid_at = now
        self._append_history(
            OrderStatus.PROCESSING.value,
            NOTE_PAID.format(transaction_id=transaction_id or "-"),
            changed_by,
            now,
        )
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                transaction_id=transaction_id,
                amount=float(amount),
                currency=currency,
                paid_at=now,
            )
        )
        return True

    def mark_payment_pending(self, changed_by: str = "paypal") -> bool:
        if self.payment_status != PaymentStatus.PENDING.value:
            return False
        self._append_history(self.order_status, NOTE_PAYMENT_PENDING, changed_by)
        return True

    def mark_payment_failed(self, reason: str, changed_by: str = "paypal") -> bool:
        """Record a denied capture and cancel the still-pending order."""
        if self.payment_status != PaymentStatus.PENDING.value:
            return False
        self._assert_can_transition_payment(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.payment_status = PaymentStatus.FAILED.value
        if self.order_status == OrderStatus.PENDING.value:
            self.order_status = OrderStatus.CANCELLED.value
            self.cancelled_at = now
            self.cancellation_reason = reason
        self._append_history(self.order_status, NOTE_PAYMENT_DENIED.format(reason=reason), changed_by, now)
        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                failed_at=now,
            )
        )
        return True

    def flag_for_review(self, reason: str, changed_by: str = SYSTEM) -> None:
        now = datetime.now(UTC)
        self.requires_review = True
        self.review_reason = reason[:500]
        self._append_history(self.order_status, reason, changed_by, now)
        self.raise_(
            PaymentFlaggedForReview(
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                flagged_at=now,
            )
        )

    def record_webhook_event(self, event_id: str, event_type: str, outcome: str) -> None:
        self.add_webhook_events(
            WebhookEventRecord(
                event_id=event_id,
                event_type=event_type,
                outcome=outcome,
                received_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def apply_delivery(self, resolutions, changed_by: str = SYSTEM) -> bool:
        """Write staged resolutions onto the still-pending items.

        Completes the order when every item is delivered; otherwise marks the
        order as waiting for custom work. Returns True when the order was
        completed by this call.
        """
        if self.order_status != OrderStatus.PROCESSING.value:
            raise ValidationError({"order_status": ["Only processing orders can be delivered"]})

        now = datetime.now(UTC)
        by_item = {r.item_id: r for r in resolutions}
        newly_waiting = []
        for item in self.ordered_items():
            resolution = by_item.get(str(item.id))
            if resolution is None or item.delivery_status != ItemDeliveryStatus.PENDING.value:
                continue
            item.delivery_notes = resolution.note
            if resolution.outcome == DeliveryOutcome.AUTO_DELIVER:
                item.delivery_status = ItemDeliveryStatus.AUTO_DELIVERED.value
                item.delivered_at = now
                item.delivered_file_ids = json.dumps(resolution.file_ids)
            else:
                item.delivery_status = ItemDeliveryStatus.AWAITING_CUSTOMIZATION.value
                newly_waiting.append(item)

        if self.all_items_delivered():
            note = NOTE_COMPLETED_FREE.format(order_number=self.order_number) if self.is_free else NOTE_COMPLETED_AUTO
            return self.complete(changed_by=changed_by, note=note)

        if newly_waiting:
            names = [i.product_name for i in newly_waiting]
            self.customization_status = CustomizationStatus.PENDING.value
            self._append_history(
                self.order_status,
                NOTE_AWAITING_CUSTOMIZATION.format(items="، ".join(names)),
                changed_by,
                now,
            )
            self.raise_(
                ItemsAwaitingCustomization(
                    order_id=str(self.id),
                    order_number=self.order_number,
                    customer_email=self.customer_email,
                    customer_name=self.customer_name,
                    item_names=json.dumps(names, ensure_ascii=False),
                    flagged_at=now,
                )
            )
        return False

    def start_customization(self, changed_by: str) -> None:
        if self.customization_status != CustomizationStatus.PENDING.value:
            raise ValidationError({"customization_status": ["No customization work is pending for this order"]})
        self.customization_status = CustomizationStatus.PROCESSING.value
        self._append_history(self.order_status, NOTE_CUSTOMIZATION_STARTED, changed_by)

    def mark_items_delivered(self, item_ids: list[str], file_ids_by_item: dict[str, list[str]]) -> None:
        """Mark custom-work items as delivered by a designer."""
        now = datetime.now(UTC)
        for item_id in item_ids:
            item = self.find_item(item_id)
            if item is None:
                raise ValidationError({"item_id": [f"Item {item_id} not found in this order"]})
            if item.delivery_status != ItemDeliveryStatus.AWAITING_CUSTOMIZATION.value:
                continue
            item.delivery_status = ItemDeliveryStatus.DELIVERED.value
            item.delivered_at = now
            item.delivered_file_ids = json.dumps(file_ids_by_item.get(item_id, []))

    def complete(self, changed_by: str = SYSTEM, note: str | None = None) -> bool:
        """Move a processing order to completed. Returns False if already completed."""
        if self.order_status == OrderStatus.COMPLETED.value:
            return False
        self._assert_can_transition(OrderStatus.COMPLETED)
        if not self.all_items_delivered():
            raise ValidationError({"items": ["All items must be delivered before the order can be completed"]})

        now = datetime.now(UTC)
        self.order_status = OrderStatus.COMPLETED.value
        if self.customization_status != CustomizationStatus.NONE.value:
            self.customization_status = CustomizationStatus.COMPLETED.value
        self.download_expiry = now + timedelta(days=config.delivery_window_days())
        self.processed_at = now
        self.processed_by = changed_by
        self.actual_delivery = now
        self._append_history(
            OrderStatus.COMPLETED.value,
            note or NOTE_COMPLETED_ADMIN.format(order_number=self.order_number),
            changed_by,
            now,
        )
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_email=self.customer_email,
                customer_name=self.customer_name,
                is_free=self.is_free,
                download_expiry=self.download_expiry,
                completed_by=changed_by,
                completed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Cancellation and refund
    # -------------------------------------------------------------------
    def cancel(
        self,
        reason: str,
        changed_by: str,
        refund_id: str | None = None,
        refund_error: str | None = None,
    ) -> bool:
        """Cancel the order. A failed refund never blocks the cancellation.

        ``refund_id`` is set when the provider refunded the payment;
        ``refund_error`` when a refund was attempted and failed, in which case
        the payment stays ``paid`` and the order is flagged for a manual refund.
        """
        if self.order_status == OrderStatus.CANCELLED.value:
            return False
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.CANCELLED.value
        self.cancelled_at = now
        self.cancellation_reason = reason
        refunded = False
        if refund_id:
            self._assert_can_transition_payment(PaymentStatus.REFUNDED)
            self.payment_status = PaymentStatus.REFUNDED.value
            self.refund_id = refund_id
            self.refunded_at = now
            refunded = True
            note = NOTE_CANCELLED_REFUNDED.format(refund_id=refund_id, reason=reason)
        else:
            note = NOTE_CANCELLED.format(reason=reason)
        self._append_history(OrderStatus.CANCELLED.value, note, changed_by, now)

        if refund_error:
            self.requires_review = True
            self.review_reason = "manual refund required"
            self._append_history(OrderStatus.CANCELLED.value, NOTE_REFUND_FAILED.format(error=refund_error), changed_by)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_email=self.customer_email,
                customer_name=self.customer_name,
                reason=reason,
                refunded=refunded,
                cancelled_by=changed_by,
                cancelled_at=now,
            )
        )
        return True

    def refund(self, refund_id: str, changed_by: str) -> None:
        """Refund a completed, paid order."""
        self._assert_can_transition(OrderStatus.REFUNDED)
        self._assert_can_transition_payment(PaymentStatus.REFUNDED)

        now = datetime.now(UTC)
        self.order_status = OrderStatus.REFUNDED.value
        self.payment_status = PaymentStatus.REFUNDED.value
        self.refund_id = refund_id
        self.refunded_at = now
        self._append_history(OrderStatus.REFUNDED.value, NOTE_REFUNDED.format(refund_id=refund_id), changed_by, now)
        self.raise_(
            OrderRefunded(
                order_id=str(self.id),
                order_number=self.order_number,
                refund_id=refund_id,
                amount=self.total_price,
                refunded_by=changed_by,
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Notifications bookkeeping
    # -------------------------------------------------------------------
    def request_completion_email(self, requested_by: str) -> None:
        if self.order_status != OrderStatus.COMPLETED.value:
            raise ValidationError({"order_status": ["Completion email can only be sent for completed orders"]})
        self.raise_(
            CompletionEmailRequested(
                order_id=str(self.id),
                order_number=self.order_number,
                requested_by=requested_by,
                requested_at=datetime.now(UTC),
            )
        )

    def record_email_sent(self, kind: str) -> None:
        now = datetime.now(UTC)
        self.email_sent = True
        self.email_sent_at = now
        self._append_history(self.order_status, NOTE_EMAIL_SENT.format(kind=kind), SYSTEM, now)

    def record_notification_failure(self, channel: str, error: str) -> None:
        self._append_history(self.order_status, NOTE_NOTIFICATION_FAILED.format(channel=channel, error=error), SYSTEM)


def _validate_totals(items_data: list[dict], subtotal: float, discount: float, total: float) -> None:
    errors: dict[str, list[str]] = {}
    if min(subtotal, discount, total) < 0:
        errors["total_price"] = ["Order amounts must be non-negative"]

    items_sum = sum(float(i["total_price"]) for i in items_data)
    if abs(items_sum - subtotal) > MONEY_TOLERANCE:
        errors["subtotal"] = [f"Subtotal {subtotal} does not match the sum of item totals {round(items_sum, 2)}"]
    if abs((subtotal - discount) - total) > MONEY_TOLERANCE:
        errors["total_price"] = ["Total price must equal subtotal minus promo discount"]

    if errors:
        raise ValidationError(errors)
