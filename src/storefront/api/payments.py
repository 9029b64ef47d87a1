"""FastAPI routes for payment provider callbacks and customer capture."""

import json

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as SchemaError
from protean.utils.globals import current_domain

from storefront import config
from storefront.access.download import Requester
from storefront.api.dependencies import current_requester
from storefront.api.orders import owned_order
from storefront.api.schemas import CapturePaymentRequest, PaymentWebhookRequest, StatusResponse
from storefront.payments.reconciliation import CapturePayment, ProcessPaymentEvent
from storefront.payments.signature import verify_signature

logger = structlog.get_logger(__name__)

payment_router = APIRouter(prefix="/payment", tags=["payments"])


def _event_command(event: PaymentWebhookRequest) -> ProcessPaymentEvent:
    resource = event.resource
    amount = resource.amount
    return ProcessPaymentEvent(
        event_id=event.id,
        event_type=event.event_type,
        order_number=resource.custom_id or resource.invoice_id,
        provider_order_id=resource.provider_order_id(event.event_type),
        capture_id=resource.id if event.event_type.startswith("PAYMENT.CAPTURE") else None,
        amount=float(amount.value) if amount else None,
        currency=amount.currency_code if amount else None,
        reason=resource.status_details.reason if resource.status_details else None,
    )


@payment_router.post("/webhook", response_model=StatusResponse)
async def payment_webhook(
    request: Request,
    x_webhook_signature: str = Header(default=""),
) -> StatusResponse:
    """Acknowledge every authentic provider event, even when processing fails."""
    body = await request.body()
    if not verify_signature(config.payment_webhook_secret(), body, x_webhook_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        event = PaymentWebhookRequest.model_validate(json.loads(body))
    except (ValueError, SchemaError) as exc:
        logger.warning("Unreadable payment webhook acknowledged", error=str(exc))
        return StatusResponse(status="ignored")

    try:
        # Reconciliation reaches blocking provider and mail I/O
        outcome = await run_in_threadpool(current_domain.process, _event_command(event), asynchronous=False)
    except Exception as exc:
        logger.exception(
            "Payment webhook processing failed",
            event_id=event.id,
            event_type=event.event_type,
            error=str(exc),
        )
        return StatusResponse(status="error")
    return StatusResponse(status=outcome)


@payment_router.post("/capture", response_model=StatusResponse)
def capture_payment(
    body: CapturePaymentRequest,
    requester: Requester = Depends(current_requester),
) -> StatusResponse:
    """Capture a payment the customer just approved with the provider."""
    order = owned_order(body.order_id, requester)
    outcome = current_domain.process(
        CapturePayment(order_id=str(order.id), provider_order_id=body.provider_order_id),
        asynchronous=False,
    )
    return StatusResponse(status=outcome)
