"""
Booking submission: request-to-book and instant pay-and-confirm.

Instant booking runs three strictly sequential steps: create a payment
intent on the backend, confirm the card with the payment processor, then
create the booking record. A failure stops the remaining steps.

If the card is charged but the booking record cannot be created, the
payment is left without a booking. No refund or retry is attempted;
``OrphanedPaymentError`` carries the intent ID so it can be reconciled.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol

from planbeau.api.client import ApiError, PlanbeauClient
from planbeau.logging_context import get_session_logger, session_scope
from planbeau.schemas.booking_schema import BookingDraft, PriceBreakdown
from planbeau.tools.pricing import build_booking_payload, calculate_draft_totals

logger = get_session_logger(__name__)

PAYMENT_SUCCEEDED = "succeeded"


class CheckoutError(Exception):
    """Submission stopped before a booking was created."""


class PaymentDeclinedError(CheckoutError):
    """The processor rejected the card; nothing was charged."""


class OrphanedPaymentError(CheckoutError):
    """The payment succeeded but the booking record could not be created."""

    def __init__(self, payment_intent_id: str, message: str) -> None:
        super().__init__(
            f"Payment {payment_intent_id} succeeded but booking creation failed: {message}"
        )
        self.payment_intent_id = payment_intent_id


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of confirming a card payment."""
    intent_id: Optional[str]
    status: str
    error: Optional[str] = None


class PaymentProcessor(Protocol):
    """Card confirmation against a server-issued client secret."""

    async def confirm_card_payment(
        self, client_secret: str, billing_details: dict[str, Any]
    ) -> PaymentResult: ...


@dataclass(frozen=True)
class CheckoutResult:
    """A submitted booking and the totals it was submitted with."""
    booking: dict[str, Any]
    breakdown: PriceBreakdown
    payment_intent_id: Optional[str] = None


def _billing_details(billing: Optional[dict[str, Any]], fallback_name: str) -> dict[str, Any]:
    billing = billing or {}
    return {
        "name": billing.get("name_on_card") or fallback_name or "Customer",
        "address": {
            "postal_code": billing.get("postal_code", ""),
            "country": "CA" if billing.get("country", "Canada") == "Canada" else "US",
        },
    }


async def submit_booking_request(
    client: PlanbeauClient,
    draft: BookingDraft,
    vendor_id: str,
    user_id: str,
    platform_fee_percent: Optional[float] = None,
) -> CheckoutResult:
    """Send a request-to-book for vendors without instant booking."""
    with session_scope(client.session_id):
        breakdown = calculate_draft_totals(draft, platform_fee_percent)
        payload = build_booking_payload(draft, breakdown, vendor_id, user_id)
        try:
            booking = await client.send_booking_request(payload)
        except ApiError as exc:
            logger.error("Error submitting booking request: %s", exc)
            raise CheckoutError(f"Failed to send booking request: {exc.message}") from exc

        logger.info("Booking request sent to vendor %s", vendor_id)
        return CheckoutResult(booking=booking, breakdown=breakdown)


async def submit_instant_booking(
    client: PlanbeauClient,
    processor: PaymentProcessor,
    draft: BookingDraft,
    vendor_id: str,
    user_id: str,
    user_name: str = "",
    billing: Optional[dict[str, Any]] = None,
    platform_fee_percent: Optional[float] = None,
) -> CheckoutResult:
    """
    Pay for and confirm a booking in one go.

    Raises:
        CheckoutError: The payment intent could not be created, or the
            payment needs further verification.
        PaymentDeclinedError: The card was declined.
        OrphanedPaymentError: Charged, but the booking was not created.
    """
    with session_scope(client.session_id):
        breakdown = calculate_draft_totals(draft, platform_fee_percent)

        try:
            intent = await client.create_payment_intent(
                amount=breakdown.total,
                vendor_id=vendor_id,
                client_province=breakdown.province,
                metadata={
                    "eventName": draft.event_name,
                    "eventDate": draft.event_date,
                    "vendorId": vendor_id,
                },
            )
        except ApiError as exc:
            logger.error("Payment intent creation failed: %s", exc)
            raise CheckoutError(exc.message or "Failed to create payment intent") from exc

        client_secret = intent.get("clientSecret")
        if not client_secret:
            raise CheckoutError(intent.get("message") or "Failed to create payment intent")

        payment = await processor.confirm_card_payment(
            client_secret, _billing_details(billing, user_name)
        )
        if payment.error:
            logger.warning("Card payment declined: %s", payment.error)
            raise PaymentDeclinedError(payment.error)
        if payment.status != PAYMENT_SUCCEEDED or not payment.intent_id:
            raise CheckoutError("Payment requires additional verification.")

        payload = build_booking_payload(draft, breakdown, vendor_id, user_id)
        payload.update(
            budget=breakdown.total,
            isInstantBooking=True,
            paymentIntentId=payment.intent_id,
        )
        try:
            booking = await client.create_booking(payload)
        except ApiError as exc:
            logger.error(
                "Booking creation failed after payment %s: %s", payment.intent_id, exc
            )
            raise OrphanedPaymentError(payment.intent_id, exc.message) from exc

        logger.info("Instant booking created for vendor %s (payment %s)", vendor_id, payment.intent_id)
        return CheckoutResult(
            booking=booking, breakdown=breakdown, payment_intent_id=payment.intent_id
        )
