from planbeau.api.checkout import (
    CheckoutError,
    CheckoutResult,
    OrphanedPaymentError,
    PaymentDeclinedError,
    PaymentProcessor,
    PaymentResult,
    submit_booking_request,
    submit_instant_booking,
)
from planbeau.api.client import ApiError, PlanbeauClient, VendorAvailability

__all__ = [
    "PlanbeauClient",
    "ApiError",
    "VendorAvailability",
    "PaymentProcessor",
    "PaymentResult",
    "CheckoutResult",
    "CheckoutError",
    "PaymentDeclinedError",
    "OrphanedPaymentError",
    "submit_booking_request",
    "submit_instant_booking",
]
