"""Tests for booking submission and the instant pay-and-confirm sequence."""

import json
import logging

import httpx
import pytest

from planbeau.api.checkout import (
    CheckoutError,
    OrphanedPaymentError,
    PaymentDeclinedError,
    PaymentResult,
    submit_booking_request,
    submit_instant_booking,
)
from planbeau.api.client import PlanbeauClient
from planbeau.storage import InMemoryStorage
from tests.conftest import make_draft, make_package, make_service

INTENT_PATH = "/payments/payment-intent"
BOOKING_PATH = "/bookings"
REQUEST_PATH = "/bookings/requests/send"


class FakeProcessor:
    """Payment processor stand-in that records calls into a shared event log."""

    def __init__(self, events: list, result: PaymentResult) -> None:
        self.events = events
        self.result = result
        self.client_secrets: list[str] = []

    async def confirm_card_payment(self, client_secret, billing_details):
        self.events.append("confirm")
        self.client_secrets.append(client_secret)
        return self.result


class Backend:
    """Records request order and bodies, answering from a route map."""

    def __init__(self, routes: dict) -> None:
        self.routes = routes
        self.events: list[str] = []
        self.bodies: dict[str, dict] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api")
        self.events.append(path)
        self.bodies[path] = json.loads(request.content or b"{}")
        status, body = self.routes.get(path, (404, {"message": "Not found"}))
        return httpx.Response(status, json=body)

    def client(self) -> PlanbeauClient:
        return PlanbeauClient(
            InMemoryStorage({"token": "tok"}),
            base_url="http://backend.test/api",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def draft():
    return make_draft(
        package=make_package(price=400),
        services=[make_service(price=50, pricing_model="hourly")],
    )


def succeeded(intent_id: str = "pi_123") -> PaymentResult:
    return PaymentResult(intent_id=intent_id, status="succeeded")


class TestInstantBooking:
    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, draft):
        backend = Backend({
            INTENT_PATH: (200, {"clientSecret": "cs_abc"}),
            BOOKING_PATH: (200, {"success": True, "bookingId": 99}),
        })
        processor = FakeProcessor(backend.events, succeeded())
        async with backend.client() as client:
            result = await submit_instant_booking(client, processor, draft, "42", "7")

        assert backend.events == [INTENT_PATH, "confirm", BOOKING_PATH]
        assert processor.client_secrets == ["cs_abc"]
        assert result.payment_intent_id == "pi_123"
        assert result.booking["bookingId"] == 99

    @pytest.mark.asyncio
    async def test_intent_and_booking_carry_the_same_total(self, draft):
        backend = Backend({
            INTENT_PATH: (200, {"clientSecret": "cs_abc"}),
            BOOKING_PATH: (200, {"success": True}),
        })
        processor = FakeProcessor(backend.events, succeeded())
        async with backend.client() as client:
            result = await submit_instant_booking(client, processor, draft, "42", "7")

        intent_body = backend.bodies[INTENT_PATH]
        booking_body = backend.bodies[BOOKING_PATH]
        assert intent_body["amount"] == pytest.approx(result.breakdown.total)
        assert intent_body["clientProvince"] == "Ontario"
        assert booking_body["grandTotal"] == pytest.approx(result.breakdown.total)
        assert booking_body["isInstantBooking"] is True
        assert booking_body["paymentIntentId"] == "pi_123"

    @pytest.mark.asyncio
    async def test_intent_failure_stops_before_payment(self, draft):
        backend = Backend({INTENT_PATH: (500, {"message": "Stripe down"})})
        processor = FakeProcessor(backend.events, succeeded())
        async with backend.client() as client:
            with pytest.raises(CheckoutError, match="Stripe down"):
                await submit_instant_booking(client, processor, draft, "42", "7")
        assert backend.events == [INTENT_PATH]

    @pytest.mark.asyncio
    async def test_missing_client_secret(self, draft):
        backend = Backend({INTENT_PATH: (200, {"success": True})})
        processor = FakeProcessor(backend.events, succeeded())
        async with backend.client() as client:
            with pytest.raises(CheckoutError):
                await submit_instant_booking(client, processor, draft, "42", "7")
        assert "confirm" not in backend.events

    @pytest.mark.asyncio
    async def test_declined_card_creates_no_booking(self, draft):
        backend = Backend({
            INTENT_PATH: (200, {"clientSecret": "cs_abc"}),
            BOOKING_PATH: (200, {"success": True}),
        })
        declined = PaymentResult(intent_id=None, status="failed", error="Your card was declined.")
        processor = FakeProcessor(backend.events, declined)
        async with backend.client() as client:
            with pytest.raises(PaymentDeclinedError, match="declined"):
                await submit_instant_booking(client, processor, draft, "42", "7")
        assert BOOKING_PATH not in backend.events

    @pytest.mark.asyncio
    async def test_unconfirmed_payment_creates_no_booking(self, draft):
        backend = Backend({
            INTENT_PATH: (200, {"clientSecret": "cs_abc"}),
            BOOKING_PATH: (200, {"success": True}),
        })
        pending = PaymentResult(intent_id="pi_123", status="requires_action")
        processor = FakeProcessor(backend.events, pending)
        async with backend.client() as client:
            with pytest.raises(CheckoutError, match="additional verification"):
                await submit_instant_booking(client, processor, draft, "42", "7")
        assert BOOKING_PATH not in backend.events

    @pytest.mark.asyncio
    async def test_booking_failure_after_payment_reports_orphan(self, draft):
        backend = Backend({
            INTENT_PATH: (200, {"clientSecret": "cs_abc"}),
            BOOKING_PATH: (500, {"message": "Insert failed"}),
        })
        processor = FakeProcessor(backend.events, succeeded("pi_orphan"))
        async with backend.client() as client:
            with pytest.raises(OrphanedPaymentError) as exc_info:
                await submit_instant_booking(client, processor, draft, "42", "7")

        assert exc_info.value.payment_intent_id == "pi_orphan"
        assert "Insert failed" in str(exc_info.value)
        assert isinstance(exc_info.value, CheckoutError)
        assert backend.events == [INTENT_PATH, "confirm", BOOKING_PATH]


class TestBookingRequest:
    @pytest.mark.asyncio
    async def test_sends_request(self, draft):
        backend = Backend({REQUEST_PATH: (200, {"success": True, "requestId": 5})})
        async with backend.client() as client:
            result = await submit_booking_request(client, draft, "42", "7")

        assert backend.events == [REQUEST_PATH]
        assert result.booking["requestId"] == 5
        assert result.payment_intent_id is None
        body = backend.bodies[REQUEST_PATH]
        assert body["vendorProfileId"] == "42"
        assert body["eventTime"] == "18:00:00"
        assert body["subtotal"] == pytest.approx(550)

    @pytest.mark.asyncio
    async def test_failure_raises_checkout_error(self, draft):
        backend = Backend({REQUEST_PATH: (400, {"success": False, "message": "Vendor unavailable"})})
        async with backend.client() as client:
            with pytest.raises(CheckoutError, match="Vendor unavailable"):
                await submit_booking_request(client, draft, "42", "7")

    @pytest.mark.asyncio
    async def test_logs_carry_session_id(self, draft, caplog):
        backend = Backend({REQUEST_PATH: (200, {"success": True})})
        async with backend.client() as client:
            with caplog.at_level(logging.INFO, logger="planbeau.api.checkout"):
                await submit_booking_request(client, draft, "42", "7")
            session_id = client.session_id

        record = next(r for r in caplog.records if r.name == "planbeau.api.checkout")
        assert session_id.startswith("sess_")
        assert record.session_id == session_id
