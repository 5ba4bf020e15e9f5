"""
Async client for the Planbeau REST backend.

Every request carries the bearer token currently held in client storage.
Low-level calls raise ``ApiError``; the vendor data loaders log failures
and fall back to empty results so a page can still render.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from planbeau.config import settings
from planbeau.schemas.booking_schema import PackageItem, ServiceItem
from planbeau.schemas.vendor_schema import (
    AvailabilityException,
    BusinessHours,
    VendorBooking,
    VendorProfile,
)
from planbeau.storage import ClientStorage, get_auth_token, get_or_create_session_id

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A backend call failed at the transport level or returned an error body."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"[{status_code}] {message}")
        self.status_code = status_code
        self.message = message


@dataclass
class VendorAvailability:
    """Everything needed to draw a vendor's booking calendar."""

    business_hours: list[BusinessHours] = field(default_factory=list)
    exceptions: list[AvailabilityException] = field(default_factory=list)
    bookings: list[VendorBooking] = field(default_factory=list)
    min_booking_lead_time_hours: int = 0
    instant_booking_enabled: bool = False


class PlanbeauClient:
    """Thin JSON wrapper over ``httpx.AsyncClient``."""

    def __init__(
        self,
        storage: ClientStorage,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._storage = storage
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api.base_url,
            timeout=timeout or settings.api.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "PlanbeauClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def session_id(self) -> str:
        """Browsing session ID from storage, created on first use."""
        return get_or_create_session_id(self._storage)

    def _headers(self) -> dict[str, str]:
        token = get_auth_token(self._storage)
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(0, f"{method} {path} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_error or body.get("success") is False:
            message = body.get("message") or response.reason_phrase or "Request failed"
            raise ApiError(response.status_code, message)
        return body

    async def get_json(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", path, json=payload)

    # --- Vendor data loaders ---

    async def get_vendor(self, vendor_id: str) -> Optional[VendorProfile]:
        try:
            body = await self.get_json(f"/vendors/{vendor_id}")
        except ApiError as exc:
            logger.error("Error loading vendor %s: %s", vendor_id, exc)
            return None
        profile = (body.get("data") or {}).get("profile")
        if not profile:
            logger.error("Invalid vendor data format for %s", vendor_id)
            return None
        try:
            return VendorProfile.model_validate(profile)
        except ValidationError as exc:
            logger.error("Invalid vendor data for %s: %s", vendor_id, exc)
            return None

    async def get_vendor_bookings(self, vendor_id: str) -> list[VendorBooking]:
        try:
            body = await self.get_json(f"/bookings/vendor/{vendor_id}")
        except ApiError as exc:
            logger.error("Error fetching vendor bookings for %s: %s", vendor_id, exc)
            return []
        try:
            bookings = [VendorBooking.model_validate(b) for b in body.get("bookings") or []]
        except ValidationError as exc:
            logger.error("Invalid booking data for %s: %s", vendor_id, exc)
            return []
        return [b for b in bookings if b.is_active]

    async def get_availability(self, vendor_id: str) -> VendorAvailability:
        try:
            body = await self.get_json(f"/vendors/{vendor_id}/availability")
        except ApiError as exc:
            logger.error("Error loading availability for %s: %s", vendor_id, exc)
            return VendorAvailability()
        try:
            business_hours = [
                BusinessHours.model_validate(h) for h in body.get("businessHours") or []
            ]
            exceptions = [
                AvailabilityException.model_validate(e) for e in body.get("exceptions") or []
            ]
            lead_time_hours = int(body.get("minBookingLeadTimeHours") or 0)
        except ValueError as exc:
            # ValidationError subclasses ValueError; also covers a non-numeric lead time
            logger.error("Invalid availability data for %s: %s", vendor_id, exc)
            return VendorAvailability()
        return VendorAvailability(
            business_hours=business_hours,
            exceptions=exceptions,
            bookings=await self.get_vendor_bookings(vendor_id),
            min_booking_lead_time_hours=lead_time_hours,
            instant_booking_enabled=bool(body.get("instantBookingEnabled")),
        )

    async def get_services(self, vendor_id: str) -> list[ServiceItem]:
        try:
            body = await self.get_json(f"/vendors/{vendor_id}/selected-services")
        except ApiError as exc:
            logger.error("Error loading services for %s: %s", vendor_id, exc)
            return []
        try:
            return [ServiceItem.model_validate(s) for s in body.get("selectedServices") or []]
        except ValidationError as exc:
            logger.error("Invalid service data for %s: %s", vendor_id, exc)
            return []

    async def get_packages(self, vendor_id: str) -> list[PackageItem]:
        try:
            body = await self.get_json(f"/vendors/{vendor_id}/packages")
        except ApiError as exc:
            logger.error("Error loading packages for %s: %s", vendor_id, exc)
            return []
        try:
            return [PackageItem.model_validate(p) for p in body.get("packages") or []]
        except ValidationError as exc:
            logger.error("Invalid package data for %s: %s", vendor_id, exc)
            return []

    async def get_cancellation_policy(self, vendor_id: str) -> Optional[dict[str, Any]]:
        try:
            body = await self.get_json(f"/payments/vendor/{vendor_id}/cancellation-policy")
        except ApiError as exc:
            logger.error("Error loading cancellation policy for %s: %s", vendor_id, exc)
            return None
        return body.get("policy")

    async def get_platform_fee_percent(self) -> float:
        """Platform fee from the public commission settings, else the configured default."""
        default = settings.pricing.platform_fee_percent
        try:
            body = await self.get_json("/public/commission-info")
        except ApiError as exc:
            logger.error("Error loading commission settings: %s", exc)
            return default
        info = body.get("commissionInfo") or {}
        try:
            return float(info.get("renterProcessingFee")) or default
        except (TypeError, ValueError):
            return default

    # --- Payments and bookings ---

    async def get_publishable_key(self) -> str:
        body = await self.get_json("/payments/config")
        key = body.get("publishableKey")
        if not key:
            raise ApiError(200, "Stripe is not configured")
        return key

    async def create_payment_intent(
        self,
        amount: float,
        vendor_id: str,
        client_province: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        return await self.post_json(
            "/payments/payment-intent",
            {
                "amount": amount,
                "vendorProfileId": vendor_id,
                "clientProvince": client_province,
                "metadata": metadata or {},
            },
        )

    async def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.post_json("/bookings", payload)

    async def send_booking_request(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.post_json("/bookings/requests/send", payload)
