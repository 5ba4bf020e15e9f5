"""
Booking form validation.

Checks gate each wizard step: required event details on step one, guest
limits and duration fit on step two. Every check returns a result the UI
can show; none of them raise on bad user input.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from planbeau.schemas.booking_schema import BookingDraft, PackageItem, ServiceItem
from planbeau.utils import elapsed_minutes

logger = logging.getLogger(__name__)

Offering = Union[PackageItem, ServiceItem]

EVENT_DETAIL_MESSAGES: dict[str, str] = {
    "event_name": "Please enter an event name",
    "event_type": "Please select an event type",
    "event_date": "Please select an event date",
    "event_time": "Please select a start time",
    "event_end_time": "Please select an end time",
    "attendee_count": "Please enter the number of guests",
    "event_location": "Please enter the event location",
}

NO_SELECTION_MESSAGE = (
    "You haven't selected a package or services. Do you want to continue anyway?"
)


@dataclass(frozen=True)
class AttendeeCheck:
    """Whether the guest count sits inside an offering's limits."""
    fits: bool
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    current: int = 0
    reason: Optional[str] = None  # "below_min" | "above_max"


@dataclass(frozen=True)
class DurationCheck:
    """Whether an offering's duration fits the chosen time window."""
    fits: bool
    item_duration: Optional[int] = None
    slot_duration: Optional[int] = None


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of the package/service step."""
    ok: bool
    message: Optional[str] = None
    needs_confirmation: bool = False


def validate_event_details(draft: BookingDraft) -> dict[str, str]:
    """Return a field-keyed error map for step one. Empty means valid."""
    errors: dict[str, str] = {}
    if not draft.event_name.strip():
        errors["event_name"] = EVENT_DETAIL_MESSAGES["event_name"]
    if not draft.event_type:
        errors["event_type"] = EVENT_DETAIL_MESSAGES["event_type"]
    if not draft.event_date:
        errors["event_date"] = EVENT_DETAIL_MESSAGES["event_date"]
    if not draft.event_time:
        errors["event_time"] = EVENT_DETAIL_MESSAGES["event_time"]
    if not draft.event_end_time:
        errors["event_end_time"] = EVENT_DETAIL_MESSAGES["event_end_time"]
    if draft.attendee_count < 1:
        errors["attendee_count"] = EVENT_DETAIL_MESSAGES["attendee_count"]
    if not draft.event_location.strip():
        errors["event_location"] = EVENT_DETAIL_MESSAGES["event_location"]

    if errors:
        logger.debug("Event details invalid: %s", sorted(errors))
    return errors


def check_attendee_fits(
    item: Offering, attendees: int, require_per_attendee: bool = True
) -> AttendeeCheck:
    """
    Compare a guest count with an offering's min/max attendees.

    With ``require_per_attendee`` the limits only apply to per-person
    pricing; otherwise they apply under any pricing model. A limit of 0
    or None means no limit.
    """
    if require_per_attendee and not item.pricing_model.is_per_attendee:
        return AttendeeCheck(fits=True, current=attendees)

    minimum, maximum = item.min_attendees, item.max_attendees
    if minimum and attendees < minimum:
        return AttendeeCheck(False, minimum, maximum, attendees, "below_min")
    if maximum and attendees > maximum:
        return AttendeeCheck(False, minimum, maximum, attendees, "above_max")
    return AttendeeCheck(True, minimum, maximum, attendees)


def selected_slot_duration(start: Optional[str], end: Optional[str]) -> Optional[int]:
    """Minutes in the chosen window; overnight windows wrap through midnight."""
    if not start or not end:
        return None
    return elapsed_minutes(start, end)


def check_duration_fits(
    item_duration: Optional[int], start: Optional[str], end: Optional[str]
) -> DurationCheck:
    """An offering fits when its duration is no longer than the selected window."""
    slot_duration = selected_slot_duration(start, end)
    if not slot_duration or not item_duration:
        return DurationCheck(fits=True)
    return DurationCheck(item_duration <= slot_duration, item_duration, slot_duration)


def attendee_message(name: str, check: AttendeeCheck) -> str:
    if check.reason == "below_min":
        return (
            f'"{name}" requires at least {check.minimum} guests. '
            f"You entered {check.current} guests."
        )
    return (
        f'"{name}" allows a maximum of {check.maximum} guests. '
        f"You entered {check.current} guests."
    )


def validate_selection(draft: BookingDraft) -> SelectionResult:
    """
    Validate step two.

    The package's guest limits apply under any pricing model; a service's
    limits apply only when it is priced per person. Selecting nothing is
    allowed after the visitor confirms.
    """
    attendees = draft.attendee_count
    package = draft.selected_package

    if package is not None:
        check = check_attendee_fits(package, attendees, require_per_attendee=False)
        if not check.fits:
            return SelectionResult(False, attendee_message(package.name or "This package", check))

    for service in draft.selected_services:
        check = check_attendee_fits(service, attendees)
        if not check.fits:
            return SelectionResult(False, attendee_message(service.name, check))

    if package is None and not draft.selected_services:
        return SelectionResult(False, NO_SELECTION_MESSAGE, needs_confirmation=True)
    return SelectionResult(True)
