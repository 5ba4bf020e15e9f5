"""
Finite state machine for the three-step booking wizard.

Event details -> package/service selection -> review/payment -> submitted.
Each step change goes through an explicit transition table, and the
forward transitions are gated by the step's validation. Validation
failures never raise; they leave the wizard on the same step with
``field_errors``, ``warning`` or ``pending_confirmation`` set for the UI.

Usage:
    wizard = BookingWizard(business_hours=hours)
    wizard.update_details(event_name="Sam & Alex", attendee_count=80)
    wizard.select_date("2025-06-14")
    if wizard.next_step():
        assert wizard.current_step == WizardStep.SELECTION
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from planbeau.booking.validation import (
    attendee_message,
    check_attendee_fits,
    check_duration_fits,
    validate_event_details,
    validate_selection,
)
from planbeau.logging_context import get_session_logger
from planbeau.schemas.booking_schema import BookingDraft, PackageItem, PriceBreakdown, ServiceItem
from planbeau.schemas.vendor_schema import BusinessHours
from planbeau.tools.availability import generate_time_slots
from planbeau.tools.pricing import calculate_draft_totals
from planbeau.utils import format_duration

logger = get_session_logger(__name__)


class WizardStep(str, Enum):
    """Screens of the booking wizard."""
    EVENT_DETAILS = "event_details"
    SELECTION = "selection"
    REVIEW = "review"
    SUBMITTED = "submitted"


class WizardTrigger(str, Enum):
    """Events that move the wizard between steps."""
    NEXT = "next"
    BACK = "back"
    CONFIRM_EMPTY_SELECTION = "confirm_empty_selection"
    SUBMIT_SUCCESS = "submit_success"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: WizardStep
    to_step: WizardStep
    trigger: WizardTrigger
    guard: Optional[Callable[["BookingWizard"], bool]] = None


@dataclass
class StepEntry:
    """Recorded history entry for a step visit."""
    step: WizardStep
    entered_at: datetime
    trigger: Optional[WizardTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current step."""


def _same_service(a: ServiceItem, b: ServiceItem) -> bool:
    """Match on ID when both carry one, otherwise on name."""
    if a.id is not None and b.id is not None:
        return a.id == b.id
    return bool(a.name) and a.name == b.name


def _event_details_valid(wizard: "BookingWizard") -> bool:
    wizard.field_errors = validate_event_details(wizard.draft)
    return not wizard.field_errors


def _selection_valid(wizard: "BookingWizard") -> bool:
    result = validate_selection(wizard.draft)
    if result.needs_confirmation:
        wizard.pending_confirmation = True
    elif not result.ok:
        wizard.warning = result.message
    return result.ok


def _empty_selection_pending(wizard: "BookingWizard") -> bool:
    return wizard.pending_confirmation


class BookingWizard:
    """
    View-model for the booking wizard.

    Holds the draft, the generated time slots and the UI feedback state.
    Transitions whose guard fails leave the step unchanged.
    """

    TRANSITIONS: list[Transition] = [
        Transition(WizardStep.EVENT_DETAILS, WizardStep.SELECTION,
                   WizardTrigger.NEXT, guard=_event_details_valid),

        Transition(WizardStep.SELECTION, WizardStep.REVIEW,
                   WizardTrigger.NEXT, guard=_selection_valid),
        Transition(WizardStep.SELECTION, WizardStep.REVIEW,
                   WizardTrigger.CONFIRM_EMPTY_SELECTION, guard=_empty_selection_pending),
        Transition(WizardStep.SELECTION, WizardStep.EVENT_DETAILS,
                   WizardTrigger.BACK),

        Transition(WizardStep.REVIEW, WizardStep.SELECTION,
                   WizardTrigger.BACK),
        Transition(WizardStep.REVIEW, WizardStep.SUBMITTED,
                   WizardTrigger.SUBMIT_SUCCESS),
    ]

    def __init__(
        self,
        business_hours: Sequence[BusinessHours] = (),
        platform_fee_percent: Optional[float] = None,
        draft: Optional[BookingDraft] = None,
    ) -> None:
        self.business_hours = list(business_hours)
        self.platform_fee_percent = platform_fee_percent
        self.draft = draft or BookingDraft()
        self.available_slots: list[str] = []
        self.field_errors: dict[str, str] = {}
        self.warning: Optional[str] = None
        self.pending_confirmation = False
        self._current_step = WizardStep.EVENT_DETAILS
        self._history: list[StepEntry] = [
            StepEntry(step=WizardStep.EVENT_DETAILS, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_step(self) -> WizardStep:
        return self._current_step

    def transition(self, trigger: WizardTrigger) -> bool:
        """
        Attempt a step transition.

        Returns:
            True if the step changed, False if a guard blocked it.

        Raises:
            InvalidTransitionError: If no transition exists for the trigger.
        """
        candidates = [
            t for t in self.TRANSITIONS
            if t.from_step == self._current_step and t.trigger == trigger
        ]
        if not candidates:
            valid = [t.value for t in self.get_valid_triggers()]
            raise InvalidTransitionError(
                f"No valid transition from '{self._current_step.value}' "
                f"with trigger '{trigger.value}'. Valid triggers: {valid}"
            )

        for t in candidates:
            if t.guard is not None and not t.guard(self):
                continue
            old_step = self._current_step
            self._current_step = t.to_step
            self._history.append(StepEntry(
                step=self._current_step,
                entered_at=datetime.now(timezone.utc),
                trigger=trigger,
            ))
            logger.debug(
                "Wizard step: %s -> %s (trigger: %s)",
                old_step.value, self._current_step.value, trigger.value,
            )
            return True

        logger.debug("Wizard stayed on %s (trigger: %s)", self._current_step.value, trigger.value)
        return False

    def get_valid_triggers(self) -> list[WizardTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]

    def get_step_trace(self) -> list[str]:
        """Return ordered list of step names visited."""
        return [entry.step.value for entry in self._history]

    def _clear_feedback(self) -> None:
        self.field_errors = {}
        self.warning = None
        self.pending_confirmation = False

    def next_step(self) -> bool:
        """Validate the current step and advance when it passes."""
        self._clear_feedback()
        return self.transition(WizardTrigger.NEXT)

    def previous_step(self) -> bool:
        self._clear_feedback()
        return self.transition(WizardTrigger.BACK)

    def confirm_empty_selection(self) -> bool:
        """Continue past step two with nothing selected after the visitor agrees."""
        moved = self.transition(WizardTrigger.CONFIRM_EMPTY_SELECTION)
        self.pending_confirmation = False
        return moved

    def mark_submitted(self) -> None:
        self.transition(WizardTrigger.SUBMIT_SUCCESS)

    def dismiss_warning(self) -> None:
        self.warning = None

    def update_details(self, **fields: Any) -> None:
        """Set event detail fields on the draft, e.g. ``event_name="Gala"``."""
        for name, value in fields.items():
            setattr(self.draft, name, value)
            self.field_errors.pop(name, None)

    def select_date(self, event_date: str) -> list[str]:
        """Pick an event date, regenerate its slots and clear chosen times."""
        self.available_slots = list(generate_time_slots(self.business_hours, event_date))
        self.draft.event_date = event_date
        self.draft.event_time = ""
        self.draft.event_end_time = ""
        logger.info("Date %s selected, %d slots available", event_date, len(self.available_slots))
        return self.available_slots

    def _blocked_by_limits(self, item: Any, kind: str) -> bool:
        duration = check_duration_fits(
            item.duration_minutes, self.draft.event_time, self.draft.event_end_time
        )
        if not duration.fits:
            self.warning = (
                f"The {item.name} {kind} requires {format_duration(duration.item_duration)}, "
                f"but your selected time slot is only {format_duration(duration.slot_duration)}."
            )
            return True

        attendees = check_attendee_fits(item, self.draft.attendee_count)
        if not attendees.fits:
            self.warning = attendee_message(item.name, attendees)
            return True
        return False

    def select_package(self, package: PackageItem) -> bool:
        """
        Toggle the selected package.

        Returns True when the package ends up selected. A package that does
        not fit the time window or guest count is not selected and a
        dismissible warning is set instead.
        """
        current = self.draft.selected_package
        if current is not None and current.id == package.id:
            self.draft.selected_package = None
            return False
        if self._blocked_by_limits(package, "package"):
            return False
        self.draft.selected_package = package
        return True

    def toggle_service(self, service: ServiceItem) -> bool:
        """Toggle a service; returns True when it ends up selected."""
        selected = self.draft.selected_services
        remaining = [s for s in selected if not _same_service(s, service)]
        if len(remaining) != len(selected):
            self.draft.selected_services = remaining
            return False
        if self._blocked_by_limits(service, "service"):
            return False
        self.draft.selected_services = selected + [service]
        return True

    def price_breakdown(self) -> PriceBreakdown:
        return calculate_draft_totals(self.draft, self.platform_fee_percent)
