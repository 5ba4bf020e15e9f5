from planbeau.booking.validation import (
    check_attendee_fits,
    check_duration_fits,
    validate_event_details,
    validate_selection,
)
from planbeau.booking.wizard import (
    BookingWizard,
    InvalidTransitionError,
    WizardStep,
    WizardTrigger,
)

__all__ = [
    "BookingWizard",
    "WizardStep",
    "WizardTrigger",
    "InvalidTransitionError",
    "validate_event_details",
    "validate_selection",
    "check_attendee_fits",
    "check_duration_fits",
]
