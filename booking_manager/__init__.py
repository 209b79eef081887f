from .accounts import AuthService, CredentialService, TokenService, User, UserYamlRepository
from .booking import TimeRange, conflicts, find_conflicts, has_time_overlap
from .bookings import BookingStore, delete_message
from .config import Settings
from .errors import (
	AuthenticationError,
	BookingError,
	ConfigurationError,
	ConflictError,
	DuplicateUserError,
	NotFoundError,
	StoreUnavailableError,
	ValidationError,
)
from .services import Services, create_services
from .timeslots import format_minutes, parse_date, parse_time
from .validation import ValidationResult, Violation, validate_booking
from .yaml_store import BookingCollection, BookingYamlCollection, Reservation, YamlDataDirectory

__all__ = [
	"AuthService",
	"CredentialService",
	"TokenService",
	"User",
	"UserYamlRepository",
	"TimeRange",
	"conflicts",
	"find_conflicts",
	"has_time_overlap",
	"BookingStore",
	"delete_message",
	"Settings",
	"AuthenticationError",
	"BookingError",
	"ConfigurationError",
	"ConflictError",
	"DuplicateUserError",
	"NotFoundError",
	"StoreUnavailableError",
	"ValidationError",
	"Services",
	"create_services",
	"format_minutes",
	"parse_date",
	"parse_time",
	"ValidationResult",
	"Violation",
	"validate_booking",
	"BookingCollection",
	"BookingYamlCollection",
	"Reservation",
	"YamlDataDirectory",
]
