from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .accounts import AuthService, CredentialService, TokenService, UserYamlRepository
from .bookings import BookingStore
from .config import Settings
from .yaml_store import BookingYamlCollection, YamlDataDirectory


@dataclass(frozen=True)
class Services:
    bookings: BookingStore
    auth: AuthService


def create_services(settings: Settings | None = None) -> Services:
    """Wire the booking store and auth service from settings."""
    settings = settings or Settings.from_env()
    data = YamlDataDirectory(settings.data_dir)

    bookings = BookingStore(
        BookingYamlCollection(data),
        strict=settings.strict,
        recheck_on_update=settings.recheck_on_update,
    )
    auth = AuthService(
        UserYamlRepository(data),
        CredentialService(rounds=settings.bcrypt_rounds),
        TokenService(
            settings.jwt_private_key,
            settings.jwt_public_key,
            algorithm=settings.jwt_algorithm,
            expires_in=timedelta(minutes=settings.jwt_expires_minutes),
        ),
    )
    return Services(bookings=bookings, auth=auth)
