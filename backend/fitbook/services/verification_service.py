# backend/fitbook/services/verification_service.py
"""
Verification Issuer.

Issues the short code a student shows the trainer at the class. Codes look
like ``01HZ3K-7QW2XD``: six Crockford base-32 characters of epoch minutes,
a dash, then random characters. They are practically unique, not secret;
the only thing a code unlocks is marking attendance.
"""

import logging
import secrets
import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ServiceException, VerificationAlreadyIssuedError
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

# Crockford base32: no I, L, O or U
CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
TIMESTAMP_LENGTH = 6
SEPARATOR = "-"

# Characters people commonly type instead of the canonical ones
_CONFUSABLES = str.maketrans({"I": "1", "L": "1", "O": "0"})


def encode_base32(value: int, length: int) -> str:
    """Fixed-width Crockford base-32; keeps the low ``length`` digits."""
    chars = []
    for _ in range(length):
        value, remainder = divmod(value, 32)
        chars.append(CROCKFORD_ALPHABET[remainder])
    return "".join(reversed(chars))


def generate_code(
    random_length: Optional[int] = None, clock: Callable[[], float] = time.time
) -> str:
    length = random_length or settings.verification_code_random_length
    minutes = int(clock() // 60)
    stamp = encode_base32(minutes, TIMESTAMP_LENGTH)
    suffix = "".join(secrets.choice(CROCKFORD_ALPHABET) for _ in range(length))
    return f"{stamp}{SEPARATOR}{suffix}"


def normalize_code(raw: str) -> str:
    """
    Canonical form of a code typed by a trainer.

    Case, whitespace and dashes are ignored, and I/L/O are read as 1/1/0.
    """
    compact = "".join(ch for ch in (raw or "").upper() if ch.isalnum()).translate(_CONFUSABLES)
    if len(compact) <= TIMESTAMP_LENGTH:
        return compact
    return f"{compact[:TIMESTAMP_LENGTH]}{SEPARATOR}{compact[TIMESTAMP_LENGTH:]}"


class VerificationIssuer(BaseService):
    """Assigns exactly one verification code to each booking."""

    def __init__(
        self,
        db: Session,
        code_factory: Optional[Callable[[], str]] = None,
        max_attempts: Optional[int] = None,
    ):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self._code_factory = code_factory or generate_code
        self._max_attempts = max_attempts or settings.verification_code_max_attempts

    @BaseService.measure_operation("issue_verification_code")
    def issue(self, booking: Booking) -> str:
        """
        Generate and store the booking's code.

        Flush-only; runs inside the caller's transaction.

        Raises:
            VerificationAlreadyIssuedError: the booking already has a code
            ServiceException: every attempt collided with an existing code
        """
        if booking.verification_code:
            raise VerificationAlreadyIssuedError(booking.id)

        for attempt in range(1, self._max_attempts + 1):
            code = self._code_factory()
            if self.booking_repository.verification_code_exists(code):
                self.logger.warning(
                    "Verification code collision, regenerating",
                    extra={"booking_id": booking.id, "attempt": attempt},
                )
                continue
            booking.verification_code = code
            self.booking_repository.flush()
            return code

        raise ServiceException(
            "Could not generate a unique verification code",
            code="VERIFICATION_CODE_EXHAUSTED",
            details={"booking_id": booking.id, "attempts": self._max_attempts},
        )
