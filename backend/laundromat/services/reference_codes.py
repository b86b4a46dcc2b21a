"""Reference number generation for laundry requests.

Codes keep the customer-facing format (alphabetic prefix + fixed-width digits,
e.g. ``LAU042917``) but the digits are drawn from ``secrets`` and checked
against the store before use, so two requests created in the same instant
cannot share a code.
"""
import logging
import re
import secrets
from typing import Optional

from sqlalchemy.orm import Session

from laundromat.config import settings
from laundromat.errors import StorageFailure
from laundromat.models.laundry_request import LaundryRequest

logger = logging.getLogger(__name__)


def reference_pattern(prefix: Optional[str] = None, digits: Optional[int] = None) -> re.Pattern:
    prefix = settings.REFERENCE_PREFIX if prefix is None else prefix
    digits = settings.REFERENCE_DIGITS if digits is None else digits
    return re.compile(rf"^{re.escape(prefix)}\d{{{digits}}}$")


def is_valid_reference(code: str) -> bool:
    """Return True if ``code`` matches the configured prefix + digits format."""
    if not isinstance(code, str):
        return False
    return bool(reference_pattern().match(code))


def random_reference(prefix: Optional[str] = None, digits: Optional[int] = None) -> str:
    """Build one candidate code; uniqueness is not checked here."""
    prefix = settings.REFERENCE_PREFIX if prefix is None else prefix
    digits = settings.REFERENCE_DIGITS if digits is None else digits
    return f"{prefix}{secrets.randbelow(10 ** digits):0{digits}d}"


def generate_reference_number(db: Session, max_attempts: Optional[int] = None) -> str:
    """Return a code not yet used by any laundry request.

    Raises StorageFailure once ``max_attempts`` candidates have all collided,
    which only happens when the code space is close to exhausted.
    """
    attempts = max_attempts or settings.REFERENCE_MAX_ATTEMPTS
    for _ in range(attempts):
        candidate = random_reference()
        taken = (
            db.query(LaundryRequest.id)
            .filter(LaundryRequest.reference_number == candidate)
            .first()
        )
        if taken is None:
            return candidate
        logger.debug("Reference %s already taken, retrying", candidate)

    logger.error("Could not allocate a unique reference number after %d attempts", attempts)
    raise StorageFailure("Could not allocate a reference number")
