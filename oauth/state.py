"""Anti-CSRF state values carried through the authorization redirect."""

import hmac
import logging
import secrets
from typing import Optional

from logging_config import redact

logger = logging.getLogger(__name__)

STATE_BYTES = 32


class StateManager:
    """Issues one state value per authorization attempt and checks the callback against it."""

    def __init__(self):
        self._expected: Optional[str] = None

    @property
    def expected(self) -> Optional[str]:
        return self._expected

    def issue(self) -> str:
        """Generate a fresh state value, replacing any outstanding one."""
        self._expected = secrets.token_urlsafe(STATE_BYTES)
        return self._expected

    def validate(self, received: Optional[str]) -> bool:
        """Return True only if ``received`` equals the outstanding state.

        A match consumes the value, so the same callback cannot match twice.
        """
        expected = self._expected
        if not expected or not received:
            logger.info("[STATE] No state to compare")
            return False

        if not hmac.compare_digest(expected.encode(), received.encode()):
            logger.warning(f"[STATE] State DOES NOT MATCH: expected {redact(expected)} got {redact(received)}")
            return False

        logger.info(f"[STATE] State value matches: {redact(received)}")
        self._expected = None
        return True

    def clear(self) -> None:
        self._expected = None
