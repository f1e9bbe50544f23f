"""
Public tracking numbers for complaints.
"""

import secrets
from typing import Callable, Optional

from gov_complaints.core.exceptions import InfrastructureError
from gov_complaints.core.logging import get_logger
from gov_complaints.utils.datetime_utils import utcnow

logger = get_logger(__name__)


class TrackingNumberGenerator:
    """
    Generate URL-safe tracking numbers such as ``CMP-20261019-7F3A9C21B4``.

    An optional ``exists`` callback lets the generator retry when a number
    is already taken; the unique column on complaints remains the final
    guard.
    """

    def __init__(
        self,
        prefix: str = "CMP",
        exists: Optional[Callable[[str], bool]] = None,
        max_attempts: int = 5,
        clock: Optional[Callable] = None,
    ):
        self.prefix = prefix
        self._exists = exists
        self.max_attempts = max_attempts
        self._clock = clock

    def _candidate(self) -> str:
        stamp = (self._clock or utcnow)().strftime("%Y%m%d")
        return f"{self.prefix}-{stamp}-{secrets.token_hex(5).upper()}"

    def generate(self) -> str:
        """
        Returns:
            A tracking number not reported as taken by ``exists``

        Raises:
            InfrastructureError: Every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = self._candidate()
            if self._exists is None or not self._exists(candidate):
                return candidate
            logger.warning(f"Tracking number collision on attempt {attempt}: {candidate}")

        raise InfrastructureError("Could not allocate a unique tracking number")
