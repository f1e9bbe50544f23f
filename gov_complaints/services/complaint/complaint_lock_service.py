"""
Release of expired complaint claims.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from gov_complaints.core.exceptions import ConcurrencyConflictError
from gov_complaints.repositories.complaint.complaint_repository import ComplaintRepository
from gov_complaints.services.base.base_service import BaseService
from gov_complaints.utils.datetime_utils import utcnow


class ComplaintLockService(BaseService[ComplaintRepository]):
    """
    Sweeps in-progress complaints whose claim has expired.

    Status stays in_progress and ``assigned_to`` is kept; only the lock
    timestamps are cleared, so another employee of the entity can accept
    the complaint again. Releases are not counted as version bumps.
    """

    def __init__(
        self,
        db_session: Session,
        repository: Optional[ComplaintRepository] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(repository or ComplaintRepository(db_session), db_session)
        self._clock = clock

    def unlock_expired_complaints(self, now: Optional[datetime] = None) -> int:
        """
        Release every expired claim, committing once at the end.

        Each release runs in its own savepoint. A complaint changed by a
        concurrent writer is skipped and left for the next run; the others
        are still released.

        Args:
            now: Reference time, defaults to the service clock

        Returns:
            Number of complaints released; 0 when nothing had expired
        """
        now = now or self._clock()
        released = 0
        skipped = 0

        with self.transaction():
            for complaint in self.repository.find_expired_locks(now):
                tracking_number = complaint.tracking_number
                try:
                    with self.db.begin_nested():
                        complaint.unlock()
                        self.repository.flush()
                except ConcurrencyConflictError:
                    skipped += 1
                    self._logger.warning(
                        "Complaint changed during lock sweep, skipped",
                        extra={"tracking_number": tracking_number},
                    )
                    continue

                released += 1
                self._logger.info(
                    "Auto-unlocked expired complaint",
                    extra={"tracking_number": tracking_number},
                )

        if released or skipped:
            self._logger.info(f"Released {released} expired complaint locks, skipped {skipped}")
        return released
