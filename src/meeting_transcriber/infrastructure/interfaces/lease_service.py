"""Abstract interface for per-recording leases."""

from abc import ABC, abstractmethod


class LeaseService(ABC):
    """Abstract base class for lease stores guarding one job per recording."""

    @abstractmethod
    def acquire(self, recording_id: str, holder: str) -> bool:
        """
        Acquires the lease for a recording if nobody holds it.

        Args:
            recording_id: The recording the lease guards.
            holder: Opaque holder token, the id of the job being started.

        Returns:
            True if the lease was acquired, False if it is already held.

        Raises:
            LeaseServiceError: If the lease store is unavailable.
        """

    @abstractmethod
    def release(self, recording_id: str, holder: str) -> bool:
        """
        Releases the lease if it is still held by ``holder``.

        Returns:
            True if the lease was released.

        Raises:
            LeaseServiceError: If the lease store is unavailable.
        """
