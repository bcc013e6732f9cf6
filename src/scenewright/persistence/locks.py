"""Advisory scene leases.

A lease is a read-then-write claim: another client can read the same
expired (or missing) lease and write its own in between, so two writers can
briefly both believe they hold a scene. The store offers no compare-and-set,
and callers treat leases as a courtesy signal, not as mutual exclusion.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import ValidationError as PydanticValidationError

from scenewright.config import SceneWrightSettings, get_logger, get_settings
from scenewright.exceptions import RecordSchemaError
from scenewright.models import LeaseRecord, utc_now
from scenewright.scheduling import RecurringTask
from scenewright.storage.base import DocumentStore, WriteMode
from scenewright.storage.paths import lock_path

logger = get_logger(__name__)


class LeaseManager:
    """Acquire, renew and release leases held by one identity."""

    def __init__(
        self,
        store: DocumentStore,
        identity: str,
        settings: SceneWrightSettings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.identity = identity
        self.settings = settings or get_settings()
        self._clock = clock
        self._renewals: dict[str, RecurringTask] = {}

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.settings.lock_ttl_seconds)

    @property
    def held(self) -> list[str]:
        """Subjects this manager currently holds leases on."""
        return list(self._renewals)

    async def read_lease(self, subject_id: str) -> LeaseRecord | None:
        """Read the lease on a subject, if any.

        Raises:
            RecordSchemaError: If the stored lease is malformed
        """
        data = await self.store.read_one(lock_path(subject_id))
        if data is None:
            return None
        try:
            return LeaseRecord.model_validate(data)
        except PydanticValidationError as e:
            raise RecordSchemaError(
                message=f"Malformed lease record for {subject_id}",
                details={"path": lock_path(subject_id), "error": str(e)},
            ) from e

    async def holder_of(self, subject_id: str) -> LeaseRecord | None:
        """Active lease held by a different identity, if any."""
        try:
            lease = await self.read_lease(subject_id)
        except RecordSchemaError as e:
            logger.warning(f"Ignoring unreadable lease: {e.message}")
            return None
        if lease is None:
            return None
        if lease.holder_id == self.identity or not lease.is_active(self._clock()):
            return None
        return lease

    async def acquire(self, subject_id: str) -> bool:
        """Try to take the lease on ``subject_id``.

        Fails if another identity holds an unexpired lease. Otherwise writes
        (or overwrites) a lease for this identity and schedules renewal every
        half TTL.

        Returns:
            True if the lease is now held by this identity
        """
        try:
            if await self.holder_of(subject_id) is not None:
                logger.info(
                    "Lease held by another identity",
                    subject_id=subject_id,
                )
                return False

            now = self._clock()
            lease = LeaseRecord(
                subject_id=subject_id,
                holder_id=self.identity,
                acquired_at=now,
                expires_at=now + self.ttl,
            )
            await self.store.write_one(lock_path(subject_id), lease.to_data())
        except Exception as e:
            logger.error(f"Failed to acquire lease on {subject_id}: {e}")
            return False

        existing = self._renewals.pop(subject_id, None)
        if existing is not None:
            existing.cancel()
        self._renewals[subject_id] = RecurringTask(
            self.settings.lock_ttl_seconds / 2,
            lambda: self._renew(subject_id),
            name=f"lease-renewal:{subject_id}",
        )
        logger.debug("Acquired lease", subject_id=subject_id)
        return True

    async def _renew(self, subject_id: str) -> bool:
        """Extend the lease; on failure drop it and stop renewing."""
        try:
            await self.store.write_one(
                lock_path(subject_id),
                {"expires_at": (self._clock() + self.ttl).isoformat()},
                WriteMode.MERGE,
            )
            return True
        except Exception as e:
            logger.error(f"Failed to renew lease on {subject_id}: {e}")
            # Returning False ends the renewal loop; do not cancel it from here
            self._renewals.pop(subject_id, None)
            await self._delete(subject_id)
            return False

    async def _delete(self, subject_id: str) -> None:
        try:
            await self.store.delete_one(lock_path(subject_id))
        except Exception as e:
            logger.error(f"Failed to release lease on {subject_id}: {e}")

    async def release(self, subject_id: str) -> None:
        """Stop renewing and delete the lease record. Safe to call twice.

        A lease written by another identity is left in place.
        """
        renewal = self._renewals.pop(subject_id, None)
        if renewal is not None:
            renewal.cancel()
        else:
            try:
                if await self.holder_of(subject_id) is not None:
                    return
            except Exception as e:
                logger.error(f"Failed to read lease on {subject_id}: {e}")
                return
        await self._delete(subject_id)
        logger.debug("Released lease", subject_id=subject_id)

    async def release_all(self) -> None:
        for subject_id in list(self._renewals):
            await self.release(subject_id)
