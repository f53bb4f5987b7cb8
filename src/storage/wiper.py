# src/storage/wiper.py — v1
"""StorageWiper: best-effort wipe of every local persistence surface.

Each surface is cleared independently. A failure is logged and recorded in
the WipeReport; it never aborts the remaining surfaces and is never retried.
"""

from __future__ import annotations

import logging

from staleguard.core.errors import StorageClearError
from staleguard.core.models import WipeReport
from staleguard.storage.profile import BrowserProfile

logger = logging.getLogger(__name__)


class StorageWiper:
    """Clears cache buckets, local/session stores and structured databases."""

    def __init__(self, profile: BrowserProfile) -> None:
        self._profile = profile

    async def wipe_all(self) -> WipeReport:
        """Attempt every sub-step in order and report which succeeded."""
        report = WipeReport()
        await self.clear_caches(report)
        await self.clear_local_storage(report)
        await self.clear_session_storage(report)
        await self.clear_databases(report)
        if report.succeeded:
            logger.info(
                "Storage wiped: %d cache bucket(s), %d database(s)",
                report.caches_deleted, report.databases_deleted,
            )
        else:
            logger.warning("Storage wipe incomplete, failed: %s", report.failed_steps)
        return report

    async def clear_caches(self, report: WipeReport) -> bool:
        """Delete every cache bucket."""
        try:
            names = await self._profile.caches.keys()
            for name in names:
                logger.debug("Deleting cache bucket %s", name)
                await self._profile.caches.delete(name)
            report.caches_deleted = len(names)
            report.caches = True
        except Exception as e:
            self._record_failure(report, "caches", e)
        return report.caches

    async def clear_local_storage(self, report: WipeReport) -> bool:
        """Clear the durable key-value store."""
        try:
            await self._profile.local_storage.clear()
            report.local_storage = True
        except Exception as e:
            self._record_failure(report, "local_storage", e)
        return report.local_storage

    async def clear_session_storage(self, report: WipeReport) -> bool:
        """Clear the session-scoped key-value store."""
        try:
            await self._profile.session_storage.clear()
            report.session_storage = True
        except Exception as e:
            self._record_failure(report, "session_storage", e)
        return report.session_storage

    async def clear_databases(self, report: WipeReport) -> bool:
        """Delete every structured database."""
        try:
            names = await self._profile.databases.databases()
            for name in names:
                logger.debug("Deleting database %s", name)
                await self._profile.databases.delete_database(name)
            report.databases_deleted = len(names)
            report.databases = True
        except Exception as e:
            self._record_failure(report, "databases", e)
        return report.databases

    @staticmethod
    def _record_failure(report: WipeReport, surface: str, cause: Exception) -> None:
        error = StorageClearError(surface, cause)
        report.errors[surface] = str(cause)
        logger.warning("%s", error)
