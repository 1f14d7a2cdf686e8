"""Migration preview: fetch both projects' configs and diff them per category."""
import asyncio
import json
import time
from typing import Any

from project_migrator.core.config import settings
from project_migrator.core.exceptions import MigratorError
from project_migrator.core.logging import get_logger
from .categories import ConfigCategory
from .client import ManagementAPIClient, ManagementAPIError
from .diff import json_diff
from .schemas import ConfigDiff

logger = get_logger(__name__)


class SnapshotParseError(MigratorError):
    """Raised when a fetched snapshot is not valid JSON."""

    status_code = 400


class SnapshotCacheError(MigratorError):
    """Raised when a snapshot cannot be cached."""


class SnapshotCache:
    """
    Per-process cache of raw source snapshots, keyed by (session_id, category).

    Entries expire after ``ttl`` seconds and are swept on every store; past
    ``max_entries`` the oldest entries are evicted. Nothing here is
    authoritative: the Management API is always the source of truth and a
    miss is harmless.
    """

    def __init__(
        self,
        ttl: int | None = None,
        max_bytes: int | None = None,
        max_entries: int | None = None,
    ):
        self.ttl = ttl if ttl is not None else settings.SNAPSHOT_CACHE_TTL
        self.max_bytes = max_bytes if max_bytes is not None else settings.SNAPSHOT_CACHE_MAX_BYTES
        self.max_entries = (
            max_entries if max_entries is not None else settings.SNAPSHOT_CACHE_MAX_ENTRIES
        )
        # (session_id, category) -> (snapshot, expiry_timestamp)
        self._entries: dict[tuple[str, str], tuple[str, float]] = {}

    def store(self, session_id: str, category: str, snapshot: str) -> None:
        size = len(snapshot.encode("utf-8"))
        if size > self.max_bytes:
            raise SnapshotCacheError(
                f"Snapshot for {category} is {size} bytes, limit is {self.max_bytes}"
            )
        now = time.time()
        self._evict_expired(now)

        key = (session_id, category)
        # Re-insert so a refreshed entry counts as the newest
        self._entries.pop(key, None)
        self._entries[key] = (snapshot, now + self.ttl)

        while len(self._entries) > self.max_entries:
            del self._entries[next(iter(self._entries))]

    def _evict_expired(self, now: float) -> None:
        for key in [k for k, (_, expiry) in self._entries.items() if expiry <= now]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, session_id: str, category: str) -> str | None:
        key = (session_id, category)
        entry = self._entries.get(key)
        if entry and entry[1] > time.time():
            return entry[0]
        if entry:
            del self._entries[key]
        return None

    def categories(self, session_id: str) -> list[str]:
        """Categories with a live entry for this session, in insertion order."""
        return [
            category
            for (sid, category) in list(self._entries)
            if sid == session_id and self.get(sid, category) is not None
        ]

    def clear(self, session_id: str | None = None) -> None:
        if session_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[0] == session_id]:
            del self._entries[key]


snapshot_cache = SnapshotCache()


async def gather_or_cancel(*aws):
    """
    Like ``asyncio.gather`` but on the first failure the other awaitables are
    cancelled and awaited before the error is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class PreviewService:
    """
    Builds the list of per-category differences between two projects.

    Each category costs one GET per project. Categories without differences
    are left out of the result.
    """

    def __init__(
        self,
        client: ManagementAPIClient,
        cache: SnapshotCache | None = None,
        session_id: str | None = None,
    ):
        self.client = client
        self.cache = cache
        self.session_id = session_id

    async def fetch_category(
        self,
        category: ConfigCategory,
        source_id: str,
        dest_id: str,
    ) -> tuple[str, str]:
        """Fetch the raw snapshot of one category from both projects."""
        try:
            source_text, dest_text = await gather_or_cancel(
                self.client.get_text(category.path_for(source_id)),
                self.client.get_text(category.path_for(dest_id)),
            )
        except ManagementAPIError as e:
            raise ManagementAPIError(
                f"Failed to get {category.label} config: {e.message}",
                upstream_status=e.upstream_status,
                body=e.body,
            ) from e
        return source_text, dest_text

    async def preview(
        self,
        source_id: str,
        dest_id: str,
        categories: list[ConfigCategory],
    ) -> list[ConfigDiff]:
        """
        Diff every selected category of ``source_id`` against ``dest_id``.

        Args:
            source_id: Reference of the project being migrated from
            dest_id: Reference of the project being migrated to
            categories: Categories to compare, in response order

        Returns:
            One ConfigDiff per category that has differences

        Raises:
            ManagementAPIError: if any snapshot could not be fetched
            SnapshotParseError: if any snapshot is not valid JSON
        """
        snapshots = await gather_or_cancel(
            *(self.fetch_category(c, source_id, dest_id) for c in categories)
        )

        configs: list[ConfigDiff] = []
        for category, (source_text, dest_text) in zip(categories, snapshots):
            source = self._parse(category, source_id, source_text)
            dest = self._parse(category, dest_id, dest_text)

            result = json_diff(category.label, source, dest)
            if result is not None:
                configs.append(result)

            self._cache_snapshot(category, source_text)

        logger.info(
            "Migration preview computed",
            source_id=source_id,
            dest_id=dest_id,
            categories=[c.label for c in categories],
            changed=[c.name for c in configs],
        )
        return configs

    @staticmethod
    def _parse(category: ConfigCategory, project_ref: str, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(
                "Snapshot is not valid JSON",
                category=category.label,
                project_ref=project_ref,
            )
            raise SnapshotParseError(f"JSON error: {e}") from e

    def _cache_snapshot(self, category: ConfigCategory, snapshot: str) -> None:
        """Best effort: a failure here is logged and never fails the preview."""
        if self.cache is None or not self.session_id:
            return
        try:
            self.cache.store(self.session_id, category.label, snapshot)
        except SnapshotCacheError as e:
            logger.warning(
                "Failed to cache snapshot",
                category=category.label,
                error=e.message,
            )
