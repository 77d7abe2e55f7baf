"""Tracking of the L2 execution engine's beacon sync progress."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, fields
from typing import Optional, Protocol

from .types import ZERO_HASH

log = logging.getLogger(__name__)

SYNC_PROGRESS_CHECK_INTERVAL = 10.0


@dataclass(frozen=True)
class SyncProgress:
    """Sync status reported by an execution engine while it is syncing."""

    starting_block: int = 0
    current_block: int = 0
    highest_block: int = 0
    pulled_states: int = 0
    known_states: int = 0
    synced_accounts: int = 0
    synced_account_bytes: int = 0
    synced_bytecodes: int = 0
    synced_bytecode_bytes: int = 0
    synced_storage: int = 0
    synced_storage_bytes: int = 0
    healed_trienodes: int = 0
    healed_trienode_bytes: int = 0
    healed_bytecodes: int = 0
    healed_bytecode_bytes: int = 0
    healing_trienodes: int = 0
    healing_bytecode: int = 0


# Fields whose growth means the engine made progress since the last check.
_PROGRESS_FIELDS = (
    "current_block",
    "pulled_states",
    "synced_accounts",
    "synced_account_bytes",
    "synced_bytecodes",
    "synced_bytecode_bytes",
    "synced_storage",
    "synced_storage_bytes",
    "healed_trienodes",
    "healed_trienode_bytes",
    "healed_bytecodes",
    "healed_bytecode_bytes",
    "healing_trienodes",
    "healing_bytecode",
)
assert set(_PROGRESS_FIELDS) <= {f.name for f in fields(SyncProgress)}


class SyncClient(Protocol):
    """The part of an execution engine client the tracker needs."""

    def sync_progress(self) -> Optional[SyncProgress]: ...

    def block_number(self) -> int: ...


def sync_progressed(last: Optional[SyncProgress], new: Optional[SyncProgress]) -> bool:
    """Tell whether ``new`` shows any progress compared with ``last``."""
    if last is None:
        return False
    if new is None:
        return True
    return any(getattr(new, name) > getattr(last, name) for name in _PROGRESS_FIELDS)


class SyncProgressTracker:
    """Watches a triggered beacon sync and flags the engine when it stalls.

    ``timeout`` is the number of seconds without progress after which the
    engine is marked as out of sync.
    """

    check_interval: float = SYNC_PROGRESS_CHECK_INTERVAL

    def __init__(self, client: SyncClient, timeout: float) -> None:
        self._client = client
        self.timeout = timeout

        self._triggered = False
        self._last_id: Optional[int] = None
        self._last_height: Optional[int] = None
        self._last_hash: bytes = ZERO_HASH

        self._last_sync_progress: Optional[SyncProgress] = None
        self._last_progressed_time: Optional[float] = None
        self._out_of_sync = False

        self._lock = threading.Lock()

    def track(self, stop_event: threading.Event) -> None:
        """Check the sync progress periodically until ``stop_event`` is set."""
        while not stop_event.wait(self.check_interval):
            self.check_progress()

    def _elapsed_since_progress(self) -> float:
        if self._last_progressed_time is None:
            return float("inf")
        return time.monotonic() - self._last_progressed_time

    def check_progress(self) -> None:
        """Run one progress check against the execution engine."""
        with self._lock:
            if not self._triggered:
                log.debug("Beacon sync not triggered")
                return

            if self._out_of_sync:
                return

            try:
                progress = self._client.sync_progress()
            except Exception as exc:  # noqa: BLE001 - any client failure skips this round
                log.error("Get L2 execution engine sync progress error: %s", exc)
                return

            log.info(
                "L2 execution engine sync progress: progress=%s lastProgressedTime=%s timeout=%s",
                progress,
                self._last_progressed_time,
                self.timeout,
            )

            if progress is None:
                try:
                    head_height = self._client.block_number()
                except Exception as exc:  # noqa: BLE001
                    log.error("Get L2 execution engine head height error: %s", exc)
                    return

                if self._last_height is not None and head_height >= self._last_height:
                    self._last_progressed_time = time.monotonic()
                    log.info(
                        "L2 execution engine has finished the P2P sync work, all verified "
                        "blocks synced, will switch to insert pending blocks one by one: "
                        "id=%s height=%s hash=0x%s",
                        self._last_id,
                        self._last_height,
                        self._last_hash.hex(),
                    )
                    return

                log.warning("L2 execution engine has not started P2P syncing yet")

            progressed = sync_progressed(self._last_sync_progress, progress)
            self._last_sync_progress = progress

            if progressed:
                self._out_of_sync = False
                self._last_progressed_time = time.monotonic()
                return

            if self._elapsed_since_progress() > self.timeout:
                self._out_of_sync = True
                log.warning(
                    "L2 execution engine is not able to sync through P2P: "
                    "lastProgressedTime=%s timeout=%s",
                    self._last_progressed_time,
                    self.timeout,
                )

    def update_meta(self, block_id: Optional[int], height: Optional[int], block_hash: bytes) -> None:
        """Record the verified block a beacon sync was triggered towards."""
        with self._lock:
            log.debug(
                "Update sync progress tracker meta: id=%s height=%s hash=0x%s",
                block_id,
                height,
                bytes(block_hash).hex(),
            )
            if not self._triggered:
                self._last_progressed_time = time.monotonic()
            self._triggered = True
            self._last_id = block_id
            self._last_height = height
            self._last_hash = bytes(block_hash)

    def clear_meta(self) -> None:
        """Forget the beacon sync target and reset the out-of-sync flag."""
        with self._lock:
            log.debug("Clear sync progress tracker meta")
            self._triggered = False
            self._last_id = None
            self._last_hash = ZERO_HASH
            self._out_of_sync = False

    def head_changed(self, new_id: int) -> bool:
        """Tell whether a new beacon sync request is needed for ``new_id``."""
        with self._lock:
            if not self._triggered:
                return True
            return self._last_id is not None and self._last_id != new_id

    def out_of_sync(self) -> bool:
        """Tell whether the engine has been marked as unable to sync via P2P."""
        with self._lock:
            return self._out_of_sync

    def triggered(self) -> bool:
        """Tell whether a beacon sync has been triggered."""
        with self._lock:
            return self._triggered

    def last_synced_verified_block_id(self) -> Optional[int]:
        """Return the ID of the verified block the sync targets, if any."""
        with self._lock:
            return self._last_id

    def last_synced_verified_block_height(self) -> Optional[int]:
        """Return the height of the verified block the sync targets, if any."""
        with self._lock:
            return self._last_height

    def last_synced_verified_block_hash(self) -> bytes:
        """Return the hash of the verified block the sync targets."""
        with self._lock:
            return self._last_hash