"""Offline-first lead synchronization.

Push: every ``pending`` or ``error`` lead in the offline store is written
to the remote CRM one at a time, update first and create when the remote
does not know the id. Pull: every remote lead overwrites its local copy.
Conflicts resolve as last write wins; there is no batching or backoff.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from backend.app.core.exceptions import RemoteNotFoundError
from backend.app.schemas.lead import Lead
from backend.app.schemas.sync import SyncError, SyncResult
from backend.app.services.connectivity import ConnectivityMonitor
from backend.app.services.offline_store import OfflineLeadStore
from backend.app.services.twenty_client import TwentyClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], TwentyClient]


class LeadSyncEngine:
    """Reconciles an ``OfflineLeadStore`` with one tenant's remote CRM.

    ``client_factory`` takes no arguments and returns a ``TwentyClient``
    already bound to the tenant's URL and key. Passes are serialized on
    an ``asyncio.Lock``.
    """

    def __init__(
        self,
        store: OfflineLeadStore,
        client_factory: ClientFactory,
        connectivity: ConnectivityMonitor,
        company_id: Optional[str] = None,
    ):
        self.store = store
        self.client_factory = client_factory
        self.connectivity = connectivity
        self.company_id = company_id
        self._lock = asyncio.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._lock.locked()

    async def _push(self, client: TwentyClient, lead: Lead) -> Lead:
        try:
            return await client.update_lead(lead.id, lead)
        except RemoteNotFoundError:
            logger.info("Lead %s not found remotely, creating it", lead.id)
            return await client.create_lead(lead)

    async def _push_pending(self) -> SyncResult:
        pending = self.store.where_sync_status(["pending", "error"], company_id=self.company_id)
        result = SyncResult()
        if not pending:
            return result

        logger.info("Pushing %d leads to the remote CRM", len(pending))
        async with self.client_factory() as client:
            for lead in pending:
                try:
                    remote = await self._push(client, lead)
                except Exception as exc:
                    logger.error("Failed to sync lead %s: %s", lead.id, exc)
                    self.store.update(lead.id, {"sync_status": "error"})
                    result.failed += 1
                    result.errors.append(SyncError(lead_id=lead.id, error=str(exc)))
                    continue

                self._record_push(lead, remote)
                result.synced += 1

        result.success = result.failed == 0
        logger.info("Lead push finished: %d synced, %d failed", result.synced, result.failed)
        return result

    def _record_push(self, pushed: Lead, remote: Lead) -> None:
        now = datetime.now(timezone.utc)
        current = self.store.get(pushed.id)
        # edited while the push was in flight: keep it pending for the next pass
        edited = current is not None and current.updated_at != pushed.updated_at
        if edited:
            logger.info("Lead %s changed during push, leaving it pending", pushed.id)
        sync_status = "pending" if edited else "synced"
        if remote.id != pushed.id:
            # the remote assigned its own id on create
            self.store.delete(pushed.id)
            self.store.put((current or pushed).model_copy(update={"id": remote.id, "sync_status": sync_status, "last_synced_at": now}))
        else:
            self.store.update(pushed.id, {"sync_status": sync_status, "last_synced_at": now})

    async def _pull(self) -> int:
        async with self.client_factory() as client:
            remote_leads = await client.list_leads()

        now = datetime.now(timezone.utc)
        for lead in remote_leads:
            self.store.put(
                lead.model_copy(
                    update={
                        "sync_status": "synced",
                        "last_synced_at": now,
                        "company_id": self.company_id or lead.company_id,
                    }
                )
            )
        logger.info("Pulled %d leads from the remote CRM", len(remote_leads))
        return len(remote_leads)

    async def sync_leads(self) -> SyncResult:
        if not self.connectivity.is_online:
            logger.info("Offline, skipping lead push")
            return SyncResult(success=False)

        async with self._lock:
            return await self._push_pending()

    async def sync_leads_from_remote(self) -> int:
        """Overwrite local copies with every remote lead; returns how many were stored."""
        if not self.connectivity.is_online:
            logger.info("Offline, skipping lead pull")
            return 0

        async with self._lock:
            return await self._pull()

    def mark_lead_for_sync(self, lead_id: str) -> bool:
        return self.store.mark_for_sync(lead_id)

    async def run_cycle(self, pull: bool = True) -> SyncResult:
        """Push then pull under one hold of the lock."""
        if not self.connectivity.is_online:
            logger.info("Offline, skipping sync cycle")
            return SyncResult(success=False)

        async with self._lock:
            result = await self._push_pending()
            if pull and self.connectivity.is_online:
                await self._pull()
        return result


class SyncController:
    """Owns the periodic timer and connectivity listener of one engine."""

    def __init__(self, engine: LeadSyncEngine, connectivity: ConnectivityMonitor, interval_seconds: float, pull: bool = True):
        self.engine = engine
        self.connectivity = connectivity
        self.interval_seconds = interval_seconds
        self.pull = pull
        self._timer: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        self.connectivity.add_listener(self._on_connectivity_change)
        self._timer = asyncio.get_running_loop().create_task(self._run_periodically())
        if self.connectivity.is_online:
            self._spawn_cycle()

    def stop(self) -> None:
        self.connectivity.remove_listener(self._on_connectivity_change)
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._tasks):
            task.cancel()
        logger.info("Sync listeners stopped")

    async def wait_idle(self) -> None:
        """Wait for in-flight cycles started by listeners to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_connectivity_change(self, online: bool) -> None:
        if online:
            logger.info("Back online, starting sync")
            self._spawn_cycle()
        else:
            logger.info("Gone offline, sync paused")

    def _spawn_cycle(self) -> None:
        task = asyncio.get_running_loop().create_task(self._run_cycle())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_cycle(self) -> None:
        try:
            await self.engine.run_cycle(pull=self.pull)
        except Exception:
            logger.exception("Background sync cycle failed")

    async def _run_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            if self.connectivity.is_online:
                await self._run_cycle()


def initialize_sync_listeners(
    engine: LeadSyncEngine,
    connectivity: ConnectivityMonitor,
    interval_seconds: float = 300,
    pull: bool = True,
) -> SyncController:
    """Start background sync for ``engine``; call from inside a running event loop."""
    controller = SyncController(engine, connectivity, interval_seconds, pull=pull)
    controller.start()
    return controller
