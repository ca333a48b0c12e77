"""
Biometric Registration Worker
Uploads approved visitors' reference faces to the registry in the background
"""
import asyncio
from typing import Optional
from uuid import UUID

import structlog

from infrastructure.biometrics.client import BiometricGatewayClient
from infrastructure.database.visitor_store import VisitorStore

logger = structlog.get_logger(__name__)


class RegistrationWorker:
    """Best-effort, fire-and-forget face registration.

    `submit` never blocks and never raises; failures are logged and the
    request is dropped. Nothing here can affect the approval that queued it.
    """

    def __init__(
        self,
        gateway: BiometricGatewayClient,
        visitors: VisitorStore,
        max_queue_size: int = 1000,
        timeout: float = 10.0,
    ):
        self.gateway = gateway
        self.visitors = visitors
        self.timeout = timeout
        self.queue: "asyncio.Queue[UUID]" = asyncio.Queue(maxsize=max_queue_size)
        self.running = False
        self._task: Optional[asyncio.Task] = None

    def submit(self, visitor_id: UUID) -> bool:
        """Queue a registration. Returns False if the queue is full."""
        try:
            self.queue.put_nowait(visitor_id)
        except asyncio.QueueFull:
            logger.warning("registration_queue_full", visitor_id=str(visitor_id))
            return False
        return True

    async def start(self):
        """Start consuming queued registrations"""
        if self.running:
            return
        self.running = True
        self._task = asyncio.create_task(self._run())
        logger.info("registration_worker_started")

    async def stop(self):
        """Stop the worker; queued registrations that did not run are dropped"""
        self.running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("registration_worker_stopped", dropped=self.queue.qsize())

    async def join(self):
        """Wait until every queued registration has been attempted"""
        await self.queue.join()

    async def _run(self):
        while self.running:
            visitor_id = await self.queue.get()
            try:
                await self.register_visitor(visitor_id)
            except Exception as e:
                logger.error(
                    "biometric_registration_failed",
                    visitor_id=str(visitor_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
            finally:
                self.queue.task_done()

    async def register_visitor(self, visitor_id: UUID) -> bool:
        """Register one visitor's reference face. Returns False when skipped."""
        image = await self.visitors.get_reference_image(visitor_id)
        if not image:
            logger.warning("biometric_registration_skipped", visitor_id=str(visitor_id), reason="no_reference_image")
            return False

        await asyncio.wait_for(self.gateway.register(str(visitor_id), image), timeout=self.timeout)
        logger.info("biometric_registration_completed", visitor_id=str(visitor_id))
        return True
