"""
Background maintenance: periodic sweep of expired aliases.
"""

import asyncio
from typing import Optional

from .services import ResolutionService
from .logging_config import get_logger

logger = get_logger(__name__)


class BackgroundTaskRunner:
    """Runs ResolutionService.sweep_expired on a fixed interval."""
    
    def __init__(self, service: ResolutionService, interval_seconds: int):
        self.service = service
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None
    
    async def run_once(self) -> int:
        """Sweep once on a worker thread; the store lock may block."""
        return await asyncio.to_thread(self.service.sweep_expired)
    
    async def _run_loop(self):
        logger.info(f"Starting expiration sweep (interval: {self.interval_seconds}s)")
        
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in expiration sweep: {e}")
            
            await asyncio.sleep(self.interval_seconds)
    
    def start(self):
        """Start the sweep loop on the running event loop."""
        if self._running:
            return
        if self.interval_seconds <= 0:
            logger.info("Expiration sweep timer disabled")
            return
        
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Background task runner started")
    
    async def stop(self):
        """Cancel the sweep loop and wait for it to finish unwinding."""
        if not self._running:
            return
        self._running = False
        task, self._task = self._task, None
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Background task runner stopped")
    
    @property
    def running(self) -> bool:
        return self._running
