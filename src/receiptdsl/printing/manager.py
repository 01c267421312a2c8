"""Print manager for compiled receipts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from receiptdsl.config.settings import Settings
from receiptdsl.hardware.base import PrintSurface
from receiptdsl.printing.commands import CommandStream
from receiptdsl.printing.interpreter import ReceiptInterpreter

logger = logging.getLogger(__name__)


@dataclass
class PrintJob:
    stream: CommandStream
    tokens: Optional[Mapping[str, Any]] = None
    done: Optional[asyncio.Future] = field(default=None, repr=False)


class PrintManager:
    """Queue-based printing manager for command streams.

    All jobs go through one interpreter, so runs against the surface are
    never interleaved.
    """

    def __init__(
        self,
        surface: PrintSurface,
        settings: Optional[Settings] = None,
        use_mock_tokens: bool = True,
    ) -> None:
        self._interpreter = ReceiptInterpreter(
            surface,
            settings=settings,
            use_mock_tokens=use_mock_tokens,
        )
        self._queue: asyncio.Queue[PrintJob] = asyncio.Queue()
        self._task: Optional[asyncio.Task[None]] = None
        self._running = False
        self.completed = 0
        self.failed = 0

    @property
    def interpreter(self) -> ReceiptInterpreter:
        return self._interpreter

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start processing queued jobs."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the print manager, cancelling jobs still queued."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        while not self._queue.empty():
            job = self._queue.get_nowait()
            if job.done is not None and not job.done.done():
                job.done.cancel()
            self._queue.task_done()

    def enqueue(self, stream: CommandStream, tokens: Optional[Mapping[str, Any]] = None) -> asyncio.Future:
        """Queue a print job and return a future resolving to its success."""
        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(PrintJob(stream=stream, tokens=tokens, done=future))
        logger.info(f"Queued print job ({len(stream.commands)} commands)")
        return future

    async def submit(self, stream: CommandStream, tokens: Optional[Mapping[str, Any]] = None) -> bool:
        """Queue a print job and wait until it has been printed."""
        if not self._running:
            await self.start()
        return await self.enqueue(stream, tokens)

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    async def _run(self) -> None:
        """Process print jobs sequentially."""
        while self._running:
            job = await self._queue.get()
            try:
                # Surfaces render synchronously; keep the loop free meanwhile
                executed = await asyncio.to_thread(self._interpreter.execute, job.stream, job.tokens)
                ok = executed == len(job.stream.commands)
                if ok:
                    self.completed += 1
                else:
                    self.failed += 1
                    logger.warning(
                        f"Print job finished with {len(job.stream.commands) - executed} failed commands"
                    )
                if job.done is not None and not job.done.done():
                    job.done.set_result(ok)

            except asyncio.CancelledError:
                if job.done is not None and not job.done.done():
                    job.done.cancel()
                raise
            except Exception as exc:
                self.failed += 1
                logger.error(f"Print failed: {exc}")
                if job.done is not None and not job.done.done():
                    job.done.set_result(False)
            finally:
                self._queue.task_done()
