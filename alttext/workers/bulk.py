"""Bulk analysis orchestrator: sequential, single-flight, cancellable, with progress callbacks."""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable

from alttext.core.errors import BulkAnalysisInProgressError
from alttext.models.entities import BulkProgress, ImageAnalysis, ImageRecord
from alttext.workers.analyzer import ImageAnalyzer

_log = logging.getLogger(__name__)

ProgressCallback = Callable[[BulkProgress], Awaitable[None] | None]


class BulkAnalyzer:
    """
    Runs ImageAnalyzer over many records, one at a time.

    Only one run may be active; a second call raises BulkAnalysisInProgressError before touching
    any state. An item that raises is recorded as an error-tagged result and the run continues.
    After each item the progress callback receives a snapshot whose current is the next item's
    source, or "" once the run is over. cancel() stops the run before the next item starts; the
    item in flight always finishes.
    """

    def __init__(self, analyzer: ImageAnalyzer, item_delay: float = 0.1) -> None:
        self.analyzer = analyzer
        self.item_delay = item_delay
        self._running = False
        self._cancel_requested = False
        self._progress: BulkProgress | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def progress(self) -> BulkProgress | None:
        """Latest progress of the current or most recent run."""
        return self._progress

    def cancel(self) -> bool:
        """Request cancellation. Returns False when no run is active."""
        if not self._running:
            return False
        _log.info("Bulk analysis cancellation requested")
        self._cancel_requested = True
        return True

    async def _emit(self, on_progress: ProgressCallback | None, progress: BulkProgress) -> None:
        if on_progress is None:
            return
        snapshot = progress.model_copy(update={"results": list(progress.results)})
        try:
            outcome = on_progress(snapshot)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            _log.exception("Bulk progress callback failed")

    async def analyze_bulk_images(
        self,
        records: list[ImageRecord],
        on_progress: ProgressCallback | None = None,
    ) -> list[ImageAnalysis]:
        if self._running:
            raise BulkAnalysisInProgressError()
        self._running = True
        self._cancel_requested = False
        progress = BulkProgress(total=len(records), current=records[0].src if records else "")
        self._progress = progress
        _log.info("Bulk analysis started: %s images", len(records))
        try:
            for index, record in enumerate(records):
                if self._cancel_requested:
                    _log.info("Bulk analysis cancelled after %s/%s images", progress.completed, progress.total)
                    progress.current = ""
                    await self._emit(on_progress, progress)
                    break
                try:
                    analysis = await self.analyzer.analyze_image(record)
                except Exception as e:
                    _log.error("Failed to analyze image %s: %s", record.src, e, exc_info=True)
                    analysis = ImageAnalysis(image=record, error=str(e) or type(e).__name__)
                    progress.errors += 1
                progress.results.append(analysis)
                progress.completed += 1
                is_last = index + 1 == len(records)
                progress.current = "" if is_last else records[index + 1].src
                await self._emit(on_progress, progress)
                if not is_last:
                    await asyncio.sleep(self.item_delay)
            if not records:
                await self._emit(on_progress, progress)
            _log.info(
                "Bulk analysis finished: %s/%s completed, %s errors",
                progress.completed,
                progress.total,
                progress.errors,
            )
            return list(progress.results)
        finally:
            self._running = False
            self._cancel_requested = False
