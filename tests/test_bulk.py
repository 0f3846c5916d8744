"""Tests for the bulk analysis orchestrator."""

import asyncio

import pytest

from alttext.core.errors import BulkAnalysisInProgressError
from alttext.models.entities import BulkProgress, CaptionResult, ImageAnalysis, ImageRecord, Provenance
from alttext.workers.bulk import BulkAnalyzer

pytestmark = [pytest.mark.fast]


def _records(n: int) -> list[ImageRecord]:
    return [
        ImageRecord(id=f"img-{i}", src=f"https://example.com/{i}.jpg", width=100, height=100)
        for i in range(n)
    ]


class StubAnalyzer:
    """Analyzer double: raises for selected sources, optionally blocks until released."""

    def __init__(self, fail_srcs=(), gate: asyncio.Event | None = None) -> None:
        self.fail_srcs = set(fail_srcs)
        self.gate = gate
        self.started: list[str] = []

    async def analyze_image(self, record: ImageRecord) -> ImageAnalysis:
        self.started.append(record.src)
        if self.gate is not None:
            await self.gate.wait()
        if record.src in self.fail_srcs:
            raise RuntimeError(f"decode failed for {record.src}")
        caption = CaptionResult(
            short_caption="ok", long_description="ok", confidence=0.6, model="stub", provenance=Provenance.local
        )
        return ImageAnalysis(image=record, caption_result=caption)


@pytest.mark.asyncio
async def test_one_failure_does_not_abort_batch():
    """Four successes and one exception: five results, one error, all completed."""
    records = _records(5)
    bulk = BulkAnalyzer(StubAnalyzer(fail_srcs={records[2].src}), item_delay=0)
    updates: list[BulkProgress] = []

    results = await bulk.analyze_bulk_images(records, updates.append)

    assert len(results) == 5
    assert results[2].error == f"decode failed for {records[2].src}"
    assert results[2].image is records[2]
    final = updates[-1]
    assert final.completed == 5
    assert final.errors == 1
    assert len(final.results) == 5
    assert final.current == ""
    assert final.is_terminal
    assert not bulk.is_running


@pytest.mark.asyncio
async def test_progress_after_each_item():
    """Each callback reports the count so far and the next source."""
    records = _records(3)
    updates: list[BulkProgress] = []
    await BulkAnalyzer(StubAnalyzer(), item_delay=0).analyze_bulk_images(records, updates.append)
    assert [u.completed for u in updates] == [1, 2, 3]
    assert [u.current for u in updates] == [records[1].src, records[2].src, ""]
    assert [len(u.results) for u in updates] == [1, 2, 3]
    assert all(u.total == 3 for u in updates)


@pytest.mark.asyncio
async def test_async_progress_callback_is_awaited():
    """Coroutine callbacks are awaited."""
    seen = []

    async def on_progress(progress: BulkProgress) -> None:
        seen.append(progress.completed)

    await BulkAnalyzer(StubAnalyzer(), item_delay=0).analyze_bulk_images(_records(2), on_progress)
    assert seen == [1, 2]


@pytest.mark.asyncio
async def test_concurrent_run_rejected_without_touching_state():
    """A second run while one is active fails immediately and leaves progress intact."""
    gate = asyncio.Event()
    analyzer = StubAnalyzer(gate=gate)
    bulk = BulkAnalyzer(analyzer, item_delay=0)
    records = _records(3)
    first = asyncio.create_task(bulk.analyze_bulk_images(records))
    await asyncio.sleep(0)
    assert bulk.is_running
    before = bulk.progress.model_copy(deep=True)

    with pytest.raises(BulkAnalysisInProgressError, match="already in progress"):
        await bulk.analyze_bulk_images(_records(1))

    assert bulk.progress.model_dump() == before.model_dump()
    assert analyzer.started == [records[0].src]
    gate.set()
    assert len(await first) == 3


@pytest.mark.asyncio
async def test_cancel_lets_in_flight_item_finish():
    """Cancellation stops new items; the running one completes."""
    gate = asyncio.Event()
    analyzer = StubAnalyzer(gate=gate)
    bulk = BulkAnalyzer(analyzer, item_delay=0)
    updates: list[BulkProgress] = []
    task = asyncio.create_task(bulk.analyze_bulk_images(_records(4), updates.append))
    await asyncio.sleep(0)

    assert bulk.cancel() is True
    gate.set()
    results = await task

    assert len(results) == 1
    assert len(analyzer.started) == 1
    assert updates[-1].current == ""
    assert updates[-1].completed == 1
    assert not updates[-1].is_terminal
    assert bulk.cancel() is False


@pytest.mark.asyncio
async def test_empty_batch_reports_terminal_progress():
    """An empty run still reports a terminal snapshot."""
    updates: list[BulkProgress] = []
    results = await BulkAnalyzer(StubAnalyzer(), item_delay=0).analyze_bulk_images([], updates.append)
    assert results == []
    assert len(updates) == 1
    assert updates[0].is_terminal
