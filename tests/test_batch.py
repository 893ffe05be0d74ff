from __future__ import annotations

import asyncio

from liquidacao.calculo.batch import process_queue, remaining_queue
from liquidacao.calculo.history import HistoryStore
from liquidacao.calculo.models import Calculation
from liquidacao.calculo.retry import QuotaExceededError
from liquidacao.calculo.uploads import QueuedFile


class MemoryBackend:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get_value(self, key: str) -> str | None:
        return self.values.get(key)

    def set_value(self, key: str, value: str) -> None:
        self.values[key] = value


def _queue(*names: str) -> list[QueuedFile]:
    return [QueuedFile(name, 10, "application/pdf", file_id=name) for name in names]


async def _download(queued: QueuedFile) -> bytes:
    return queued.name.encode()


def _extractor(outcomes: dict):
    calls = []

    async def extract(payload, mime_type, *, instructions, employer_percentage, variant):
        calls.append((payload.decode(), instructions, employer_percentage, variant))
        outcome = outcomes[payload.decode()]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return extract, calls


def _calc(claimant: str, possible: bool = True) -> Calculation:
    return Calculation(claimant=claimant, respondent="Acme", case_number="1", is_calculation_possible=possible)


def test_processes_files_in_order() -> None:
    history = HistoryStore("test", backend=MemoryBackend())
    extract, calls = _extractor({"a.pdf": _calc("A"), "b.pdf": _calc("B")})

    report = asyncio.run(process_queue(
        _queue("a.pdf", "b.pdf"), extract=extract, download=_download, history=history,
        instructions="HE 100%", employer_percentage="20", variant="rapido",
    ))

    assert report.ok
    assert report.success_count == 2
    assert [f.name for f in report.processed] == ["a.pdf", "b.pdf"]
    assert [c[0] for c in calls] == ["a.pdf", "b.pdf"]
    assert calls[0][1:] == ("HE 100%", "20", "rapido")
    assert [e.filename for e in history.all()] == ["b.pdf", "a.pdf"]
    assert history.all()[0].observation == "HE 100%"


def test_quota_error_stops_batch() -> None:
    history = HistoryStore("test", backend=MemoryBackend())
    extract, calls = _extractor({
        "a.pdf": _calc("A"),
        "b.pdf": QuotaExceededError("Limite de uso da IA excedido."),
        "c.pdf": _calc("C"),
    })

    report = asyncio.run(process_queue(
        _queue("a.pdf", "b.pdf", "c.pdf"), extract=extract, download=_download, history=history,
    ))

    assert report.quota_exceeded
    assert [f.name for f in report.processed] == ["a.pdf"]
    assert len(calls) == 2
    assert len(history) == 1
    assert "Limite" in report.error


def test_other_errors_become_failed_entries() -> None:
    history = HistoryStore("test", backend=MemoryBackend())
    extract, _ = _extractor({"a.pdf": RuntimeError("boom"), "b.pdf": _calc("B", possible=False)})

    report = asyncio.run(process_queue(
        _queue("a.pdf", "b.pdf"), extract=extract, download=_download, history=history,
        employer_percentage="23",
    ))

    assert not report.quota_exceeded
    assert report.failed_count == 2
    assert [f.name for f in report.processed] == ["a.pdf", "b.pdf"]
    failed = history.all()[1].result
    assert failed.claimant == "Erro"
    assert failed.error_reason == "boom"
    assert failed.employer_charge_percentage == 23
    assert report.error.startswith("2 arquivo(s)")


def test_progress_callback() -> None:
    history = HistoryStore("test", backend=MemoryBackend())
    extract, _ = _extractor({"a.pdf": _calc("A"), "b.pdf": _calc("B")})
    seen = []

    async def progress(position, total, queued):
        seen.append((position, total, queued.name))

    asyncio.run(process_queue(
        _queue("a.pdf", "b.pdf"), extract=extract, download=_download, history=history, on_progress=progress,
    ))

    assert seen == [(1, 2, "a.pdf"), (2, 2, "b.pdf")]


def test_quota_halt_keeps_unprocessed_file_with_same_name() -> None:
    history = HistoryStore("test", backend=MemoryBackend())
    queue = [
        QueuedFile("a.pdf", 100, "application/pdf", file_id="first"),
        QueuedFile("a.pdf", 200, "application/pdf", file_id="second"),
    ]
    results = [_calc("A"), QuotaExceededError("Limite de uso da IA excedido.")]

    async def extract(payload, mime_type, **kwargs):
        outcome = results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    report = asyncio.run(process_queue(queue, extract=extract, download=_download, history=history))
    left = remaining_queue(queue, report)

    assert report.quota_exceeded
    assert [(f.name, f.size) for f in left] == [("a.pdf", 200)]


def test_remaining_queue_empty_after_full_run() -> None:
    history = HistoryStore("test", backend=MemoryBackend())
    extract, _ = _extractor({"a.pdf": _calc("A"), "b.pdf": _calc("B")})
    queue = _queue("a.pdf", "b.pdf")

    report = asyncio.run(process_queue(queue, extract=extract, download=_download, history=history))

    assert remaining_queue(queue, report) == []
