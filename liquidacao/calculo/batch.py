"""Process queued documents one by one, stopping on quota exhaustion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from liquidacao.calculo.history import HistoryStore
from liquidacao.calculo.models import Calculation, HistoryEntry, parse_number
from liquidacao.calculo.retry import QuotaExceededError
from liquidacao.calculo.uploads import QueuedFile

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    success_count: int = 0
    failed_count: int = 0
    quota_exceeded: bool = False
    error: str = ""
    processed: list[QueuedFile] = field(default_factory=list)
    entries: list[HistoryEntry] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.quota_exceeded and self.failed_count == 0


async def process_queue(
    queue: list[QueuedFile],
    *,
    extract: Callable[..., Awaitable[Calculation]],
    download: Callable[[QueuedFile], Awaitable[bytes]],
    history: HistoryStore,
    instructions: str = "",
    employer_percentage: str = "",
    variant: str = "",
    on_progress: Callable[[int, int, QueuedFile], Awaitable[None]] | None = None,
) -> BatchReport:
    """Run every queued file through ``extract`` in order.

    Results (including "calculation not possible" ones) are prepended to
    ``history``. A quota error stops the batch before the next file; any
    other error is stored as a failed entry and the batch moves on.
    """
    report = BatchReport()
    total = len(queue)

    for position, queued in enumerate(queue, 1):
        if on_progress:
            await on_progress(position, total, queued)
        try:
            payload = await download(queued)
            result = await extract(
                payload,
                queued.mime_type,
                instructions=instructions,
                employer_percentage=employer_percentage,
                variant=variant,
            )
            entry = history.append(HistoryEntry(filename=queued.name, result=result, observation=instructions))
            if result.is_calculation_possible:
                report.success_count += 1
            else:
                report.failed_count += 1
                logger.info(f"Calculation not possible for {queued.name}: {result.error_reason}")
        except QuotaExceededError as e:
            logger.error(f"Quota exceeded on {queued.name}, stopping batch at {position}/{total}")
            report.failed_count += 1
            report.quota_exceeded = True
            report.error = str(e)
            break
        except Exception as e:
            logger.error(f"Failed to process {queued.name}: {e}", exc_info=True)
            report.failed_count += 1
            failed = Calculation.failed(str(e), parse_number(employer_percentage))
            entry = history.append(HistoryEntry(filename=queued.name, result=failed, observation=instructions))

        report.processed.append(queued)
        report.entries.append(entry)

    if not report.quota_exceeded and report.failed_count:
        report.error = f"{report.failed_count} arquivo(s) apresentaram erros de liquidacao tecnica."
    return report


def remaining_queue(queue: list[QueuedFile], report: BatchReport) -> list[QueuedFile]:
    """Files still waiting after a batch, matched by (name, size) like upload dedup."""
    done = {(f.name, f.size) for f in report.processed}
    return [f for f in queue if (f.name, f.size) not in done]
