"""Queue of documents waiting to be sent for calculation."""

from __future__ import annotations

from dataclasses import dataclass, field

ACCEPTED_MIME_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/webp",
}


@dataclass
class QueuedFile:
    name: str
    size: int
    mime_type: str
    file_id: str = ""   # Telegram file id, downloaded when processed

    @property
    def size_mb(self) -> float:
        return self.size / 1024 / 1024


@dataclass
class UploadOutcome:
    queue: list[QueuedFile]
    accepted: list[QueuedFile] = field(default_factory=list)
    rejected: list[tuple[QueuedFile, str]] = field(default_factory=list)


def add_files(queue: list[QueuedFile], candidates: list[QueuedFile], max_bytes: int) -> UploadOutcome:
    """Validate candidates and append the new ones to a copy of the queue.

    Oversized or unsupported files are rejected with a reason; files already
    queued (same name and size) are skipped silently.
    """
    outcome = UploadOutcome(queue=list(queue))
    seen = {(f.name, f.size) for f in queue}
    limit_mb = max_bytes / 1024 / 1024

    for candidate in candidates:
        if candidate.size > max_bytes:
            outcome.rejected.append(
                (candidate, f'O arquivo "{candidate.name}" excede o limite de {limit_mb:g}MB.')
            )
            continue
        if candidate.mime_type not in ACCEPTED_MIME_TYPES:
            outcome.rejected.append(
                (candidate, f'O arquivo "{candidate.name}" nao e PDF nem imagem (PNG, JPEG, WEBP).')
            )
            continue
        key = (candidate.name, candidate.size)
        if key in seen:
            continue
        seen.add(key)
        outcome.queue.append(candidate)
        outcome.accepted.append(candidate)

    return outcome


def remove_file(queue: list[QueuedFile], index: int) -> list[QueuedFile]:
    if 0 <= index < len(queue):
        return queue[:index] + queue[index + 1:]
    return list(queue)
