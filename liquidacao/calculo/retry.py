"""Exponential backoff for model calls that hit rate limits or quotas."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

import config

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUOTA_MARKERS = ("429", "quota", "resource_exhausted", "rate limit")


class QuotaExceededError(Exception):
    """The model kept answering with a quota error after every retry."""


def is_quota_error(exc: BaseException) -> bool:
    for attr in ("status_code", "status", "code"):
        if getattr(exc, attr, None) == 429:
            return True
    message = str(exc).lower()
    return any(marker in message for marker in QUOTA_MARKERS)


async def with_quota_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int | None = None,
    base_delay: float | None = None,
    jitter: float | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Run ``operation``, retrying only on quota errors.

    Waits ``base_delay * 2**attempt`` (+ up to ``jitter`` seconds) between
    attempts. Other errors propagate untouched on the first failure; a
    quota error that survives ``max_retries`` retries is raised as
    QuotaExceededError.
    """
    max_retries = config.QUOTA_MAX_RETRIES if max_retries is None else max_retries
    base_delay = config.QUOTA_BASE_DELAY_SECONDS if base_delay is None else base_delay
    jitter = config.QUOTA_JITTER_SECONDS if jitter is None else jitter

    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_quota_error(e):
                raise
            if attempt >= max_retries:
                logger.error(f"Quota still exhausted after {attempt + 1} attempts: {e}")
                raise QuotaExceededError(
                    "Limite de uso da IA excedido. Aguarde cerca de 60 segundos e tente novamente."
                ) from e
            delay = base_delay * (2 ** attempt)
            if jitter:
                delay += random.uniform(0, jitter)
            logger.warning(f"Quota error (attempt {attempt + 1}/{max_retries + 1}), retrying in {delay:.1f}s")
            attempt += 1
            await sleep(delay)
