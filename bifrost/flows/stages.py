"""Stage scoping shared by the ingestion flows."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterable, Iterator, TypeVar

from bifrost.common.cancel import CancelToken, check_cancelled
from bifrost.common.errors import BifrostError
from bifrost.common.logging import log_event
from bifrost.common.time_utils import elapsed_ms

T = TypeVar("T")


def _tag(exc: BifrostError, stage: str) -> None:
    if exc.stage is None:
        exc.stage = stage


@contextmanager
def stage_scope(stage: str, *, flow: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """Attribute escaping errors to ``stage`` and emit debug progress records."""
    started = time.monotonic()
    if logger is not None:
        log_event(logger, f"{stage} start", level=logging.DEBUG, flow=flow, stage=stage, event="STAGE_START", status="ok")
    try:
        yield
    except BifrostError as exc:
        _tag(exc, stage)
        raise
    if logger is not None:
        log_event(
            logger,
            f"{stage} end",
            level=logging.DEBUG,
            flow=flow,
            stage=stage,
            event="STAGE_END",
            status="ok",
            duration_ms=elapsed_ms(started),
        )


def tag_stage(stage: str, items: Iterable[T]) -> Iterator[T]:
    """Lazy counterpart of ``stage_scope`` for errors raised while iterating."""
    try:
        yield from items
    except BifrostError as exc:
        _tag(exc, stage)
        raise


def cancellable(items: Iterable[T], cancel: CancelToken | None) -> Iterator[T]:
    for item in items:
        check_cancelled(cancel)
        yield item
