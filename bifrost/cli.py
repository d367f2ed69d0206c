"""CLI entrypoints for the atlas and finly ingestion tools."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from bifrost.common.cancel import CancelToken
from bifrost.common.config_loader import load_config
from bifrost.common.constants import EXIT_CANCELED, EXIT_HARD_FAIL, EXIT_SUCCESS, FLOWS
from bifrost.common.errors import BifrostError, Canceled
from bifrost.common.ids import generate_run_id
from bifrost.common.logging import build_logger, log_event
from bifrost.common.time_utils import elapsed_ms
from bifrost.flows.bank import run_bank_flow
from bifrost.flows.geo import run_geo_flow


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("flow", choices=FLOWS)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


@contextmanager
def cancel_on_signals(token: CancelToken) -> Iterator[None]:
    def _handler(_signum, _frame) -> None:
        token.cancel()

    # Signal handlers can only be installed from the main thread.
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def execute_flow(flow: str, cfg: dict, *, cancel: CancelToken, logger: logging.Logger) -> dict:
    if flow == "atlas":
        return run_geo_flow(cfg, cancel=cancel, logger=logger)
    if flow == "finly":
        return run_bank_flow(cfg, cancel=cancel, logger=logger)
    raise ValueError(f"Unknown flow: {flow}")


def _log_result(logger: logging.Logger, run_id: str, result: dict, duration_ms: int) -> None:
    flow = result["flow"]
    if result["status"] == "skipped":
        log_event(
            logger,
            "no update required",
            run_id=run_id,
            flow=flow,
            event="NO_UPDATE",
            status="ok",
            current_version=result["current_version"],
            latest_version=result["latest_version"],
            duration_ms=duration_ms,
        )
    elif flow == "finly":
        log_event(
            logger,
            "update successful",
            run_id=run_id,
            flow=flow,
            event="UPDATE_SUCCESS",
            status="ok",
            rows_out=result["rows"],
            current_version=result["current_version"],
            latest_version=result["latest_version"],
            duration_ms=duration_ms,
        )
    else:
        log_event(
            logger,
            "data generated successfully",
            run_id=run_id,
            flow=flow,
            event="UPDATE_SUCCESS",
            status="ok",
            rows_out=result["rows"],
            duration_ms=duration_ms,
        )


def _log_failure(logger: logging.Logger, run_id: str, flow: str, exc: BifrostError) -> None:
    cancelled = isinstance(exc, Canceled)
    log_event(
        logger,
        "run cancelled" if cancelled else "run failed",
        level=logging.WARNING if cancelled else logging.ERROR,
        run_id=run_id,
        flow=flow,
        stage=exc.stage,
        event="RUN_CANCELLED" if cancelled else "RUN_FAIL",
        status="cancelled" if cancelled else "error",
        error_code=exc.error_code,
        cause=type(exc.__cause__).__name__ if exc.__cause__ is not None else type(exc).__name__,
    )


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)

    started = time.monotonic()
    token = CancelToken()
    try:
        cfg = load_config(Path(args.config_dir))
        with cancel_on_signals(token):
            result = execute_flow(args.flow, cfg, cancel=token, logger=logger)
    except KeyboardInterrupt:
        _log_failure(logger, run_id, args.flow, Canceled("Run interrupted"))
        return EXIT_CANCELED
    except BifrostError as exc:
        _log_failure(logger, run_id, args.flow, exc)
        return EXIT_CANCELED if isinstance(exc, Canceled) else EXIT_HARD_FAIL
    except Exception as exc:
        log_event(
            logger,
            "unexpected failure",
            level=logging.ERROR,
            run_id=run_id,
            flow=args.flow,
            event="RUN_FAIL",
            status="error",
            error_code="UNEXPECTED_ERROR",
            cause=type(exc).__name__,
        )
        return EXIT_HARD_FAIL

    _log_result(logger, run_id, result, elapsed_ms(started))
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    return run_command(args)


def atlas_main(argv: list[str] | None = None) -> int:
    return main(["atlas", *(sys.argv[1:] if argv is None else argv)])


def finly_main(argv: list[str] | None = None) -> int:
    return main(["finly", *(sys.argv[1:] if argv is None else argv)])


if __name__ == "__main__":
    raise SystemExit(main())
