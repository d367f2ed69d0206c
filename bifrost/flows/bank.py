"""IFSC release ingestion into the finly database."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Iterator

from bifrost.common.cancel import CancelToken, check_cancelled
from bifrost.common.config_loader import http_settings
from bifrost.common.errors import DecodeError
from bifrost.common.fs import read_json, scoped_tempfile
from bifrost.common.http import HttpClient
from bifrost.common.models import BankRecord
from bifrost.flows.stages import cancellable, stage_scope, tag_stage
from bifrost.harvest.release import parse_release
from bifrost.pipeline.enrich import BankCodeJoiner
from bifrost.pipeline.materialize import BANK_TABLE, VERSION_TABLE, Materializer, SqliteEngine
from bifrost.pipeline.normalize import normalize_bank_row
from bifrost.pipeline.records import BANK_RECORD_OPTIONS, iter_rows
from bifrost.pipeline.version_store import VersionStore

FLOW = "finly"


def _bank_records(rows: Iterator[list[str]], joiner: BankCodeJoiner) -> Iterator[BankRecord]:
    if next(rows, None) is None:
        raise DecodeError("IFSC.csv has no header row", stage="decode")
    normalized = tag_stage("normalize", (normalize_bank_row(row) for row in rows))
    return tag_stage("enrich", (joiner.enrich(record) for record in normalized))


def run_bank_flow(
    cfg: dict,
    *,
    http_client: HttpClient | None = None,
    cancel: CancelToken | None = None,
    logger: logging.Logger | None = None,
) -> dict:
    finly_cfg = cfg["finly"]
    database_path = Path(finly_cfg["database_path"])
    csv_asset = finly_cfg["csv_asset"]
    store = VersionStore(Path(finly_cfg["version_file"]))

    owns_client = http_client is None
    if http_client is None:
        timeout, retry = http_settings(cfg)
        http_client = HttpClient(timeout=timeout, retry=retry)

    try:
        with stage_scope("acquire", flow=FLOW, logger=logger):
            release = parse_release(http_client.get_json(finly_cfg["release_url"], cancel=cancel))

        with stage_scope("version_gate", flow=FLOW, logger=logger):
            current_version = store.read()
            check_cancelled(cancel)

        if release.tag_name == current_version or not release.publishable:
            return {
                "flow": FLOW,
                "status": "skipped",
                "rows": 0,
                "current_version": current_version,
                "latest_version": release.tag_name,
                "draft": release.draft,
                "prerelease": release.prerelease,
            }

        with ExitStack() as stack:
            with stage_scope("acquire", flow=FLOW, logger=logger):
                csv_url = release.asset_url(csv_asset)
                catalog_url = release.asset_url(finly_cfg["catalog_asset"])

                catalog_path, catalog_handle = stack.enter_context(scoped_tempfile(prefix="banks-", suffix=".json"))
                http_client.fetch(catalog_url, catalog_handle, cancel=cancel)
                catalog_handle.close()

                csv_path, csv_handle = stack.enter_context(scoped_tempfile(prefix="IFSC-", suffix=".csv"))
                http_client.fetch(csv_url, csv_handle, cancel=cancel)
                csv_handle.close()

            with stage_scope("enrich", flow=FLOW, logger=logger):
                joiner = BankCodeJoiner.from_catalog(read_json(catalog_path))

            materializer = Materializer(SqliteEngine(database_path))
            with stage_scope("materialize", flow=FLOW, logger=logger):
                csv_file = stack.enter_context(csv_path.open("r", encoding="utf-8", newline=""))
                with materializer.transaction():
                    materializer.rebuild(BANK_TABLE)
                    materializer.rebuild(VERSION_TABLE)
                    rows = tag_stage("decode", iter_rows(csv_file, BANK_RECORD_OPTIONS))
                    count = materializer.insert_many(BANK_TABLE, cancellable(_bank_records(rows, joiner), cancel))
                    materializer.record_version(csv_asset, release.tag_name)

        with stage_scope("commit", flow=FLOW, logger=logger):
            store.write(release.tag_name)
    finally:
        if owns_client:
            http_client.close()

    return {
        "flow": FLOW,
        "status": "updated",
        "rows": count,
        "current_version": current_version,
        "latest_version": release.tag_name,
        "database_path": str(database_path),
    }
