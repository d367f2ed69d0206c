"""GeoNames postal code ingestion into the atlas database."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path

from bifrost.common.cancel import CancelToken
from bifrost.common.config_loader import http_settings
from bifrost.common.fs import scoped_tempfile
from bifrost.common.http import HttpClient
from bifrost.flows.stages import cancellable, stage_scope, tag_stage
from bifrost.harvest.archive import open_member
from bifrost.pipeline.materialize import GEO_TABLE, Materializer, SqliteEngine
from bifrost.pipeline.normalize import normalize_geo_row
from bifrost.pipeline.records import GEO_RECORD_OPTIONS, iter_rows, text_reader

FLOW = "atlas"


def run_geo_flow(
    cfg: dict,
    *,
    http_client: HttpClient | None = None,
    cancel: CancelToken | None = None,
    logger: logging.Logger | None = None,
) -> dict:
    atlas_cfg = cfg["atlas"]
    database_path = Path(atlas_cfg["database_path"])

    owns_client = http_client is None
    if http_client is None:
        timeout, retry = http_settings(cfg)
        http_client = HttpClient(timeout=timeout, retry=retry)

    try:
        with ExitStack() as stack:
            zip_path, zip_handle = stack.enter_context(scoped_tempfile(prefix="allCountries-", suffix=".zip"))

            with stage_scope("acquire", flow=FLOW, logger=logger):
                size, _content_type = http_client.fetch(atlas_cfg["source_url"], zip_handle, cancel=cancel)
                zip_handle.close()

            with stage_scope("decode", flow=FLOW, logger=logger):
                member = stack.enter_context(open_member(zip_path, atlas_cfg["member_name"]))

            rows = tag_stage("decode", iter_rows(text_reader(member), GEO_RECORD_OPTIONS))
            records = tag_stage("normalize", (normalize_geo_row(row) for row in rows))

            materializer = Materializer(SqliteEngine(database_path))
            with stage_scope("materialize", flow=FLOW, logger=logger):
                with materializer.transaction():
                    # Full rebuild keeps repeated runs free of duplicate postal codes.
                    materializer.rebuild(GEO_TABLE)
                    count = materializer.insert_many(GEO_TABLE, cancellable(records, cancel))
    finally:
        if owns_client:
            http_client.close()

    return {
        "flow": FLOW,
        "status": "updated",
        "rows": count,
        "bytes": size,
        "database_path": str(database_path),
    }
