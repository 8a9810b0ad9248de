#!/usr/bin/env python3
"""Candidate pipeline worker.

Runs one pipeline cycle (or scheduled):
- RSS news feeds (breaking)
- Reddit r/anime hot posts (community)
- AniList trending (trending)

Votes the items into candidates, gates them against the published history in
Postgres and picks a header image for each accepted one. Publishing the
accepted candidates is the job of the downstream layer.
"""

from __future__ import annotations

import logging
import os
import time

import schedule
from dotenv import load_dotenv

from animeintel.config import load_settings
from animeintel.ingestion.adapters import default_adapters
from animeintel.pipeline import run_pipeline
from animeintel.storage.postgres_history import PostgresHistoryStore
from animeintel.storage.postgres_schema import ensure_postgres_schema


def run_once() -> None:
    load_dotenv()
    settings = load_settings()
    pg_dsn = os.environ.get("PG_DSN", "dbname=animeintel user=animeintel password=animeintelpass host=localhost port=5432")
    ensure_postgres_schema(pg_dsn)
    store = PostgresHistoryStore(pg_dsn)

    force = (os.environ.get("PIPELINE_FORCE") or "").lower().strip() in ("1", "true", "yes")
    adapters = default_adapters(timeout=settings.http_timeout, user_agent=settings.user_agent)
    run = run_pipeline(adapters, store, settings=settings, force=force)

    accepted = run.accepted_results()
    for r in accepted:
        c = r.candidate
        image = r.image.url if r.image else c.image
        print(f"[pipeline] + {c.title} score={c.score} tier={c.source_tier} image={image}")
    print(f"[pipeline] accepted={len(accepted)} rejected={len(run.results) - len(accepted)}")


def run_scheduled() -> None:
    # Every 30 minutes
    schedule.every(30).minutes.do(run_once)
    while True:
        schedule.run_pending()
        time.sleep(5)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    mode = (os.environ.get("PIPELINE_MODE") or "once").lower().strip()
    if mode in ("scheduled", "daemon"):
        run_scheduled()
    else:
        run_once()
