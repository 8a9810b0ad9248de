"""Postgres schema for the history tables the pipeline reads.

The publishing layer owns writes; this exists so a local database can be
stood up for development and tests. Idempotent (CREATE IF NOT EXISTS).
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS posts (
      id BIGSERIAL PRIMARY KEY,
      title TEXT NOT NULL,
      slug TEXT,
      claim_type TEXT,
      event_fingerprint TEXT,
      truth_fingerprint TEXT,
      image TEXT,
      source TEXT,
      source_tier INTEGER,
      relevance_score INTEGER,
      status TEXT NOT NULL DEFAULT 'pending',
      scraped_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "ALTER TABLE posts ADD COLUMN IF NOT EXISTS event_fingerprint TEXT;",
    "ALTER TABLE posts ADD COLUMN IF NOT EXISTS truth_fingerprint TEXT;",
    "CREATE INDEX IF NOT EXISTS idx_posts_scraped_at ON posts (scraped_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_posts_event_fp ON posts (event_fingerprint) WHERE event_fingerprint IS NOT NULL;",
    "CREATE INDEX IF NOT EXISTS idx_posts_truth_fp ON posts (truth_fingerprint) WHERE truth_fingerprint IS NOT NULL;",
    """
    CREATE TABLE IF NOT EXISTS declined_posts (
      id BIGSERIAL PRIMARY KEY,
      original_post_id BIGINT,
      title TEXT NOT NULL,
      source TEXT,
      reason TEXT,
      declined_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS source_tiers (
      source_name TEXT PRIMARY KEY,
      tier INTEGER NOT NULL CHECK (tier BETWEEN 1 AND 3),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
