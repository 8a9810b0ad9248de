"""Read-only Postgres history store.

Plain psycopg + SQL. Each call opens its own connection so the pipeline always
sees rows committed by the publishing layer since the previous call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import psycopg

from animeintel.dedup.history import DeclinedEntry, HistoryEntry


logger = logging.getLogger(__name__)


@dataclass
class PostgresHistoryStore:
    pg_dsn: str

    def _connect(self):
        return psycopg.connect(self.pg_dsn)

    def list_recent(self, limit: int) -> List[HistoryEntry]:
        limit = max(1, min(int(limit), 1000))
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id, title, slug, event_fingerprint, truth_fingerprint, claim_type
                    FROM posts
                    WHERE status <> 'declined'
                    ORDER BY scraped_at DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = cur.fetchall()
        return [
            HistoryEntry(
                id=int(pid),
                title=title or "",
                slug=slug,
                event_fingerprint=efp,
                truth_fingerprint=tfp,
                claim_type=claim,
            )
            for (pid, title, slug, efp, tfp, claim) in rows
        ]

    def list_declined(self) -> List[DeclinedEntry]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT title FROM declined_posts ORDER BY declined_at DESC")
                rows = cur.fetchall()
        return [DeclinedEntry(title=r[0]) for r in rows if r and r[0]]

    def get_source_tier(self, name: str) -> Optional[int]:
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT tier FROM source_tiers WHERE source_name = %s", (name,))
                    row = cur.fetchone()
        except psycopg.Error as e:
            logger.warning("source_tiers lookup failed for %s: %s", name, e)
            return None
        return int(row[0]) if row and row[0] is not None else None
