"""
Seen-question store with a rolling expiry.

A user's seen-set is stored as one row per question. Every write refreshes
the expiry of the whole set (so it behaves like a single blob with a TTL
counted from the last write) and inserts new members with
``ON CONFLICT DO UPDATE``. Members whose window already closed are dropped
first; an expired set is gone, whether or not a purge has run. All
statements run in one transaction, so two concurrent finishes for the
same user union their ids instead of overwriting each other.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

from loguru import logger
from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from src.db.database import session_scope
from src.db.models import SeenQuestion
from src.db.utils import upsert, utcnow


class SqlSeenQuestionStore:
    """SeenQuestionStore backed by the ``seen_question`` table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, user_id: str) -> set[str]:
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(SeenQuestion.question_id).where(
                    SeenQuestion.user_id == user_id,
                    SeenQuestion.expires_at > utcnow(),
                )
            ).all()
        return set(rows)

    def add_all(self, user_id: str, question_ids: Iterable[str], ttl_seconds: int) -> None:
        ids = list(dict.fromkeys(question_ids))
        if not ids:
            return

        now = utcnow()
        expires_at = now + timedelta(seconds=ttl_seconds)
        with session_scope(self.session_factory) as session:
            session.execute(
                delete(SeenQuestion)
                .where(SeenQuestion.user_id == user_id, SeenQuestion.expires_at <= now)
                .execution_options(synchronize_session=False)
            )
            session.execute(
                update(SeenQuestion)
                .where(SeenQuestion.user_id == user_id)
                .values(expires_at=expires_at)
                .execution_options(synchronize_session=False)
            )
            upsert(
                session,
                SeenQuestion,
                [
                    {"user_id": user_id, "question_id": qid, "seen_at": now, "expires_at": expires_at}
                    for qid in ids
                ],
                index_elements=["user_id", "question_id"],
                update_fields=["seen_at", "expires_at"],
            )
        logger.debug(f"Marked {len(ids)} questions seen for {user_id} (ttl={ttl_seconds}s)")

    def purge_expired(self) -> int:
        """Delete expired members. Returns the number of rows removed."""
        with session_scope(self.session_factory) as session:
            result = session.execute(
                delete(SeenQuestion)
                .where(SeenQuestion.expires_at <= utcnow())
                .execution_options(synchronize_session=False)
            )
            removed = result.rowcount or 0
        logger.info(f"Purged {removed} expired seen-question rows")
        return removed
