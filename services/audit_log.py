from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

import psycopg2
from psycopg2.extras import Json

from services.observability import get_request_id
from services.redaction import redact_dict

logger = logging.getLogger("bookmarket.audit")


class AuditSink(Protocol):
    def __call__(self, event: str, context: dict[str, Any]) -> None: ...


def write_audit_log(
    conn,
    *,
    actor_user_id: Optional[int],
    action: str,
    target_id: str | None,
    metadata: dict[str, Any] | None = None,
) -> None:
    with conn.cursor() as cur:
        cur.execute(
            """
            INSERT INTO marketplace.audit_log (actor_user_id, action, target_id, metadata, request_id)
            VALUES (%s, %s, %s, %s::jsonb, %s);
            """,
            (
                actor_user_id,
                action,
                target_id,
                Json(metadata or {}, dumps=_dumps),
                get_request_id(),
            ),
        )


def _dumps(obj: Any) -> str:
    return json.dumps(obj, default=str)


class DbAuditSink:
    """
    Fire-and-forget audit sink bound to the request's connection.

    The insert runs inside a savepoint: a failed audit write is logged and rolled
    back to the savepoint so it never undoes the caller's status writes.
    """

    def __init__(self, conn, *, actor_user_id: Optional[int] = None):
        self.conn = conn
        self.actor_user_id = actor_user_id

    def __call__(self, event: str, context: dict[str, Any]) -> None:
        safe = redact_dict(context)
        target = safe.get("transaction_id") or safe.get("request_id")
        logger.info("audit event=%s target=%s context=%s", event, target, safe)

        with self.conn.cursor() as cur:
            cur.execute("SAVEPOINT audit_log;")
        try:
            write_audit_log(
                self.conn,
                actor_user_id=safe.get("actor_id") or self.actor_user_id,
                action=event,
                target_id=str(target) if target is not None else None,
                metadata=safe,
            )
        except psycopg2.Error:
            logger.exception("audit write failed event=%s target=%s", event, target)
            with self.conn.cursor() as cur:
                cur.execute("ROLLBACK TO SAVEPOINT audit_log;")
            return
        with self.conn.cursor() as cur:
            cur.execute("RELEASE SAVEPOINT audit_log;")


class LoggingAuditSink:
    """Audit sink for contexts without a database connection (scripts, tests)."""

    def __call__(self, event: str, context: dict[str, Any]) -> None:
        logger.info("audit event=%s context=%s", event, redact_dict(context))
