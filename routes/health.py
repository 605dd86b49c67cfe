# routes/health.py
from __future__ import annotations

import os
from typing import Optional

from fastapi import APIRouter

from db import get_conn
from settings import settings

router = APIRouter(tags=["health"])

MIGRATION_REVISION = "0001_marketplace_schema"


def _check_db() -> tuple[bool, Optional[str]]:
    try:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True, None
    except Exception as exc:
        # class name only: the message can carry the DSN
        return False, type(exc).__name__


def _applied_revision() -> Optional[str]:
    try:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT to_regclass('marketplace.alembic_version');")
                if not cur.fetchone()[0]:
                    return None
                cur.execute("SELECT version_num FROM marketplace.alembic_version LIMIT 1;")
                row = cur.fetchone()
                return row[0] if row else None
    except Exception:
        return None


@router.get("/health")
def health():
    """Liveness only; never touches the database."""
    return {
        "ok": True,
        "env": (os.getenv("ENVIRONMENT") or os.getenv("ENV") or "").strip(),
        "payout_provider": settings.PAYOUT_PROVIDER,
    }


@router.get("/healthz")
def healthz():
    db_ok, db_error = _check_db()
    applied = _applied_revision() if db_ok else None
    return {
        "ok": True,
        "version": os.getenv("APP_VERSION", "1.0.0"),
        "db_ok": db_ok,
        "db_error": db_error,
        "migration_revision": MIGRATION_REVISION,
        "migrations_current": applied == MIGRATION_REVISION,
    }
