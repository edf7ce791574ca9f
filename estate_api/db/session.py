from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from estate_api.core.config import get_settings

settings = get_settings()

DATABASE_URL = settings.database_url  # fail fast if missing

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    future=True,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def bind_tenant_context(db: Session, *, tenant_id: Optional[uuid.UUID], role: Optional[str]) -> None:
    """
    Publish the caller's tenant/role as transaction-local settings so Postgres
    row-level-security policies can filter on them. Must run at the start of
    every transaction (the values vanish on commit/rollback).

    No-op on other dialects; query-level tenant filters apply everywhere regardless.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    if tenant_id is not None:
        db.execute(
            text("SELECT set_config('app.tenant_id', :tid, true)"),
            {"tid": str(tenant_id)},
        )
    if role:
        db.execute(text("SELECT set_config('app.role', :role, true)"), {"role": role})


@contextmanager
def tenant_transaction(
    db: Session,
    *,
    tenant_id: Optional[uuid.UUID],
    role: Optional[str] = None,
) -> Iterator[Session]:
    """
    One tenant-scoped unit of work: commit on success, roll back everything
    (including staged audit rows) on any exception.
    """
    try:
        bind_tenant_context(db, tenant_id=tenant_id, role=role)
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
