"""Dialect-aware raw SQL probes.

Server-level statistics (connections, table sizes, running queries) live in
different catalogs per database. Each probe declares its SQL per dialect; a
dialect without an entry raises ProbeUnavailable instead of guessing.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.orm import Session

from audit.core.errors import ProbeUnavailable


ACTIVE_CONNECTIONS: Mapping[str, str] = {
    "mysql": "select count(*) from information_schema.processlist",
    "postgresql": "select count(*) from pg_stat_activity where datname = current_database()",
}

TABLE_SIZES_MB: Mapping[str, str] = {
    "mysql": """
        select table_name, round(((data_length + index_length) / 1024 / 1024), 2) as size_mb
        from information_schema.tables
        where table_schema = database()
        order by size_mb desc
    """,
    "postgresql": """
        select relname as table_name, round(pg_total_relation_size(relid) / 1024.0 / 1024.0, 2) as size_mb
        from pg_catalog.pg_statio_user_tables
        order by size_mb desc
    """,
}

SLOW_QUERIES: Mapping[str, str] = {
    "mysql": """
        select id from information_schema.processlist
        where command != 'Sleep' and time > :seconds
    """,
    "postgresql": """
        select pid from pg_stat_activity
        where state = 'active'
          and pid <> pg_backend_pid()
          and now() - query_start > make_interval(secs => :seconds)
    """,
}


def dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


def probe_sql(db: Session, probe: Mapping[str, str], *, check_name: str, probe_name: str) -> str:
    dialect = dialect_name(db)
    sql = probe.get(dialect)
    if sql is None:
        raise ProbeUnavailable(check_name, f"probe {probe_name!r} not supported on dialect {dialect!r}")
    return sql


def run_probe(
    db: Session,
    probe: Mapping[str, str],
    *,
    check_name: str,
    probe_name: str,
    params: Mapping[str, Any] | None = None,
) -> list[Any]:
    sql = probe_sql(db, probe, check_name=check_name, probe_name=probe_name)
    return list(db.execute(text(sql), dict(params or {})).all())
