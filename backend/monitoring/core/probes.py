"""Outbound reachability probes.

Each probe makes one GET with the client's fixed timeout. A timeout or
transport error is a failed check, never an exception out of the probe.
"""

from __future__ import annotations

import json
import logging

import httpx

from monitoring.core.result import DbHealth, ErrorEntry, SiteHealth


logger = logging.getLogger("agentpro.monitoring")


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False, default=str))


async def check_site_health(client: httpx.AsyncClient, base_url: str) -> SiteHealth:
    try:
        response = await client.get(f"{base_url}/api/health")
    except httpx.HTTPError as e:
        return SiteHealth(ok=False, status=0, message=f"Site check failed: {type(e).__name__}: {e}")
    ok = response.is_success
    return SiteHealth(
        ok=ok,
        status=response.status_code,
        message="Site is healthy" if ok else f"Site returned status {response.status_code}",
    )


async def check_db_health(client: httpx.AsyncClient, base_url: str) -> DbHealth:
    try:
        response = await client.get(f"{base_url}/api/health/db")
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        return DbHealth(ok=False, message=f"Database check failed: {type(e).__name__}: {e}")
    connected = bool(isinstance(data, dict) and data.get("connected"))
    return DbHealth(
        ok=response.is_success and connected,
        message="Database is connected" if connected else "Database connection failed",
    )


async def fetch_recent_errors(client: httpx.AsyncClient, base_url: str) -> list[ErrorEntry]:
    """Recent ERROR/CRITICAL log entries; an unreachable endpoint yields none."""
    try:
        response = await client.get(f"{base_url}/api/monitoring/errors")
        if not response.is_success:
            _log({"event": "monitoring_errors_unavailable", "status": response.status_code})
            return []
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        _log({"event": "monitoring_errors_unavailable", "error": f"{type(e).__name__}: {e}"})
        return []

    items = data.get("errors") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []

    entries: list[ErrorEntry] = []
    for raw in items:
        if not isinstance(raw, dict):
            _log({"event": "monitoring_error_entry_skipped", "type": type(raw).__name__})
            continue
        entries.append(
            ErrorEntry(
                id=str(raw.get("id", "")),
                message=str(raw.get("message", "")),
                error_level=str(raw.get("error_level", "")),
                created_at=raw.get("created_at"),
            )
        )
    return entries
