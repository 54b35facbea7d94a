# contentops/services/audit.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Request

log = logging.getLogger("contentops.audit")

ASSIGNMENT_CREATED = "ASSIGNMENT_CREATED"
ASSIGNMENT_DELETED = "ASSIGNMENT_DELETED"
BULK_OPERATION = "BULK_OPERATION"


# -----------------------------
# Helpers
# -----------------------------
def ip_from_request(request: Optional[Request]) -> Optional[str]:
    """
    Best-effort client IP:
      - X-Forwarded-For (first in the list)
      - X-Real-IP
      - request.client.host
    """
    if request is None:
        return None

    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    client = getattr(request, "client", None)
    return getattr(client, "host", None)


def _dumps_meta(meta: Optional[Dict[str, Any]]) -> str:
    return json.dumps(meta or {}, ensure_ascii=False, separators=(",", ":"), default=str)


# -----------------------------
# Core API
# -----------------------------
def audit_log(
    *,
    actor_id: Optional[str],
    actor_email: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> None:
    """Emit one audit record on the `contentops.audit` logger."""
    log.info(
        "%s actor=%s <%s> entity=%s:%s ip=%s meta=%s",
        action,
        actor_id,
        actor_email,
        entity_type,
        entity_id or "-",
        ip or "-",
        _dumps_meta(meta),
    )
