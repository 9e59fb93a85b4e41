# contact_manager/services/store_utils.py

import logging
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError

from contact_manager.core.errors import BackendUnavailable, Conflict

logger = logging.getLogger("contact_manager.store")

UNIQUE_VIOLATION = "23505"


def execute(query, action: str, conflict_message: Optional[str] = None):
    """
    Ejecuta un query de PostgREST y traduce los fallos a errores de dominio:
    - 23505 (unique_violation) -> Conflict
    - cualquier otro APIError o fallo de red -> BackendUnavailable (sin reintento)
    """
    try:
        return query.execute()
    except APIError as e:
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            raise Conflict(conflict_message or "A record with these values already exists")
        logger.error("store_error action=%s code=%s error=%s", action, getattr(e, "code", None), getattr(e, "message", e))
        raise BackendUnavailable(cause=str(e))
    except httpx.HTTPError as e:
        logger.error("store_unreachable action=%s error=%s", action, e)
        raise BackendUnavailable(cause=str(e))


def rows(res) -> List[Dict[str, Any]]:
    return getattr(res, "data", None) or []


def first(res) -> Optional[Dict[str, Any]]:
    data = rows(res)
    return data[0] if data else None
