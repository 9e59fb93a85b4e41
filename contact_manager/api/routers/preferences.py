# contact_manager/api/routers/preferences.py

import logging

from fastapi import APIRouter, Depends

from contact_manager.api.models.user import ThemePreference
from contact_manager.core.auth import get_user_id
from contact_manager.core.errors import BackendUnavailable, NotFound
from contact_manager.core.supabase_client import get_service_supabase

logger = logging.getLogger("contact_manager.preferences")

router = APIRouter(prefix="/preferences", tags=["Configuration"])

DEFAULT_THEME = "light"


def _user_metadata(sb, user_id: str) -> dict:
    try:
        res = sb.auth.admin.get_user_by_id(user_id)
    except Exception as e:
        logger.error("user_lookup_failed user_id=%s error=%s", user_id, e)
        raise BackendUnavailable(cause=str(e))
    user = getattr(res, "user", None)
    if user is None:
        raise NotFound("User not found")
    return dict(getattr(user, "user_metadata", None) or {})


@router.get("/theme", response_model=ThemePreference)
def get_theme(
    user_id: str = Depends(get_user_id),
    sb=Depends(get_service_supabase),
):
    theme = _user_metadata(sb, user_id).get("theme")
    return {"theme": theme if theme in ("light", "dark") else DEFAULT_THEME}


@router.put("/theme", response_model=ThemePreference)
def set_theme(
    payload: ThemePreference,
    user_id: str = Depends(get_user_id),
    sb=Depends(get_service_supabase),
):
    # Se guarda en user_metadata para que la preferencia siga al usuario entre dispositivos
    metadata = _user_metadata(sb, user_id)
    metadata["theme"] = payload.theme
    try:
        sb.auth.admin.update_user_by_id(user_id, {"user_metadata": metadata})
    except Exception as e:
        logger.error("theme_update_failed user_id=%s error=%s", user_id, e)
        raise BackendUnavailable(cause=str(e))
    return {"theme": payload.theme}
