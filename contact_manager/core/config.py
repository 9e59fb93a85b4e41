# contact_manager/core/config.py

import os
from typing import List

from contact_manager.core.errors import ConfigurationError

# -------------------------
# Entorno (se lee en cada llamada para no cachear valores al importar)
# -------------------------

def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def supabase_url() -> str:
    url = (os.getenv("SUPABASE_URL") or "").rstrip("/")
    if not url:
        raise ConfigurationError("SUPABASE_URL is not configured")
    return url


def supabase_anon_key() -> str:
    key = os.getenv("SUPABASE_KEY") or ""
    if not key:
        raise ConfigurationError("SUPABASE_KEY is not configured")
    return key


def supabase_service_role_key() -> str:
    return os.getenv("SUPABASE_SERVICE_ROLE_KEY") or ""


def require_service_role_key() -> str:
    # Sin service role las consultas corren como anon y la RLS oculta todas las filas
    key = supabase_service_role_key()
    if not key:
        raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY is not configured")
    return key


def supabase_jwt_secret() -> str:
    return os.getenv("SUPABASE_JWT_SECRET") or ""


def supabase_audience() -> str:
    return os.getenv("SUPABASE_AUD", "authenticated")


def allow_dev_header() -> bool:
    return os.getenv("ALLOW_DEV_HEADER", "0") == "1"


def admin_token() -> str:
    return os.getenv("ADMIN_TOKEN", "")


def resend_api_key() -> str:
    return os.getenv("RESEND_API_KEY") or ""


def email_from() -> str:
    return os.getenv("EMAIL_FROM") or "Contact Manager <reminders@resend.dev>"


def dispatcher_poll_seconds() -> int:
    return _int_env("DISPATCHER_POLL_SECONDS", 60)


def dispatch_window_seconds() -> int:
    return _int_env("DISPATCH_WINDOW_SECONDS", 60)


def dispatch_lookback_seconds() -> int:
    return _int_env("DISPATCH_LOOKBACK_SECONDS", 0)


def contacts_page_size() -> int:
    return _int_env("CONTACTS_PAGE_SIZE", 10)


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]
