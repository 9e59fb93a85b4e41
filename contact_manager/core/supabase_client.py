# contact_manager/core/supabase_client.py

from typing import Optional

from fastapi import Request
from supabase import create_client, Client

from contact_manager.core import config

# Cliente service (privilegiado). Se crea una sola vez, en el primer uso.
_service_client: Optional[Client] = None


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Extrae 'Bearer <token>' del Authorization header, si existe.
    """
    auth = request.headers.get("Authorization") or request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split(" ", 1)
    if len(parts) != 2:
        return None
    scheme, token = parts[0], parts[1]
    if scheme.lower() != "bearer" or not token:
        return None
    return token


def get_service_supabase() -> Client:
    """
    Cliente con Service Role (si SUPABASE_SERVICE_ROLE_KEY está configurada).
    Si no está, usa la anon key: las consultas quedan sujetas a RLS.
    Lo usan el worker de recordatorios y las operaciones auth.admin.
    """
    global _service_client
    if _service_client is None:
        key = config.supabase_service_role_key() or config.supabase_anon_key()
        _service_client = create_client(config.supabase_url(), key)
    return _service_client


def get_supabase_for_request(request: Request) -> Client:
    """
    Devuelve un cliente de Supabase autorizado con el token del request
    para que respete RLS.

    En supabase-py v2 se autoriza PostgREST así:
        sb.postgrest.auth(token)
    """
    token = _extract_bearer_token(request)

    # Un cliente por request evita compartir estado de auth entre peticiones
    sb = create_client(config.supabase_url(), config.supabase_anon_key())

    if token:
        sb.postgrest.auth(token)

    return sb


def get_auth_supabase() -> Client:
    """
    Cliente anon sin token de usuario, para sign-up / sign-in / reset.
    """
    return create_client(config.supabase_url(), config.supabase_anon_key())
