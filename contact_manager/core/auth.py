# contact_manager/core/auth.py

from datetime import datetime, timezone
from typing import Optional, Dict, Any, Annotated

from fastapi import Header, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from contact_manager.api.models.user import UserOut
from contact_manager.core import config

# Bearer para integrarse con Swagger Authorize
_bearer = HTTPBearer(auto_error=False)

# -------------------------
# Helpers
# -------------------------
def decode_jwt_hs256(token: str) -> Dict[str, Any]:
    """
    Valida SIEMPRE con SUPABASE_JWT_SECRET (Legacy JWT secret).
    - Rechaza tokens con alg != HS256.
    - Valida 'aud' y 'iss' (si viene), y requiere 'exp' y 'sub'.
    """
    # 1) Verifica header
    try:
        header = jwt.get_unverified_header(token)
        alg = header.get("alg")
    except jwt.PyJWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[JWT] Invalid header: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if alg != "HS256":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[HS256-mode] Token alg={alg}. Get an HS256 token from /auth/login.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    secret = config.supabase_jwt_secret()
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="[HS256] SUPABASE_JWT_SECRET is not configured",
        )

    # 2) Lee payload sin firma para extraer iss si existe
    try:
        unverified = jwt.decode(
            token,
            options={"verify_signature": False, "verify_aud": False, "verify_iss": False}
        )
        token_iss = unverified.get("iss")
    except jwt.PyJWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[JWT] Cannot read unverified payload: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 3) Valida firma/claims con HS256
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=config.supabase_audience(),
            issuer=token_iss or f"{config.supabase_url()}/auth/v1",
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"[HS256] Invalid token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _get_token_from_bearer(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials

# -------------------------
# Dependencias públicas (para routers)
# -------------------------
async def get_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Security(_bearer)],
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> str:
    """
    Devuelve el 'sub' del JWT (user_id), que es el owner de contactos y recordatorios.
    - En DEV, permite X-User-Id cuando ALLOW_DEV_HEADER=1.
    - En PROD, valida Bearer HS256 con SUPABASE_JWT_SECRET.
    """
    if config.allow_dev_header() and x_user_id:
        return x_user_id

    token = _get_token_from_bearer(credentials)
    payload = decode_jwt_hs256(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token payload missing 'sub'")
    return user_id


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Security(_bearer)],
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> UserOut:
    """
    Igual que get_user_id pero devuelve un UserOut; el email sale del claim 'email' del JWT.
    """
    if config.allow_dev_header() and x_user_id:
        return UserOut(id=x_user_id, email="dev@example.com", created_at=datetime.now(timezone.utc))

    token = _get_token_from_bearer(credentials)
    payload = decode_jwt_hs256(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token payload missing 'sub'")

    email = payload.get("email") or (payload.get("user_metadata") or {}).get("email")
    return UserOut(id=user_id, email=email or None, created_at=datetime.now(timezone.utc))


def require_admin_token(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
) -> None:
    expected = config.admin_token()
    if not expected or x_admin_token != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")
