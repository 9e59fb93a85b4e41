# contact_manager/core/email.py

from typing import Any, Dict, List, Optional, Union

import httpx

from contact_manager.core import config
from contact_manager.core.errors import ConfigurationError

RESEND_API_URL = "https://api.resend.com/emails"


class EmailError(Exception):
    pass


def require_api_key() -> str:
    key = config.resend_api_key()
    if not key:
        raise ConfigurationError("RESEND_API_KEY is not configured")
    return key


def send_email(
    to: Union[str, List[str]],
    subject: str,
    text: str,
    sender: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    """
    Envía un email de texto plano vía Resend. Devuelve el JSON de la API ({"id": ...}).
    Cualquier respuesta >= 300 o fallo de red se reporta como EmailError.
    """
    api_key = require_api_key()
    payload = {
        "from": sender or config.email_from(),
        "to": [to] if isinstance(to, str) else list(to),
        "subject": subject,
        "text": text,
    }
    headers = {"Authorization": f"Bearer {api_key}"}

    owns_client = client is None
    http = client or httpx.Client(timeout=30)
    try:
        r = http.post(RESEND_API_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        raise EmailError(f"Resend request failed: {e}") from e
    finally:
        if owns_client:
            http.close()

    try:
        data = r.json()
    except ValueError:
        data = {"raw": r.text}
    if r.status_code >= 300:
        raise EmailError(f"Resend error {r.status_code}: {data}")
    return data
