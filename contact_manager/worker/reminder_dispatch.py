# contact_manager/worker/reminder_dispatch.py
"""
Envío de recordatorios por email.

dispatch_due_reminders() es una pasada sin estado: busca los recordatorios con
completed=false y remind_at dentro de la ventana [now, now+60s), resuelve el
email del owner, envía el mensaje y marca completed=true. Pensado para correr
una vez por minuto (run_loop() o el endpoint /jobs/reminders/dispatch).

Entrega at-least-once: no hay paso de claim, así que dos pasadas solapadas
pueden enviar el mismo recordatorio dos veces.
"""

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from contact_manager.core import config
from contact_manager.core.email import require_api_key, send_email
from contact_manager.core.supabase_client import get_service_supabase
from contact_manager.services.store_utils import execute, rows

logger = logging.getLogger("contact_manager.worker.reminders")

REMINDER_SELECT = "id, title, description, remind_at, created_by, contact:contacts(first_name, last_name)"
FOOTER = "This is an automated reminder from your Contact Manager."


@dataclass
class DispatchSummary:
    total: int = 0
    success_count: int = 0
    error_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def due_window(now: datetime, width_seconds: int = 60, lookback_seconds: int = 0) -> Tuple[str, str]:
    """[lower, upper) en ISO 8601 UTC. lookback_seconds > 0 adelanta el límite inferior."""
    now = now.astimezone(timezone.utc)
    lower = now - timedelta(seconds=lookback_seconds)
    upper = now + timedelta(seconds=width_seconds)
    return lower.isoformat(), upper.isoformat()


def fetch_due_reminders(sb, lower: str, upper: str) -> List[Dict[str, Any]]:
    q = (
        sb.table("reminders")
        .select(REMINDER_SELECT)
        .eq("completed", False)
        .gte("remind_at", lower)
        .lt("remind_at", upper)
    )
    return rows(execute(q, "dispatch.due_reminders"))


def resolve_owner_email(sb, user_id: str) -> Optional[str]:
    """Email del owner vía auth.admin; None si no existe o no tiene email."""
    res = sb.auth.admin.get_user_by_id(user_id)
    user = getattr(res, "user", None)
    return getattr(user, "email", None) or None


def _fmt(ts) -> str:
    if not ts:
        return ""
    try:
        dt = datetime.fromisoformat(str(ts).replace("Z", "+00:00"))
    except ValueError:
        return str(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def render_message(reminder: Dict[str, Any]) -> str:
    lines = [f"Title: {reminder['title']}", ""]
    if reminder.get("description"):
        lines.append(f"Description: {reminder['description']}")
    contact = reminder.get("contact")
    if contact:
        full_name = f"{contact.get('first_name') or ''} {contact.get('last_name') or ''}".strip()
        if full_name:
            lines.append(f"Contact: {full_name}")
    if lines[-1] != "":
        lines.append("")
    lines.append(f"Reminder Time: {_fmt(reminder.get('remind_at'))}")
    lines.append("")
    lines.append(FOOTER)
    return "\n".join(lines)


def _mark_completed(sb, reminder_id: str) -> None:
    sb.table("reminders").update({"completed": True}).eq("id", reminder_id).execute()


def _process_one(sb, reminder: Dict[str, Any], send: Callable[..., Dict[str, Any]]) -> bool:
    rid = reminder["id"]
    owner = reminder.get("created_by")

    try:
        to = resolve_owner_email(sb, owner)
    except Exception as e:
        logger.error("owner_lookup_failed id=%s user_id=%s error=%s", rid, owner, e)
        return False
    if not to:
        logger.error("owner_email_missing id=%s user_id=%s", rid, owner)
        return False

    try:
        delivery = send(to, f"Reminder: {reminder['title']}", render_message(reminder))
        logger.info("reminder_sent id=%s delivery=%s", rid, delivery)
    except Exception as e:
        logger.error("reminder_send_failed id=%s error=%s", rid, e)
        return False

    # Si el envío salió pero esta escritura falla, el siguiente pase puede reenviar
    try:
        _mark_completed(sb, rid)
    except Exception as e:
        logger.error("reminder_mark_failed id=%s error=%s", rid, e)
        return False
    return True


def dispatch_due_reminders(
    sb=None,
    send: Optional[Callable[..., Dict[str, Any]]] = None,
    now: Optional[datetime] = None,
) -> DispatchSummary:
    """
    Una pasada del job. Sin RESEND_API_KEY o sin SUPABASE_SERVICE_ROLE_KEY falla
    antes de consultar nada (ConfigurationError). Los errores por recordatorio
    se cuentan y no cortan el lote.
    """
    require_api_key()
    config.require_service_role_key()
    sb = sb or get_service_supabase()
    send = send or send_email

    lower, upper = due_window(
        now or _utcnow(),
        width_seconds=config.dispatch_window_seconds(),
        lookback_seconds=config.dispatch_lookback_seconds(),
    )
    logger.info("dispatch_window lower=%s upper=%s", lower, upper)

    due = fetch_due_reminders(sb, lower, upper)
    summary = DispatchSummary(total=len(due))
    if not due:
        logger.info("dispatch_no_reminders")
        return summary

    for reminder in due:
        if _process_one(sb, reminder, send):
            summary.success_count += 1
        else:
            summary.error_count += 1

    logger.info(
        "dispatch_done total=%s success=%s errors=%s",
        summary.total, summary.success_count, summary.error_count,
    )
    return summary


def run_loop() -> None:
    config.require_service_role_key()
    require_api_key()
    sb = get_service_supabase()
    poll = config.dispatcher_poll_seconds()
    logger.info("dispatcher_running poll=%ss", poll)

    while True:
        try:
            dispatch_due_reminders(sb)
        except Exception:
            logger.exception("dispatcher_loop_error")
        time.sleep(poll)


def main() -> None:
    from dotenv import load_dotenv

    from contact_manager.core.logging_config import configure_logging

    load_dotenv()
    configure_logging()
    run_loop()


if __name__ == "__main__":
    main()
