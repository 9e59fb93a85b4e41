# contact_manager/api/routers/jobs.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from contact_manager.core import config
from contact_manager.core.auth import require_admin_token
from contact_manager.core.supabase_client import get_service_supabase
from contact_manager.schemas.reminders import DispatchResult
from contact_manager.services.store_utils import execute
from contact_manager.worker import reminder_dispatch

router = APIRouter(tags=["Jobs"], dependencies=[Depends(require_admin_token)])


@router.post("/jobs/reminders/dispatch", response_model=DispatchResult)
def dispatch_reminders(sb=Depends(get_service_supabase)):
    """
    Trigger externo (cron) para una pasada del job de recordatorios.
    """
    summary = reminder_dispatch.dispatch_due_reminders(sb)
    message = "Reminder emails processed" if summary.total else "No reminders to send"
    return {"message": message, **summary.to_dict()}


@router.get("/health/dispatcher")
def health_dispatcher(sb=Depends(get_service_supabase)):
    config.require_service_role_key()
    now = datetime.now(timezone.utc)
    pending = execute(
        sb.table("reminders").select("id", count="exact").eq("completed", False),
        "health.pending",
    ).count or 0
    overdue = execute(
        sb.table("reminders").select("id", count="exact").eq("completed", False).lt("remind_at", now.isoformat()),
        "health.overdue",
    ).count or 0
    return {"status": "ok", "time": now.isoformat(), "stats": {"pending": pending, "overdue": overdue}}
