from fastapi import APIRouter, Depends

from contact_manager.core.auth import get_user_id
from contact_manager.core.supabase_client import get_supabase_for_request
from contact_manager.schemas.contacts import DashboardSummaryOut
from contact_manager.services.contacts_store import ContactStore
from contact_manager.services.reminders_store import ReminderStore

router = APIRouter(prefix="/dashboard", tags=["Dashboard Summary"])


@router.get("/summary", response_model=DashboardSummaryOut)
def dashboard_summary(
    user_id: str = Depends(get_user_id),
    sb=Depends(get_supabase_for_request),
):
    # Contadores: total, favoritos y creados en los últimos 7 días
    stats = ContactStore(sb, user_id).stats()
    upcoming = ReminderStore(sb, user_id).upcoming(limit=5)
    return {"stats": stats, "upcoming_reminders": upcoming}
