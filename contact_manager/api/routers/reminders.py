# contact_manager/api/routers/reminders.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from contact_manager.core.auth import get_user_id
from contact_manager.core.supabase_client import get_supabase_for_request
from contact_manager.schemas.reminders import ReminderCreate, ReminderOut, ReminderPatch
from contact_manager.services.reminders_store import ReminderStore

router = APIRouter(prefix="/reminders", tags=["Reminders"])


def get_reminder_store(
    user_id: str = Depends(get_user_id),
    sb=Depends(get_supabase_for_request),
) -> ReminderStore:
    return ReminderStore(sb, user_id)


@router.get("", response_model=List[ReminderOut])
def list_reminders(
    store: ReminderStore = Depends(get_reminder_store),
    completed: Optional[bool] = Query(None, description="Filter by completion state"),
):
    return store.list(completed=completed)


@router.post("", response_model=ReminderOut, status_code=status.HTTP_201_CREATED)
def create_reminder(
    body: ReminderCreate,
    store: ReminderStore = Depends(get_reminder_store),
):
    return store.create(
        title=body.title,
        remind_at=body.remind_at,
        description=body.description,
        contact_id=body.contact_id,
    )


@router.get("/{reminder_id}", response_model=ReminderOut)
def get_reminder(
    reminder_id: Annotated[str, Path(..., description="Reminder UUID")],
    store: ReminderStore = Depends(get_reminder_store),
):
    return store.get(reminder_id)


@router.patch("/{reminder_id}", response_model=ReminderOut)
def toggle_complete(
    reminder_id: Annotated[str, Path(..., description="Reminder UUID")],
    body: ReminderPatch,
    store: ReminderStore = Depends(get_reminder_store),
):
    return store.set_completed(reminder_id, body.completed)


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder(
    reminder_id: Annotated[str, Path(..., description="Reminder UUID")],
    store: ReminderStore = Depends(get_reminder_store),
):
    store.delete(reminder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
