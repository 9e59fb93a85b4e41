# contact_manager/services/reminders_store.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from contact_manager.core.errors import NotFound, ValidationFailed
from contact_manager.services.store_utils import execute, first, rows

# Embebe el nombre del contacto asociado (FK reminders.contact_id -> contacts.id)
REMINDER_SELECT = "*, contact:contacts(first_name, last_name)"


def as_utc(value: datetime) -> datetime:
    """Fechas sin tzinfo se interpretan como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ReminderStore:
    """
    CRUD sobre `reminders`, siempre filtrado por created_by = owner_id.
    """

    def __init__(self, sb, owner_id: str):
        self.sb = sb
        self.owner_id = owner_id

    def _scoped(self, query):
        return query.eq("created_by", self.owner_id)

    def list(self, completed: Optional[bool] = None) -> List[Dict[str, Any]]:
        q = self._scoped(self.sb.table("reminders").select(REMINDER_SELECT))
        if completed is not None:
            q = q.eq("completed", completed)
        q = q.order("remind_at", desc=True)
        return rows(execute(q, "reminders.list"))

    def upcoming(self, limit: int = 5, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        now = now or datetime.now(timezone.utc)
        q = (
            self._scoped(self.sb.table("reminders").select(REMINDER_SELECT))
            .eq("completed", False)
            .gte("remind_at", now.isoformat())
            .order("remind_at", desc=False)
            .limit(limit)
        )
        return rows(execute(q, "reminders.upcoming"))

    def get(self, reminder_id: str) -> Dict[str, Any]:
        res = execute(
            self._scoped(self.sb.table("reminders").select(REMINDER_SELECT).eq("id", reminder_id)).limit(1),
            "reminders.get",
        )
        row = first(res)
        if row is None:
            raise NotFound("Reminder not found")
        return row

    def _ensure_contact(self, contact_id: str) -> None:
        res = execute(
            self.sb.table("contacts").select("id").eq("id", contact_id).eq("created_by", self.owner_id).limit(1),
            "reminders.contact_check",
        )
        if first(res) is None:
            raise NotFound("Contact not found")

    def create(
        self,
        title: str,
        remind_at: datetime,
        description: Optional[str] = None,
        contact_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        errors: Dict[str, List[str]] = {}
        title = (title or "").strip()
        if not title:
            errors["title"] = ["Title is required"]
        remind_at = as_utc(remind_at)
        if remind_at <= now:
            errors["remind_at"] = ["Reminder time cannot be in the past"]
        if errors:
            raise ValidationFailed(errors)

        if contact_id:
            self._ensure_contact(contact_id)

        row = {
            "title": title,
            "description": (description or "").strip() or None,
            "remind_at": remind_at.isoformat(),
            "contact_id": contact_id or None,
            "completed": False,
            "created_by": self.owner_id,
        }
        res = execute(self.sb.table("reminders").insert(row), "reminders.create")
        created = first(res)
        if created is None:
            raise NotFound("Reminder created but not found")
        # Releer con el join del contacto
        return self.get(created["id"])

    def set_completed(self, reminder_id: str, completed: bool) -> Dict[str, Any]:
        res = execute(
            self._scoped(self.sb.table("reminders").update({"completed": completed}).eq("id", reminder_id)),
            "reminders.set_completed",
        )
        if not rows(res):
            raise NotFound("Reminder not found")
        return self.get(reminder_id)

    def delete(self, reminder_id: str) -> None:
        res = execute(
            self._scoped(self.sb.table("reminders").delete().eq("id", reminder_id)),
            "reminders.delete",
        )
        if not rows(res):
            raise NotFound("Reminder not found")
