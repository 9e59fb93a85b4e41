# contact_manager/services/contacts_store.py

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

from postgrest.exceptions import APIError

from contact_manager.core.errors import Conflict, NotFound
from contact_manager.services.store_utils import execute, first, rows

logger = logging.getLogger("contact_manager.contacts")

CONTACT_FIELDS = ("first_name", "last_name", "email", "phone", "company", "notes", "is_favorite")
SEARCH_FIELDS = ("first_name", "last_name", "email")
EXPORT_SELECT = "first_name, last_name, email, phone, company, notes, is_favorite"


@dataclass
class ContactPage:
    items: List[Dict[str, Any]]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size)) if self.page_size else 1


def _sanitize_search(term: str) -> str:
    # ',', '(' y ')' rompen la sintaxis de or_() en PostgREST
    return "".join(ch for ch in term if ch not in ",()").strip()


def _history_value(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ContactStore:
    """
    Acceso a la tabla `contacts`. Todas las lecturas y escrituras van filtradas
    por created_by = owner_id, además de la RLS del lado de Supabase.
    """

    def __init__(self, sb, owner_id: str):
        self.sb = sb
        self.owner_id = owner_id

    def _scoped(self, query):
        return query.eq("created_by", self.owner_id)

    # ===========
    # Lectura
    # ===========
    def list(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
        favorites_only: bool = False,
    ) -> ContactPage:
        start = (page - 1) * page_size
        q = self._scoped(self.sb.table("contacts").select("*", count="exact"))
        if favorites_only:
            q = q.eq("is_favorite", True)
        term = _sanitize_search(search or "")
        if term:
            q = q.or_(",".join(f"{f}.ilike.%{term}%" for f in SEARCH_FIELDS))
        q = q.order("created_at", desc=True).range(start, start + page_size - 1)
        res = execute(q, "contacts.list")
        return ContactPage(items=rows(res), total=res.count or 0, page=page, page_size=page_size)

    def get(self, contact_id: str) -> Dict[str, Any]:
        res = execute(
            self._scoped(self.sb.table("contacts").select("*").eq("id", contact_id)).limit(1),
            "contacts.get",
        )
        row = first(res)
        if row is None:
            raise NotFound("Contact not found")
        return row

    def email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        q = self._scoped(self.sb.table("contacts").select("id").eq("email", email))
        if exclude_id:
            q = q.neq("id", exclude_id)
        return bool(rows(execute(q.limit(1), "contacts.email_taken")))

    def list_for_export(self) -> List[Dict[str, Any]]:
        q = self._scoped(self.sb.table("contacts").select(EXPORT_SELECT)).order("first_name")
        return rows(execute(q, "contacts.export"))

    def stats(self, now: Optional[datetime] = None) -> Dict[str, int]:
        now = now or datetime.now(timezone.utc)
        recent_since = (now - timedelta(days=7)).isoformat()

        def _count(q, action):
            return execute(q, action).count or 0

        def base():
            return self._scoped(self.sb.table("contacts").select("id", count="exact"))

        return {
            "total": _count(base(), "contacts.stats.total"),
            "favorites": _count(base().eq("is_favorite", True), "contacts.stats.favorites"),
            "recent": _count(base().gte("created_at", recent_since), "contacts.stats.recent"),
        }

    # ===========
    # Escritura
    # ===========
    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        if self.email_taken(data["email"]):
            raise Conflict("This email is already in use by another contact")
        row = {k: data.get(k) for k in CONTACT_FIELDS}
        row["is_favorite"] = bool(row.get("is_favorite"))
        row["created_by"] = self.owner_id
        res = execute(
            self.sb.table("contacts").insert(row),
            "contacts.create",
            conflict_message="This email is already in use by another contact",
        )
        created = first(res)
        if created is None:
            # Fallback (raro): buscar por email del owner
            return self.get_by_email(data["email"])
        return created

    def get_by_email(self, email: str) -> Dict[str, Any]:
        res = execute(
            self._scoped(self.sb.table("contacts").select("*").eq("email", email)).limit(1),
            "contacts.get_by_email",
        )
        row = first(res)
        if row is None:
            raise NotFound("Contact not found")
        return row

    def update(self, contact_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        current = self.get(contact_id)
        updates = {k: v for k, v in changes.items() if k in CONTACT_FIELDS}
        if not updates:
            return current

        if "email" in updates and updates["email"] != current.get("email"):
            if self.email_taken(updates["email"], exclude_id=contact_id):
                raise Conflict("This email is already in use by another contact")

        updates["updated_at"] = datetime.now(timezone.utc).isoformat()
        res = execute(
            self._scoped(self.sb.table("contacts").update(updates).eq("id", contact_id)),
            "contacts.update",
            conflict_message="This email is already in use by another contact",
        )
        updated = first(res)
        if updated is None:
            raise NotFound("Contact not found or not updated")

        self._record_history(current, updated)
        return updated

    def set_favorite(self, contact_id: str, is_favorite: bool) -> Dict[str, Any]:
        return self.update(contact_id, {"is_favorite": is_favorite})

    def delete(self, contact_id: str) -> None:
        res = execute(
            self._scoped(self.sb.table("contacts").delete().eq("id", contact_id)),
            "contacts.delete",
        )
        if not rows(res):
            raise NotFound("Contact not found")

    def insert_batch(self, contacts: List[Mapping[str, Any]]) -> int:
        """
        Inserta todas las filas en un solo insert: o entran todas o ninguna.
        """
        payload = []
        for c in contacts:
            row = {k: c.get(k) for k in CONTACT_FIELDS}
            row["is_favorite"] = bool(row.get("is_favorite"))
            row["created_by"] = self.owner_id
            payload.append(row)
        execute(
            self.sb.table("contacts").insert(payload),
            "contacts.import",
            conflict_message="Import contains an email that is already in use",
        )
        return len(payload)

    # ===========
    # Historial
    # ===========
    def _record_history(self, before: Mapping[str, Any], after: Mapping[str, Any]) -> None:
        entries = []
        for name in CONTACT_FIELDS:
            old, new = _history_value(before.get(name)), _history_value(after.get(name))
            if old != new:
                entries.append({
                    "contact_id": after["id"],
                    "changed_by": self.owner_id,
                    "field_name": name,
                    "old_value": old,
                    "new_value": new,
                })
        if not entries:
            return
        # El historial es secundario: si falla, se registra y no se revierte el update
        try:
            self.sb.table("contact_history").insert(entries).execute()
        except APIError as e:
            logger.warning("history_insert_failed contact_id=%s error=%s", after["id"], e)

    def history(self, contact_id: str) -> List[Dict[str, Any]]:
        self.get(contact_id)
        q = (
            self.sb.table("contact_history")
            .select("*")
            .eq("contact_id", contact_id)
            .order("changed_at", desc=True)
        )
        return rows(execute(q, "contacts.history"))
