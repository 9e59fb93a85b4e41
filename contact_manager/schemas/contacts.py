from __future__ import annotations

from datetime import datetime
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, StringConstraints

from contact_manager.schemas.reminders import ReminderOut

# String con trim de espacios (Pydantic v2); la obligatoriedad la decide el motor de validación
TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]

# ===========================
# Requests
# ===========================

class ContactCreate(BaseModel):
    first_name: TrimmedStr = ""
    last_name: TrimmedStr = ""
    email: TrimmedStr = ""
    phone: Optional[TrimmedStr] = None
    company: Optional[TrimmedStr] = None
    notes: Optional[TrimmedStr] = None
    is_favorite: bool = False

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "first_name": "Ana",
            "last_name": "Lee",
            "email": "ana@x.com",
            "phone": "+1 555 0100",
            "company": "Acme",
            "notes": "Met at the conference",
            "is_favorite": False,
        }
    })


class ContactUpdate(BaseModel):
    # PATCH: todos opcionales
    first_name: Optional[TrimmedStr] = None
    last_name: Optional[TrimmedStr] = None
    email: Optional[TrimmedStr] = None
    phone: Optional[TrimmedStr] = None
    company: Optional[TrimmedStr] = None
    notes: Optional[TrimmedStr] = None
    is_favorite: Optional[bool] = None


class FavoriteToggle(BaseModel):
    is_favorite: bool

# ===========================
# Responses
# ===========================

class ContactOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None
    is_favorite: bool = False
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ContactPageOut(BaseModel):
    items: List[ContactOut]
    total: int
    page: int
    page_size: int
    total_pages: int


class ContactHistoryOut(BaseModel):
    id: Optional[str] = None
    contact_id: str
    changed_by: str
    field_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_at: Optional[datetime] = None


class ImportResult(BaseModel):
    imported: int
    skipped: int
    message: str


class StatsOut(BaseModel):
    total: int
    favorites: int
    recent: int


class ValidationErrorOut(BaseModel):
    detail: str
    errors: Dict[str, List[str]]


class DashboardSummaryOut(BaseModel):
    stats: StatsOut
    upcoming_reminders: List[ReminderOut]
