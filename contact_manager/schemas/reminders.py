from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ReminderCreate(BaseModel):
    title: str = ""
    description: Optional[str] = None
    remind_at: datetime
    contact_id: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Call Ana",
            "description": "Follow up on the proposal",
            "remind_at": "2026-10-23T17:30:00Z",
            "contact_id": "3d4ac02c-5f8a-4c14-970f-7da20e46af97",
        }
    })


class ReminderPatch(BaseModel):
    completed: bool


class ReminderContact(BaseModel):
    first_name: str
    last_name: str


class ReminderOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    remind_at: datetime
    completed: bool
    contact_id: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    contact: Optional[ReminderContact] = None


class DispatchResult(BaseModel):
    message: str
    total: int
    success_count: int
    error_count: int
