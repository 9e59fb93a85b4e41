# contact_manager/api/models/user.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserIn(BaseModel):
    """
    Modelo de entrada para registro de un usuario.
    """
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserOut(BaseModel):
    """
    Modelo de salida con la identidad del usuario autenticado (owner).
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[EmailStr] = None
    created_at: Optional[datetime] = None


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordUpdate(BaseModel):
    access_token: str
    refresh_token: str
    new_password: str = Field(..., min_length=6)


Theme = Literal["light", "dark"]


class ThemePreference(BaseModel):
    theme: Theme
