from typing import Dict, List, Optional

from pydantic import BaseModel


class ValidationRuleOut(BaseModel):
    field_name: str
    rule_type: str
    rule_value: Optional[str] = None
    error_message: str


class AppConfigOut(BaseModel):
    ui_texts: Dict[str, str]
    settings: Dict[str, str]
    validation_rules: List[ValidationRuleOut]


class ValidateRequest(BaseModel):
    fields: Dict[str, Optional[str]]


class ValidateResponse(BaseModel):
    valid: bool
    errors: Dict[str, List[str]]


class ErrorLogIn(BaseModel):
    error_message: str
    error_stack: Optional[str] = None
    page_url: Optional[str] = None
    user_agent: Optional[str] = None
