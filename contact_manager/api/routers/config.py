# contact_manager/api/routers/config.py

from fastapi import APIRouter, Depends, status

from contact_manager.core.auth import get_user_id
from contact_manager.core.supabase_client import get_supabase_for_request
from contact_manager.schemas.config import (
    AppConfigOut,
    ErrorLogIn,
    ValidateRequest,
    ValidateResponse,
)
from contact_manager.services.config_store import ConfigStore
from contact_manager.services.store_utils import execute
from contact_manager.services.validation import evaluate_form, rules_from_rows

router = APIRouter(tags=["Configuration"])


@router.get("/config", response_model=AppConfigOut)
def get_config(sb=Depends(get_supabase_for_request)):
    cfg = ConfigStore(sb)
    return {
        "ui_texts": cfg.ui_texts(),
        "settings": cfg.settings(),
        "validation_rules": cfg.validation_rule_rows(),
    }


@router.post("/config/validate", response_model=ValidateResponse)
def validate_fields(body: ValidateRequest, sb=Depends(get_supabase_for_request)):
    """
    Evalúa un formulario contra validation_rules sin escribir nada.
    """
    rows = ConfigStore(sb).validation_rule_rows(list(body.fields) or None)
    result = evaluate_form(body.fields, rules_from_rows(rows))
    return {"valid": result.valid, "errors": result.errors_by_field}


@router.post("/error-logs", status_code=status.HTTP_201_CREATED)
def report_error(
    body: ErrorLogIn,
    user_id: str = Depends(get_user_id),
    sb=Depends(get_supabase_for_request),
):
    row = {"user_id": user_id, **body.model_dump()}
    execute(sb.table("error_logs").insert(row), "error_logs.insert")
    return {"message": "Error logged"}
