# contact_manager/api/routers/contacts.py

from datetime import datetime, timezone
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Path, Query, Response, UploadFile, status

from contact_manager.core import config
from contact_manager.core.auth import get_user_id
from contact_manager.core.errors import ValidationFailed
from contact_manager.core.supabase_client import get_supabase_for_request
from contact_manager.schemas.contacts import (
    ContactCreate,
    ContactHistoryOut,
    ContactOut,
    ContactPageOut,
    ContactUpdate,
    FavoriteToggle,
    ImportResult,
    ValidationErrorOut,
)
from contact_manager.services.config_store import ConfigStore
from contact_manager.services.contacts_store import ContactStore
from contact_manager.services.csv_codec import export_contacts_csv, parse_contacts_csv
from contact_manager.services.validation import validate_contact

router = APIRouter(
    prefix="/contacts",
    tags=["Contacts"],
    responses={422: {"model": ValidationErrorOut, "description": "Field validation errors"}},
)

TEXT_FIELDS = ("first_name", "last_name", "email", "phone", "company", "notes")
OPTIONAL_FIELDS = ("phone", "company", "notes")


def get_contact_store(
    user_id: str = Depends(get_user_id),
    sb=Depends(get_supabase_for_request),
) -> ContactStore:
    return ContactStore(sb, user_id)


def get_config_store(sb=Depends(get_supabase_for_request)) -> ConfigStore:
    return ConfigStore(sb)


def _validated(fields: dict, cfg: ConfigStore) -> dict:
    """
    Aplica reglas fijas + validation_rules a los campos de texto presentes.
    Opcionales vacíos se guardan como null.
    """
    text_map = {k: fields.get(k) or "" for k in TEXT_FIELDS if k in fields}
    if text_map:
        result = validate_contact(text_map, cfg.validation_rules(list(text_map)))
        if not result.valid:
            raise ValidationFailed(result.errors_by_field)
    for name in OPTIONAL_FIELDS:
        if name in fields:
            fields[name] = fields[name] or None
    return fields


# ===========
# List / search / paginate
# ===========
@router.get("", response_model=ContactPageOut)
def list_contacts(
    store: ContactStore = Depends(get_contact_store),
    q: Optional[str] = Query(None, description="Case-insensitive search over first name, last name and email"),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    favorites_only: bool = Query(False),
):
    result = store.list(
        search=q,
        page=page,
        page_size=page_size or config.contacts_page_size(),
        favorites_only=favorites_only,
    )
    return {
        "items": result.items,
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
    }


# ===========
# CSV export / import (antes de /{contact_id} para que no choquen las rutas)
# ===========
@router.get("/export", response_class=Response)
def export_contacts(store: ContactStore = Depends(get_contact_store)):
    contacts = store.list_for_export()
    if not contacts:
        raise HTTPException(status_code=404, detail="No contacts to export")
    filename = f"contacts_{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=export_contacts_csv(contacts),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def import_contacts(
    file: UploadFile = File(...),
    store: ContactStore = Depends(get_contact_store),
):
    parsed = parse_contacts_csv(await file.read())
    imported = store.insert_batch(parsed.rows)
    return {
        "imported": imported,
        "skipped": parsed.dropped,
        "message": f"Successfully imported {imported} contacts",
    }


# ===========
# CRUD
# ===========
@router.post("", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
def create_contact(
    body: ContactCreate,
    store: ContactStore = Depends(get_contact_store),
    cfg: ConfigStore = Depends(get_config_store),
):
    fields = _validated(body.model_dump(), cfg)
    return store.create(fields)


@router.get("/{contact_id}", response_model=ContactOut)
def get_contact(
    contact_id: Annotated[str, Path(..., description="Contact UUID")],
    store: ContactStore = Depends(get_contact_store),
):
    return store.get(contact_id)


@router.patch("/{contact_id}", response_model=ContactOut)
def update_contact(
    contact_id: Annotated[str, Path(..., description="Contact UUID")],
    body: ContactUpdate,
    store: ContactStore = Depends(get_contact_store),
    cfg: ConfigStore = Depends(get_config_store),
):
    changes = body.model_dump(exclude_unset=True)
    # is_favorite: null no cambia nada (la columna es NOT NULL)
    if changes.get("is_favorite", False) is None:
        del changes["is_favorite"]
    # null en un campo obligatorio equivale a vaciarlo
    fields = _validated(changes, cfg)
    return store.update(contact_id, fields)


@router.post("/{contact_id}/favorite", response_model=ContactOut)
def set_favorite(
    contact_id: Annotated[str, Path(..., description="Contact UUID")],
    body: FavoriteToggle,
    store: ContactStore = Depends(get_contact_store),
):
    return store.set_favorite(contact_id, body.is_favorite)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: Annotated[str, Path(..., description="Contact UUID")],
    store: ContactStore = Depends(get_contact_store),
):
    store.delete(contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{contact_id}/history", response_model=List[ContactHistoryOut])
def contact_history(
    contact_id: Annotated[str, Path(..., description="Contact UUID")],
    store: ContactStore = Depends(get_contact_store),
):
    return store.history(contact_id)
