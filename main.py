# main.py

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from dotenv import load_dotenv

from contact_manager.api.auth.auth_service import AuthService
from contact_manager.api.models.user import PasswordResetRequest, PasswordUpdate, UserIn, UserOut
from contact_manager.api.routers import config as cm_config
from contact_manager.api.routers import contacts, dashboard, jobs, preferences, reminders
from contact_manager.core import config
from contact_manager.core.auth import get_current_user, get_user_id
from contact_manager.core.errors import (
    BackendUnavailable,
    ConfigurationError,
    ContactManagerError,
    ValidationFailed,
)
from contact_manager.core.logging_config import configure_logging

# -------------------------------------------------------------------
# Cargar variables de entorno, logging y app base
# -------------------------------------------------------------------
load_dotenv()
configure_logging()

logger = logging.getLogger("contact_manager.api")

app = FastAPI(
    title="Contact Manager API",
    description="""
A Supabase-backed contact manager with search, CSV import/export, and email reminders.

**What it does**
- **Auth:** Login via Supabase Auth (JWT HS256). Every contact and reminder is scoped to its owner (`created_by`), on top of Row-Level Security.
- **Contacts:** Create, list, search (first name, last name, email), paginate, update, favorite and delete contacts. Email is unique per owner. Updates are recorded in `contact_history`.
- **Validation:** Form rules live in the `validation_rules` table (required, email, min_length, max_length, regex) and are evaluated server-side.
- **CSV:** Export all contacts to `contacts_<date>.csv`, import a CSV in one batch (all rows or none).
- **Reminders:** Time-based reminders, optionally linked to a contact. A dispatcher job sends due reminders by email (Resend) once per minute and marks them completed.
- **Dashboard:** Contact counts (total, favorites, recent) and upcoming reminders.

**Notes**
- Use the Swagger **Authorize** button to paste your Bearer token before trying endpoints.
- The dispatcher runs as `contact-manager-dispatcher` or through `POST /jobs/reminders/dispatch` (X-Admin-Token).
""",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------------
# Errores de dominio -> HTTP
# -------------------------------------------------------------------
@app.exception_handler(ContactManagerError)
async def contact_manager_error_handler(request: Request, exc: ContactManagerError):
    if isinstance(exc, ValidationFailed):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "errors": exc.errors})
    if isinstance(exc, BackendUnavailable):
        logger.warning("backend_unavailable path=%s cause=%s", request.url.path, exc.cause)
    elif isinstance(exc, ConfigurationError):
        logger.error("configuration_error path=%s error=%s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

# -------------------------------------------------------------------
# Routers protegidos bajo /api
# -------------------------------------------------------------------
app.include_router(contacts.router,    prefix="/api", dependencies=[Depends(get_user_id)])
app.include_router(reminders.router,   prefix="/api", dependencies=[Depends(get_user_id)])
app.include_router(cm_config.router,   prefix="/api", dependencies=[Depends(get_user_id)])
app.include_router(dashboard.router,   prefix="/api", dependencies=[Depends(get_user_id)])
app.include_router(preferences.router, prefix="/api", dependencies=[Depends(get_user_id)])

# Operador (X-Admin-Token)
app.include_router(jobs.router)

# -------------------------------------------------------------------
# Endpoints públicos
# -------------------------------------------------------------------
def get_auth_service():
    return AuthService()


@app.get("/")
def read_root():
    return {"message": "Welcome to Contact Manager API"}


@app.post("/auth/register", tags=["Authentication"])
async def register(user: UserIn, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.sign_up_user(user.email, user.password)
    if not result["success"]:
        raise HTTPException(status_code=400, detail=result["message"])
    return {"message": result["message"]}


@app.post("/auth/login", tags=["Authentication"])
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    auth_service: AuthService = Depends(get_auth_service),
):
    success, message, access_token, user = await auth_service.sign_in_user(
        form_data.username, form_data.password
    )
    if not success:
        raise HTTPException(status_code=401, detail=message)
    return {"access_token": access_token, "token_type": "bearer", "user": user}


@app.post("/auth/forgot-password", tags=["Authentication"])
async def forgot_password(request_body: PasswordResetRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.request_password_reset(request_body.email)
    if not result["success"]:
        raise HTTPException(status_code=500, detail=result["message"])
    return {"message": result["message"]}


@app.post("/auth/reset-password", tags=["Authentication"])
async def reset_password(request_body: PasswordUpdate, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.update_user_password(
        request_body.access_token, request_body.refresh_token, request_body.new_password
    )
    if not result["success"]:
        raise HTTPException(status_code=500, detail=result["message"])
    return {"message": result["message"]}


@app.get("/users/me", response_model=UserOut, tags=["Authentication"])
async def read_current_user(current_user: Annotated[UserOut, Depends(get_current_user)]):
    return current_user
