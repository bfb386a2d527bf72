# Admin Router
# Purpose: JSON API behind the admin dashboard (six CRUD tabs plus image uploads)
# Main functions: login/logout, tab listing, editor state, create/update/delete, uploads
# Dependent files: admin/dependencies/access_control.py, admin/services/dashboard.py

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile, status
from typing import Optional
import logging
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from admin.dependencies.access_control import (
    AuthGate,
    authenticate_admin,
    create_access_token,
    get_current_admin_user,
    resolve_gate,
)
from admin.services.collection import EntityCollection, Outcome, OutcomeStatus
from admin.services.dashboard import PROFILE_IMAGE_COLUMNS, Dashboard, DashboardRegistry, ImageUpload
from admin.services.forms import EditorState, coerce_form, parse_images
from app.limits import limiter

logger = logging.getLogger(__name__)

# HTTP status per non-success outcome
OUTCOME_STATUS = {
    OutcomeStatus.INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    OutcomeStatus.CANCELLED: status.HTTP_409_CONFLICT,
    OutcomeStatus.FAILED: status.HTTP_502_BAD_GATEWAY,
}


# --- Pydantic models ---


class LoginRequest(BaseModel):
    username: str
    password: str


# --- Helpers ---

def get_dashboard(request: Request, user: dict = Depends(get_current_admin_user)) -> Dashboard:
    """FastAPI dependency: the signed-in admin's dashboard (mounted on first use)."""
    registry: DashboardRegistry = request.app.state.dashboards
    return registry.get(user["username"])


def _collection(dashboard: Dashboard, tab: str) -> EntityCollection:
    try:
        return dashboard.tab(tab)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown tab '{tab}'")


def _record_or_404(collection: EntityCollection, record_id: str):
    record = collection.find(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{collection.spec.label} {record_id} not found")
    return record


def _editor_dict(editor: EditorState) -> dict:
    return {"form": editor.form, "editing_id": editor.editing_id, "is_edit": editor.is_edit}


def _respond(outcome: Outcome, response: Response) -> dict:
    """Success → 200 (201 for creates); anything else → HTTPException carrying the outcome."""
    if not outcome.ok:
        raise HTTPException(status_code=OUTCOME_STATUS[outcome.status], detail=outcome.to_dict())
    if outcome.action == "create":
        response.status_code = status.HTTP_201_CREATED
    return outcome.to_dict()


def _editable(collection: EntityCollection, body: dict) -> dict:
    return {k: v for k, v in body.items() if k in collection.spec.fields}


async def _read_uploads(files: list) -> list[ImageUpload]:
    uploads = []
    for file in files:
        if not getattr(file, "filename", None):
            continue
        uploads.append(ImageUpload(
            filename=file.filename,
            data=await file.read(),
            content_type=file.content_type or "application/octet-stream",
        ))
    return uploads


def _keep_images(raw: Optional[str]) -> list:
    try:
        return parse_images(raw)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"keep_images: {e}")


# --- ROUTER SETUP ---

router = APIRouter()


# ============================================================================
# SESSION
# ============================================================================

@router.post("/login")
@limiter.limit("10/minute")
async def admin_login(request: Request, body: LoginRequest):
    """
    Authenticate with admin credentials and receive a JWT.
    Set ADMIN_USERNAME and ADMIN_PASSWORD env vars to enable.
    """
    if not authenticate_admin(body.username, body.password):
        logger.warning(f"Failed admin login for '{body.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin credentials",
        )
    token = create_access_token(subject=body.username)
    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout")
def admin_logout(request: Request, user: dict = Depends(get_current_admin_user)):
    """Forget the admin's dashboard. The token itself stays valid until it expires."""
    request.app.state.dashboards.drop(user["username"])
    return {"message": "Logged out"}


@router.get("/session")
def session_state(gate: AuthGate = Depends(resolve_gate)):
    """Gate state for the current credentials. Never 401s."""
    return {"state": gate.state.value, "user": gate.user, "reason": gate.reason}


# ============================================================================
# TABS
# ============================================================================

@router.get("/tabs")
def list_tabs(dashboard: Dashboard = Depends(get_dashboard)):
    return {
        "tabs": [
            {
                "name": name,
                "label": collection.spec.label,
                "count": len(collection),
                "loaded": collection.loaded,
            }
            for name, collection in dashboard.tabs.items()
        ]
    }


@router.get("/tabs/{tab}")
def get_tab(tab: str, dashboard: Dashboard = Depends(get_dashboard)):
    collection = _collection(dashboard, tab)
    return {"tab": tab, "items": [item.model_dump(mode="json") for item in collection.items]}


@router.post("/tabs/{tab}/reload")
def reload_tab(tab: str, dashboard: Dashboard = Depends(get_dashboard)):
    collection = _collection(dashboard, tab)
    collection.load()
    return {"tab": tab, "items": [item.model_dump(mode="json") for item in collection.items]}


@router.get("/tabs/{tab}/editor")
def open_editor(tab: str, id: Optional[str] = Query(None), dashboard: Dashboard = Depends(get_dashboard)):
    """Create form (no id) or edit form for the given record."""
    collection = _collection(dashboard, tab)
    existing = _record_or_404(collection, id) if id else None
    return _editor_dict(collection.open_editor(existing))


@router.post("/tabs/{tab}")
def create_record(tab: str, body: dict, response: Response, dashboard: Dashboard = Depends(get_dashboard)):
    collection = _collection(dashboard, tab)
    editor = collection.open_editor()
    if editor.is_edit:
        # singleton with a loaded row: creating is not possible
        editor = EditorState(form=editor.form)
    editor.form.update(_editable(collection, body))
    return _respond(collection.submit(editor), response)


@router.put("/tabs/{tab}/{record_id}")
def update_record(
    tab: str,
    record_id: str,
    body: dict,
    response: Response,
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Partial update: fields missing from the body keep their current values."""
    collection = _collection(dashboard, tab)
    editor = collection.open_editor(_record_or_404(collection, record_id))
    editor.form.update(_editable(collection, body))
    return _respond(collection.submit(editor), response)


@router.delete("/tabs/{tab}/{record_id}")
def delete_record(
    tab: str,
    record_id: str,
    response: Response,
    confirm: bool = Query(False),
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Deletion needs ?confirm=true; without it nothing is sent (409)."""
    collection = _collection(dashboard, tab)
    record = _record_or_404(collection, record_id)
    return _respond(collection.remove(record, confirmed=confirm), response)


# ============================================================================
# UPLOADS
# ============================================================================

@router.post("/profile/{kind}")
async def upload_profile_image(
    kind: str,
    response: Response,
    file: UploadFile = File(...),
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Upload the avatar or hero image and point the profile row at it."""
    if kind not in PROFILE_IMAGE_COLUMNS:
        raise HTTPException(status_code=404, detail=f"Unknown profile image '{kind}'")
    uploads = await _read_uploads([file])
    if not uploads:
        raise HTTPException(status_code=422, detail="No file uploaded")
    outcome = await run_in_threadpool(dashboard.upload_profile_image, kind, uploads[0])
    return _respond(outcome, response)


async def _project_editor(request: Request, collection: EntityCollection, existing=None):
    form = await request.form()
    fields = [name for name in collection.spec.fields if name != "images"]
    try:
        values = coerce_form(collection.spec.record_type, form, fields, partial=existing is not None)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid form value: {e}")

    editor = collection.open_editor(existing)
    editor.form.update(values)
    if existing is None or "keep_images" in form:
        editor.form["images"] = _keep_images(form.get("keep_images"))
    uploads = await _read_uploads(form.getlist("new_images"))
    return editor, uploads


@router.post("/projects")
async def create_project(request: Request, response: Response, dashboard: Dashboard = Depends(get_dashboard)):
    """
    Multipart create: project fields, `keep_images` (JSON list) and any number
    of `new_images` files. Files are uploaded first; a failed upload writes no row.
    """
    collection = dashboard.tab("projects")
    editor, uploads = await _project_editor(request, collection)
    outcome = await run_in_threadpool(dashboard.submit_project, editor, uploads)
    return _respond(outcome, response)


@router.put("/projects/{project_id}")
async def update_project(
    project_id: str,
    request: Request,
    response: Response,
    dashboard: Dashboard = Depends(get_dashboard),
):
    collection = dashboard.tab("projects")
    existing = _record_or_404(collection, project_id)
    editor, uploads = await _project_editor(request, collection, existing)
    outcome = await run_in_threadpool(dashboard.submit_project, editor, uploads)
    return _respond(outcome, response)
