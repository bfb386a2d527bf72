# Admin Pages Router
# Purpose: Server-rendered admin dashboard (tabs, editor forms, delete confirmation)
# Main functions: dashboard(), save_record(), delete_record(), upload_profile_image(), logout()
# Dependent files: admin/services/dashboard.py, app/templates/admin/*.html

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from typing import Optional
from urllib.parse import urlencode
import logging

from admin.dependencies.access_control import COOKIE_NAME, require_admin_page
from admin.services.collection import EntityCollection, Outcome, OutcomeStatus
from admin.services.dashboard import (
    DEFAULT_COLORS,
    LOGO_ICONS,
    PLATFORMS,
    PROFILE_IMAGE_COLUMNS,
    SKILL_CATEGORIES,
    Dashboard,
    ImageUpload,
)
from admin.services.forms import EditorState, coerce_form, parse_images
from app.templating import templates

logger = logging.getLogger(__name__)

DEFAULT_TAB = "profile"

OUTCOME_STATUS = {
    OutcomeStatus.SUCCESS: status.HTTP_200_OK,
    OutcomeStatus.INVALID: status.HTTP_422_UNPROCESSABLE_ENTITY,
    OutcomeStatus.CANCELLED: status.HTTP_200_OK,
    OutcomeStatus.FAILED: status.HTTP_502_BAD_GATEWAY,
}

router = APIRouter()


# --- Helpers ---

def page_dashboard(request: Request, user: dict = Depends(require_admin_page)) -> Dashboard:
    return request.app.state.dashboards.get(user["username"])


def _back_to(tab: str, outcome: Outcome) -> RedirectResponse:
    query = urlencode({"tab": tab, "notice": outcome.message, "level": outcome.status.value})
    return RedirectResponse(f"/admin?{query}", status_code=status.HTTP_303_SEE_OTHER)


def _render(
    request: Request,
    dashboard: Dashboard,
    user: dict,
    tab: str,
    editor: Optional[EditorState] = None,
    confirm_delete=None,
    notice: Optional[dict] = None,
    status_code: int = 200,
):
    collection = dashboard.tab(tab)
    # Profile is always shown as its edit form
    if editor is None and collection.spec.singleton:
        editor = collection.open_editor()
    context = {
        "user": user,
        "tabs": dashboard.tabs,
        "active_tab": tab,
        "collection": collection,
        "editor": editor,
        "confirm_delete": confirm_delete,
        "notice": notice,
        "profile": dashboard.profile,
        "platforms": PLATFORMS,
        "skill_categories": SKILL_CATEGORIES,
        "default_colors": DEFAULT_COLORS,
        "logo_icons": LOGO_ICONS,
    }
    return templates.TemplateResponse(request, "admin/dashboard.html", context, status_code=status_code)


def _tab_or_default(dashboard: Dashboard, tab: Optional[str]) -> str:
    return tab if tab in dashboard.tabs else DEFAULT_TAB


async def _uploads(files) -> list[ImageUpload]:
    uploads = []
    for file in files:
        if isinstance(file, str) or not file.filename:
            continue
        uploads.append(ImageUpload(file.filename, await file.read(), file.content_type or "application/octet-stream"))
    return uploads


# ============================================================================
# DASHBOARD
# ============================================================================

@router.get("")
def dashboard_page(
    request: Request,
    tab: Optional[str] = Query(None),
    edit: Optional[str] = Query(None),
    new: bool = Query(False),
    confirm_delete: Optional[str] = Query(None),
    notice: Optional[str] = Query(None),
    level: str = Query(OutcomeStatus.SUCCESS.value),
    user: dict = Depends(require_admin_page),
    dashboard: Dashboard = Depends(page_dashboard),
):
    """Tabbed dashboard. ?edit=<id> or ?new=1 opens the editor, ?confirm_delete=<id> asks first."""
    tab = _tab_or_default(dashboard, tab)
    collection = dashboard.tab(tab)

    editor = None
    if edit:
        record = collection.find(edit)
        if record is not None:
            editor = collection.open_editor(record)
    elif new:
        editor = collection.open_editor()

    pending = collection.find(confirm_delete) if confirm_delete else None
    banner = {"message": notice, "level": level} if notice else None
    return _render(request, dashboard, user, tab, editor=editor, confirm_delete=pending, notice=banner)


@router.post("/tabs/{tab}/reload")
def reload_tab(tab: str, dashboard: Dashboard = Depends(page_dashboard)):
    tab = _tab_or_default(dashboard, tab)
    dashboard.tab(tab).load()
    return RedirectResponse(f"/admin?tab={tab}", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/tabs/{tab}/save")
async def save_record(
    request: Request,
    tab: str,
    user: dict = Depends(require_admin_page),
    dashboard: Dashboard = Depends(page_dashboard),
):
    """
    Create or update from the tab's editor form. A hidden `editing_id` marks
    an edit. Projects also take `keep_images` (JSON), `drop_images` (urls to
    remove from it) and `new_images` files.
    """
    tab = _tab_or_default(dashboard, tab)
    collection: EntityCollection = dashboard.tab(tab)
    form = await request.form()

    existing = None
    editing_id = form.get("editing_id")
    if editing_id:
        existing = collection.find(editing_id)
        if existing is None:
            outcome = Outcome(OutcomeStatus.FAILED, "update", f"{collection.spec.label} not found")
            return _back_to(tab, outcome)

    fields = [name for name in collection.spec.fields if name != "images"]
    editor = collection.open_editor(existing)
    try:
        editor.form.update(coerce_form(collection.spec.record_type, form, fields))
        if tab == "projects":
            dropped = set(form.getlist("drop_images"))
            kept = parse_images(form.get("keep_images"))
            editor.form["images"] = [image for image in kept if image.get("url") not in dropped]
    except ValueError as e:
        outcome = Outcome(OutcomeStatus.INVALID, "update" if editor.is_edit else "create", f"Invalid form value: {e}")
    else:
        if tab == "projects":
            uploads = await _uploads(form.getlist("new_images"))
            outcome = await run_in_threadpool(dashboard.submit_project, editor, uploads)
        else:
            outcome = await run_in_threadpool(collection.submit, editor)

    if outcome.ok:
        return _back_to(tab, outcome)
    # Keep what was typed so it can be corrected
    notice = {"message": outcome.message, "level": outcome.status.value}
    return _render(request, dashboard, user, tab, editor=editor, notice=notice,
                   status_code=OUTCOME_STATUS[outcome.status])


@router.post("/tabs/{tab}/{record_id}/delete")
async def delete_record(
    request: Request,
    tab: str,
    record_id: str,
    dashboard: Dashboard = Depends(page_dashboard),
):
    """Deletes only when the confirmation form posted confirm=yes."""
    tab = _tab_or_default(dashboard, tab)
    collection = dashboard.tab(tab)
    record = collection.find(record_id)
    if record is None:
        return _back_to(tab, Outcome(OutcomeStatus.FAILED, "delete", f"{collection.spec.label} not found"))
    form = await request.form()
    outcome = await run_in_threadpool(collection.remove, record, confirmed=form.get("confirm") == "yes")
    return _back_to(tab, outcome)


@router.post("/profile/{kind}")
async def upload_profile_image(
    kind: str,
    file: UploadFile = File(...),
    dashboard: Dashboard = Depends(page_dashboard),
):
    if kind not in PROFILE_IMAGE_COLUMNS:
        return _back_to(DEFAULT_TAB, Outcome(OutcomeStatus.INVALID, "update", f"Unknown image '{kind}'"))
    uploads = await _uploads([file])
    if not uploads:
        return _back_to(DEFAULT_TAB, Outcome(OutcomeStatus.INVALID, "update", "No file uploaded"))
    outcome = await run_in_threadpool(dashboard.upload_profile_image, kind, uploads[0])
    return _back_to(DEFAULT_TAB, outcome)


@router.post("/logout")
def logout(request: Request, user: dict = Depends(require_admin_page)):
    request.app.state.dashboards.drop(user["username"])
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(COOKIE_NAME)
    logger.info(f"Admin '{user['username']}' signed out")
    return response


# ============================================================================
# PLACEHOLDERS
# ============================================================================

PLACEHOLDERS = {
    "/projects": "Gestion des projets",
    "/projects/new": "Nouveau projet",
    "/settings": "Paramètres",
}


def _placeholder_route(path: str, title: str):
    def placeholder(request: Request, user: dict = Depends(require_admin_page)):
        return templates.TemplateResponse(
            request, "admin/placeholder.html", {"user": user, "title": title, "profile": None}
        )
    placeholder.__name__ = f"placeholder_{path.strip('/').replace('/', '_')}"
    router.add_api_route(path, placeholder, methods=["GET"])


for _path, _title in PLACEHOLDERS.items():
    _placeholder_route(_path, _title)
