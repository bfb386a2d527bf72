"""
app/routers/pages.py — Public HTML pages
=========================================

Routes:
  GET  /                 → hero, featured projects, social links
  GET  /projets          → all projects, ?category= filter
  GET  /projets/{id}     → project detail with gallery (404 page when missing)
  GET  /about            → bio, experiences, grouped skills
  GET  /contact          → contact details and form
  POST /contact          → simulated delivery
  GET  /login            → admin sign-in form
  POST /login            → sets the admin_token cookie, redirects to /admin

Each page renders with whatever the store returned; read failures are logged
by the catalog and show up as empty sections.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from admin.dependencies.access_control import (
    COOKIE_NAME,
    AuthGate,
    authenticate_admin,
    create_access_token,
    resolve_gate,
    token_expire_minutes,
)
from app.dependencies.backend import get_store
from app.limits import limiter
from app.services import catalog
from app.services.contact import ContactMessage
from app.templating import templates
from db.client import Store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["site"])


def _chrome(store: Store) -> dict:
    """Navbar and footer context shared by every page."""
    return {
        "profile": catalog.fetch_profile(store),
        "social_links": catalog.fetch_social_links(store),
    }


@router.get("/")
def home(request: Request, store: Store = Depends(get_store)):
    context = _chrome(store)
    context["featured_projects"] = catalog.fetch_featured_projects(store)
    return templates.TemplateResponse(request, "home.html", context)


@router.get("/projets")
def projects(
    request: Request,
    category: Optional[str] = Query(None),
    store: Store = Depends(get_store),
):
    all_projects = catalog.fetch_projects(store)
    context = _chrome(store)
    context.update({
        "projects": catalog.filter_projects(all_projects, category),
        "categories": catalog.project_categories(all_projects),
        "selected_category": category or catalog.ALL_CATEGORIES,
    })
    return templates.TemplateResponse(request, "projects.html", context)


@router.get("/projets/{project_id}")
def project_detail(request: Request, project_id: str, store: Store = Depends(get_store)):
    context = _chrome(store)
    project = catalog.fetch_project(store, project_id)
    if project is None:
        context["message"] = "Projet non trouvé"
        return templates.TemplateResponse(request, "not_found.html", context, status_code=404)
    context["project"] = project
    return templates.TemplateResponse(request, "project_detail.html", context)


@router.get("/about")
def about(request: Request, store: Store = Depends(get_store)):
    context = _chrome(store)
    context.update({
        "experiences": catalog.fetch_experiences(store),
        "skill_groups": catalog.group_skills(catalog.fetch_skills(store)),
    })
    return templates.TemplateResponse(request, "about.html", context)


@router.get("/contact")
def contact(request: Request, store: Store = Depends(get_store)):
    context = _chrome(store)
    context.update({"form": {}, "errors": [], "submit_status": None})
    return templates.TemplateResponse(request, "contact.html", context)


@router.post("/contact")
@limiter.limit("5/minute")
async def contact_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    subject: str = Form(""),
    message: str = Form(""),
    store: Store = Depends(get_store),
):
    form = {"name": name, "email": email, "subject": subject, "message": message}
    context = await run_in_threadpool(_chrome, store)
    try:
        contact_message = ContactMessage(**form)
    except ValidationError as e:
        context.update({
            "form": form,
            "errors": [str(err["loc"][0]) for err in e.errors()],
            "submit_status": "error",
        })
        return templates.TemplateResponse(request, "contact.html", context, status_code=422)

    await request.app.state.contact_sender.send(contact_message)
    context.update({"form": {}, "errors": [], "submit_status": "success"})
    return templates.TemplateResponse(request, "contact.html", context)


@router.get("/login")
def login_page(request: Request, gate: AuthGate = Depends(resolve_gate), store: Store = Depends(get_store)):
    if gate.authorized:
        return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)
    context = _chrome(store)
    context["error"] = None
    return templates.TemplateResponse(request, "login.html", context)


@router.post("/login")
@limiter.limit("10/minute")
def login_submit(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    store: Store = Depends(get_store),
):
    if not authenticate_admin(username, password):
        logger.warning(f"Failed admin login for '{username}'")
        context = _chrome(store)
        context["error"] = "Identifiants invalides"
        return templates.TemplateResponse(request, "login.html", context, status_code=401)

    token = create_access_token(subject=username)
    response = RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=token_expire_minutes() * 60,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"Admin '{username}' signed in")
    return response
