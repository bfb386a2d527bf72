"""
app/routers/api.py — Public read-only JSON API
===============================================

Routes:
  GET /api/profile               → profile row (404 when none)
  GET /api/projects?category=    → projects, newest first, optional category filter
  GET /api/projects/featured     → up to 3 featured projects
  GET /api/projects/{id}         → single project
  GET /api/experiences           → experiences, most recent first
  GET /api/skills                → skills grouped by category
  GET /api/social-links          → social links by order_index
  GET /api/categories            → project categories by order_index

All responses use the {"status": "success", "data": ...} envelope.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.dependencies.backend import get_store
from app.limits import limiter
from app.services import catalog
from db.client import Store

router = APIRouter(prefix="/api", tags=["public"])


def ok(data: Any, meta: dict = None) -> dict:
    resp = {"status": "success", "data": data}
    if meta:
        resp["meta"] = meta
    return resp


def _dump(records) -> list:
    return [r.model_dump(mode="json") for r in records]


@router.get("/profile")
@limiter.limit("120/minute")
def get_profile(request: Request, store: Store = Depends(get_store)):
    profile = catalog.fetch_profile(store)
    if profile is None:
        raise HTTPException(404, "Profile not found")
    return ok(profile.model_dump(mode="json"))


@router.get("/projects")
@limiter.limit("120/minute")
def list_projects(
    request: Request,
    category: Optional[str] = Query(None, description="category name, or 'all'"),
    store: Store = Depends(get_store),
):
    projects = catalog.fetch_projects(store)
    filtered = catalog.filter_projects(projects, category)
    return ok(_dump(filtered), meta={
        "category": category or catalog.ALL_CATEGORIES,
        "categories": catalog.project_categories(projects),
        "total": len(filtered),
    })


@router.get("/projects/featured")
@limiter.limit("120/minute")
def list_featured_projects(request: Request, store: Store = Depends(get_store)):
    return ok(_dump(catalog.fetch_featured_projects(store)))


@router.get("/projects/{project_id}")
@limiter.limit("120/minute")
def get_project(request: Request, project_id: str, store: Store = Depends(get_store)):
    project = catalog.fetch_project(store, project_id)
    if project is None:
        raise HTTPException(404, "Project not found")
    return ok(project.model_dump(mode="json"))


@router.get("/experiences")
@limiter.limit("120/minute")
def list_experiences(request: Request, store: Store = Depends(get_store)):
    return ok(_dump(catalog.fetch_experiences(store)))


@router.get("/skills")
@limiter.limit("120/minute")
def list_skills(request: Request, store: Store = Depends(get_store)):
    groups = catalog.group_skills(catalog.fetch_skills(store))
    return ok([{"category": name, "skills": _dump(skills)} for name, skills in groups.items()])


@router.get("/social-links")
@limiter.limit("120/minute")
def list_social_links(request: Request, store: Store = Depends(get_store)):
    return ok(_dump(catalog.fetch_social_links(store)))


@router.get("/categories")
@limiter.limit("120/minute")
def list_categories(request: Request, store: Store = Depends(get_store)):
    return ok(_dump(catalog.fetch_categories(store)))
