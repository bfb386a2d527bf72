"""
app/services/catalog.py — Read side of the public site
=======================================================

Every fetch_* helper talks to the store once and never raises: a failed read
is logged and becomes empty content (None for single rows, [] for lists), so
a page always renders.

Pure helpers used by pages, the JSON API and templates:
  filter_projects()     → category filter ("all" or None = everything)
  project_categories()  → distinct categories in order of first appearance
  group_skills()        → {category: [skills]} preserving order
  logo_label()          → navbar text for the configured logo
  main_image()          → first gallery image or a placeholder
  format_period()       → "septembre 2019 - Présent"
"""

import logging
from datetime import date
from typing import Iterable, Optional

from pydantic import ValidationError

from db.client import BackendError, Store
from db.records import Category, Experience, Profile, Project, Skill, SocialLink

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"
PLACEHOLDER_IMAGE = "https://images.pexels.com/photos/2102587/pexels-photo-2102587.jpeg?auto=compress&cs=tinysrgb&w=800"
FEATURED_LIMIT = 3

FRENCH_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]


def _rows(store: Store, table: str, record_type, **query) -> list:
    try:
        return [record_type.model_validate(row) for row in store.select(table, **query)]
    except (BackendError, ValidationError) as e:
        logger.error(f"Failed to load {table}: {e}")
        return []


# --- Fetches ---

def fetch_profile(store: Store) -> Optional[Profile]:
    try:
        return Profile.model_validate(store.select_single("profiles"))
    except (BackendError, ValidationError) as e:
        logger.error(f"Failed to load profile: {e}")
        return None


def fetch_projects(store: Store) -> list[Project]:
    return _rows(store, "projects", Project, order="created_at", ascending=False)


def fetch_featured_projects(store: Store, limit: int = FEATURED_LIMIT) -> list[Project]:
    return _rows(store, "projects", Project, eq={"featured": True}, order="created_at", ascending=False, limit=limit)


def fetch_project(store: Store, project_id: str) -> Optional[Project]:
    """None when the project does not exist or the read failed."""
    rows = _rows(store, "projects", Project, eq={"id": project_id}, limit=1)
    return rows[0] if rows else None


def fetch_social_links(store: Store) -> list[SocialLink]:
    return _rows(store, "social_links", SocialLink, order="order_index")


def fetch_experiences(store: Store) -> list[Experience]:
    return _rows(store, "experiences", Experience, order="start_date", ascending=False)


def fetch_skills(store: Store) -> list[Skill]:
    return _rows(store, "skills", Skill, order="category")


def fetch_categories(store: Store) -> list[Category]:
    return _rows(store, "project_categories", Category, order="order_index")


# --- Pure helpers ---

def filter_projects(projects: Iterable[Project], category: Optional[str]) -> list[Project]:
    if not category or category == ALL_CATEGORIES:
        return list(projects)
    return [p for p in projects if p.category == category]


def project_categories(projects: Iterable[Project]) -> list[str]:
    seen = []
    for project in projects:
        if project.category and project.category not in seen:
            seen.append(project.category)
    return seen


def group_skills(skills: Iterable[Skill]) -> dict[str, list[Skill]]:
    groups: dict[str, list[Skill]] = {}
    for skill in skills:
        groups.setdefault(skill.category or "Autres", []).append(skill)
    return groups


def logo_label(profile: Optional[Profile]) -> str:
    if profile is None:
        return "Portfolio"
    if profile.logo_type == "icon":
        return profile.logo_text or ""
    return profile.logo_text or profile.name or "Portfolio"


def main_image(project: Project) -> str:
    if project.images and project.images[0].url:
        return project.images[0].url
    return PLACEHOLDER_IMAGE


def format_month(value: Optional[str]) -> str:
    """'2019-09-01' → 'septembre 2019'. Unparseable input is returned as is."""
    if not value:
        return ""
    try:
        parsed = date.fromisoformat(value[:10])
    except ValueError:
        return value
    return f"{FRENCH_MONTHS[parsed.month - 1]} {parsed.year}"


def format_period(experience: Experience) -> str:
    end = "Présent" if experience.current else format_month(experience.end_date)
    return f"{format_month(experience.start_date)} - {end}" if end else format_month(experience.start_date)
