"""
admin/services/dashboard.py — The six admin tabs
=================================================

Instantiates EntityCollection once per table and adds the two flows that need
object storage:

  upload_profile_image()  → upload avatar/hero, then update the profile row
  submit_project()        → upload new gallery images one after another,
                            then write the project row

A failed upload aborts the whole operation before any row is written. Files
uploaded before the failure stay in the bucket (no cleanup).

DashboardRegistry keeps one Dashboard per signed-in admin for the lifetime of
the session; its collections are the only cache the admin side has.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from admin.services.collection import EntityCollection, EntitySpec, Outcome, OutcomeStatus
from admin.services.forms import EditorState
from db.client import BackendError, Store
from db.records import Category, Experience, Profile, Project, Skill, SocialLink
from db.storage import Bucket, object_name

logger = logging.getLogger(__name__)


# --- Form choices ---

PLATFORMS = [
    ("instagram", "Instagram"),
    ("linkedin", "LinkedIn"),
    ("behance", "Behance"),
    ("dribbble", "Dribbble"),
    ("website", "Site Web"),
    ("email", "Email"),
    ("phone", "Téléphone"),
    ("twitter", "Twitter"),
    ("facebook", "Facebook"),
    ("youtube", "YouTube"),
    ("github", "GitHub"),
    ("pinterest", "Pinterest"),
]

SKILL_CATEGORIES = [
    "Logiciels de conception",
    "Rendu et visualisation",
    "Présentation",
    "Gestion de projet",
    "Langues",
    "Autres",
]

DEFAULT_COLORS = ["#8B5CF6", "#EC4899", "#3B82F6", "#10B981", "#F59E0B", "#EF4444", "#6366F1", "#8B5A2B"]

LOGO_ICONS = [
    "User", "Home", "Building", "Palette", "Compass", "Star", "Heart",
    "Zap", "Crown", "Diamond", "Hexagon", "Triangle", "Circle", "Square",
]

PROFILE_IMAGE_COLUMNS = {"avatar": "avatar_url", "hero": "hero_image_url"}


# --- Payload hooks ---

def _experience_payload(payload: dict) -> dict:
    # An ongoing experience has no end date, whatever was typed
    if payload.get("current") or not payload.get("end_date"):
        payload["end_date"] = None
    return payload


def _social_link_payload(payload: dict) -> dict:
    payload["icon"] = payload.get("icon") or payload.get("platform")
    return payload


def _project_defaults() -> dict:
    return {
        "title": "", "description": "", "category": "academique",
        "year": datetime.now().year, "client": "", "location": "", "area": "",
        "status": "completed", "featured": False, "images": [],
    }


SPECS: dict[str, EntitySpec] = {
    "profile": EntitySpec(
        name="profile", label="Profile", table="profiles", record_type=Profile,
        fields=("name", "title", "bio", "email", "phone", "location", "cv_url",
                "logo_type", "logo_text", "logo_icon"),
        defaults=lambda: {"name": "", "title": "", "bio": "", "email": "", "phone": "",
                          "location": "", "cv_url": "", "logo_type": "text",
                          "logo_text": "", "logo_icon": "User"},
        required=("name",),
        singleton=True,
    ),
    "projects": EntitySpec(
        name="projects", label="Project", table="projects", record_type=Project,
        fields=("title", "description", "category", "year", "client", "location",
                "area", "status", "featured", "images"),
        defaults=_project_defaults,
        required=("title", "description"),
        order="created_at", ascending=False,
    ),
    "social": EntitySpec(
        name="social", label="Social link", table="social_links", record_type=SocialLink,
        fields=("platform", "url", "icon"),
        defaults=lambda: {"platform": "instagram", "url": "", "icon": "instagram"},
        required=("platform", "url"),
        order="order_index", ascending=True, ordered=True,
        prepare=_social_link_payload,
    ),
    "experiences": EntitySpec(
        name="experiences", label="Experience", table="experiences", record_type=Experience,
        fields=("type", "title", "institution", "location", "start_date", "end_date",
                "current", "description"),
        defaults=lambda: {"type": "education", "title": "", "institution": "", "location": "",
                          "start_date": "", "end_date": "", "current": False, "description": ""},
        required=("title", "institution", "start_date"),
        order="start_date", ascending=False, ordered=True,
        prepare=_experience_payload,
    ),
    "skills": EntitySpec(
        name="skills", label="Skill", table="skills", record_type=Skill,
        fields=("name", "category", "level"),
        defaults=lambda: {"name": "", "category": SKILL_CATEGORIES[0], "level": 3},
        required=("name",),
        order="category", ascending=True, ordered=True,
    ),
    "categories": EntitySpec(
        name="categories", label="Category", table="project_categories", record_type=Category,
        fields=("name", "description", "color"),
        defaults=lambda: {"name": "", "description": "", "color": DEFAULT_COLORS[0]},
        required=("name",),
        order="order_index", ascending=True, ordered=True,
    ),
}


@dataclass
class ImageUpload:
    filename: str
    data: bytes
    content_type: str = "application/octet-stream"


class Dashboard:
    def __init__(self, store: Store, bucket: Bucket):
        self.store = store
        self.bucket = bucket
        self.tabs = {name: EntityCollection(spec, store) for name, spec in SPECS.items()}

    def mount(self) -> None:
        """Load every tab, one after another."""
        for collection in self.tabs.values():
            collection.load()

    def tab(self, name: str) -> EntityCollection:
        """Return a tab's collection, loading it on first access. KeyError if unknown."""
        collection = self.tabs[name]
        if not collection.loaded:
            collection.load()
        return collection

    @property
    def profile(self) -> Optional[Profile]:
        profiles = self.tab("profile")
        return profiles.items[0] if profiles.items else None

    def upload_profile_image(self, kind: str, upload: ImageUpload) -> Outcome:
        column = PROFILE_IMAGE_COLUMNS[kind]
        label = "Avatar" if kind == "avatar" else "Hero image"
        profile = self.profile
        if profile is None:
            logger.error(f"Cannot store {kind} image: no profile row loaded")
            return Outcome(OutcomeStatus.FAILED, "update", f"{label} upload failed")

        try:
            url = self.bucket.upload(object_name(kind, upload.filename), upload.data, upload.content_type)
            row = self.store.update("profiles", profile.id, {column: url})
        except BackendError as e:
            logger.error(f"{label} upload failed: {e}")
            return Outcome(OutcomeStatus.FAILED, "update", f"{label} upload failed")

        saved = Profile.model_validate(row)
        self.tabs["profile"].reconcile(saved)
        return Outcome(OutcomeStatus.SUCCESS, "update", f"{label} updated", record=saved)

    def submit_project(self, editor: EditorState, uploads: list[ImageUpload] = ()) -> Outcome:
        """
        Upload `uploads` sequentially, append them to the editor's kept images
        and submit the project. The first failed upload aborts the save.
        """
        projects = self.tab("projects")
        invalid = projects.check(editor)
        if invalid:
            return invalid

        action = "update" if editor.is_edit else "create"
        images = list(editor.form.get("images") or [])
        for upload in uploads:
            path = object_name("project", upload.filename, unique=True)
            try:
                url = self.bucket.upload(path, upload.data, upload.content_type)
            except BackendError as e:
                logger.error(f"Project image upload failed, save aborted: {e}")
                return Outcome(OutcomeStatus.FAILED, action, "Save failed")
            images.append({"url": url, "title": upload.filename})

        editor.form["images"] = images
        return projects.submit(editor)


class DashboardRegistry:
    """One Dashboard per admin subject, created and mounted on first use."""

    def __init__(self, store: Store, bucket: Bucket):
        self.store = store
        self.bucket = bucket
        self._dashboards: dict[str, Dashboard] = {}
        # sync routes run in a threadpool; one mount per subject
        self._lock = threading.Lock()

    def get(self, subject: str) -> Dashboard:
        with self._lock:
            if subject not in self._dashboards:
                dashboard = Dashboard(self.store, self.bucket)
                dashboard.mount()
                self._dashboards[subject] = dashboard
                logger.info(f"Mounted dashboard for {subject}")
            return self._dashboards[subject]

    def drop(self, subject: str) -> None:
        with self._lock:
            self._dashboards.pop(subject, None)

    def __contains__(self, subject: str) -> bool:
        return subject in self._dashboards
