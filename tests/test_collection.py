# Entity collection tests
# Create / edit / delete against the SQLite store, plus failure handling with
# a store that refuses writes.
# Dependent files: admin/services/collection.py, admin/services/dashboard.py

import pytest

from admin.services.collection import EntityCollection, OutcomeStatus
from admin.services.dashboard import SPECS
from admin.services.forms import coerce_form, parse_images
from db.client import StoreError
from db.records import Experience, Project


class BrokenWrites:
    """Wraps a store; every write raises StoreError."""

    def __init__(self, store):
        self._store = store

    def __getattr__(self, name):
        return getattr(self._store, name)

    def insert(self, table, row):
        raise StoreError("insert refused")

    def update(self, table, row_id, changes):
        raise StoreError("update refused")

    def delete(self, table, row_id):
        raise StoreError("delete refused")


def collection(name, store):
    c = EntityCollection(SPECS[name], store)
    c.load()
    return c


def named(collection, name, **fields):
    editor = collection.open_editor()
    editor.form.update(name=name, **fields)
    return editor


def test_load_failure_leaves_collection_empty(store):
    class Unreachable:
        def select(self, *a, **kw):
            raise StoreError("down")

        def select_single(self, *a, **kw):
            raise StoreError("down")

    c = EntityCollection(SPECS["skills"], Unreachable())
    assert c.load() == []
    assert c.loaded


def test_load_orders_per_entity(store):
    store.insert("experiences", {"title": "A", "institution": "X", "start_date": "2015-09-01"})
    store.insert("experiences", {"title": "B", "institution": "Y", "start_date": "2020-01-01"})
    assert [e.title for e in collection("experiences", store).items] == ["B", "A"]


def test_create_adds_exactly_one_row(store):
    skills = collection("skills", store)
    editor = skills.open_editor()
    assert editor.form["level"] == 3
    editor.form.update(name="ArchiCAD", category="Logiciels de conception")

    outcome = skills.submit(editor)

    assert outcome.ok and outcome.action == "create"
    rows = store.select("skills")
    assert len(rows) == 1
    assert rows[0]["name"] == "ArchiCAD"
    assert [s.id for s in skills.items] == [rows[0]["id"]]


def test_create_assigns_order_index_from_collection_size(store):
    links = collection("social", store)
    for platform in ("instagram", "behance", "linkedin"):
        editor = links.open_editor()
        editor.form.update(platform=platform, url=f"https://{platform}.com/me", icon="")
        assert links.submit(editor).ok

    rows = store.select("social_links", order="order_index")
    assert [r["order_index"] for r in rows] == [0, 1, 2]
    # icon falls back to the platform name
    assert rows[0]["icon"] == "instagram"


def test_edit_changes_only_target_row(store):
    a = store.insert("project_categories", {"name": "Résidentiel", "order_index": 0})
    b = store.insert("project_categories", {"name": "Commercial", "order_index": 1})
    categories = collection("categories", store)

    editor = categories.open_editor(categories.find(a["id"]))
    assert editor.is_edit
    editor.form["name"] = "Habitat"
    outcome = categories.submit(editor)

    assert outcome.ok and outcome.action == "update"
    assert store.select("project_categories", eq={"id": a["id"]})[0]["name"] == "Habitat"
    assert store.select("project_categories", eq={"id": b["id"]})[0] == b
    assert [c.name for c in categories.items] == ["Habitat", "Commercial"]


def test_missing_required_field_sends_nothing(store):
    projects = collection("projects", store)
    editor = projects.open_editor()
    editor.form["title"] = "Sans description"

    outcome = projects.submit(editor)

    assert outcome.status is OutcomeStatus.INVALID
    assert outcome.errors == ["description"]
    assert store.select("projects") == []


def test_confirmed_delete_removes_only_that_row(store):
    keep = store.insert("skills", {"name": "SketchUp"})
    drop = store.insert("skills", {"name": "AutoCAD"})
    skills = collection("skills", store)

    outcome = skills.remove(skills.find(drop["id"]), confirmed=True)

    assert outcome.ok
    assert [r["id"] for r in store.select("skills")] == [keep["id"]]
    assert skills.find(drop["id"]) is None


def test_unconfirmed_delete_is_cancelled(store):
    row = store.insert("skills", {"name": "AutoCAD"})
    skills = collection("skills", store)

    outcome = skills.remove(skills.find(row["id"]))

    assert outcome.status is OutcomeStatus.CANCELLED
    assert len(store.select("skills")) == 1
    assert len(skills) == 1


def test_profile_cannot_be_deleted_or_created(store, profile_row):
    profile = collection("profile", store)
    assert profile.remove(profile.items[0], confirmed=True).status is OutcomeStatus.INVALID

    empty = collection("profile", BrokenWrites(store))
    empty.items = []
    editor = empty.open_editor()
    editor.form["name"] = "Someone"
    assert empty.submit(editor).status is OutcomeStatus.FAILED


def test_profile_editor_opens_on_the_single_row(store, profile_row):
    profile = collection("profile", store)
    editor = profile.open_editor()
    assert editor.editing_id == profile_row["id"]
    assert editor.form["name"] == "Jeanne Dupont"
    assert editor.form["logo_icon"] == "User"


@pytest.mark.parametrize("current,end_date", [(True, "2024-06-30"), (False, "")])
def test_experience_end_date_written_as_absent(store, current, end_date):
    experiences = collection("experiences", store)
    editor = experiences.open_editor()
    editor.form.update(
        title="Chef de projet", institution="Atelier", start_date="2022-01-01",
        current=current, end_date=end_date,
    )

    assert experiences.submit(editor).ok
    assert store.select("experiences")[0]["end_date"] is None


def test_failed_write_leaves_collection_untouched(store):
    row = store.insert("skills", {"name": "Revit"})
    skills = collection("skills", BrokenWrites(store))
    before = list(skills.items)

    editor = skills.open_editor(skills.find(row["id"]))
    editor.form["name"] = "Revit 2025"
    update = skills.submit(editor)
    create = skills.submit(named(skills, "Lumion"))
    delete = skills.remove(skills.items[0], confirmed=True)

    assert [o.status for o in (update, create, delete)] == [OutcomeStatus.FAILED] * 3
    assert update.message == "Save failed" and delete.message == "Delete failed"
    assert skills.items == before
    assert store.select("skills")[0]["name"] == "Revit"


def test_level_is_not_clamped(store):
    skills = collection("skills", store)
    assert skills.submit(named(skills, "Photoshop", level=9)).ok
    assert store.select("skills")[0]["level"] == 9


def test_coerce_form_types():
    raw = {"title": "Villa", "year": "2023", "featured": "on", "images": '[{"url": "a.jpg"}]'}
    fields = ["title", "year", "featured", "images", "client"]
    values = coerce_form(Project, raw, fields)
    assert values == {"title": "Villa", "year": 2023, "featured": True, "images": [{"url": "a.jpg"}]}

    assert coerce_form(Experience, {}, ["current"]) == {"current": False}
    with pytest.raises(ValueError):
        coerce_form(Project, {"year": "deux mille"}, ["year"])


def test_coerce_form_partial_skips_absent_checkboxes():
    fields = ["title", "featured"]
    assert coerce_form(Project, {"title": "Villa 2"}, fields, partial=True) == {"title": "Villa 2"}
    assert coerce_form(Project, {"featured": "off"}, fields, partial=True) == {"featured": False}


@pytest.mark.parametrize("raw", ['{"a": 1}', '["x"]', '[{"title": "no url"}]', "not json"])
def test_parse_images_rejects_non_image_lists(raw):
    with pytest.raises(ValueError):
        parse_images(raw)


def test_parse_images():
    assert parse_images(None) == []
    assert parse_images("  ") == []
    assert parse_images('[{"url": "a.jpg", "title": "a"}]') == [{"url": "a.jpg", "title": "a"}]
