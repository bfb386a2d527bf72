# Public site tests: catalog helpers, JSON API and rendered pages
# Dependent files: app/services/catalog.py, app/routers/api.py, app/routers/pages.py

import pytest

from app.services import catalog
from db.client import StoreError
from db.records import Experience, Profile, Project, Skill


@pytest.fixture
def projects(store):
    rows = [
        {"title": "Villa Azur", "description": "d", "category": "Résidentiel", "featured": True},
        {"title": "Boutique Lin", "description": "d", "category": "Commercial", "featured": False},
        {"title": "Maison Bois", "description": "d", "category": "Résidentiel", "featured": True},
        {"title": "Bureau Nord", "description": "d", "category": "Commercial", "featured": True},
        {"title": "Pavillon", "description": "d", "category": "Concours", "featured": True},
    ]
    return [store.insert("projects", row) for row in rows]


# --- Catalog helpers ---

def test_filter_projects_by_category():
    items = [Project(title="a", category="A"), Project(title="b", category="B"), Project(title="c", category="A")]
    assert [p.title for p in catalog.filter_projects(items, "A")] == ["a", "c"]
    assert [p.title for p in catalog.filter_projects(items, "all")] == ["a", "b", "c"]
    assert [p.title for p in catalog.filter_projects(items, None)] == ["a", "b", "c"]
    assert catalog.filter_projects(items, "Z") == []


def test_project_categories_in_order_of_appearance():
    items = [Project(title="a", category="B"), Project(title="b", category="A"),
             Project(title="c", category="B"), Project(title="d", category=None)]
    assert catalog.project_categories(items) == ["B", "A"]


def test_group_skills_preserves_order():
    skills = [Skill(name="Revit", category="Logiciels"), Skill(name="Anglais", category="Langues"),
              Skill(name="SketchUp", category="Logiciels")]
    groups = catalog.group_skills(skills)
    assert list(groups) == ["Logiciels", "Langues"]
    assert [s.name for s in groups["Logiciels"]] == ["Revit", "SketchUp"]


def test_logo_label():
    assert catalog.logo_label(None) == "Portfolio"
    assert catalog.logo_label(Profile(name="Jeanne")) == "Jeanne"
    assert catalog.logo_label(Profile(name="Jeanne", logo_text="JD Studio")) == "JD Studio"
    assert catalog.logo_label(Profile(name="", logo_text=None)) == "Portfolio"


def test_main_image_falls_back_to_placeholder():
    assert catalog.main_image(Project(title="a")) == catalog.PLACEHOLDER_IMAGE
    assert catalog.main_image(Project(title="a", images=[{"url": "x.jpg"}])) == "x.jpg"


def test_format_period():
    ongoing = Experience(title="t", start_date="2019-09-01", current=True)
    done = Experience(title="t", start_date="2015-09-01", end_date="2019-06-30")
    assert catalog.format_period(ongoing) == "septembre 2019 - Présent"
    assert catalog.format_period(done) == "septembre 2015 - juin 2019"


def test_fetch_failures_become_empty_content():
    class Down:
        def select(self, *a, **kw):
            raise StoreError("down")

        def select_single(self, *a, **kw):
            raise StoreError("down")

    assert catalog.fetch_profile(Down()) is None
    assert catalog.fetch_projects(Down()) == []
    assert catalog.fetch_project(Down(), "x") is None


def test_featured_limited_to_three_newest(store, projects):
    featured = catalog.fetch_featured_projects(store)
    assert len(featured) == 3
    assert all(p.featured for p in featured)


# --- JSON API ---

def test_api_projects_category_filter(client, projects):
    data = client.get("/api/projects", params={"category": "Résidentiel"}).json()
    assert data["status"] == "success"
    assert {p["title"] for p in data["data"]} == {"Villa Azur", "Maison Bois"}
    assert set(data["meta"]["categories"]) == {"Résidentiel", "Commercial", "Concours"}

    everything = client.get("/api/projects", params={"category": "all"}).json()
    assert len(everything["data"]) == 5


def test_api_project_detail(client, projects):
    assert client.get(f"/api/projects/{projects[0]['id']}").json()["data"]["title"] == "Villa Azur"
    assert client.get("/api/projects/does-not-exist").status_code == 404


def test_api_profile_missing_is_404(client):
    assert client.get("/api/profile").status_code == 404


def test_api_profile(client, profile_row):
    assert client.get("/api/profile").json()["data"]["name"] == "Jeanne Dupont"


def test_api_skills_grouped(client, store):
    store.insert("skills", {"name": "Revit", "category": "Logiciels", "level": 4})
    store.insert("skills", {"name": "Anglais", "category": "Langues", "level": 5})
    groups = client.get("/api/skills").json()["data"]
    assert [g["category"] for g in groups] == ["Langues", "Logiciels"]


def test_api_lists(client, store):
    store.insert("social_links", {"platform": "instagram", "url": "https://i", "order_index": 1})
    store.insert("social_links", {"platform": "behance", "url": "https://b", "order_index": 0})
    store.insert("project_categories", {"name": "Résidentiel"})
    store.insert("experiences", {"title": "DPLG", "start_date": "2012-09-01"})

    assert [s["platform"] for s in client.get("/api/social-links").json()["data"]] == ["behance", "instagram"]
    assert client.get("/api/categories").json()["data"][0]["name"] == "Résidentiel"
    assert client.get("/api/experiences").json()["data"][0]["title"] == "DPLG"
    assert len(client.get("/api/projects/featured").json()["data"]) == 0


# --- Pages ---

def test_home_page(client, profile_row, projects):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Jeanne Dupont" in resp.text
    assert "Pavillon" in resp.text
    assert "Boutique Lin" not in resp.text


def test_home_page_renders_without_profile(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Portfolio" in resp.text


def test_projects_page_filter(client, projects):
    resp = client.get("/projets", params={"category": "Commercial"})
    assert resp.status_code == 200
    assert "Boutique Lin" in resp.text and "Bureau Nord" in resp.text
    assert "Villa Azur" not in resp.text

    resp = client.get("/projets", params={"category": "all"})
    assert all(p["title"] in resp.text for p in projects)


def test_project_detail_page(client, projects):
    assert "Villa Azur" in client.get(f"/projets/{projects[0]['id']}").text
    resp = client.get("/projets/unknown")
    assert resp.status_code == 404
    assert "Projet non trouvé" in resp.text


def test_about_page(client, store, profile_row):
    store.insert("experiences", {"title": "Master Architecture", "institution": "ENSA", "start_date": "2016-09-01", "current": True})
    store.insert("skills", {"name": "Revit", "category": "Logiciels de conception", "level": 4})
    resp = client.get("/about")
    assert resp.status_code == 200
    assert "Master Architecture" in resp.text
    assert "Présent" in resp.text
    assert "Logiciels de conception" in resp.text


def test_contact_form(client, contact_sender, profile_row):
    page = client.get("/contact")
    assert "jeanne@example.com" in page.text

    resp = client.post("/contact", data={
        "name": "Paul", "email": "paul@atelier-paul.fr", "subject": "Projet", "message": "Bonjour",
    })
    assert resp.status_code == 200
    assert "Message envoyé" in resp.text
    assert [m.email for m in contact_sender.sent] == ["paul@atelier-paul.fr"]


def test_contact_form_rejects_bad_email(client, contact_sender):
    resp = client.post("/contact", data={"name": "Paul", "email": "nope", "subject": "s", "message": "m"})
    assert resp.status_code == 422
    assert contact_sender.sent == []


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
