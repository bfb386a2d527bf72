"""
db/records.py — Record types for the six portfolio tables
==========================================================

Each model mirrors one table of the hosted store. Rows are flat; the only
nested value is Project.images, an ordered list of {url, title}.

Relations are by convention only:
  Project.category  → Category.name  (free text, no id)
  Skill.category    → display group  (free text)

Columns the store may leave NULL are Optional; unknown columns are ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    created_at: Optional[str] = None


class ProjectImage(BaseModel):
    url: str
    title: Optional[str] = None


class Profile(Record):
    name: str = ""
    title: Optional[str] = None
    bio: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    hero_image_url: Optional[str] = None
    logo_type: Optional[str] = "text"
    logo_text: Optional[str] = None
    logo_icon: Optional[str] = "User"
    cv_url: Optional[str] = None
    updated_at: Optional[str] = None


class Project(Record):
    title: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    year: Optional[int] = None
    client: Optional[str] = None
    location: Optional[str] = None
    area: Optional[str] = None
    status: Optional[str] = "completed"
    featured: bool = False
    images: List[ProjectImage] = []
    updated_at: Optional[str] = None


class SocialLink(Record):
    platform: str = ""
    url: str = ""
    icon: Optional[str] = None
    order_index: Optional[int] = None


class Experience(Record):
    type: str = "education"
    title: str = ""
    institution: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    current: bool = False
    description: Optional[str] = None
    order_index: Optional[int] = None


class Skill(Record):
    name: str = ""
    category: Optional[str] = None
    level: Optional[int] = 3  # 1-5 expected, not clamped
    order_index: Optional[int] = None


class Category(Record):
    name: str = ""
    description: Optional[str] = None
    color: Optional[str] = "#8B5CF6"
    order_index: Optional[int] = None


# table name → record type
TABLES = {
    "profiles": Profile,
    "projects": Project,
    "social_links": SocialLink,
    "experiences": Experience,
    "skills": Skill,
    "project_categories": Category,
}
