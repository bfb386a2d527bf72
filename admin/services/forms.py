"""
admin/services/forms.py — Editor state and form coercion
=========================================================

An editor is the create/edit form of one dashboard tab: a flat dict of field
values plus the id of the record being edited (None when creating).

HTML forms post strings only, so coerce_form() turns them into the types the
record declares: ints for year/level, checkbox presence for booleans, JSON for
list fields. Validation stays at the level of required fields.
"""

import json
import typing
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from db.records import Record


@dataclass
class EditorState:
    form: dict = field(default_factory=dict)
    editing_id: Optional[str] = None

    @property
    def is_edit(self) -> bool:
        return self.editing_id is not None


def _base_type(annotation: Any) -> Any:
    """Optional[int] → int, List[X] → list."""
    if typing.get_origin(annotation) is typing.Union:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        annotation = args[0] if args else str
    origin = typing.get_origin(annotation)
    return origin or annotation


def form_from_record(record: Record, fields: Iterable[str], defaults: Mapping) -> dict:
    """Populate an edit form; NULL columns fall back to the create defaults."""
    form = {}
    dumped = record.model_dump(mode="json")
    for name in fields:
        value = dumped.get(name)
        form[name] = value if value is not None else defaults.get(name)
    return form


def coerce_form(record_type: type[Record], raw: Mapping, fields: Iterable[str], partial: bool = False) -> dict:
    """
    Convert posted HTML form values for `fields` into typed values.

    Booleans follow checkbox semantics: absent or "off"/"false"/"0" is False.
    With partial=True absent fields are left out, booleans included.
    Empty ints become None. List fields are expected as a JSON string.
    """
    out: dict = {}
    for name in fields:
        kind = _base_type(record_type.model_fields[name].annotation)
        value = raw.get(name)
        if partial and name not in raw:
            continue
        if kind is bool:
            out[name] = value is not None and str(value).lower() not in ("", "off", "false", "0")
        elif name not in raw:
            continue
        elif kind is int:
            out[name] = int(value) if str(value).strip() else None
        elif kind is list:
            out[name] = json.loads(value) if str(value).strip() else []
        else:
            out[name] = value
    return out


def missing_fields(form: Mapping, required: Iterable[str]) -> list[str]:
    """Required fields that are absent or blank."""
    missing = []
    for name in required:
        value = form.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def parse_images(raw: Optional[str]) -> list[dict]:
    """A posted JSON list of {url, title} objects; blank means no images."""
    if not raw or not str(raw).strip():
        return []
    images = json.loads(raw)
    if not isinstance(images, list) or not all(isinstance(image, dict) and image.get("url") for image in images):
        raise ValueError("images must be a JSON list of objects with a url")
    return images
