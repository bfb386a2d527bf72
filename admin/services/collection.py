"""
admin/services/collection.py — Generic entity collection controller
====================================================================

One EntityCollection owns the in-memory copy of one table for a dashboard tab:

  load()          → fetch every row (no pagination); failure leaves it empty
  open_editor()   → create form (defaults) or edit form (from a record)
  submit()        → one insert/update request, then patch the local copy
  remove()        → one delete request after confirmation, then filter it out

Writes are never applied locally before the store confirms them, so a failed
request needs no rollback. There is no conflict detection: last write wins.

Results are returned as Outcome values instead of being shown to the user;
the JSON API and the HTML dashboard each render them their own way.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from admin.services.forms import EditorState, form_from_record, missing_fields
from db.client import BackendError, Store
from db.records import Record

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"        # store/storage request failed, nothing changed locally
    CANCELLED = "cancelled"  # delete not confirmed, no request sent
    INVALID = "invalid"      # required field missing or wrong type, no request sent


@dataclass
class Outcome:
    status: OutcomeStatus
    action: str  # create | update | delete
    message: str
    record: Optional[Record] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "action": self.action,
            "message": self.message,
            "record": self.record.model_dump(mode="json") if self.record else None,
            "errors": self.errors,
        }


@dataclass
class EntitySpec:
    """Everything that differs between two dashboard tabs."""
    name: str
    label: str
    table: str
    record_type: type[Record]
    fields: tuple[str, ...]
    defaults: Callable[[], dict] = dict
    required: tuple[str, ...] = ()
    order: Optional[str] = None
    ascending: bool = True
    singleton: bool = False
    # new rows get order_index = current collection size
    ordered: bool = False
    # last chance to adjust the payload before it is written
    prepare: Optional[Callable[[dict], dict]] = None


class EntityCollection:
    def __init__(self, spec: EntitySpec, store: Store):
        self.spec = spec
        self.store = store
        self.items: list[Record] = []
        self.loaded = False

    def __len__(self) -> int:
        return len(self.items)

    def load(self) -> list[Record]:
        spec = self.spec
        try:
            if spec.singleton:
                rows = [self.store.select_single(spec.table)]
            else:
                rows = self.store.select(spec.table, order=spec.order, ascending=spec.ascending)
            self.items = [spec.record_type.model_validate(row) for row in rows]
        except (BackendError, ValidationError) as e:
            logger.error(f"Failed to load {spec.table}: {e}")
            self.items = []
        self.loaded = True
        return self.items

    def find(self, record_id: str) -> Optional[Record]:
        return next((item for item in self.items if item.id == record_id), None)

    def reconcile(self, saved: Record) -> None:
        """Replace the record with the same id, or append it."""
        if self.find(saved.id) is not None:
            self.items = [saved if item.id == saved.id else item for item in self.items]
        else:
            self.items.append(saved)

    def open_editor(self, existing: Optional[Record] = None) -> EditorState:
        defaults = self.spec.defaults()
        if existing is None and self.spec.singleton and self.items:
            existing = self.items[0]
        if existing is None:
            return EditorState(form={name: defaults.get(name) for name in self.spec.fields})
        return EditorState(
            form=form_from_record(existing, self.spec.fields, defaults),
            editing_id=existing.id,
        )

    def check(self, editor: EditorState) -> Optional[Outcome]:
        """Return an INVALID outcome when a required field is blank."""
        action = "update" if editor.is_edit else "create"
        missing = missing_fields(editor.form, self.spec.required)
        if missing:
            return Outcome(
                OutcomeStatus.INVALID, action,
                f"Missing required field(s): {', '.join(missing)}",
                errors=missing,
            )
        return None

    def submit(self, editor: EditorState) -> Outcome:
        spec = self.spec
        action = "update" if editor.is_edit else "create"

        invalid = self.check(editor)
        if invalid:
            return invalid
        try:
            record = spec.record_type.model_validate(
                {name: editor.form.get(name) for name in spec.fields if editor.form.get(name) is not None}
            )
        except ValidationError as e:
            errors = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            return Outcome(OutcomeStatus.INVALID, action, f"Invalid field(s): {', '.join(errors)}", errors=errors)

        payload = record.model_dump(mode="json", include=set(spec.fields))
        if spec.prepare:
            payload = spec.prepare(payload)

        if not editor.is_edit and spec.singleton:
            logger.error(f"No {spec.table} row loaded; {spec.label} can only be updated")
            return Outcome(OutcomeStatus.FAILED, action, "Save failed")
        if not editor.is_edit and spec.ordered:
            payload["order_index"] = len(self.items)

        try:
            if editor.is_edit:
                row = self.store.update(spec.table, editor.editing_id, payload)
            else:
                row = self.store.insert(spec.table, payload)
            saved = spec.record_type.model_validate(row)
        except (BackendError, ValidationError) as e:
            logger.error(f"Failed to {action} {spec.table} row: {e}")
            return Outcome(OutcomeStatus.FAILED, action, "Save failed")

        self.reconcile(saved)
        logger.info(f"{action.capitalize()}d {spec.table} row {saved.id}")
        verb = "updated" if editor.is_edit else "created"
        return Outcome(OutcomeStatus.SUCCESS, action, f"{spec.label} {verb}", record=saved)

    def remove(self, record: Record, confirmed: bool = False) -> Outcome:
        spec = self.spec
        if spec.singleton:
            return Outcome(OutcomeStatus.INVALID, "delete", f"{spec.label} cannot be deleted", record=record)
        if not confirmed:
            return Outcome(OutcomeStatus.CANCELLED, "delete", "Deletion cancelled", record=record)
        try:
            self.store.delete(spec.table, record.id)
        except BackendError as e:
            logger.error(f"Failed to delete {spec.table} row {record.id}: {e}")
            return Outcome(OutcomeStatus.FAILED, "delete", "Delete failed", record=record)

        self.items = [item for item in self.items if item.id != record.id]
        logger.info(f"Deleted {spec.table} row {record.id}")
        return Outcome(OutcomeStatus.SUCCESS, "delete", f"{spec.label} deleted", record=record)
