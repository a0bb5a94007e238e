"""Draft-form workflow around paste segmentation.

This is the confirmation step that follows :func:`.paste.segment_paste`:
the user picks how the pasted text is applied to the list of task drafts
(one task, several tasks, or another existing draft). Nothing here talks to
the collaborator; :func:`build_create_inputs` only produces the payloads a
bulk-create request would carry.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Sequence

from .paste import PasteCandidates, PasteField, PasteResult


class DraftError(ValueError):
    """Raised when a paste choice or a batch of drafts cannot be applied."""


class PasteMode(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    EXISTING = "existing"


@dataclass
class TaskDraft:
    title: str = ""
    description: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_to: list[str] = field(default_factory=list)
    epic: Optional[str] = None
    epic_id: Optional[str] = None
    sprint: Optional[str] = None

    def with_text(self, target: PasteField, text: str) -> "TaskDraft":
        return replace(self, assigned_to=list(self.assigned_to), **{target.value: text})


@dataclass
class EpicForm:
    """Fields shared by every draft in a batch."""

    epic: Optional[str] = None
    epic_id: Optional[str] = None
    sprint: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    assigned_to: list[str] = field(default_factory=list)


def default_mode(result: PasteResult) -> PasteMode:
    """Preselect "multiple" when the classifier found candidates."""
    return PasteMode.MULTIPLE if isinstance(result, PasteCandidates) else PasteMode.SINGLE


def _check_index(drafts: Sequence[TaskDraft], index: int, what: str) -> None:
    if not 0 <= index < len(drafts):
        raise DraftError(f"{what} index {index} is out of range for {len(drafts)} draft(s)")


def apply_paste(
    drafts: Sequence[TaskDraft],
    target_index: int,
    result: PasteResult,
    mode: PasteMode,
    *,
    target_field: Optional[PasteField] = None,
    existing_index: Optional[int] = None,
    defaults: Optional[EpicForm] = None,
) -> list[TaskDraft]:
    """Apply the user's paste choice and return the new draft list.

    Args:
        drafts: Current drafts; left untouched.
        target_index: Draft the text was pasted into.
        result: Classifier output for the pasted text.
        mode: The user's choice.
        target_field: Field to write into; defaults to the field pasted into.
        existing_index: Draft to receive the text in ``existing`` mode.
        defaults: Batch form whose dates seed drafts created in ``multiple`` mode.

    Raises:
        DraftError: On bad indices, or ``multiple`` without candidates.
    """
    _check_index(drafts, target_index, "Target")
    target = PasteField(target_field or result.field)
    mode = PasteMode(mode)
    updated = list(drafts)

    if mode == PasteMode.SINGLE:
        updated[target_index] = updated[target_index].with_text(target, result.text)
        return updated

    if mode == PasteMode.EXISTING:
        if existing_index is None:
            raise DraftError("existing_index is required when pasting into an existing draft")
        _check_index(drafts, existing_index, "Existing")
        if existing_index == target_index:
            raise DraftError("existing_index must differ from the draft the text was pasted into")
        updated[existing_index] = updated[existing_index].with_text(target, result.text)
        return updated

    if not isinstance(result, PasteCandidates) or not result.fragments:
        raise DraftError("No candidate tasks were detected in the pasted text")
    form = defaults or EpicForm()
    first, *rest = result.fragments
    updated[target_index] = updated[target_index].with_text(target, first)
    for fragment in rest:
        updated.append(
            TaskDraft(start_date=form.start_date, end_date=form.end_date).with_text(target, fragment)
        )
    return updated


def build_create_inputs(drafts: Sequence[TaskDraft], form: Optional[EpicForm] = None) -> list[dict[str, Any]]:
    """Merge each draft with the batch form into a create payload.

    The form's epic, epic id and sprint override the draft's own; the draft's
    assignees win over the form's when it has any.
    """
    form = form or EpicForm()
    if not drafts:
        raise DraftError("No tasks to create")

    inputs: list[dict[str, Any]] = []
    for index, draft in enumerate(drafts, start=1):
        if not draft.title.strip():
            raise DraftError(f"Draft {index} has no title; fill in a title for each task")
        inputs.append(
            {
                "title": draft.title.strip(),
                "description": draft.description.strip(),
                "epic": form.epic or draft.epic,
                "epic_id": form.epic_id or draft.epic_id,
                "sprint": form.sprint or draft.sprint,
                "start_date": draft.start_date or form.start_date,
                "end_date": draft.end_date or form.end_date,
                "assigned_to": list(draft.assigned_to or form.assigned_to),
            }
        )
    return inputs
