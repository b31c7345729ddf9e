from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
import json

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import ValidationError
from .normalizer import format_timestamp
from .scoring import SPRINT_CAPACITY_LIMIT, PriorityBreakdown, capacity_used, total_points

PRIORITY_LEVELS = ("high", "medium", "low")

DEFAULT_QUESTIONS_PATH = Path(__file__).resolve().parent.parent / "data" / "questions.json"


class QuestionType(str, Enum):
    CHECKBOX = "checkbox"  # item is selected explicitly, then given a priority
    PRIORITY = "priority"  # choosing a priority selects the item


QUESTION_TYPES = {question_type.value for question_type in QuestionType}


class SurveyQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    title: str
    type: QuestionType = QuestionType.CHECKBOX
    estimated_hours: Optional[int] = Field(default=None, alias="estimatedHours")


class ItemAnswer(BaseModel):
    selected: bool = False
    priority: Optional[str] = None


class FormContext(BaseModel):
    """Question catalog and form settings for one survey session."""

    form_title: str = "Sprint Prioritization"
    questions: List[SurveyQuestion] = Field(default_factory=list)
    sprint_number: int = 23
    form_version: str = "v2.0-with-priority"
    capacity_limit: int = SPRINT_CAPACITY_LIMIT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **overrides: Any) -> FormContext:
        return cls(
            form_title=data.get("formTitle", "Sprint Prioritization"),
            questions=[
                SurveyQuestion.model_validate(question)
                for question in data.get("questions", [])
                if question.get("type", QuestionType.CHECKBOX.value) in QUESTION_TYPES
            ],
            **overrides,
        )

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides: Any) -> FormContext:
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f), **overrides)

    @classmethod
    def load_default(cls, **overrides: Any) -> FormContext:
        """Catalog shipped with the package."""
        return cls.from_file(DEFAULT_QUESTIONS_PATH, **overrides)


def _is_selected(question: SurveyQuestion, answer: ItemAnswer) -> bool:
    if question.type == QuestionType.PRIORITY:
        return bool(answer.priority)
    return answer.selected


def collect_submission(
    context: FormContext,
    email: Optional[str],
    answers: Mapping[str, Union[ItemAnswer, Mapping[str, Any]]],
    now: Optional[datetime] = None,
    user_agent: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the submit payload from a respondent's answers.

    Applies the rules the form enforces before anything is sent: a valid
    email, at least one selected item, and a priority for each selected item.
    Questions are visited in catalog order so selectedItems keeps form order.
    """
    email = (email or "").strip()
    if "@" not in email:
        raise ValidationError("Please enter a valid email address.")

    selected_items: List[Dict[str, Any]] = []
    responses: Dict[str, Any] = {"email": email}
    breakdown = {level: 0 for level in PRIORITY_LEVELS}
    total_hours = 0
    items_with_tbd = 0

    for question in context.questions:
        raw = answers.get(question.id)
        if raw is None:
            continue
        answer = raw if isinstance(raw, ItemAnswer) else ItemAnswer.model_validate(raw)
        if not _is_selected(question, answer):
            continue

        priority = (answer.priority or "").strip().lower()
        if not priority:
            raise ValidationError("Please select a priority for all selected items.")
        if priority not in PRIORITY_LEVELS:
            raise ValidationError(f"Unknown priority '{answer.priority}' for {question.title}")

        hours = question.estimated_hours
        selected_items.append({
            "id": question.id,
            "title": question.title,
            "estimatedHours": hours,
            "priority": priority,
        })
        responses[f"{question.id}_selected"] = hours if hours is not None else "TBD"
        responses[f"{question.id}_priority"] = priority

        if hours is None:
            items_with_tbd += 1
        else:
            total_hours += hours
        breakdown[priority] += 1

    if not selected_items:
        raise ValidationError("Please select at least one item.")

    counts = PriorityBreakdown(**breakdown)
    payload: Dict[str, Any] = {
        "email": email,
        "timestamp": format_timestamp(now or datetime.now(timezone.utc)),
        "selectedItems": selected_items,
        "totalHours": total_hours,
        "itemsWithTBD": items_with_tbd,
        "capacityUsed": capacity_used(total_hours, context.capacity_limit),
        "priorityBreakdown": breakdown,
        "highPriorityCount": counts.high,
        "mediumPriorityCount": counts.medium,
        "lowPriorityCount": counts.low,
        "totalPoints": total_points(counts),
        "responses": responses,
        "sprintNumber": context.sprint_number,
        "formVersion": context.form_version,
    }
    if user_agent:
        payload["metadata"] = {"userAgent": user_agent}
    return payload
