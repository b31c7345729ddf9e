"""Tests for turning form answers into a submit payload."""

import pytest

from sprint_survey.core.exceptions import ValidationError
from sprint_survey.services.form_builder import (
    FormContext,
    ItemAnswer,
    QuestionType,
    SurveyQuestion,
    collect_submission,
)
from sprint_survey.services.normalizer import SubmissionNormalizer


@pytest.fixture
def context():
    return FormContext(
        form_title="Sprint 23 Prioritization",
        questions=[
            SurveyQuestion(id="question1", title="Feedback pointers", estimated_hours=8),
            SurveyQuestion(id="question2", title="Acknowledgment button", estimated_hours=12),
            SurveyQuestion(id="question3", title="Communication emails"),
            SurveyQuestion(id="question4", title="Manager dashboard", type=QuestionType.PRIORITY, estimated_hours=16),
        ],
    )


def test_default_catalog_loads():
    context = FormContext.load_default()

    assert context.form_title == "Sprint 23 Prioritization"
    assert context.sprint_number == 23
    assert [q.id for q in context.questions][:2] == ["question1", "question2"]
    # The email question is not a selectable item
    assert all(q.id != "email" for q in context.questions)


def test_from_dict_skips_other_question_types():
    context = FormContext.from_dict(
        {
            "formTitle": "Custom",
            "questions": [
                {"id": "email", "title": "Email", "type": "email"},
                {"id": "q1", "title": "One", "estimatedHours": 5},
                {"id": "q2", "title": "Two", "type": "priority"},
            ],
        },
        sprint_number=30,
    )

    assert context.form_title == "Custom"
    assert [q.id for q in context.questions] == ["q1", "q2"]
    assert context.questions[0].estimated_hours == 5
    assert context.questions[1].type == QuestionType.PRIORITY
    assert context.sprint_number == 30


def test_collects_selected_items_in_form_order(context, now, now_iso):
    payload = collect_submission(
        context,
        " dev@example.com ",
        {
            "question3": {"selected": True, "priority": "Medium"},
            "question1": ItemAnswer(selected=True, priority="high"),
            "question2": {"selected": False, "priority": "low"},
        },
        now=now,
        user_agent="Mozilla/5.0",
    )

    assert payload["email"] == "dev@example.com"
    assert payload["timestamp"] == now_iso
    assert [item["id"] for item in payload["selectedItems"]] == ["question1", "question3"]
    assert payload["selectedItems"][1]["estimatedHours"] is None
    assert payload["totalHours"] == 8
    assert payload["itemsWithTBD"] == 1
    assert payload["capacityUsed"] == 3
    assert payload["priorityBreakdown"] == {"high": 1, "medium": 1, "low": 0}
    assert payload["highPriorityCount"] == 1
    assert payload["totalPoints"] == 50
    assert payload["responses"] == {
        "email": "dev@example.com",
        "question1_selected": 8,
        "question1_priority": "high",
        "question3_selected": "TBD",
        "question3_priority": "medium",
    }
    assert payload["metadata"] == {"userAgent": "Mozilla/5.0"}


def test_priority_question_selected_by_priority(context, now):
    payload = collect_submission(context, "dev@example.com", {"question4": {"priority": "low"}}, now=now)

    assert payload["selectedItems"] == [
        {"id": "question4", "title": "Manager dashboard", "estimatedHours": 16, "priority": "low"}
    ]
    assert "metadata" not in payload


def test_payload_is_accepted_by_normalizer(context, now):
    payload = collect_submission(
        context,
        "dev@example.com",
        {"question1": {"selected": True, "priority": "high"}, "question2": {"selected": True, "priority": "high"}},
        now=now,
    )

    record = SubmissionNormalizer().normalize(payload, now=now)

    assert record.total_hours == 20
    assert record.total_points == 60
    assert record.priority_profile.value == "high-focused"


@pytest.mark.parametrize("email", [None, "", "not-an-email"])
def test_invalid_email(context, email):
    with pytest.raises(ValidationError, match="valid email"):
        collect_submission(context, email, {"question1": {"selected": True, "priority": "high"}})


def test_selected_item_without_priority(context):
    with pytest.raises(ValidationError, match="priority for all selected items"):
        collect_submission(context, "dev@example.com", {"question1": {"selected": True}})


def test_unknown_priority(context):
    with pytest.raises(ValidationError, match="Unknown priority"):
        collect_submission(context, "dev@example.com", {"question1": {"selected": True, "priority": "urgent"}})


def test_nothing_selected(context):
    with pytest.raises(ValidationError, match="at least one item"):
        collect_submission(context, "dev@example.com", {"question2": {"selected": False}})
