"""Tests for the schema layer."""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import label_payload, project_payload, task_payload
from todoist_relay.errors import ErrorKind, ValidationError
from todoist_relay.models import (
    CreateProjectInput,
    CreateTaskInput,
    FilterExpression,
    Label,
    Project,
    Task,
    TaskFilter,
    UpdateTaskInput,
    parse_entity,
    parse_id,
    parse_input,
    parse_listing,
    to_jsonable,
)


# ---------------------------------------------------------------------------
# Upstream entities
# ---------------------------------------------------------------------------


class TestTask:
    def test_parses_full_payload(self):
        task = parse_entity(Task, task_payload())
        assert task.id == "2995104339"
        assert task.due.date == "2016-09-01"
        assert task.due.is_recurring is False

    def test_due_datetime_absent_and_null_are_equivalent(self):
        absent = task_payload()
        null = task_payload(due={
            "date": "2016-09-01",
            "string": "tomorrow",
            "lang": "en",
            "is_recurring": False,
            "datetime": None,
            "timezone": None,
        })

        parsed_absent = parse_entity(Task, absent)
        parsed_null = parse_entity(Task, null)

        assert parsed_absent.due.datetime is None
        assert parsed_absent.due.timezone is None
        assert parsed_absent.model_dump() == parsed_null.model_dump()

    def test_due_may_be_null(self):
        task = parse_entity(Task, task_payload(due=None))
        assert task.due is None

    def test_due_requires_non_empty_date_and_string(self):
        with pytest.raises(PydanticValidationError):
            parse_entity(Task, task_payload(due={"date": "", "string": "tomorrow", "is_recurring": False}))
        with pytest.raises(PydanticValidationError):
            parse_entity(Task, task_payload(due={"date": "2016-09-01", "is_recurring": False}))

    def test_opaque_duration_and_deadline_pass_through(self):
        raw = task_payload(duration={"amount": 15, "unit": "minute"}, deadline={"date": "2024-01-01"})
        task = parse_entity(Task, raw)
        dumped = to_jsonable(task)
        assert dumped["duration"] == {"amount": 15, "unit": "minute"}
        assert dumped["deadline"] == {"date": "2024-01-01"}

    def test_unknown_upstream_fields_are_kept(self):
        task = parse_entity(Task, task_payload(is_pinned=True))
        assert to_jsonable(task)["is_pinned"] is True

    @pytest.mark.parametrize("priority", [0, 5])
    def test_priority_out_of_range_rejected(self, priority):
        with pytest.raises(PydanticValidationError):
            parse_entity(Task, task_payload(priority=priority))

    def test_missing_content_rejected(self):
        raw = task_payload()
        del raw["content"]
        with pytest.raises(PydanticValidationError):
            parse_entity(Task, raw)


class TestProjectAndLabel:
    def test_project_description_absent_null_and_empty_are_equivalent(self):
        absent = project_payload()
        del absent["description"]
        assert parse_entity(Project, absent).description == ""
        assert parse_entity(Project, project_payload(description=None)).description == ""
        assert parse_entity(Project, project_payload(description="")).description == ""

    def test_project_flags(self):
        project = parse_entity(Project, project_payload(is_inbox_project=True, is_favorite=True))
        assert project.is_inbox_project is True
        assert project.is_favorite is True
        assert project.is_team_inbox is False

    def test_label(self):
        label = parse_entity(Label, label_payload())
        assert label.name == "errands"


# ---------------------------------------------------------------------------
# Lenient listings
# ---------------------------------------------------------------------------


class TestParseListing:
    def test_invalid_item_is_passed_through_raw(self, caplog):
        good = task_payload()
        bad = task_payload(id="drifted-77")
        del bad["content"]

        with caplog.at_level(logging.WARNING, logger="todoist_relay.models"):
            result = parse_listing(Task, [good, bad])

        assert len(result) == 2
        assert isinstance(result[0], Task)
        assert result[1] == bad
        assert not isinstance(result[1], Task)
        assert "Schema drift" in caplog.text
        assert "content" in caplog.text
        assert "drifted-77" in caplog.text

    def test_all_valid(self):
        result = parse_listing(Label, [label_payload(), label_payload(id="2", name="home")])
        assert [label.name for label in result] == ["errands", "home"]

    def test_non_list_payload_raises(self):
        with pytest.raises(TypeError):
            parse_listing(Task, {"results": []})


# ---------------------------------------------------------------------------
# Strict input
# ---------------------------------------------------------------------------


class TestParseInput:
    def test_valid_create_input_round_trips(self):
        raw = {
            "content": "Write report",
            "description": "Q3 numbers",
            "project_id": "220",
            "labels": ["work"],
            "priority": 4,
            "due_string": "next monday",
        }
        task = parse_input(CreateTaskInput, raw)
        assert task.to_payload() == raw

    @pytest.mark.parametrize("priority", [0, 5, -1, 10])
    def test_priority_out_of_range(self, priority):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(CreateTaskInput, {"content": "x", "priority": priority})

        error = exc_info.value
        assert error.kind is ErrorKind.VALIDATION
        assert [d["field"] for d in error.details] == ["priority"]

    def test_empty_content_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(CreateTaskInput, {"content": ""})
        assert exc_info.value.details[0]["field"] == "content"

    def test_missing_content_rejected(self):
        with pytest.raises(ValidationError):
            parse_input(CreateTaskInput, {"description": "no title"})

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(CreateTaskInput, {"content": "x", "colour": "red"})
        assert exc_info.value.details[0]["field"] == "colour"

    def test_contradictory_due_fields_forwarded_unchanged(self):
        raw = {"content": "x", "due_string": "tomorrow", "due_date": "2030-01-01", "due_datetime": "2031-01-01T10:00:00Z"}
        assert parse_input(CreateTaskInput, raw).to_payload() == raw

    def test_update_input_all_optional(self):
        updates = parse_input(UpdateTaskInput, {})
        assert updates.to_payload() == {}

    def test_update_input_keeps_only_given_fields(self):
        updates = parse_input(UpdateTaskInput, {"priority": 2, "description": ""})
        assert updates.to_payload() == {"priority": 2, "description": ""}

    def test_update_priority_still_checked(self):
        with pytest.raises(ValidationError):
            parse_input(UpdateTaskInput, {"priority": 5})

    def test_none_treated_as_empty(self):
        with pytest.raises(ValidationError):
            parse_input(CreateProjectInput, None)

    def test_model_instance_returned_as_is(self):
        task = CreateTaskInput(content="x")
        assert parse_input(CreateTaskInput, task) is task

    def test_project_options_split_from_name(self):
        project = parse_input(CreateProjectInput, {"name": "Inbox", "color": "red"})
        assert project.options().to_payload() == {"color": "red"}


# ---------------------------------------------------------------------------
# Task queries
# ---------------------------------------------------------------------------


class TestTaskQueries:
    def test_filter_expression_params(self):
        assert FilterExpression(query="today | overdue").to_params() == {"filter": "today | overdue"}

    def test_task_filter_joins_ids(self):
        query = TaskFilter(project_id="1", ids=["a", "b"])
        assert query.to_params() == {"project_id": "1", "ids": "a,b"}

    def test_task_filter_splits_comma_string(self):
        query = parse_input(TaskFilter, {"ids": "1, 2,3"})
        assert query.ids == ["1", "2", "3"]

    def test_empty_task_filter_has_no_params(self):
        assert TaskFilter().to_params() == {}


# ---------------------------------------------------------------------------
# Resource IDs
# ---------------------------------------------------------------------------


class TestParseId:
    @pytest.mark.parametrize("value", ["2995104339", "6Jf8VQXxpwv56VQ7", "a_b-c"])
    def test_accepts_todoist_ids(self, value):
        assert parse_id(value) == value

    @pytest.mark.parametrize("value", ["", "..", "../projects/5", "1/close", "1?x=2", "a b", None])
    def test_rejects_path_altering_ids(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_id(value, field="task_id")

        error = exc_info.value
        assert error.message == "Invalid task_id"
        assert error.details[0]["field"] == "task_id"
