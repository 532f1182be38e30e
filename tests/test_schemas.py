"""Tests for meeting record parsing."""

import json

import pytest

from meetgraph.core.errors import InvalidMeetingError
from meetgraph.core.models import MeetingStatus
from meetgraph.core.schemas import MeetingRecord, load_meetings, parse_meetings

SERIALIZED_MEETING = {
    "id": "2b1f6c1e-9a53-4bfb-9a55-0f5c43b6c001",
    "name": "Sprint Planning",
    "startTime": "2025-01-06T09:00:00.000Z",
    "duration": 3600,
    "status": "completed",
    "coachScore": 78,
    "people": [
        {"id": "p1", "name": "Ada", "email": "ada@example.com", "createdAt": "2025-01-01T00:00:00Z"},
        {"id": "p2", "name": "Linus"},
    ],
    "actionItems": ["a1", "a2", "a3"],
    "previousConnectedMeetings": [],
    "nextConnectedMeetings": ["2b1f6c1e-9a53-4bfb-9a55-0f5c43b6c002"],
    "objectiveId": "obj-1",
    "createdAt": "2025-01-01T00:00:00.000Z",
    "updatedAt": "2025-01-01T00:00:00.000Z",
}


class TestMeetingRecord:
    """Parsing the dashboard's serialized meeting shape."""

    def test_camel_case_fields(self):
        """The dashboard's camelCase fields are read."""
        record = MeetingRecord.model_validate(SERIALIZED_MEETING)
        assert record.name == "Sprint Planning"
        assert record.status == MeetingStatus.COMPLETED
        assert record.coach_score == 78
        assert record.people_count == 2
        assert record.count_action_items() == 3
        assert record.next_connected_meetings == ["2b1f6c1e-9a53-4bfb-9a55-0f5c43b6c002"]
        assert record.objective_id == "obj-1"
        assert record.start_time.tzinfo is not None

    def test_defaults(self):
        """Optional fields fall back to defaults."""
        record = MeetingRecord.model_validate({"id": "m1", "startTime": "2025-01-06T09:00:00"})
        assert record.status == MeetingStatus.SCHEDULED
        assert record.coach_score is None
        assert record.people_count == 0
        assert record.count_action_items() == 0
        assert record.next_connected_meetings == []

    def test_explicit_count_overrides_list(self):
        """actionItemCount wins over the action item list."""
        record = MeetingRecord.model_validate(
            {"id": "m1", "startTime": "2025-01-06T09:00:00", "actionItems": ["a"], "actionItemCount": 4}
        )
        assert record.count_action_items() == 4

    def test_snake_case_construction(self):
        """Records can be built with field names."""
        record = MeetingRecord(id="m1", start_time="2025-01-06T09:00:00", coach_score=50)
        assert record.coach_score == 50

    def test_score_out_of_range(self):
        """Coach scores above 100 are rejected."""
        with pytest.raises(ValueError):
            MeetingRecord.model_validate({"id": "m1", "startTime": "2025-01-06T09:00:00", "coachScore": 140})


class TestParseMeetings:
    """Validation of whole collections."""

    def test_list_and_wrapped_forms(self):
        """Both a bare list and {"meetings": [...]} parse."""
        assert len(parse_meetings([SERIALIZED_MEETING])) == 1
        assert len(parse_meetings({"meetings": [SERIALIZED_MEETING]})) == 1

    def test_missing_start_time_names_record(self):
        """Errors name the record index and field."""
        broken = {"id": "m2", "name": "No time"}
        with pytest.raises(InvalidMeetingError) as exc_info:
            parse_meetings([SERIALIZED_MEETING, broken])
        assert "index 1" in str(exc_info.value)
        assert "startTime" in str(exc_info.value)
        assert exc_info.value.meeting_id == "m2"

    def test_missing_id(self):
        """A record without an ID is rejected."""
        with pytest.raises(InvalidMeetingError):
            parse_meetings([{"name": "Nameless", "startTime": "2025-01-06T09:00:00"}])

    def test_not_a_list(self):
        """A non-list meetings value is rejected."""
        with pytest.raises(InvalidMeetingError):
            parse_meetings({"meetings": "nope"})

    def test_object_without_meetings_key(self):
        """A lone meeting object is rejected rather than read as empty."""
        with pytest.raises(InvalidMeetingError, match="'meetings' key"):
            parse_meetings({"id": "a", "name": "A", "startTime": "2025-03-01T09:00:00Z"})

    def test_empty_wrapper_is_allowed(self):
        """An explicit empty meetings list parses to nothing."""
        assert parse_meetings({"meetings": []}) == []

    def test_load_meetings(self, tmp_path):
        """Meetings load from a JSON file."""
        path = tmp_path / "meetings.json"
        path.write_text(json.dumps([SERIALIZED_MEETING]))
        records = load_meetings(path)
        assert records[0].id == SERIALIZED_MEETING["id"]

    def test_load_malformed_json(self, tmp_path):
        """Broken JSON raises InvalidMeetingError."""
        path = tmp_path / "meetings.json"
        path.write_text("{not json")
        with pytest.raises(InvalidMeetingError, match="Malformed JSON"):
            load_meetings(path)

    def test_load_non_utf8(self, tmp_path):
        """Bytes that are not UTF-8 raise InvalidMeetingError."""
        path = tmp_path / "meetings.json"
        path.write_bytes(b"\xff\xfe[]")
        with pytest.raises(InvalidMeetingError, match="Not UTF-8"):
            load_meetings(path)
