"""Exceptions raised by the meeting graph engine."""


class MeetgraphError(ValueError):
    """Base class for contract violations on engine inputs."""


class InvalidMeetingError(MeetgraphError):
    """A meeting record is missing a required field or reuses an ID."""

    def __init__(self, message: str, meeting_id: str = ""):
        super().__init__(message)
        self.meeting_id = meeting_id


class LayoutError(MeetgraphError):
    """Layout parameters cannot produce a valid drawing."""
