class PollError(Exception):
    """Base error for failures around poll storage and requests."""


class ValidationError(PollError):
    """Raised when a request is malformed or not allowed."""


class PollNotFoundError(PollError):
    """Raised when a poll does not exist in storage."""

    def __init__(self, poll_id: str):
        super().__init__(f"Poll not found: {poll_id}")
        self.poll_id = poll_id


class StorageError(PollError):
    """Raised when the database fails underneath an otherwise valid request."""
