"""
Exceptions raised across the course advisor pipeline.
"""


class CourseAdvisorError(Exception):
    """Base class for all course advisor errors."""


class ServiceUnavailable(CourseAdvisorError):
    """External text-generation service unreachable, timed out or malformed."""


class ExtractionUnavailable(ServiceUnavailable):
    pass


class NarrationUnavailable(ServiceUnavailable):
    pass


class PersistenceFailure(CourseAdvisorError):
    """Conversation store could not be read or written."""


class InvalidCriteria(CourseAdvisorError):
    """A single criteria field carried a malformed value."""

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class CatalogUnavailable(CourseAdvisorError):
    """Course catalog could not be loaded."""


class ConversationNotFound(CourseAdvisorError):
    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation not found: {conversation_id}")
