"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class FetchFailure(DomainError):
    """Raised when a topic's replies could not be loaded or subscribed to.

    No partial forest is built; the caller decides whether to retry.
    """

    def __init__(self, topic_id: str, reason: str):
        self.topic_id = topic_id
        self.reason = reason
        super().__init__(f"Failed to sync topic {topic_id}: {reason}")


class WriteFailure(DomainError):
    """Raised when the write path rejects a create, delete or reaction."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} rejected: {reason}")


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")
