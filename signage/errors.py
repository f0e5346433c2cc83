class SignageError(Exception):
    """Base class for errors raised by the signage core."""


class NotFoundError(SignageError):
    def __init__(self, entity: str, entity_id: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ValidationFailed(SignageError):
    """Input rejected before any mutation; `errors` maps field name to messages."""

    def __init__(self, errors: dict[str, list[str]], message: str = "Validation failed") -> None:
        self.errors = errors
        self.message = message
        super().__init__(message)

    @classmethod
    def field(cls, name: str, message: str) -> "ValidationFailed":
        return cls({name: [message]})


class TransientStoreError(SignageError):
    pass


class MalformedContentError(SignageError):
    pass
