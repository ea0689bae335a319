from dataclasses import dataclass


class SchedulingError(Exception):
    pass


@dataclass
class FieldError:
    """A validation failure tied to one form field."""
    field: str
    message: str


class DraftValidationError(SchedulingError):
    def __init__(self, error: FieldError):
        super().__init__(f"{error.field}: {error.message}")
        self.error = error


class PersistenceError(SchedulingError):
    """A schedule or template store call failed."""
    pass
