"""Form builder service exceptions."""


class FormflowError(Exception):
    """Base exception for form, field, and response operations."""


class ValidationError(FormflowError):
    """Raised when input breaks a structural or business rule.

    Always detected before anything is written.
    """


class NotFound(FormflowError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class IllegalTransition(FormflowError):
    """Raised when a form's lifecycle state forbids the requested operation."""


class FormNotAcceptingResponses(IllegalTransition):
    """Raised when a submission targets a form that is not published."""

    def __init__(self, form_id: object, status: str) -> None:
        self.form_id = form_id
        self.status = status
        super().__init__(f"Form {form_id} is {status} and is not accepting responses")


class StoreError(FormflowError):
    """Raised when the persistent store fails.

    ``transient`` marks failures that were eligible for retry (serialization
    conflicts, dropped connections) but ran out of attempts.
    """

    def __init__(self, message: str, transient: bool = False) -> None:
        self.transient = transient
        super().__init__(message)
