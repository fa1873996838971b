"""
Typed failures raised by the lifecycle engine.

The HTTP layer maps each kind to a response; nothing in the core returns
error codes.
"""


class LifecycleError(Exception):
    """Base class for every refusal the engine can raise."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(LifecycleError):
    """A required field is missing, malformed or out of range."""


class NotFoundError(LifecycleError):
    """No incident exists with the requested id."""


class AuthorizationError(LifecycleError):
    """The actor's role or ownership does not permit the action."""


class ConflictError(LifecycleError):
    """A concurrent write changed the incident first; nothing was applied."""
