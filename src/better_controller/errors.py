"""Exception hierarchy for better-controller.

Two families live here:
- Service-side errors a service may raise to signal a known failure
  category (not found, validation, authorization).
- Dispatch-time errors raised by the controller layer when a built action
  configuration cannot answer the current request.

Builders never raise; every configuration problem surfaces at dispatch.
"""

from typing import Any


class BetterControllerError(Exception):
    """Base class for all better-controller errors."""


# -- service-side errors ---------------------------------------------------


class NotFoundError(BetterControllerError):
    """The requested resource does not exist."""


class ValidationError(BetterControllerError):
    """Input was rejected by the service.

    Attributes:
        errors: Field -> messages mapping, if the service provided one.
    """

    def __init__(self, message: str = "Validation failed", errors: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class AuthorizationError(BetterControllerError):
    """The current user may not perform this action."""


class ServiceError(BetterControllerError):
    """Raised when a service returns a failed Result.

    Attributes:
        resource: The resource of the failed operation.
        meta: Metadata of the failed operation (message, error_type, ...).
    """

    def __init__(self, resource: Any = None, meta: dict[str, Any] | None = None) -> None:
        self.resource = resource
        self.meta = dict(meta or {})
        super().__init__(self.meta.get("message") or "Operation failed")

    @property
    def errors(self) -> dict[str, Any] | None:
        errors = getattr(self.resource, "errors", None)
        if errors is None:
            return None
        if hasattr(errors, "to_dict"):
            return errors.to_dict()
        return dict(errors)


# -- dispatch-time errors --------------------------------------------------


class ActionNotRegisteredError(BetterControllerError):
    """Dispatch was asked for an action the controller never declared."""

    def __init__(self, controller: str, action: str) -> None:
        self.controller = controller
        self.action = action
        super().__init__(f"Action {action!r} is not registered on {controller}")


class UnconfiguredActionError(BetterControllerError):
    """The action declares nothing to run or render."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(
            f"Action {action!r} has no service, page, component or success handler"
        )


class NoFormatHandlerError(BetterControllerError):
    """No handler answers the negotiated format.

    Attributes:
        action: Action name being dispatched.
        format: Negotiated response format.
        category: Error category when resolving an error table, else None.
    """

    def __init__(self, action: str, format: str, category: str | None = None) -> None:
        self.action = action
        self.format = format
        self.category = category
        where = f" (error category {category!r})" if category else ""
        super().__init__(f"Action {action!r} has no handler for format {format!r}{where}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "action": self.action,
            "format": self.format,
            "category": self.category,
        }


class ParameterMissingError(BetterControllerError):
    """A required request parameter is absent."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"param is missing or the value is empty: {key}")
