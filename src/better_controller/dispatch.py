"""Dispatch resolution - choosing what a built ActionConfig does for a request.

These functions hold the rules only; the controller does the I/O. They
raise loudly when a configuration cannot answer, naming the action, format
and error category involved.
"""

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException

from better_controller.dsl.action_builder import ActionConfig, ErrorCategory, category_key
from better_controller.dsl.response_builder import (
    EMPTY_TABLE,
    FormatDispatchTable,
    ResponseFormat,
    format_key,
)
from better_controller.errors import (
    AuthorizationError,
    NoFormatHandlerError,
    NotFoundError,
    ServiceError,
    UnconfiguredActionError,
    ValidationError,
)

# Checked in order; the first matching class wins.
DEFAULT_ERROR_CATEGORIES: tuple[tuple[type[BaseException], str], ...] = (
    (NotFoundError, ErrorCategory.NOT_FOUND.value),
    (ValidationError, ErrorCategory.VALIDATION.value),
    (PydanticValidationError, ErrorCategory.VALIDATION.value),
    (AuthorizationError, ErrorCategory.AUTHORIZATION.value),
)

_STATUS_CATEGORIES = {
    404: ErrorCategory.NOT_FOUND.value,
    401: ErrorCategory.AUTHORIZATION.value,
    403: ErrorCategory.AUTHORIZATION.value,
    422: ErrorCategory.VALIDATION.value,
}

_ERROR_CODE_CATEGORIES = {
    "validation_error": ErrorCategory.VALIDATION.value,
    "database_error": ErrorCategory.VALIDATION.value,
    "authorization_error": ErrorCategory.AUTHORIZATION.value,
    "unauthorized": ErrorCategory.AUTHORIZATION.value,
    "resource_not_found": ErrorCategory.NOT_FOUND.value,
}

_CATEGORY_STATUS = {
    ErrorCategory.NOT_FOUND.value: 404,
    ErrorCategory.AUTHORIZATION.value: 403,
    ErrorCategory.VALIDATION.value: 422,
}

BUILTIN_FORMATS = frozenset(f.value for f in ResponseFormat)


def ensure_configured(config: ActionConfig) -> None:
    """Raise UnconfiguredActionError if the action has nothing to do."""
    if (
        config.service is None
        and config.page is None
        and config.component is None
        and not config.on_success
    ):
        raise UnconfiguredActionError(config.name)


def classify_error(
    error: BaseException,
    extra: "tuple[tuple[type[BaseException], str], ...] | None" = None,
) -> str:
    """Map an exception to an error category.

    `extra` mappings are consulted before the built-in ones.
    """
    if isinstance(error, ServiceError):
        error_type = error.meta.get("error_type")
        if error_type:
            return category_key(error_type)
    if isinstance(error, HTTPException):
        return _STATUS_CATEGORIES.get(error.status_code, ErrorCategory.ANY.value)
    for exc_class, category in tuple(extra or ()) + DEFAULT_ERROR_CATEGORIES:
        if isinstance(error, exc_class):
            return category
    return ErrorCategory.ANY.value


def determine_error_category(result: Any) -> str:
    """Category of a failed (non-raising) result."""
    if not isinstance(result, Mapping):
        return ErrorCategory.ANY.value

    error_type = result.get("error_type")
    if error_type:
        return category_key(error_type)

    category = _ERROR_CODE_CATEGORIES.get(str(result.get("error_code")))
    if category:
        return category

    if result.get("errors") or result.get("validation_errors"):
        return ErrorCategory.VALIDATION.value
    return ErrorCategory.ANY.value


def resolve_error_handlers(config: ActionConfig, category: str) -> FormatDispatchTable:
    """Exact category first, then `any`, else an empty table."""
    handlers = config.error_handlers
    key = category_key(category)
    if key in handlers:
        return handlers[key]
    if ErrorCategory.ANY.value in handlers:
        return handlers[ErrorCategory.ANY.value]
    return EMPTY_TABLE


def resolve_format_handler(
    table: FormatDispatchTable,
    fmt: str,
    action: str,
    category: str | None = None,
    fallback: bool = False,
) -> Any:
    """Return the table entry for `fmt` or raise NoFormatHandlerError."""
    handler = table.resolve(fmt, fallback=fallback)
    if handler is None:
        raise NoFormatHandlerError(action, format_key(fmt), category)
    return handler


def error_status(category: str) -> int:
    return _CATEGORY_STATUS.get(category_key(category), 500)


def resolve_render_target(config: ActionConfig, page_config: Any) -> str:
    """Pick what a default HTML render shows.

    Returns "component", "page" or "template". A component wins unless a
    page-config transform is declared; then a resolved page config wins,
    then the component, then the action's own template.
    """
    if config.component is not None and config.page_config_modifier is None:
        return "component"
    if page_config is not None:
        return "page"
    if config.component is not None:
        return "component"
    return "template"
