"""ActionBuilder - declarative configuration of one controller action.

Example:
    config = (
        ActionBuilder("create")
        .service(CreateUser)
        .permit("name", "email")
        .on_success(lambda r: r.redirect_to("/users", notice="Created"))
        .on_error("validation", lambda r: r.render_page(status=422))
        .build()
    )

Nothing is validated here. A missing service or handler is reported when
the controller dispatches the action.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping

from better_controller.dsl.response_builder import (
    EMPTY_TABLE,
    FormatDispatchTable,
    ResponseBuilder,
)

DEFAULT_SERVICE_METHOD = "call"


class ErrorCategory(str, Enum):
    """Built-in error categories. Custom categories are plain strings."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    ANY = "any"


def enum_value(value: Any) -> str:
    """String form of a name given as a string or an Enum member."""
    return value.value if isinstance(value, Enum) else str(value)


def category_key(category: "str | ErrorCategory") -> str:
    return enum_value(category)


@dataclass(frozen=True)
class ActionConfig:
    """Immutable configuration of one declared action.

    Attributes:
        name: Action name.
        options: Free-form options passed at declaration.
        service: Service class, object or function; None when not set.
        service_method: Method invoked on the service.
        page: Page class producing the page config.
        component: Component class rendered directly.
        component_locals: Default locals for `component`.
        page_config_modifier: Transform applied to the resolved page config.
        turbo_frame: Frame id this action renders into.
        params_key: Key of the nested params mapping (e.g. "user").
        permitted_params: Permitted attributes. None means "do not filter",
            an empty tuple means "permit nothing".
        on_success: Success handlers.
        error_handlers: Error category -> handlers.
        before_callbacks: Run before the service, in declaration order.
        after_callbacks: Run after the service with its result.
    """

    name: str
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    service: Any = None
    service_method: str = DEFAULT_SERVICE_METHOD
    page: Any = None
    component: Any = None
    component_locals: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    page_config_modifier: Callable[[Any], Any] | None = None
    turbo_frame: str | None = None
    params_key: str | None = None
    permitted_params: tuple[Any, ...] | None = None
    on_success: FormatDispatchTable = field(default_factory=lambda: EMPTY_TABLE)
    error_handlers: Mapping[str, FormatDispatchTable] = field(
        default_factory=lambda: MappingProxyType({})
    )
    before_callbacks: tuple[Callable[..., Any], ...] = ()
    after_callbacks: tuple[Callable[..., Any], ...] = ()
    skip_authentication: bool = False
    skip_authorization: bool = False


class ActionBuilder:
    """Accumulates an action's configuration; `build()` snapshots it."""

    def __init__(self, name: str, **options: Any) -> None:
        self.name = str(name)
        self._options = dict(options)
        self._service: Any = None
        self._service_method = DEFAULT_SERVICE_METHOD
        self._page: Any = None
        self._component: Any = None
        self._component_locals: dict[str, Any] = {}
        self._page_config_modifier: Callable[[Any], Any] | None = None
        self._turbo_frame: str | None = None
        self._params_key: str | None = None
        self._permitted: tuple[Any, ...] | None = None
        self._on_success: FormatDispatchTable = EMPTY_TABLE
        self._error_handlers: dict[str, FormatDispatchTable] = {}
        self._before: list[Callable[..., Any]] = []
        self._after: list[Callable[..., Any]] = []
        self._skip_authentication = False
        self._skip_authorization = False

    def service(self, ref: Any, method: str = DEFAULT_SERVICE_METHOD) -> "ActionBuilder":
        """Set the service and the method called on it."""
        self._service = ref
        self._service_method = method
        return self

    def page(self, ref: Any) -> "ActionBuilder":
        """Set the page class that builds the page config."""
        self._page = ref
        return self

    def component(self, ref: Any, locals: Mapping[str, Any] | None = None) -> "ActionBuilder":
        """Set a component rendered directly, with default locals."""
        self._component = ref
        self._component_locals = dict(locals or {})
        return self

    def page_config(self, modifier: Callable[[Any], Any]) -> "ActionBuilder":
        """Transform the page config once it is resolved."""
        self._page_config_modifier = modifier
        return self

    def turbo_frame(self, frame_id: Any) -> "ActionBuilder":
        self._turbo_frame = enum_value(frame_id)
        return self

    def params_key(self, key: str) -> "ActionBuilder":
        self._params_key = key
        return self

    def permit(self, *attrs: Any) -> "ActionBuilder":
        """Permit request attributes. Each call replaces the previous list."""
        self._permitted = tuple(attrs)
        return self

    def on_success(self, configure: Callable[[ResponseBuilder], Any]) -> "ActionBuilder":
        self._on_success = ResponseBuilder.evaluate(configure)
        return self

    def on_error(
        self,
        category: "str | ErrorCategory | Callable[[ResponseBuilder], Any]" = ErrorCategory.ANY,
        configure: Callable[[ResponseBuilder], Any] | None = None,
    ) -> "ActionBuilder":
        """Declare handlers for an error category (default `any`).

        `on_error(fn)` is shorthand for `on_error("any", fn)`. A later call for
        the same category replaces the earlier table entirely.
        """
        if configure is None and callable(category):
            category, configure = ErrorCategory.ANY, category
        if configure is None:
            raise TypeError("on_error() needs a configure callable")
        self._error_handlers[category_key(category)] = ResponseBuilder.evaluate(configure)
        return self

    def before(self, callback: Callable[..., Any]) -> "ActionBuilder":
        self._before.append(callback)
        return self

    def after(self, callback: Callable[..., Any]) -> "ActionBuilder":
        self._after.append(callback)
        return self

    def skip_authentication(self, value: bool = True) -> "ActionBuilder":
        self._skip_authentication = value
        return self

    def skip_authorization(self, value: bool = True) -> "ActionBuilder":
        self._skip_authorization = value
        return self

    def build(self) -> ActionConfig:
        """Snapshot the configuration. Safe to call repeatedly."""
        return ActionConfig(
            name=self.name,
            options=MappingProxyType(dict(self._options)),
            service=self._service,
            service_method=self._service_method,
            page=self._page,
            component=self._component,
            component_locals=MappingProxyType(dict(self._component_locals)),
            page_config_modifier=self._page_config_modifier,
            turbo_frame=self._turbo_frame,
            params_key=self._params_key,
            permitted_params=self._permitted,
            on_success=self._on_success,
            error_handlers=MappingProxyType(dict(self._error_handlers)),
            before_callbacks=tuple(self._before),
            after_callbacks=tuple(self._after),
            skip_authentication=self._skip_authentication,
            skip_authorization=self._skip_authorization,
        )
