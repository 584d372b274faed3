"""Controller base class - runs declared actions for FastAPI requests.

Actions are declared in the class body with `@action`; the decorated
function receives an ActionBuilder and the attribute is replaced by an
async method that dispatches the built configuration:

    class UsersController(Controller):
        @action("index")
        def index(a):
            a.service(ListUsers).page(UsersPage)

        @action("create")
        def create(a):
            a.service(CreateUser).permit("name", "email")
            a.on_success(lambda r: r.redirect_to("/users", notice="Created"))
            a.on_error("validation", lambda r: r.render_page())

    router = APIRouter()
    UsersController.resources(router, "/users")

Dispatch runs authentication, authorization, before callbacks, the service,
page resolution and after callbacks, then renders the negotiated format
from the success table or the matching error table.
"""

import inspect
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Iterable, Mapping, Sequence

from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from markupsafe import Markup
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from better_controller.config import Settings
from better_controller.dispatch import (
    BUILTIN_FORMATS,
    classify_error,
    determine_error_category,
    ensure_configured,
    error_status,
    resolve_error_handlers,
    resolve_format_handler,
    resolve_render_target,
)
from better_controller.dsl.action_builder import ActionBuilder, ActionConfig, ErrorCategory
from better_controller.dsl.response_builder import (
    ANY_FORMAT,
    REDIRECT,
    RENDER_COMPONENT,
    RENDER_PAGE,
    RENDER_PARTIAL,
    TURBO_FRAME,
    FormatDispatchTable,
    Redirect,
    ResponseFormat,
)
from better_controller.dsl.turbo_frame_builder import FrameConfig, FrameContentType
from better_controller.dsl.turbo_stream_builder import StreamOp
from better_controller.errors import (
    ActionNotRegisteredError,
    NoFormatHandlerError,
    ParameterMissingError,
    UnconfiguredActionError,
)
from better_controller.log import controller_logger, log_exception
from better_controller.page import PageConfig, build_page_config
from better_controller.pagination import paginate as paginate_items
from better_controller.params import ParamsMixin, nest_params, permit_params
from better_controller.result import Result, is_collection
from better_controller.web.app import app_renderer, app_settings
from better_controller.web.csv_export import send_csv
from better_controller.web.formats import media_type_for, negotiate_format
from better_controller.web.rendering import Renderer
from better_controller.web.responses import respond_with_error, respond_with_success, xml_response
from better_controller.web.turbo import (
    TurboStreamRenderer,
    TurboStreamResponse,
    current_turbo_frame,
    stream_flash,
    stream_form_errors,
    turbo_frame_request,
)

ACTION_ATTR = "__better_controller_action__"
ERROR_TEMPLATE = "better_controller/error.html"
FRAME_TEMPLATE = "better_controller/frame.html"
DEFAULT_ERROR_MESSAGE = "An error occurred"

# Request parameters that never reach a service.
RESERVED_PARAMS = frozenset({"format"})

# (action, path suffix, methods), in mount order: `new` must precede `{id}`.
REST_ROUTES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("index", "", ("GET",)),
    ("new", "/new", ("GET",)),
    ("create", "", ("POST",)),
    ("show", "/{id}", ("GET",)),
    ("edit", "/{id}/edit", ("GET",)),
    ("update", "/{id}", ("PUT", "PATCH")),
    ("destroy", "/{id}", ("DELETE",)),
)

_STATUS_TITLES = {
    403: "Forbidden",
    404: "Not Found",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}

# Errors that describe a broken request or configuration, not a failed action.
_PASSTHROUGH_ERRORS = (
    ActionNotRegisteredError,
    NoFormatHandlerError,
    ParameterMissingError,
    UnconfiguredActionError,
)

DefaultRenderer = Callable[[], Response]


def action(name: str | None = None, **options: Any) -> Callable[[Callable], Callable]:
    """Mark a class-body function as the configure callable of an action.

    The action name defaults to the function name.
    """
    def decorator(configure: Callable) -> Callable:
        setattr(configure, ACTION_ATTR, (name or configure.__name__, options))
        return configure
    return decorator


def _action_method(name: str) -> Callable:
    async def run(self: "Controller") -> Response:
        return await self.dispatch(name)

    run.__name__ = name
    run.__qualname__ = name
    return run


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def underscore(name: str) -> str:
    """`AdminUsers` -> `admin_users`."""
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


def singularize(word: str) -> str:
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith(("sses", "xes", "ches", "shes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def exception_errors(error: BaseException) -> Any:
    """Field errors carried by an exception, if any."""
    if isinstance(error, PydanticValidationError):
        details: dict[str, list[str]] = {}
        for item in error.errors():
            key = ".".join(str(part) for part in item.get("loc", ())) or "base"
            details.setdefault(key, []).append(item.get("msg", ""))
        return details
    errors = getattr(error, "errors", None)
    if callable(errors):
        return None
    return errors or None


@dataclass
class ActionContext:
    """State of one action dispatch, passed to every format handler.

    Attributes:
        controller: Controller instance handling the request.
        action: Action name.
        format: Negotiated response format.
        params: Merged request parameters.
        result: Unwrapped service result (a dict), or None.
        error: Exception raised by authorization, callbacks or the service.
        error_category: Resolved error category on failure.
        page_config: Resolved (and transformed) page config.
        status: Status the response is rendered with.
    """

    controller: "Controller"
    action: str
    format: str
    params: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    error: BaseException | None = None
    error_category: str | None = None
    page_config: Any = None
    status: int = 200

    @property
    def request(self) -> Request:
        return self.controller.request

    @property
    def success(self) -> bool:
        if self.error is not None:
            return False
        if isinstance(self.result, Mapping):
            return bool(self.result.get("success", True))
        return True

    def _get(self, key: str) -> Any:
        return self.result.get(key) if isinstance(self.result, Mapping) else None

    @property
    def resource(self) -> Any:
        return self._get("resource")

    @property
    def collection(self) -> Any:
        return self._get("collection")

    @property
    def message(self) -> str | None:
        return self._get("message")

    @property
    def errors(self) -> Any:
        errors = self._get("errors") or self._get("validation_errors")
        if errors is None and self.error is not None:
            errors = exception_errors(self.error)
        return errors


class Controller(ParamsMixin):
    """Base class for controllers built from declared actions.

    Class attributes:
        settings: Fallback settings when the app has none installed.
        renderer: Fallback renderer when the app has none installed.
        controller_name: Derived from the class name (`UsersController` -> `users`).
        resource_name: Singular of `controller_name`; the default params key.
        error_categories: Extra `(exception class, category)` pairs checked
            before the built-in ones.
    """

    settings: ClassVar[Settings] = Settings()
    renderer: ClassVar[Renderer | None] = None
    controller_name: ClassVar[str] = "application"
    resource_name: ClassVar[str] = "application"
    error_categories: ClassVar[tuple[tuple[type[BaseException], str], ...]] = ()
    _registered_actions: ClassVar[Mapping[str, ActionConfig]] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "controller_name" not in vars(cls):
            cls.controller_name = underscore(re.sub(r"Controller$", "", cls.__name__)) or "application"
        if "resource_name" not in vars(cls):
            cls.resource_name = singularize(cls.controller_name)

        registered = dict(cls._registered_actions)
        for attr, value in list(vars(cls).items()):
            marker = getattr(value, ACTION_ATTR, None)
            if marker is None:
                continue
            name, options = marker
            builder = ActionBuilder(name, **options)
            value(builder)
            registered[builder.name] = builder.build()
            setattr(cls, attr, _action_method(builder.name))
        cls._registered_actions = MappingProxyType(registered)

    @classmethod
    def register_action(cls, name: str, configure: Callable[[ActionBuilder], Any] | None = None,
                        **options: Any) -> ActionConfig:
        """Declare an action outside the class body."""
        builder = ActionBuilder(name, **options)
        if configure is not None:
            configure(builder)
        config = builder.build()
        cls._registered_actions = MappingProxyType({**cls._registered_actions, config.name: config})
        if not callable(getattr(cls, config.name, None)):
            setattr(cls, config.name, _action_method(config.name))
        return config

    @classmethod
    def registered_actions(cls) -> Mapping[str, ActionConfig]:
        return cls._registered_actions

    @classmethod
    def action_config(cls, name: str) -> ActionConfig:
        config = cls._registered_actions.get(str(name))
        if config is None:
            raise ActionNotRegisteredError(cls.__name__, str(name))
        return config

    # -- routing -----------------------------------------------------------

    @classmethod
    def route(cls, router: APIRouter, path: str, action: str,
              methods: Sequence[str] = ("GET",), **route_options: Any) -> None:
        """Mount one action as a FastAPI endpoint."""
        async def endpoint(request: Request) -> Response:
            return await cls(request).dispatch(action)

        endpoint.__name__ = f"{cls.controller_name}_{action}"
        router.add_api_route(
            path,
            endpoint,
            methods=list(methods),
            name=f"{cls.controller_name}.{action}",
            include_in_schema=False,
            **route_options,
        )

    @classmethod
    def resources(cls, router: APIRouter, prefix: str, only: Iterable[str] | None = None) -> list[str]:
        """Mount the registered REST actions under `prefix`; returns their names."""
        wanted = set(only) if only is not None else None
        mounted = []
        for name, suffix, methods in REST_ROUTES:
            if name not in cls._registered_actions:
                continue
            if wanted is not None and name not in wanted:
                continue
            cls.route(router, f"{prefix.rstrip('/')}{suffix}" or "/", name, methods)
            mounted.append(name)
        return mounted

    # -- instance ------------------------------------------------------------

    def __init__(self, request: Request, settings: Settings | None = None,
                 renderer: Renderer | None = None) -> None:
        self.request = request
        app = request.scope.get("app")
        self.settings = settings or (app_settings(app) if app is not None else None) or type(self).settings
        self.renderer = (
            renderer
            or (app_renderer(app) if app is not None else None)
            or type(self).renderer
            or Renderer.from_settings(self.settings)
        )
        self.params: dict[str, Any] = dict(request.path_params)
        self.flash: dict[str, str] = self._pop_session_flash()
        self.assigns: dict[str, Any] = {}
        self.meta: dict[str, Any] = {}
        self.action_name: str | None = None
        self.context: ActionContext | None = None
        self.log = controller_logger(type(self).__name__)

    @property
    def current_user(self) -> Any:
        """The authenticated user, as set by Starlette's AuthenticationMiddleware."""
        return self.request.scope.get("user")

    def authenticate(self) -> Any:
        """Reject unauthenticated requests by raising (e.g. HTTPException(401))."""
        return None

    def authorize(self, config: ActionConfig) -> Any:
        """Reject unauthorized requests by raising AuthorizationError."""
        return None

    @property
    def frame_request(self) -> bool:
        """True for Turbo Frame requests while Turbo support is enabled."""
        return self.settings.turbo.enabled and turbo_frame_request(self.request)

    @property
    def has_session(self) -> bool:
        return "session" in self.request.scope

    def _pop_session_flash(self) -> dict[str, str]:
        if not self.has_session:
            return {}
        return dict(self.request.session.pop("flash", None) or {})

    async def load_params(self) -> dict[str, Any]:
        """Merge query, body and path parameters (path wins)."""
        params = nest_params(self.request.query_params.multi_items())
        if self.request.method not in ("GET", "HEAD"):
            content_type = self.request.headers.get("content-type", "")
            if "json" in content_type:
                try:
                    body = await self.request.json()
                except ValueError:
                    body = None
                if isinstance(body, dict):
                    params.update(body)
            elif "form" in content_type:
                form = await self.request.form()
                params.update(nest_params(form.multi_items()))
        params.update(self.request.path_params)
        self.params = params
        return params

    # -- dispatch ----------------------------------------------------------

    async def dispatch(self, name: str) -> Response:
        """Run the registered action `name` and render its response."""
        config = self.action_config(name)
        ensure_configured(config)

        self.action_name = config.name
        self.log = controller_logger(type(self).__name__, config.name)
        await self.load_params()
        fmt = negotiate_format(self.request, self.settings.mime_types)
        if fmt == ResponseFormat.TURBO_STREAM.value and not self.settings.turbo.enabled:
            fmt = ResponseFormat.HTML.value
        ctx = ActionContext(controller=self, action=config.name, format=fmt, params=self.params)
        self.context = ctx
        self.log.debug("Processing", tags={"format": fmt})

        if not config.skip_authentication:
            await _resolve(self.authenticate())

        try:
            if not config.skip_authorization:
                await _resolve(self.authorize(config))
            for callback in config.before_callbacks:
                await _resolve(callback(ctx))
            if config.service is not None:
                ctx.result = self.unwrap_result(await self.execute_service(config))
        except _PASSTHROUGH_ERRORS:
            raise
        except Exception as e:
            ctx.error = e
            ctx.error_category = classify_error(e, self.error_categories)
            ctx.result = {
                "success": False,
                "error": str(e),
                "exception": e,
                "resource": getattr(e, "resource", None),
                "errors": exception_errors(e),
            }
            log_exception(self.log, e, self.settings.error_handling.log_errors,
                          category=ctx.error_category)

        ctx.page_config = self.resolve_page_config(config, ctx)

        for callback in config.after_callbacks:
            await _resolve(callback(ctx))

        if ctx.success:
            ctx.status = 200
            self.set_flash(config, ctx)
            return await self.respond_success(config, ctx)

        if ctx.error_category is None:
            ctx.error_category = determine_error_category(ctx.result)
        ctx.status = error_status(ctx.error_category)
        self.set_flash(config, ctx)
        return await self.respond_error(config, ctx)

    async def execute_service(self, config: ActionConfig) -> Any:
        """Invoke the configured service with `params=<service params>`.

        Class or static methods are called on the class itself; otherwise the
        class is instantiated with `build_service_instance`. Objects and
        modules exposing the method, and plain callables, work too. Sync
        services run in the threadpool.
        """
        service = config.service
        method = config.service_method
        params = self.build_service_params(config)

        if inspect.isclass(service):
            static = inspect.getattr_static(service, method, None)
            if isinstance(static, (classmethod, staticmethod)):
                target = getattr(service, method)
            else:
                target = getattr(self.build_service_instance(service, params), method)
        elif callable(getattr(service, method, None)):
            target = getattr(service, method)
        elif callable(service):
            target = service
        else:
            raise TypeError(f"Service {service!r} does not respond to {method!r}")

        if inspect.iscoroutinefunction(target):
            return await target(params=params)
        return await _resolve(await run_in_threadpool(target, params=params))

    def build_service_instance(self, service_class: type, params: dict[str, Any]) -> Any:
        """Instantiate a service; `user` and `params` are passed when accepted."""
        parameters = inspect.signature(service_class).parameters
        kwargs: dict[str, Any] = {}
        if "user" in parameters:
            kwargs["user"] = self.current_user
        if "params" in parameters:
            kwargs["params"] = params
        return service_class(**kwargs)

    def build_service_params(self, config: ActionConfig) -> dict[str, Any]:
        params = self.action_params(config)
        if self.params.get("id") not in (None, ""):
            params = {**params, "id": self.params["id"]}
        return params

    def action_params(self, config: ActionConfig) -> dict[str, Any]:
        """Permitted params: the nested `params_key` mapping, else the flat params."""
        key = config.params_key or self.resource_name
        nested = self.params.get(key)
        if isinstance(nested, Mapping):
            return permit_params(nested, config.permitted_params)
        flat = {k: v for k, v in self.params.items() if k not in RESERVED_PARAMS}
        return permit_params(flat, config.permitted_params)

    def unwrap_result(self, raw: Any) -> dict[str, Any]:
        """Normalize a service return value to a dict."""
        if raw is None:
            return {}
        if isinstance(raw, Result):
            data = {
                "resource": raw.resource,
                "collection": raw.collection,
                "success": raw.success,
                "errors": raw.errors,
                "error_type": raw.meta.get("error_type"),
                "message": raw.message,
            }
            data.update(raw.meta)
            return data
        if isinstance(raw, Mapping):
            return dict(raw)
        if hasattr(raw, "to_dict"):
            converted = raw.to_dict()
            if isinstance(converted, Mapping):
                return dict(converted)
        if is_collection(raw):
            return {"collection": raw, "resource": raw}
        return {"resource": raw}

    def resolve_page_config(self, config: ActionConfig, ctx: ActionContext) -> Any:
        if config.page is not None:
            data = ctx.collection if ctx.collection is not None else ctx.resource
            page_config = build_page_config(config.page, data, config.name, user=self.current_user)
        elif isinstance(ctx.result, Mapping):
            page_config = PageConfig.from_value(ctx.result.get("page_config"))
        else:
            page_config = None

        if page_config is not None and config.page_config_modifier is not None:
            modified = config.page_config_modifier(page_config)
            if modified is not None:
                page_config = modified
        return page_config

    def set_flash(self, config: ActionConfig, ctx: ActionContext) -> None:
        prefix = f"{self.controller_name}.{config.name}"
        if ctx.success:
            message = self.settings.flash_message(f"{prefix}.success", "actions.success")
            if message:
                self.flash["notice"] = message
        else:
            category = ctx.error_category or ErrorCategory.ANY.value
            message = self.settings.flash_message(f"{prefix}.{category}", f"errors.{category}")
            if message:
                self.flash["alert"] = message

    # -- responses -----------------------------------------------------------

    async def respond_success(self, config: ActionConfig, ctx: ActionContext) -> Response:
        table = config.on_success
        fmt = ctx.format
        if fmt == ResponseFormat.HTML.value:
            return await self.render_html(config, table, ctx)
        if fmt == ResponseFormat.TURBO_STREAM.value:
            return await self.render_turbo_stream(config, table, ctx)

        handler = table.resolve(fmt)
        if handler is None and fmt not in BUILTIN_FORMATS:
            handler = resolve_format_handler(table, fmt, config.name)
        default = self.default_renderers(ctx).get(fmt)
        if handler is not None:
            return await self.call_handler(handler, ctx, default)
        return default()

    async def respond_error(self, config: ActionConfig, ctx: ActionContext) -> Response:
        category = ctx.error_category or ErrorCategory.ANY.value
        table = resolve_error_handlers(config, category)
        fmt = ctx.format
        if fmt == ResponseFormat.HTML.value:
            return await self.render_html(config, table, ctx, fallback=True)
        if fmt == ResponseFormat.TURBO_STREAM.value:
            return await self.render_turbo_stream(config, table, ctx, fallback=True)

        handler = table.resolve(fmt, fallback=True)
        if handler is None and fmt not in BUILTIN_FORMATS:
            handler = resolve_format_handler(table, fmt, config.name, category, fallback=True)
        default = self.default_renderers(ctx).get(fmt)
        if handler is not None:
            return await self.call_handler(handler, ctx, default)
        return default()

    def default_renderers(self, ctx: ActionContext) -> dict[str, DefaultRenderer]:
        """Built-in responses for formats without a handler."""
        if ctx.success:
            return {
                ResponseFormat.JSON.value: lambda: self.default_json(ctx),
                ResponseFormat.CSV.value: lambda: self.default_csv(ctx),
                ResponseFormat.XML.value: lambda: self.default_xml(ctx),
            }
        return {
            ResponseFormat.JSON.value: lambda: self.default_json_error(ctx),
            ResponseFormat.CSV.value: lambda: Response(status_code=ctx.status),
            ResponseFormat.XML.value: lambda: self.default_xml_error(ctx),
        }

    async def call_handler(self, handler: Any, ctx: ActionContext,
                           default: DefaultRenderer | None = None) -> Response:
        """Run a format handler and turn its return value into a response.

        A handler returning None falls back to the format's default response.
        """
        value = await _resolve(handler(ctx))
        if value is None:
            if default is not None:
                return default()
            return Response(status_code=204)
        return self.coerce_response(value, ctx.format, ctx.status)

    def coerce_response(self, value: Any, fmt: str, status: int = 200) -> Response:
        if isinstance(value, Response):
            return value
        if fmt == ResponseFormat.HTML.value:
            return HTMLResponse(str(value), status_code=status)
        if fmt == ResponseFormat.TURBO_STREAM.value:
            if isinstance(value, (list, tuple)) and all(isinstance(op, StreamOp) for op in value):
                return self.stream_renderer(self.context).response(value, status)
            return TurboStreamResponse(str(value), status_code=status)
        if fmt == ResponseFormat.JSON.value:
            return JSONResponse(jsonable_encoder(value), status_code=status)
        if fmt == ResponseFormat.XML.value:
            if isinstance(value, (str, bytes)):
                return Response(value, status_code=status, media_type="application/xml")
            return xml_response(value, status_code=status)
        if fmt == ResponseFormat.CSV.value:
            if isinstance(value, (str, bytes)):
                return Response(value, status_code=status, media_type=media_type_for(fmt))
            return self.send_csv(value, status_code=status)
        media_type = media_type_for(fmt, self.settings.mime_types)
        if isinstance(value, (str, bytes)):
            return Response(value, status_code=status, media_type=media_type)
        return JSONResponse(jsonable_encoder(value), status_code=status, media_type=media_type)

    # -- html ---------------------------------------------------------------

    async def render_html(self, config: ActionConfig, table: FormatDispatchTable,
                          ctx: ActionContext, fallback: bool = False) -> Response:
        """HTML precedence: turbo_frame > redirect > html > render shortcuts > default."""
        status = ctx.status
        if self.frame_request and TURBO_FRAME in table:
            return self.render_frame(config, table[TURBO_FRAME], ctx)
        if REDIRECT in table:
            return self.redirect_response(table[REDIRECT], ctx)

        def default() -> Response:
            return self.render_default(config, ctx)

        handler = table.resolve(ResponseFormat.HTML)
        if handler is not None:
            return await self.call_handler(handler, ctx, default)

        if RENDER_PAGE in table:
            return self.render_default(config, ctx, status=table[RENDER_PAGE].status or status)
        if RENDER_COMPONENT in table:
            shortcut = table[RENDER_COMPONENT]
            body = self.renderer.render_component(shortcut.component, self.component_locals(ctx, shortcut.locals))
            if not self.frame_request:
                body = self.renderer.wrap_in_layout(body, self.template_context(ctx))
            return HTMLResponse(body, status_code=shortcut.status or status)
        if RENDER_PARTIAL in table:
            shortcut = table[RENDER_PARTIAL]
            body = self.renderer.render_partial(shortcut.partial, self.template_context(ctx, shortcut.locals))
            return HTMLResponse(body, status_code=shortcut.status or status)

        if fallback and ANY_FORMAT in table:
            return await self.call_handler(table[ANY_FORMAT], ctx, default)
        return default()

    def render_frame(self, config: ActionConfig, frame: FrameConfig, ctx: ActionContext) -> Response:
        """Render a Turbo Frame response; the layout is skipped unless requested."""
        content = frame.config
        status = ctx.status
        if content is None:
            return self.render_default(config, ctx, layout=frame.layout)
        if content.type is FrameContentType.PAGE:
            return self.render_page(config, ctx, status=content.status or status, layout=frame.layout)

        if content.type is FrameContentType.COMPONENT:
            body = self.renderer.render_component(content.component, self.component_locals(ctx, content.locals))
        else:
            body = self.renderer.render_partial(content.path, self.template_context(ctx, content.locals))
        body = self.wrap_frame(config, body)
        if frame.layout:
            body = self.renderer.wrap_in_layout(body, self.template_context(ctx))
        return HTMLResponse(body, status_code=status)

    def wrap_frame(self, config: ActionConfig, body: str) -> str:
        """Wrap `body` in the frame element Turbo expects, unless it is already there."""
        frame_id = current_turbo_frame(self.request) or config.turbo_frame or self.settings.turbo.default_frame
        if not frame_id or f'id="{frame_id}"' in body:
            return body
        return self.renderer.render_template(FRAME_TEMPLATE, {"frame_id": frame_id, "content": Markup(body)})

    def render_page(self, config: ActionConfig, ctx: ActionContext, status: int | None = None,
                    layout: bool | None = None) -> Response:
        """Render the page config, or the default when none resolved."""
        if ctx.page_config is None:
            return self.render_default(config, ctx, status=status, layout=layout)
        if layout is None:
            layout = not self.frame_request
        body = self.renderer.render_page(ctx.page_config, self.template_context(ctx), layout=layout)
        if self.frame_request:
            body = self.wrap_frame(config, body)
        return HTMLResponse(body, status_code=status or ctx.status)

    def render_default(self, config: ActionConfig, ctx: ActionContext, status: int | None = None,
                       layout: bool | None = None) -> Response:
        """Component, page config or `<controller>/<action>` template."""
        status = status or ctx.status
        frame = self.frame_request
        if layout is None:
            layout = not frame
        context = self.template_context(ctx)

        target = resolve_render_target(config, ctx.page_config)
        if target == "component":
            body = self.renderer.render_component(
                config.component, self.component_locals(ctx, config.component_locals)
            )
            if layout:
                body = self.renderer.wrap_in_layout(body, context)
        elif target == "page":
            body = self.renderer.render_page(ctx.page_config, context, layout=layout)
        else:
            template = self.template_path(config.name)
            if not ctx.success and not self.renderer.has_template(template):
                return self.render_error_page(ctx, status, layout)
            body = self.renderer.render_template(template, context, layout=layout)

        if frame:
            body = self.wrap_frame(config, body)
        return HTMLResponse(body, status_code=status)

    def render_error_page(self, ctx: ActionContext, status: int, layout: bool = True) -> Response:
        detailed = self.settings.error_handling.detailed_errors
        context = self.template_context(ctx, {
            "status": status,
            "title": _STATUS_TITLES.get(status, "Error"),
            "message": self.error_message(ctx) if detailed else None,
        })
        body = self.renderer.render_template(ERROR_TEMPLATE, context, layout=layout)
        return HTMLResponse(body, status_code=status)

    def redirect_response(self, redirect: Redirect, ctx: ActionContext) -> Response:
        path = redirect.path(ctx) if callable(redirect.path) else redirect.path
        if redirect.notice:
            self.flash["notice"] = redirect.notice
        if redirect.alert:
            self.flash["alert"] = redirect.alert
        return self.redirect(str(path), status_code=redirect.status)

    def redirect(self, url: str, status_code: int | None = None) -> RedirectResponse:
        """Redirect, keeping the flash for the next request.

        Without a status, non-GET requests get 303 so browsers follow with GET.
        """
        if status_code is None:
            status_code = 302 if self.request.method in ("GET", "HEAD") else 303
        if self.has_session and self.flash:
            self.request.session["flash"] = dict(self.flash)
        return RedirectResponse(url, status_code=status_code)

    def render(self, template: str, status_code: int | None = None, layout: bool | None = None,
               **locals: Any) -> HTMLResponse:
        """Render a template with the action's context plus `locals`."""
        if layout is None:
            layout = not self.frame_request
        context = self.template_context(self.context, locals)
        body = self.renderer.render_template(template, context, layout=layout)
        status = status_code or (self.context.status if self.context else 200)
        return HTMLResponse(body, status_code=status)

    def template_path(self, action_name: str) -> str:
        return f"{self.controller_name}/{action_name}"

    def template_context(self, ctx: ActionContext | None,
                         locals: Mapping[str, Any] | None = None) -> dict[str, Any]:
        context: dict[str, Any] = {
            "request": self.request,
            "controller": self,
            "action_name": self.action_name,
            "params": self.params,
            "flash": self.flash,
            "current_user": self.current_user,
        }
        if ctx is not None:
            context.update({
                "result": ctx.result,
                "resource": ctx.resource,
                "collection": ctx.collection,
                "errors": ctx.errors,
                "error": ctx.error,
                "page_config": ctx.page_config,
            })
        context.update(self.assigns)
        context.update(locals or {})
        return context

    def component_locals(self, ctx: ActionContext, base: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Base locals plus result/resource/collection when present."""
        locals = dict(base or {})
        if ctx.result:
            locals["result"] = ctx.result
        if ctx.resource is not None:
            locals["resource"] = ctx.resource
        if ctx.collection is not None:
            locals["collection"] = ctx.collection
        return locals

    # -- turbo streams -------------------------------------------------------

    def stream_renderer(self, ctx: ActionContext | None) -> TurboStreamRenderer:
        if ctx is None:
            return TurboStreamRenderer(self.renderer)
        return TurboStreamRenderer(
            self.renderer,
            extra_locals=lambda locals: self.component_locals(ctx, locals),
            partial_locals=lambda locals: self.template_context(ctx, locals),
        )

    async def render_turbo_stream(self, config: ActionConfig, table: FormatDispatchTable,
                                  ctx: ActionContext, fallback: bool = False) -> Response:
        entry = table.resolve(ResponseFormat.TURBO_STREAM)
        if entry is None and fallback:
            entry = table.resolve(ANY_FORMAT)
        if entry is None:
            return self.default_turbo_stream(ctx)
        if callable(entry):
            return await self.call_handler(entry, ctx, lambda: self.default_turbo_stream(ctx))
        return self.stream_renderer(ctx).response(entry, ctx.status)

    def default_turbo_stream(self, ctx: ActionContext) -> Response:
        """Flash update, plus form errors on failure."""
        turbo = self.settings.turbo
        html = self.settings.html
        ops: list[StreamOp] = []
        flash_type = "notice" if ctx.success else "alert"
        if turbo.auto_flash:
            ops.append(stream_flash(flash_type, self.flash.get(flash_type), partial=html.flash_partial))
        if not ctx.success and turbo.auto_form_errors and ctx.errors:
            ops.append(stream_form_errors(ctx.errors, partial=html.form_errors_partial))
        return self.stream_renderer(ctx).response(ops, ctx.status)

    # -- json / xml / csv ------------------------------------------------------

    def error_message(self, ctx: ActionContext) -> str:
        if ctx.error is not None:
            if not self.settings.error_handling.detailed_errors:
                return DEFAULT_ERROR_MESSAGE
            return str(ctx.error) or type(ctx.error).__name__
        if isinstance(ctx.result, Mapping):
            return ctx.result.get("error") or ctx.result.get("message") or DEFAULT_ERROR_MESSAGE
        return DEFAULT_ERROR_MESSAGE

    def default_json(self, ctx: ActionContext) -> JSONResponse:
        data = {}
        if isinstance(ctx.result, Mapping):
            data = {k: v for k, v in ctx.result.items() if k not in ("page_config", "exception")}
        return JSONResponse(jsonable_encoder(data), status_code=ctx.status)

    def default_json_error(self, ctx: ActionContext) -> JSONResponse:
        body: dict[str, Any] = {"success": False, "error": self.error_message(ctx)}
        if ctx.errors:
            body["errors"] = ctx.errors
        return JSONResponse(jsonable_encoder(body), status_code=ctx.status)

    def default_xml(self, ctx: ActionContext) -> Response:
        data = ctx.collection if ctx.collection is not None else ctx.resource
        if data is None and isinstance(ctx.result, Mapping):
            data = {k: v for k, v in ctx.result.items() if k not in ("page_config", "exception")}
        return xml_response(data, status_code=ctx.status)

    def default_xml_error(self, ctx: ActionContext) -> Response:
        error: dict[str, Any] = {"message": self.error_message(ctx)}
        if ctx.errors:
            error["errors"] = ctx.errors
        return xml_response({"error": error}, status_code=ctx.status)

    def default_csv(self, ctx: ActionContext) -> Response:
        if ctx.collection is not None:
            records = list(ctx.collection)
        elif ctx.resource is not None:
            records = [ctx.resource]
        else:
            records = []
        if not records:
            return Response(status_code=204)
        return self.send_csv(records, status_code=ctx.status)

    def send_csv(self, collection: Iterable[Any], filename: str | None = None,
                 columns: Sequence[str] | None = None, headers: Mapping[str, str] | None = None,
                 status_code: int = 200) -> Response:
        return send_csv(
            collection,
            filename=filename or f"{self.controller_name}.csv",
            columns=columns,
            headers=headers,
            status_code=status_code,
        )

    def respond_with_success(self, data: Any = None, status_code: int = 200,
                             meta: Mapping[str, Any] | None = None) -> JSONResponse:
        """JSON envelope including this request's `meta` (pagination, ...)."""
        root = self.controller_name if is_collection(data) else self.resource_name
        return respond_with_success(data, self.settings, status_code, {**self.meta, **dict(meta or {})}, root)

    def respond_with_error(self, error: Any = None, status_code: int = 422,
                           meta: Mapping[str, Any] | None = None) -> JSONResponse:
        return respond_with_error(error, self.settings, status_code, {**self.meta, **dict(meta or {})})

    def paginate(self, items: Sequence[Any], per_page: int | None = None) -> list[Any]:
        """Slice `items` by the `page`/`per_page` params and record pagination meta."""
        options = self.settings.pagination
        if not options.enabled:
            return list(items)
        page = self.integer_param("page", 1) or 1
        size = per_page or self.integer_param("per_page", options.per_page) or options.per_page
        pagination = paginate_items(items, page, size, options.max_per_page)
        self.meta["pagination"] = pagination.meta
        return pagination.items
