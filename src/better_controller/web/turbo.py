"""Hotwire Turbo support: request detection and Turbo Stream rendering."""

from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

from markupsafe import Markup
from starlette.requests import Request
from starlette.responses import Response

from better_controller.dsl.turbo_stream_builder import (
    FLASH_PARTIAL,
    FLASH_TARGET,
    FORM_ERRORS_PARTIAL,
    FORM_ERRORS_TARGET,
    StreamAction,
    StreamOp,
)
from better_controller.web.formats import TURBO_STREAM_MIME
from better_controller.web.rendering import Renderer

STREAM_TEMPLATE = "better_controller/turbo_stream.html"

LocalsHook = Callable[[Mapping[str, Any]], dict[str, Any]]


class TurboStreamResponse(Response):
    media_type = TURBO_STREAM_MIME


def turbo_frame_request(request: Request) -> bool:
    return bool(request.headers.get("turbo-frame"))


def current_turbo_frame(request: Request) -> str | None:
    return request.headers.get("turbo-frame") or None


def turbo_stream_request(request: Request) -> bool:
    if request.query_params.get("format") == "turbo_stream":
        return True
    return TURBO_STREAM_MIME in request.headers.get("accept", "")


def turbo_native_app(request: Request) -> bool:
    return "Turbo Native" in request.headers.get("user-agent", "")


def dom_id(record: Any, prefix: str | None = None) -> str:
    """DOM id for a model object: `user_42`, or `new_user` when unsaved."""
    name = type(record).__name__.lower()
    identifier = getattr(record, "id", None)
    base = f"{name}_{identifier}" if identifier is not None else f"new_{name}"
    return f"{prefix}_{base}" if prefix else base


def resolve_target(target: Any) -> str | None:
    """Strings and enums are ids already; objects use `dom_id`."""
    if target is None:
        return None
    if isinstance(target, Enum):
        return str(target.value)
    if isinstance(target, str):
        return target
    custom = getattr(target, "dom_id", None)
    if custom is not None:
        return str(custom() if callable(custom) else custom)
    return dom_id(target)


class TurboStreamRenderer:
    """Turns StreamOps into `<turbo-stream>` markup, in order.

    Args:
        renderer: Jinja2 renderer for partials and components.
        extra_locals: Called with each op's locals; its result is what
            components receive (the controller adds result/resource).
        partial_locals: Same for partials (the controller adds its
            template context).
    """

    def __init__(self, renderer: Renderer,
                 extra_locals: LocalsHook | None = None,
                 partial_locals: LocalsHook | None = None) -> None:
        self.renderer = renderer
        self.extra_locals = extra_locals
        self.partial_locals = partial_locals

    def content_for(self, op: StreamOp) -> str | None:
        if op.component is not None:
            locals = dict(op.locals)
            if self.extra_locals is not None:
                locals = self.extra_locals(op.locals)
            return self.renderer.render_component(op.component, locals)
        if op.partial is not None:
            locals = dict(op.locals)
            if self.partial_locals is not None:
                locals = self.partial_locals(op.locals)
            return self.renderer.render_partial(op.partial, locals)
        return None

    def render_op(self, op: StreamOp) -> str:
        action = StreamAction(op.action)
        if action is StreamAction.REFRESH:
            target, content = None, None
        elif action is StreamAction.REMOVE:
            target, content = resolve_target(op.target), None
        else:
            target = resolve_target(op.target)
            rendered = self.content_for(op)
            content = Markup(rendered) if rendered is not None else Markup("")
        return self.renderer.render_template(
            STREAM_TEMPLATE,
            {"action": action.value, "target": target, "content": content},
        ).strip()

    def render(self, ops: Iterable[StreamOp]) -> str:
        return "\n".join(self.render_op(op) for op in ops)

    def response(self, ops: Iterable[StreamOp], status_code: int = 200) -> TurboStreamResponse:
        return TurboStreamResponse(self.render(ops), status_code=status_code)


def stream(action: "StreamAction | str", target: Any = None, **options: Any) -> StreamOp:
    """Build one StreamOp outside the DSL (component/partial/locals options)."""
    return StreamOp(
        action=StreamAction(action),
        target=target,
        component=options.get("component"),
        partial=options.get("partial"),
        locals=MappingProxyType(dict(options.get("locals") or {})),
    )


def stream_append(target: Any, **options: Any) -> StreamOp:
    return stream(StreamAction.APPEND, target, **options)


def stream_prepend(target: Any, **options: Any) -> StreamOp:
    return stream(StreamAction.PREPEND, target, **options)


def stream_replace(target: Any, **options: Any) -> StreamOp:
    return stream(StreamAction.REPLACE, target, **options)


def stream_update(target: Any, **options: Any) -> StreamOp:
    return stream(StreamAction.UPDATE, target, **options)


def stream_remove(target: Any) -> StreamOp:
    return stream(StreamAction.REMOVE, target)


def stream_before(target: Any, **options: Any) -> StreamOp:
    return stream(StreamAction.BEFORE, target, **options)


def stream_after(target: Any, **options: Any) -> StreamOp:
    return stream(StreamAction.AFTER, target, **options)


def stream_flash(type: str = "notice", message: str | None = None,
                 partial: str = FLASH_PARTIAL) -> StreamOp:
    locals: dict[str, Any] = {"type": type}
    if message:
        locals["message"] = message
    return stream_update(FLASH_TARGET, partial=partial, locals=locals)


def stream_form_errors(errors: Any, target: Any = FORM_ERRORS_TARGET,
                       partial: str = FORM_ERRORS_PARTIAL) -> StreamOp:
    return stream_update(target, partial=partial, locals={"errors": errors})
