"""ResponseBuilder - per-format response handlers for one outcome.

An `on_success`/`on_error` configure function receives a ResponseBuilder
and declares one handler per format:

    def created(r):
        r.html(lambda ctx: ctx.controller.redirect("/users"))
        r.json(lambda ctx: {"user": ctx.resource})
        r.turbo_stream(lambda s: s.prepend("users_list", partial="users/user"))

Redeclaring a format replaces the earlier handler silently.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterator

from better_controller.dsl.turbo_frame_builder import TurboFrameBuilder
from better_controller.dsl.turbo_stream_builder import TurboStreamBuilder

Handler = Callable[[Any], Any]


class ResponseFormat(str, Enum):
    """Built-in response formats. Any other string is a valid format key too."""

    HTML = "html"
    JSON = "json"
    XML = "xml"
    CSV = "csv"
    TURBO_STREAM = "turbo_stream"


# Table keys that are not formats but render instructions.
ANY_FORMAT = "any"
TURBO_FRAME = "turbo_frame"
REDIRECT = "redirect"
RENDER_PAGE = "render_page"
RENDER_COMPONENT = "render_component"
RENDER_PARTIAL = "render_partial"


def format_key(fmt: "str | ResponseFormat") -> str:
    return fmt.value if isinstance(fmt, Enum) else str(fmt)


@dataclass(frozen=True)
class Redirect:
    """Redirect instruction. `path` may be a callable taking the context."""

    path: "str | Callable[[Any], str]"
    status: int | None = None
    notice: str | None = None
    alert: str | None = None


@dataclass(frozen=True)
class RenderPage:
    status: int | None = None


@dataclass(frozen=True)
class RenderComponent:
    component: Any
    locals: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    status: int | None = None


@dataclass(frozen=True)
class RenderPartial:
    partial: str
    locals: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    status: int | None = None


class FormatDispatchTable(Mapping):
    """Read-only, insertion-ordered mapping of format key -> handler.

    Values are callables for format handlers, a tuple of StreamOps for
    `turbo_stream`, a FrameConfig for `turbo_frame`, and render instruction
    records for the shortcut keys.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, Any] | None = None) -> None:
        self._entries = dict(entries or {})

    def __getitem__(self, key: Any) -> Any:
        return self._entries[format_key(key)]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, Enum)):
            return False
        return format_key(key) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FormatDispatchTable({list(self._entries)})"

    def resolve(self, fmt: "str | ResponseFormat", fallback: bool = False) -> Any:
        """Exact-key lookup; with `fallback`, the `any` entry answers misses."""
        key = format_key(fmt)
        if key in self._entries:
            return self._entries[key]
        if fallback:
            return self._entries.get(ANY_FORMAT)
        return None


EMPTY_TABLE = FormatDispatchTable()


class ResponseBuilder:
    def __init__(self) -> None:
        self._handlers: dict[str, Any] = {}

    @property
    def handlers(self) -> dict[str, Any]:
        return dict(self._handlers)

    def format(self, name: "str | ResponseFormat", handler: Handler) -> "ResponseBuilder":
        """Register a handler for any format key."""
        self._handlers[format_key(name)] = handler
        return self

    def html(self, handler: Handler) -> "ResponseBuilder":
        return self.format(ResponseFormat.HTML, handler)

    def json(self, handler: Handler) -> "ResponseBuilder":
        return self.format(ResponseFormat.JSON, handler)

    def xml(self, handler: Handler) -> "ResponseBuilder":
        return self.format(ResponseFormat.XML, handler)

    def csv(self, handler: Handler) -> "ResponseBuilder":
        return self.format(ResponseFormat.CSV, handler)

    def any(self, handler: Handler) -> "ResponseBuilder":
        """Fallback handler for formats without an entry (error tables only)."""
        return self.format(ANY_FORMAT, handler)

    def turbo_stream(self, configure: Callable[[TurboStreamBuilder], Any]) -> "ResponseBuilder":
        """Declare the Turbo Stream ops for this outcome."""
        builder = TurboStreamBuilder()
        configure(builder)
        self._handlers[ResponseFormat.TURBO_STREAM.value] = builder.build()
        return self

    def turbo_frame(self, configure: Callable[[TurboFrameBuilder], Any]) -> "ResponseBuilder":
        """Declare what a Turbo Frame request renders for this outcome."""
        builder = TurboFrameBuilder()
        configure(builder)
        self._handlers[TURBO_FRAME] = builder.build()
        return self

    def redirect_to(self, path: "str | Callable[[Any], str]", status: int | None = None,
                    notice: str | None = None, alert: str | None = None) -> "ResponseBuilder":
        """Redirect HTML requests. Without `status`, 303 follows non-GET requests."""
        self._handlers[REDIRECT] = Redirect(path=path, status=status, notice=notice, alert=alert)
        return self

    def render_page(self, status: int | None = None) -> "ResponseBuilder":
        self._handlers[RENDER_PAGE] = RenderPage(status=status)
        return self

    def render_component(self, component: Any, locals: Mapping[str, Any] | None = None,
                         status: int | None = None) -> "ResponseBuilder":
        self._handlers[RENDER_COMPONENT] = RenderComponent(
            component=component,
            locals=MappingProxyType(dict(locals or {})),
            status=status,
        )
        return self

    def render_partial(self, partial: str, locals: Mapping[str, Any] | None = None,
                       status: int | None = None) -> "ResponseBuilder":
        self._handlers[RENDER_PARTIAL] = RenderPartial(
            partial=partial,
            locals=MappingProxyType(dict(locals or {})),
            status=status,
        )
        return self

    def build(self) -> FormatDispatchTable:
        return FormatDispatchTable(self._handlers)

    @classmethod
    def evaluate(cls, configure: Callable[["ResponseBuilder"], Any]) -> FormatDispatchTable:
        """Run `configure` against a fresh builder and return its table."""
        builder = cls()
        configure(builder)
        return builder.build()
