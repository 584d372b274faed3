"""TurboFrameBuilder - what to render for a Turbo Frame request.

Example:
    def frame(f):
        f.component(UserListComponent, locals={"title": "Users"})
        f.layout(True)

The content calls are mutually exclusive and the last one wins without
complaint, so a frame block that names both a component and a partial
renders the partial if it came second.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class FrameContentType(str, Enum):
    COMPONENT = "component"
    PARTIAL = "partial"
    PAGE = "page"


@dataclass(frozen=True)
class FrameContent:
    """Exactly one render target: a component, a partial, or the page."""

    type: FrameContentType
    component: Any = None
    path: str | None = None
    locals: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    status: int | None = None


@dataclass(frozen=True)
class FrameConfig:
    """Built frame instruction. `config` is None when nothing was declared."""

    config: FrameContent | None = None
    layout: bool = False


class TurboFrameBuilder:
    def __init__(self) -> None:
        self._content: FrameContent | None = None
        self._layout: bool | None = None

    def component(self, klass: Any, locals: Mapping[str, Any] | None = None) -> "TurboFrameBuilder":
        """Render a component into the frame."""
        self._content = FrameContent(
            type=FrameContentType.COMPONENT,
            component=klass,
            locals=MappingProxyType(dict(locals or {})),
        )
        return self

    def partial(self, path: str, locals: Mapping[str, Any] | None = None) -> "TurboFrameBuilder":
        """Render a partial template into the frame."""
        self._content = FrameContent(
            type=FrameContentType.PARTIAL,
            path=path,
            locals=MappingProxyType(dict(locals or {})),
        )
        return self

    def render_page(self, status: int | None = None) -> "TurboFrameBuilder":
        """Render the action's page config into the frame."""
        self._content = FrameContent(type=FrameContentType.PAGE, status=status)
        return self

    def layout(self, value: bool) -> "TurboFrameBuilder":
        """Include the application layout (frames skip it by default)."""
        self._layout = value
        return self

    def build(self) -> FrameConfig:
        return FrameConfig(
            config=self._content,
            layout=False if self._layout is None else bool(self._layout),
        )
