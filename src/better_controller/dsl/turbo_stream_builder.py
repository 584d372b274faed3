"""TurboStreamBuilder - ordered Turbo Stream operations."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

FLASH_TARGET = "flash"
FLASH_PARTIAL = "shared/flash"
FORM_ERRORS_TARGET = "form_errors"
FORM_ERRORS_PARTIAL = "shared/form_errors"


class StreamAction(str, Enum):
    """Turbo Stream actions."""

    APPEND = "append"
    PREPEND = "prepend"
    REPLACE = "replace"
    UPDATE = "update"
    REMOVE = "remove"
    BEFORE = "before"
    AFTER = "after"
    REFRESH = "refresh"


def _freeze(locals: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(locals or {}))


@dataclass(frozen=True)
class StreamOp:
    """One Turbo Stream instruction.

    Attributes:
        action: What the stream does to the target.
        target: DOM id, enum, or model object resolved to a DOM id at render
            time. None only for `refresh`.
        component: Component class rendered as the stream content.
        partial: Template path rendered as the stream content.
        locals: Template/component variables.
    """

    action: StreamAction
    target: Any = None
    component: Any = None
    partial: str | None = None
    locals: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def has_content(self) -> bool:
        return self.component is not None or self.partial is not None


class TurboStreamBuilder:
    """Accumulates StreamOps in declaration order.

    Every call appends exactly one op; nothing is merged or de-duplicated.
    """

    def __init__(self) -> None:
        self._streams: list[StreamOp] = []

    @property
    def streams(self) -> list[StreamOp]:
        return list(self._streams)

    def _push(
        self,
        action: StreamAction,
        target: Any,
        component: Any = None,
        partial: str | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> "TurboStreamBuilder":
        self._streams.append(
            StreamOp(
                action=action,
                target=target,
                component=component,
                partial=partial,
                locals=_freeze(locals),
            )
        )
        return self

    def append(self, target: Any, component: Any = None, partial: str | None = None,
               locals: Mapping[str, Any] | None = None) -> "TurboStreamBuilder":
        """Append content to the target element."""
        return self._push(StreamAction.APPEND, target, component, partial, locals)

    def prepend(self, target: Any, component: Any = None, partial: str | None = None,
                locals: Mapping[str, Any] | None = None) -> "TurboStreamBuilder":
        """Prepend content to the target element."""
        return self._push(StreamAction.PREPEND, target, component, partial, locals)

    def replace(self, target: Any, component: Any = None, partial: str | None = None,
                locals: Mapping[str, Any] | None = None) -> "TurboStreamBuilder":
        """Replace the target element."""
        return self._push(StreamAction.REPLACE, target, component, partial, locals)

    def update(self, target: Any, component: Any = None, partial: str | None = None,
               locals: Mapping[str, Any] | None = None) -> "TurboStreamBuilder":
        """Replace the target element's content."""
        return self._push(StreamAction.UPDATE, target, component, partial, locals)

    def remove(self, target: Any) -> "TurboStreamBuilder":
        """Remove the target element."""
        return self._push(StreamAction.REMOVE, target)

    def before(self, target: Any, component: Any = None, partial: str | None = None,
               locals: Mapping[str, Any] | None = None) -> "TurboStreamBuilder":
        """Insert content before the target element."""
        return self._push(StreamAction.BEFORE, target, component, partial, locals)

    def after(self, target: Any, component: Any = None, partial: str | None = None,
              locals: Mapping[str, Any] | None = None) -> "TurboStreamBuilder":
        """Insert content after the target element."""
        return self._push(StreamAction.AFTER, target, component, partial, locals)

    def flash(self, type: str = "notice", message: str | None = None) -> "TurboStreamBuilder":
        """Update the flash region with the shared flash partial."""
        return self._push(
            StreamAction.UPDATE,
            FLASH_TARGET,
            partial=FLASH_PARTIAL,
            locals={"type": type, "message": message},
        )

    def form_errors(self, errors: Any = None, target: Any = FORM_ERRORS_TARGET) -> "TurboStreamBuilder":
        """Update the form errors region with the shared errors partial."""
        return self._push(
            StreamAction.UPDATE,
            target,
            partial=FORM_ERRORS_PARTIAL,
            locals={"errors": errors},
        )

    def refresh(self) -> "TurboStreamBuilder":
        """Ask the client to refresh the page (Turbo 8 morphing)."""
        return self._push(StreamAction.REFRESH, None)

    def build(self) -> tuple[StreamOp, ...]:
        """Return the ops in declaration order."""
        return tuple(self._streams)
