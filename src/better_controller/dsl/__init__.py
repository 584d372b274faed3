"""DSL package - builders that turn declarations into immutable configs."""

from better_controller.dsl.action_builder import (
    ActionBuilder,
    ActionConfig,
    ErrorCategory,
)
from better_controller.dsl.response_builder import (
    FormatDispatchTable,
    Redirect,
    RenderComponent,
    RenderPage,
    RenderPartial,
    ResponseBuilder,
    ResponseFormat,
)
from better_controller.dsl.turbo_frame_builder import (
    FrameConfig,
    FrameContent,
    FrameContentType,
    TurboFrameBuilder,
)
from better_controller.dsl.turbo_stream_builder import (
    StreamAction,
    StreamOp,
    TurboStreamBuilder,
)

__all__ = [
    "ActionBuilder",
    "ActionConfig",
    "ErrorCategory",
    "FormatDispatchTable",
    "FrameConfig",
    "FrameContent",
    "FrameContentType",
    "Redirect",
    "RenderComponent",
    "RenderPage",
    "RenderPartial",
    "ResponseBuilder",
    "ResponseFormat",
    "StreamAction",
    "StreamOp",
    "TurboFrameBuilder",
    "TurboStreamBuilder",
]
