"""better-controller: declarative controller actions for FastAPI."""

__version__ = "0.4.0"

from better_controller.config import Settings, load_settings
from better_controller.controller import ActionContext, Controller, action
from better_controller.dsl import (
    ActionBuilder,
    ActionConfig,
    ErrorCategory,
    FormatDispatchTable,
    FrameConfig,
    ResponseBuilder,
    ResponseFormat,
    StreamAction,
    StreamOp,
    TurboFrameBuilder,
    TurboStreamBuilder,
)
from better_controller.errors import (
    ActionNotRegisteredError,
    AuthorizationError,
    BetterControllerError,
    NoFormatHandlerError,
    NotFoundError,
    ParameterMissingError,
    ServiceError,
    UnconfiguredActionError,
    ValidationError,
)
from better_controller.page import PageConfig
from better_controller.result import Result
from better_controller.web import Component, Renderer, install

__all__ = [
    "ActionBuilder",
    "ActionConfig",
    "ActionContext",
    "ActionNotRegisteredError",
    "AuthorizationError",
    "BetterControllerError",
    "Component",
    "Controller",
    "ErrorCategory",
    "FormatDispatchTable",
    "FrameConfig",
    "NoFormatHandlerError",
    "NotFoundError",
    "PageConfig",
    "ParameterMissingError",
    "Renderer",
    "ResponseBuilder",
    "ResponseFormat",
    "Result",
    "ServiceError",
    "Settings",
    "StreamAction",
    "StreamOp",
    "TurboFrameBuilder",
    "TurboStreamBuilder",
    "UnconfiguredActionError",
    "ValidationError",
    "__version__",
    "action",
    "install",
    "load_settings",
]
