"""
FastAPI integration: settings, renderer and exception handlers.

`install()` is the only setup an application needs:

    app = FastAPI()
    install(app, load_settings())
    UsersController.resources(router, "/users")
    app.include_router(router)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from better_controller.config import Settings
from better_controller.errors import (
    ActionNotRegisteredError,
    NoFormatHandlerError,
    ParameterMissingError,
    UnconfiguredActionError,
)
from better_controller.log import controller_logger, log_exception
from better_controller.web.rendering import Renderer

SETTINGS_STATE_ATTR = "better_controller_settings"
RENDERER_STATE_ATTR = "better_controller_renderer"


def app_settings(app: Any) -> Settings | None:
    return getattr(app.state, SETTINGS_STATE_ATTR, None)


def app_renderer(app: Any) -> Renderer | None:
    return getattr(app.state, RENDERER_STATE_ATTR, None)


def install(app: FastAPI, settings: Settings | None = None, renderer: Renderer | None = None) -> Settings:
    """Attach settings and a renderer to `app` and register error handlers."""
    settings = settings or Settings()
    setattr(app.state, SETTINGS_STATE_ATTR, settings)
    setattr(app.state, RENDERER_STATE_ATTR, renderer or Renderer.from_settings(settings))

    def log_enabled(request: Request) -> bool:
        current = app_settings(request.app) or settings
        return current.error_handling.log_errors

    @app.exception_handler(NoFormatHandlerError)
    async def no_format_handler(request: Request, exc: NoFormatHandlerError) -> JSONResponse:
        log_exception(controller_logger("dispatch", exc.action), exc, log_enabled(request),
                      format=exc.format, category=exc.category)
        return JSONResponse(exc.to_dict(), status_code=406)

    @app.exception_handler(ParameterMissingError)
    async def parameter_missing(request: Request, exc: ParameterMissingError) -> JSONResponse:
        return JSONResponse({"error": str(exc), "param": exc.key}, status_code=400)

    @app.exception_handler(ActionNotRegisteredError)
    async def action_not_registered(request: Request, exc: ActionNotRegisteredError) -> JSONResponse:
        log_exception(controller_logger(exc.controller, exc.action), exc, log_enabled(request))
        return JSONResponse(
            {"error": str(exc), "controller": exc.controller, "action": exc.action},
            status_code=500,
        )

    @app.exception_handler(UnconfiguredActionError)
    async def unconfigured_action(request: Request, exc: UnconfiguredActionError) -> JSONResponse:
        log_exception(controller_logger("dispatch", exc.action), exc, log_enabled(request))
        return JSONResponse({"error": str(exc), "action": exc.action}, status_code=500)

    return settings
