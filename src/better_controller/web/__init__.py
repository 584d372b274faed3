"""Web layer - FastAPI/Starlette integration, rendering and response helpers."""

from better_controller.web.app import install
from better_controller.web.csv_export import generate_csv, send_csv
from better_controller.web.rendering import Component, Renderer
from better_controller.web.responses import respond_with_error, respond_with_success, to_xml
from better_controller.web.turbo import TurboStreamRenderer, TurboStreamResponse, dom_id

__all__ = [
    "Component",
    "Renderer",
    "TurboStreamRenderer",
    "TurboStreamResponse",
    "dom_id",
    "generate_csv",
    "install",
    "respond_with_error",
    "respond_with_success",
    "send_csv",
    "to_xml",
]
