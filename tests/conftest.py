"""Pytest configuration and fixtures for better-controller tests."""

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from better_controller import install
from better_controller.config import HtmlSettings, Settings

TEMPLATES = {
    "layout.html": (
        "<html><body>"
        "{% if flash.notice %}<p class=\"notice\">{{ flash.notice }}</p>{% endif %}"
        "{{ content }}"
        "</body></html>"
    ),
    "users/index.html": "<ul>{% for user in collection %}<li>{{ user.name }}</li>{% endfor %}</ul>",
    "users/show.html": "<h1>{{ resource.name }}</h1>",
    "users/row.html": "<li>{{ resource.name }}</li>",
    "users/card.html": "<article>{{ resource.name }}</article>",
    "users/new.html": "<form action=\"/users\" method=\"post\"><input name=\"user[name]\"></form>",
}


@pytest.fixture
def template_dir(tmp_path):
    """Application templates on disk."""
    root = tmp_path / "templates"
    for name, source in TEMPLATES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
    return root


@pytest.fixture
def settings(template_dir):
    return Settings(
        html=HtmlSettings(template_dirs=[str(template_dir)]),
        flash_messages={"errors.validation": "Please fix the errors"},
        mime_types={"pdf": "application/pdf"},
    )


@pytest.fixture
def make_client(settings):
    """Build a TestClient for an app with sessions and better-controller installed.

    Each argument is called with the router so tests choose what to mount.
    Keyword arguments replace top-level settings sections.
    """
    def factory(*mounts, **overrides):
        app = FastAPI()
        app.add_middleware(SessionMiddleware, secret_key="test-secret")
        install(app, settings.model_copy(update=overrides))
        router = APIRouter()
        for mount in mounts:
            mount(router)
        app.include_router(router)
        return TestClient(app)

    return factory
