"""Tests for Turbo request helpers and Turbo Stream rendering."""

from dataclasses import dataclass
from enum import Enum

import pytest
from starlette.requests import Request

from better_controller.dsl import StreamAction, TurboStreamBuilder
from better_controller.web.rendering import Component, Renderer
from better_controller.web.turbo import (
    TurboStreamRenderer,
    current_turbo_frame,
    dom_id,
    resolve_target,
    stream_after,
    stream_append,
    stream_before,
    stream_flash,
    stream_form_errors,
    stream_prepend,
    stream_remove,
    stream_replace,
    turbo_frame_request,
    turbo_native_app,
    turbo_stream_request,
)


@dataclass
class User:
    id: int | None
    name: str = "Ada"


class Targets(Enum):
    LIST = "users_list"


class Badge(Component):
    template_name = "badge"


def make_request(headers: dict[str, str] | None = None, query: str = "") -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": query.encode(),
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    })


@pytest.fixture
def renderer(tmp_path):
    (tmp_path / "users").mkdir()
    (tmp_path / "users" / "row.html").write_text("<li>{{ name }}</li>")
    (tmp_path / "badge.html").write_text("<b>{{ label }}</b>")
    return Renderer([tmp_path])


class TestRequestHelpers:
    def test_turbo_frame_request(self):
        request = make_request({"Turbo-Frame": "users_frame"})
        assert turbo_frame_request(request) is True
        assert current_turbo_frame(request) == "users_frame"
        assert turbo_frame_request(make_request()) is False
        assert current_turbo_frame(make_request()) is None

    def test_turbo_stream_request(self):
        assert turbo_stream_request(make_request({"Accept": "text/vnd.turbo-stream.html, text/html"}))
        assert turbo_stream_request(make_request(query="format=turbo_stream"))
        assert not turbo_stream_request(make_request({"Accept": "text/html"}))

    def test_turbo_native_app(self):
        assert turbo_native_app(make_request({"User-Agent": "MyApp Turbo Native iOS"}))
        assert not turbo_native_app(make_request({"User-Agent": "Mozilla/5.0"}))


class TestDomId:
    def test_saved_and_new_records(self):
        assert dom_id(User(42)) == "user_42"
        assert dom_id(User(None)) == "new_user"
        assert dom_id(User(7), prefix="edit") == "edit_user_7"

    def test_resolve_target(self):
        assert resolve_target("flash") == "flash"
        assert resolve_target(Targets.LIST) == "users_list"
        assert resolve_target(User(3)) == "user_3"
        assert resolve_target(None) is None

    def test_custom_dom_id(self):
        class Row:
            def dom_id(self):
                return "row-1"

        assert resolve_target(Row()) == "row-1"


class TestTurboStreamRenderer:
    def test_renders_ops_in_order(self, renderer):
        ops = (
            TurboStreamBuilder()
            .append("users", partial="users/row", locals={"name": "Ada"})
            .remove(User(5))
            .refresh()
            .build()
        )

        body = TurboStreamRenderer(renderer).render(ops)
        lines = body.split("\n")

        assert lines[0] == (
            '<turbo-stream action="append" target="users"><template><li>Ada</li></template></turbo-stream>'
        )
        assert lines[1] == '<turbo-stream action="remove" target="user_5"></turbo-stream>'
        assert lines[2] == '<turbo-stream action="refresh"></turbo-stream>'

    def test_component_content_uses_extra_locals(self, renderer):
        ops = TurboStreamBuilder().replace("badge", component=Badge, locals={"label": "x"}).build()
        stream_renderer = TurboStreamRenderer(renderer, extra_locals=lambda locals: {**locals, "label": "NEW"})

        assert "<b>NEW</b>" in stream_renderer.render(ops)

    def test_content_is_escaped_in_partials(self, renderer):
        ops = TurboStreamBuilder().append("users", partial="users/row", locals={"name": "<script>"}).build()
        body = TurboStreamRenderer(renderer).render(ops)
        assert "&lt;script&gt;" in body
        assert "<li>" in body

    def test_response_media_type(self, renderer):
        response = TurboStreamRenderer(renderer).response([stream_remove("x")], status_code=422)
        assert response.status_code == 422
        assert response.media_type == "text/vnd.turbo-stream.html"

    def test_builtin_flash_and_form_errors_partials(self, renderer):
        body = TurboStreamRenderer(renderer).render([
            stream_flash("alert", "Could not save"),
            stream_form_errors({"name": ["can't be blank"]}),
        ])
        assert 'target="flash"' in body
        assert "flash-alert" in body
        assert "Could not save" in body
        assert 'target="form_errors"' in body
        assert "name can&#39;t be blank" in body


class TestStreamHelpers:
    def test_stream_append(self):
        op = stream_append("list", partial="p", locals={"a": 1})
        assert op.action is StreamAction.APPEND
        assert op.partial == "p"
        assert dict(op.locals) == {"a": 1}

    def test_stream_flash_without_message(self):
        op = stream_flash()
        assert dict(op.locals) == {"type": "notice"}

    @pytest.mark.parametrize("helper, action", [
        (stream_prepend, StreamAction.PREPEND),
        (stream_replace, StreamAction.REPLACE),
        (stream_before, StreamAction.BEFORE),
        (stream_after, StreamAction.AFTER),
    ])
    def test_positional_helpers(self, helper, action):
        op = helper("user_1", component=Badge)
        assert op.action is action
        assert op.target == "user_1"
        assert op.component is Badge
