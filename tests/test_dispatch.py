"""Tests for dispatch resolution rules."""

import pytest
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException

from better_controller.dispatch import (
    classify_error,
    determine_error_category,
    ensure_configured,
    error_status,
    resolve_error_handlers,
    resolve_format_handler,
    resolve_render_target,
)
from better_controller.dsl import ActionBuilder
from better_controller.dsl.response_builder import EMPTY_TABLE
from better_controller.errors import (
    AuthorizationError,
    NoFormatHandlerError,
    NotFoundError,
    ServiceError,
    UnconfiguredActionError,
    ValidationError,
)
from better_controller.page import PageConfig


def handler(ctx):
    return None


class Model(BaseModel):
    age: int


class RecordMissing(Exception):
    pass


class TestEnsureConfigured:
    def test_empty_action_raises(self):
        with pytest.raises(UnconfiguredActionError) as exc:
            ensure_configured(ActionBuilder("show").build())
        assert exc.value.action == "show"
        assert "show" in str(exc.value)

    @pytest.mark.parametrize("configure", [
        lambda b: b.service(object),
        lambda b: b.page(object),
        lambda b: b.component(object),
        lambda b: b.on_success(lambda r: r.json(handler)),
    ])
    def test_any_slot_is_enough(self, configure):
        builder = ActionBuilder("show")
        configure(builder)
        ensure_configured(builder.build())


class TestClassifyError:
    def test_builtin_errors(self):
        assert classify_error(NotFoundError()) == "not_found"
        assert classify_error(ValidationError()) == "validation"
        assert classify_error(AuthorizationError()) == "authorization"
        assert classify_error(RuntimeError("boom")) == "any"

    def test_pydantic_validation_error(self):
        with pytest.raises(PydanticValidationError) as exc:
            Model(age="not a number")
        assert classify_error(exc.value) == "validation"

    @pytest.mark.parametrize("status,category", [
        (404, "not_found"),
        (401, "authorization"),
        (403, "authorization"),
        (422, "validation"),
        (500, "any"),
    ])
    def test_http_exception_by_status(self, status, category):
        assert classify_error(HTTPException(status_code=status)) == category

    def test_service_error_uses_error_type(self):
        error = ServiceError(meta={"error_type": "authorization", "message": "no"})
        assert classify_error(error) == "authorization"
        assert classify_error(ServiceError()) == "any"

    def test_extra_mappings_come_first(self):
        extra = ((RecordMissing, "not_found"), (NotFoundError, "gone"))
        assert classify_error(RecordMissing(), extra) == "not_found"
        assert classify_error(NotFoundError(), extra) == "gone"

    def test_lookup_error_is_not_not_found(self):
        assert classify_error(KeyError("x")) == "any"


class TestDetermineErrorCategory:
    @pytest.mark.parametrize("result,category", [
        ({"error_type": "not_found"}, "not_found"),
        ({"error_code": "validation_error"}, "validation"),
        ({"error_code": "database_error"}, "validation"),
        ({"error_code": "authorization_error"}, "authorization"),
        ({"error_code": "unauthorized"}, "authorization"),
        ({"error_code": "resource_not_found"}, "not_found"),
        ({"errors": {"name": ["blank"]}}, "validation"),
        ({"validation_errors": ["bad"]}, "validation"),
        ({"errors": {}}, "any"),
        ({"success": False}, "any"),
        (None, "any"),
    ])
    def test_categories(self, result, category):
        assert determine_error_category(result) == category


class TestResolveErrorHandlers:
    def test_exact_then_any_then_empty(self):
        config = (
            ActionBuilder("update")
            .on_error("validation", lambda r: r.json(handler))
            .on_error(lambda r: r.html(handler))
            .build()
        )

        assert list(resolve_error_handlers(config, "validation")) == ["json"]
        assert list(resolve_error_handlers(config, "not_found")) == ["html"]

    def test_no_handlers(self):
        config = ActionBuilder("update").build()
        assert resolve_error_handlers(config, "validation") is EMPTY_TABLE


class TestResolveFormatHandler:
    def test_returns_entry(self):
        table = ActionBuilder("x").on_success(lambda r: r.format("pdf", handler)).build().on_success
        assert resolve_format_handler(table, "pdf", "export") is handler

    def test_missing_entry_names_action_format_category(self):
        with pytest.raises(NoFormatHandlerError) as exc:
            resolve_format_handler(EMPTY_TABLE, "pdf", "export", "validation")

        error = exc.value
        assert (error.action, error.format, error.category) == ("export", "pdf", "validation")
        assert error.to_dict()["format"] == "pdf"
        assert "export" in str(error) and "pdf" in str(error) and "validation" in str(error)

    def test_fallback_to_any(self):
        table = ActionBuilder("x").on_error(lambda r: r.any(handler)).build().error_handlers["any"]
        assert resolve_format_handler(table, "pdf", "x", fallback=True) is handler
        with pytest.raises(NoFormatHandlerError):
            resolve_format_handler(table, "pdf", "x")


class TestErrorStatus:
    def test_statuses(self):
        assert error_status("not_found") == 404
        assert error_status("authorization") == 403
        assert error_status("validation") == 422
        assert error_status("any") == 500
        assert error_status("custom") == 500


class TestResolveRenderTarget:
    """Component wins unless a page-config transform is declared."""

    page_config = PageConfig({"header": {"title": "Users"}})

    def test_component_preferred_without_modifier(self):
        config = ActionBuilder("index").component("List").page("Page").build()
        assert resolve_render_target(config, self.page_config) == "component"

    def test_page_preferred_with_modifier(self):
        config = ActionBuilder("index").component("List").page_config(lambda p: p).build()
        assert resolve_render_target(config, self.page_config) == "page"

    def test_component_when_modifier_but_no_page(self):
        config = ActionBuilder("index").component("List").page_config(lambda p: p).build()
        assert resolve_render_target(config, None) == "component"

    def test_page_without_component(self):
        config = ActionBuilder("index").page("Page").build()
        assert resolve_render_target(config, self.page_config) == "page"

    def test_template_fallback(self):
        config = ActionBuilder("index").service(object).build()
        assert resolve_render_target(config, None) == "template"
