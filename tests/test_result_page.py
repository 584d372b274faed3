"""Tests for Result, ServiceError and PageConfig."""

from types import SimpleNamespace

import pytest

from better_controller.errors import ServiceError
from better_controller.page import PageConfig, build_page_config
from better_controller.result import Result, is_collection


class TestResult:
    def test_defaults_to_success(self):
        result = Result({"id": 1})
        assert result.success and not result.failure
        assert result.meta == {"success": True}

    def test_failure_and_message(self):
        result = Result(None, meta={"success": False, "message": "Nope", "error_type": "validation"})
        assert result.failure
        assert result.message == "Nope"
        assert result["error_type"] == "validation"

    def test_collection(self):
        assert Result([1, 2]).collection == [1, 2]
        assert Result({"id": 1}).collection is None

    def test_errors_from_resource(self):
        resource = SimpleNamespace(errors={"name": ["blank"]})
        assert Result(resource).errors == {"name": ["blank"]}

    def test_to_dict_drops_none(self):
        data = Result("x").to_dict()
        assert data == {"resource": "x", "meta": {"success": True}, "success": True}

    def test_is_collection(self):
        assert is_collection([1]) and is_collection((1,))
        assert not is_collection("abc")
        assert not is_collection({"a": 1})
        assert not is_collection(None)


class TestServiceError:
    def test_message_and_errors(self):
        resource = SimpleNamespace(errors={"email": ["taken"]})
        error = ServiceError(resource, {"message": "Could not save", "error_type": "validation"})

        assert str(error) == "Could not save"
        assert error.errors == {"email": ["taken"]}
        assert error.meta["error_type"] == "validation"

    def test_default_message(self):
        assert str(ServiceError()) == "Operation failed"
        assert ServiceError().errors is None


class UsersPage:
    def __init__(self, data, user=None):
        self.data = data
        self.user = user

    def index(self):
        return {"header": {"title": "Users"}, "table": self.data, "footer": None, "meta": {"page_type": "index"}}


class CallablePage:
    def __init__(self, data, user=None):
        self.data = data

    def __call__(self):
        return PageConfig({"body": self.data})


class TestPageConfig:
    def test_from_value_wraps_dicts(self):
        config = PageConfig.from_value({"components": {"header": "h"}, "meta": {"template": "users/page"}})
        assert config.component("header") == "h"
        assert config.template == "users/page"

    def test_present_components_and_to_dict(self):
        config = PageConfig({"header": "h", "empty": None}, {"page_type": "show"})
        assert config.present_components() == {"header": "h"}
        assert config.has_component("header") and not config.has_component("empty")
        assert config.to_dict()["page_type"] == "show"
        assert config["header"] == "h"

    def test_build_page_config_calls_action_method(self):
        config = build_page_config(UsersPage, ["ada"], "index", user="me")
        assert isinstance(config, PageConfig)
        assert config.page_type == "index"
        assert config.component("table") == ["ada"]
        assert config.component_names == ["header", "table", "footer"]

    def test_build_page_config_falls_back_to_call(self):
        config = build_page_config(CallablePage, "x", "show")
        assert config == PageConfig({"body": "x"})

    def test_build_page_config_rejects_unknown_action(self):
        with pytest.raises(TypeError):
            build_page_config(UsersPage, [], "show")
