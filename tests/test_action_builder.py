"""Tests for ActionBuilder.

Covers:
- Chaining and the built ActionConfig fields
- Before/after callbacks keep declaration order
- permit() and on_error() are last-write-wins
- Snapshots are immutable and independent of later builder calls
"""

import dataclasses
from enum import Enum

import pytest

from better_controller.dsl import ActionBuilder, ActionConfig, ErrorCategory, ResponseFormat
from better_controller.dsl.action_builder import enum_value
from better_controller.dsl.response_builder import EMPTY_TABLE


class Svc:
    def call(self, params):
        return {"ok": True}


def ok(ctx):
    return {"ok": True}


def err(ctx):
    return {"error": True}


class TestActionBuilderScenario:
    """The canonical show action."""

    def test_show_action_with_not_found_handler(self):
        config = (
            ActionBuilder("show")
            .service(Svc)
            .on_success(lambda r: r.json(ok))
            .on_error("not_found", lambda r: r.json(err))
            .build()
        )

        assert isinstance(config, ActionConfig)
        assert config.name == "show"
        assert config.service is Svc
        assert config.service_method == "call"
        assert list(config.on_success) == ["json"]
        assert config.on_success["json"] is ok
        assert list(config.error_handlers) == ["not_found"]
        assert config.error_handlers["not_found"]["json"] is err

    def test_defaults(self):
        config = ActionBuilder("index").build()

        assert config.service is None
        assert config.page is None
        assert config.component is None
        assert config.permitted_params is None
        assert len(config.on_success) == 0
        assert dict(config.error_handlers) == {}
        assert config.before_callbacks == ()
        assert config.after_callbacks == ()
        assert config.skip_authentication is False
        assert config.skip_authorization is False

    def test_options_are_kept(self):
        config = ActionBuilder("export", only_admins=True).build()
        assert config.options["only_admins"] is True


class TestCallbacks:
    """before/after accumulate separately, in order."""

    def test_callbacks_keep_declaration_order(self):
        calls = [lambda ctx, i=i: i for i in range(4)]
        builder = ActionBuilder("create")
        builder.before(calls[0]).after(calls[1]).before(calls[2]).after(calls[3])

        config = builder.build()

        assert config.before_callbacks == (calls[0], calls[2])
        assert config.after_callbacks == (calls[1], calls[3])


class TestLastWriteWins:
    def test_permit_keeps_last_list(self):
        config = ActionBuilder("create").permit("name", "email").permit("title").build()
        assert config.permitted_params == ("title",)

    def test_empty_permit_differs_from_unset(self):
        assert ActionBuilder("a").permit().build().permitted_params == ()
        assert ActionBuilder("a").build().permitted_params is None

    def test_on_error_replaces_table_for_same_category(self):
        config = (
            ActionBuilder("update")
            .on_error("validation", lambda r: r.json(ok).html(ok))
            .on_error("validation", lambda r: r.xml(err))
            .build()
        )

        table = config.error_handlers["validation"]
        assert list(table) == ["xml"]
        assert "json" not in table

    def test_on_error_single_callable_means_any(self):
        config = ActionBuilder("update").on_error(lambda r: r.json(err)).build()
        assert list(config.error_handlers) == [ErrorCategory.ANY.value]

    def test_on_error_accepts_enum_category(self):
        config = ActionBuilder("update").on_error(ErrorCategory.AUTHORIZATION, lambda r: r.json(err)).build()
        assert "authorization" in config.error_handlers

    def test_on_error_without_configure_raises(self):
        with pytest.raises(TypeError):
            ActionBuilder("update").on_error("validation")

    def test_on_success_replaces_previous_table(self):
        config = (
            ActionBuilder("index")
            .on_success(lambda r: r.json(ok))
            .on_success(lambda r: r.csv(ok))
            .build()
        )
        assert list(config.on_success) == [ResponseFormat.CSV.value]


class TestSlots:
    def test_page_component_and_modifier(self):
        def modifier(page):
            return page

        config = (
            ActionBuilder("show")
            .page("ShowPage")
            .component("Card", locals={"title": "User"})
            .page_config(modifier)
            .turbo_frame("user_frame")
            .params_key("user")
            .build()
        )

        assert config.page == "ShowPage"
        assert config.component == "Card"
        assert dict(config.component_locals) == {"title": "User"}
        assert config.page_config_modifier is modifier
        assert config.turbo_frame == "user_frame"
        assert config.params_key == "user"

    def test_service_method(self):
        config = ActionBuilder("index").service(Svc, method="list").build()
        assert config.service_method == "list"

    def test_skip_flags(self):
        config = ActionBuilder("ping").skip_authentication().skip_authorization(False).build()
        assert config.skip_authentication is True
        assert config.skip_authorization is False


class TestImmutability:
    def test_config_is_frozen(self):
        config = ActionBuilder("show").build()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.service = Svc

    def test_mappings_are_read_only(self):
        config = ActionBuilder("show").component("Card", locals={"a": 1}).on_error(lambda r: r.json(err)).build()
        with pytest.raises(TypeError):
            config.component_locals["b"] = 2
        with pytest.raises(TypeError):
            config.error_handlers["validation"] = config.on_success

    def test_build_is_repeatable_and_snapshots_are_independent(self):
        builder = ActionBuilder("create").before(ok).permit("name")
        first = builder.build()
        second = builder.build()
        assert first == second

        builder.before(err).permit("email").on_error("validation", lambda r: r.json(err))
        third = builder.build()

        assert first.before_callbacks == (ok,)
        assert first.permitted_params == ("name",)
        assert dict(first.error_handlers) == {}
        assert third.before_callbacks == (ok, err)
        assert third.permitted_params == ("email",)

    def test_config_built_directly_has_empty_success_table(self):
        config = ActionConfig(name="show")

        assert config.on_success is EMPTY_TABLE
        assert len(config.on_success) == 0


class Frame(str, Enum):
    SIDEBAR = "sidebar"


class TestNames:
    def test_turbo_frame_accepts_enum(self):
        assert ActionBuilder("show").turbo_frame(Frame.SIDEBAR).build().turbo_frame == "sidebar"

    def test_enum_value(self):
        assert enum_value(Frame.SIDEBAR) == "sidebar"
        assert enum_value(ErrorCategory.NOT_FOUND) == "not_found"
        assert enum_value("plain") == "plain"
