"""
Tests for the layout registry.
"""

import logging

import pytest

from uilayout.examples import register_examples
from uilayout.layout import Layout
from uilayout.registry import LayoutNotFoundError, LayoutRegistry


class PlainUser:
    def has_any_role(self, roles):
        return "user" in roles

    def has_any_permission(self, permissions):
        return False


class TestRegistry:
    """Test registration and lookup."""

    def test_register_and_get(self):
        """Should build registered layouts by module and context."""
        registry = register_examples(LayoutRegistry())
        assert registry.has("user", "profile")
        assert sorted(registry.registered()) == ["admin.dashboard", "user.profile"]
        assert isinstance(registry.get("user", "profile"), Layout)

    def test_missing_layout(self):
        """Should return None from get() and raise from require()."""
        registry = LayoutRegistry()
        assert registry.get("nope", "nothing") is None
        with pytest.raises(LayoutNotFoundError):
            registry.require("nope", "nothing")

    def test_not_found_is_key_error(self):
        """Should raise a KeyError subclass for missing layouts."""
        with pytest.raises(KeyError):
            LayoutRegistry().require("a", "b")

    def test_fresh_build_per_get(self):
        """Each get() builds a new tree, so resolution never leaks between callers."""
        registry = register_examples(LayoutRegistry())
        user_view = registry.get("user", "profile", actor=PlainUser())
        guest_view = registry.get("user", "profile")
        assert user_view is not guest_view
        assert user_view.get_subsection("account_settings", "admin").authorized_to_see is False
        assert guest_view.get_subsection("account_settings", "admin").authorized_to_see is True

    def test_get_evaluates_data(self):
        """Should evaluate conditions against the given data."""
        registry = register_examples(LayoutRegistry())
        layout = registry.get("user", "profile", data={"country": "CA"})
        assert layout.form_field_by_name("state").visible is False

    def test_definition_may_return_layout(self):
        """Should accept a definition that returns a built layout."""
        registry = LayoutRegistry()
        registry.register("a", "b", lambda builder: builder.build().with_meta(custom=True))
        assert registry.require("a", "b").meta == {"custom": True}

    def test_replacing_logs_warning(self, caplog):
        """Should warn when a definition is replaced."""
        registry = LayoutRegistry()
        registry.register("a", "b", lambda builder: builder)
        with caplog.at_level(logging.WARNING, logger="uilayout.registry"):
            registry.register("a", "b", lambda builder: builder)
        assert "Replacing" in caplog.text

    def test_unregister(self):
        """Should forget a registered definition."""
        registry = LayoutRegistry().register("a", "b", lambda builder: builder)
        assert registry.unregister("a", "b") is True
        assert registry.has("a", "b") is False
