"""
Tests for LayoutBuilder, Layout and whole-tree resolution.
"""

from uilayout.components import FormSection, TabsSection, make_component
from uilayout.layout import Layout, LayoutBuilder, resolve_layout
from uilayout.model import Field, Node
from uilayout.sections import Section, Subsection


class RoleUser:
    def __init__(self, *roles, permissions=()):
        self.roles_held = set(roles)
        self.permissions = set(permissions)

    def has_any_role(self, roles):
        return bool(self.roles_held.intersection(roles))

    def has_any_permission(self, permissions):
        return bool(self.permissions.intersection(permissions))


def build_legacy_layout() -> Layout:
    builder = LayoutBuilder.create("user", "profile")
    (builder
        .section("info")
            .with_label("User Info")
            .subsection("basic")
                .field("name").required().with_min_length(3).with_max_length(50).end()
                .field("email", "email").required().end()
            .end_subsection()
            .subsection("internal")
                .require_roles("admin")
                .field("notes", "textarea").end()
            .end_subsection()
        .end_section())
    return builder.build()


def _names(nodes):
    return [n["name"] for n in nodes]


class TestBuilder:
    """Test fluent construction."""

    def test_section_chain_returns_to_builder(self):
        """Should come back to the builder from end_section()."""
        builder = LayoutBuilder.create("user", "profile")
        assert builder.section("info").end_section() is builder

    def test_build_creates_layout(self):
        """Should build a Layout holding the configured sections."""
        layout = build_legacy_layout()
        assert isinstance(layout, Layout)
        assert layout.module == "user"
        assert layout.context == "profile"
        assert isinstance(layout.get_section("info"), Section)

    def test_builder_to_dict_uses_components_key(self):
        """Should key the builder's own output by components."""
        builder = LayoutBuilder.create("admin", "dashboard")
        builder.form_section("f")
        data = builder.to_dict()
        assert _names(data["components"]) == ["f"]
        assert "sections" not in data

    def test_layout_to_dict_shape(self):
        """Should emit exactly the top-level layout keys."""
        layout = build_legacy_layout()
        data = layout.to_dict()
        assert set(data) == {"module", "context", "shared_data_url", "shared_data_params", "sections", "meta"}
        assert _names(data["sections"][0]["subsections"]) == ["basic", "internal"]

    def test_shared_data_and_meta(self):
        """Should carry shared data settings and meta."""
        layout = (LayoutBuilder.create("a", "b")
                  .with_shared_data_url("/api/data")
                  .with_shared_data_params(id=1)
                  .with_meta(title="T")
                  .build())
        data = layout.to_dict()
        assert data["shared_data_url"] == "/api/data"
        assert data["shared_data_params"] == {"id": 1}
        assert data["meta"] == {"title": "T"}

    def test_component_factory(self):
        """Should register factory-built components with the builder."""
        builder = LayoutBuilder.create("a", "b")
        tabs = builder.tabs_section("t")
        chart = builder.component("chart", "sales", kind="line")
        assert isinstance(tabs, TabsSection)
        assert builder.get_component("sales") is chart
        assert chart.end() is builder


class TestLegacySections:
    """Test serialization of Section / Subsection."""

    def test_section_emits_every_condition_kind(self):
        """Should emit show, hide and enable rules with their logic."""
        section = (Section.make("plans")
                   .show_when("user.active", "true")
                   .hide_when("plan", "==", "pro")
                   .enable_when("x", "not_empty")
                   .with_condition_logic("OR"))
        data = section.to_dict()
        assert data["visible_conditions"] == [{"field": "user.active", "operator": "true", "value": None}]
        assert data["hide_when"] == [{"field": "plan", "operator": "==", "value": "pro"}]
        assert data["enable_when"] == [{"field": "x", "operator": "not_empty", "value": None}]
        assert data["condition_logic"] == "OR"

    def test_subsection_emits_hide_rule(self):
        """Should emit a subsection's hide rule and the default logic."""
        data = Subsection.make("internal").hide_when("role", "!=", "admin").to_dict()
        assert data["hide_when"] == [{"field": "role", "operator": "!=", "value": "admin"}]
        assert data["condition_logic"] == "AND"
        assert "visible_conditions" not in data
        assert "enable_when" not in data

    def test_unconditional_section_has_no_condition_keys(self):
        """Should leave condition keys out when nothing is configured."""
        data = Section.make("plain").to_dict()
        assert not {"visible_conditions", "hide_when", "enable_when", "condition_logic"} & set(data)


class TestQueries:
    """Test lookups on a built layout."""

    def test_get_subsection_and_field(self):
        """Should look up subsections and fields by name."""
        layout = build_legacy_layout()
        assert isinstance(layout.get_subsection("info", "basic"), Subsection)
        assert layout.get_form_field("info", "basic", "email").field_type == "email"
        assert layout.get_subsection("missing", "basic") is None

    def test_validation_rules(self):
        """required + min + max give exactly those rules, in that order."""
        rules = build_legacy_layout().validation_rules()
        assert rules["name"] == ["required", "min:3", "max:50"]
        assert rules["email"] == ["required"]
        assert "notes" not in rules

    def test_all_form_fields_across_shapes(self):
        """Fields are found in legacy sections, tabs, slots and wizard steps alike."""
        builder = LayoutBuilder.create("a", "b")
        form = FormSection.make("tab_form")
        form.field("in_tab")
        builder.tabs_section("tabs").add_tab("t", "T", [form])
        builder.header_section("h").section("left").form("slot_form").field("in_slot")
        builder.wizard_section("w").add_step("s", "S", lambda slot: slot.form("step_form").field("in_step"))
        builder.section("legacy").subsection("sub").field("in_section")
        names = [f.name for f in builder.build().all_form_fields()]
        assert sorted(names) == ["in_section", "in_slot", "in_step", "in_tab"]

    def test_form_field_by_name(self):
        """Should find a field anywhere in the tree, or None."""
        layout = build_legacy_layout()
        assert layout.form_field_by_name("notes").field_type == "textarea"
        assert layout.form_field_by_name("missing") is None

    def test_sorted_components(self):
        """Should order components by order, unordered last."""
        builder = LayoutBuilder.create("a", "b")
        builder.form_section("unordered")
        builder.form_section("second").with_order(2)
        builder.form_section("first").with_order(1)
        names = [c.name for c in builder.build().sorted_components()]
        assert names == ["first", "second", "unordered"]

    def test_calculate_computed_values(self):
        """Later computed fields see the values computed before them."""
        builder = LayoutBuilder.create("a", "b")
        form = builder.form_section("billing")
        form.field("tax").computed(lambda d: d["subtotal"] * 0.1)
        form.field("total").computed(lambda d: d["subtotal"] + d["tax"])
        values = builder.build().calculate_computed_values({"subtotal": 100})
        assert values == {"tax": 10.0, "total": 110.0}


class TestWholeTreeResolution:
    """Test authorization and conditions over the full tree."""

    def test_authorized_dict_prunes(self):
        """Every node in the pruned output is authorized, at every depth."""
        layout = build_legacy_layout().resolve_authorization(RoleUser("user"))
        data = layout.to_authorized_dict()
        assert _names(data["sections"][0]["subsections"]) == ["basic"]

        def assert_authorized(node):
            if isinstance(node, dict):
                if "authorized_to_see" in node:
                    assert node["authorized_to_see"] is True
                if "authorized" in node:
                    assert node["authorized"] is True
                for value in node.values():
                    assert_authorized(value)
            elif isinstance(node, list):
                for item in node:
                    assert_authorized(item)

        assert_authorized(data)

    def test_full_dict_keeps_everything(self):
        """Should keep unauthorized nodes in the full output."""
        layout = build_legacy_layout().resolve_authorization(RoleUser("user"))
        subsections = layout.to_dict()["sections"][0]["subsections"]
        assert [s["authorized_to_see"] for s in subsections] == [True, False]

    def test_top_level_pruning(self):
        """Should prune unauthorized top-level components."""
        builder = LayoutBuilder.create("a", "b")
        builder.form_section("public")
        builder.form_section("admin").require_roles("admin")
        layout = builder.build().for_user(RoleUser("user"))
        assert _names(layout.to_authorized_dict()["sections"]) == ["public"]
        assert list(layout.authorized_components()) == ["public"]

    def test_evaluate_conditions_reaches_nested_nodes(self):
        """Should evaluate conditions on nested fields and slot children."""
        builder = LayoutBuilder.create("a", "b")
        form = builder.form_section("f")
        state = form.field("state").show_when("country", "==", "US")
        banner = builder.header_section("h").section("center").alert("promo").hide_when("user.plan", "==", "pro")
        layout = builder.build().evaluate_conditions({"country": "CA", "user": {"plan": "pro"}})
        assert state.visible is False
        assert banner.visible is False
        assert layout.get_component("f").visible is True

    def test_resolve_layout_leaves_original_untouched(self):
        """Should resolve a copy and leave the input layout alone."""
        original = build_legacy_layout()
        resolved = resolve_layout(original, RoleUser("user"), {"x": 1})
        assert resolved is not original
        assert resolved.get_subsection("info", "internal").authorized_to_see is False
        assert original.get_subsection("info", "internal").authorized_to_see is True

    def test_foreign_top_level_component(self):
        """Should serialize plain nodes alongside typed components."""
        layout = Layout("a", "b")
        plain = Node.make("plain")
        layout.add_component(plain).add_component(make_component("card", "c"))
        layout.resolve_authorization(None)
        assert _names(layout.to_dict()["sections"]) == ["plain", "c"]

    def test_field_in_form_gets_readonly(self):
        """Should make a visible but non-editable field read-only."""
        form = FormSection.make("f")
        form.add_field(Field.make("status").editable_for_roles("admin"))
        layout = Layout("a", "b").add_component(form).resolve_authorization(RoleUser("user"))
        field = layout.form_field_by_name("status")
        assert field.is_readonly is True
        assert layout.to_dict()["sections"][0]["fields"][0]["readonly"] is True
