"""
Tests for the layout analyzer.

The analyzer is read-only: it reports on the configured tree without
resolving authorization or conditions.
"""

from uilayout.analyzer import analyze_layout
from uilayout.components import make_component
from uilayout.examples import build_example_dashboard_layout, build_example_profile_layout
from uilayout.layout import Layout, LayoutBuilder


def test_analyze_profile_layout():
    """Should inventory the profile layout and flag its undeclared reference."""
    report = analyze_layout(build_example_profile_layout())

    assert report.layout_name == "user.profile"
    assert report.total_fields == 9
    assert report.max_depth == 3
    assert report.nodes_by_type["section"] == 2
    assert report.nodes_by_type["subsection"] == 4
    assert report.required_fields == ["first_name", "last_name", "email", "phone"]
    assert report.gated_nodes == ["account_settings.security", "account_settings.admin"]

    # phone is required when "contact_method" matches, which is not a field
    assert report.undeclared_references == {"contact_method"}
    assert any("contact_method" in w for w in report.warnings)


def test_analyze_dashboard_layout():
    """Should report gated nodes and groups across every container shape."""
    report = analyze_layout(build_example_dashboard_layout())

    assert report.total_nodes == 22
    assert report.total_fields == 7
    assert report.computed_fields == ["tax", "total"]
    assert report.gated_nodes == ["stats.revenue"]
    assert report.gated_groups == ["settings_tabs.tabs.billing", "help.items.audit"]
    assert "user.role" in report.condition_references
    assert report.warnings == []


def test_analysis_does_not_resolve():
    """Running the analyzer leaves every resolved flag untouched."""
    layout = build_example_profile_layout()
    analyze_layout(layout)
    assert all(node.authorized_to_see for node in layout.walk())


def test_flags_configuration_problems():
    """Should warn about each kind of configuration problem."""
    builder = LayoutBuilder.create("bad", "layout")
    form = builder.form_section("f")
    form.field("a").show_when("b", "between", [1, 2])
    form.field("b").show_when({"value": 1})
    form.field("a2").with_label("dup").with_meta(x=1)
    builder.form_section("g").field("a")
    slot = builder.header_section("h").section("left")
    slot.add_many([make_component("widgetx", "w"), make_component("text", "w")])

    report = analyze_layout(builder.build())

    assert report.unknown_operators == {"between"}
    assert report.malformed_conditions == 1
    assert report.duplicate_field_names == {"a"}
    assert report.duplicate_sibling_names == ["h.left.w"]
    assert report.unknown_types == {"widgetx"}
    assert len(report.warnings) == 5


def test_empty_layout_warning():
    """Should warn when a layout has no components."""
    report = analyze_layout(Layout("empty", "page"))
    assert report.total_nodes == 0
    assert "Layout has no components" in report.warnings
