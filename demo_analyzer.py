"""
Demo: Run analyzer on the example layouts and output the reports.
"""

from uilayout.analyzer import analyze_layout
from uilayout.examples import build_example_dashboard_layout, build_example_profile_layout
from uilayout.serialization import save_layout


def print_report(report):
    """Pretty-print a LayoutReport."""
    print()
    print("=" * 70)
    print(f"LAYOUT ANALYSIS REPORT: {report.layout_name}")
    print("=" * 70)
    print()

    print("📊 BASIC METRICS")
    print(f"  Total Nodes:           {report.total_nodes}")
    print(f"  Max Depth:             {report.max_depth}")
    for node_type, count in sorted(report.nodes_by_type.items()):
        print(f"    {node_type}: {count}")
    print()

    print("📝 FIELDS")
    print(f"  Total Fields:          {report.total_fields}")
    print(f"  Required:              {', '.join(report.required_fields) or 'None'}")
    print(f"  Computed:              {', '.join(report.computed_fields) or 'None'}")
    print()

    print("🔀 CONDITIONS")
    print(f"  References:            {', '.join(sorted(report.condition_references)) or 'None'}")
    print(f"  Undeclared:            {', '.join(sorted(report.undeclared_references)) or 'None'}")
    print()

    print("🔒 AUTHORIZATION")
    print(f"  Gated Nodes:           {', '.join(report.gated_nodes) or 'None'}")
    print(f"  Gated Groups:          {', '.join(report.gated_groups) or 'None'}")
    print()

    if report.warnings:
        print("⚠️  WARNINGS")
        for i, warning in enumerate(report.warnings, 1):
            print(f"  {i}. {warning}")
    else:
        print("✨ NO WARNINGS - Layout looks clean!")
    print()


if __name__ == "__main__":
    for layout in (build_example_profile_layout(), build_example_dashboard_layout()):
        print_report(analyze_layout(layout))

    path = save_layout(build_example_dashboard_layout(), "example_layout_output.yaml")
    print(f"✅ Layout exported to {path}")
