#!/usr/bin/env python3
"""
Complete Pipeline Demo: Registry → Layout → Resolution → Export

Shows the full workflow:
1. Register layout definitions
2. Build a layout for an actor and a data context
3. Analyze the definition
4. Export the authorized tree as JSON
"""

import logging

from uilayout.analyzer import analyze_layout
from uilayout.authorization import RoleRecord
from uilayout.examples import register_examples
from uilayout.registry import LayoutRegistry
from uilayout.serialization import layout_to_json


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: Registry → Layout → Resolution → Export")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Register definitions
    # =========================================================================
    print("\n1. REGISTERING LAYOUTS...")
    registry = register_examples(LayoutRegistry())
    for key in registry.registered():
        print(f"   ✓ {key}")

    # =========================================================================
    # STEP 2: Build for an actor
    # =========================================================================
    print("\n2. BUILDING FOR AN EDITOR...")
    editor = RoleRecord(role="editor", permissions=frozenset({"billing.view"}))
    layout = registry.require("admin", "dashboard", actor=editor, data={"user": {"role": "editor"}})
    authorized = layout.authorized_components()
    print(f"   ✓ Top-level components: {len(layout.components)}")
    print(f"   ✓ Authorized components: {len(authorized)}")

    # =========================================================================
    # STEP 3: Analyze
    # =========================================================================
    print("\n3. ANALYZING LAYOUT...")
    report = analyze_layout(layout)
    print(f"   ✓ Nodes: {report.total_nodes}")
    print(f"   ✓ Fields: {report.total_fields}")
    print(f"   ✓ Gated groups: {report.gated_groups}")
    if report.warnings:
        print(f"\n   Warnings ({len(report.warnings)}):")
        for warning in report.warnings[:5]:
            print(f"      - {warning}")

    # =========================================================================
    # STEP 4: Export
    # =========================================================================
    print("\n4. EXPORTING AUTHORIZED TREE...")
    text = layout_to_json(layout, authorized_only=True)
    print(f"   ✓ {len(text)} characters of JSON")
    print(f"   ✓ Computed: {layout.calculate_computed_values({'subtotal': 120})}")

    print("\n" + "=" * 80)
    print("PIPELINE COMPLETE")
    print("=" * 80)


if __name__ == "__main__":
    main()
