"""
Layout Analyzer: Early diagnostics and inventory of layout definitions.

This module provides lightweight analysis of Layout objects:
    - Node inventory per type and maximum nesting depth
    - Form field inventory (required, computed, duplicates)
    - Condition references and operator checks
    - Authorization coverage (gated nodes and groups)
    - Warning flags for configuration mistakes

IMPORTANT: It does NOT resolve or modify the layout. It only produces
read-only reports; authorization and conditions are not evaluated.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from uilayout.components import COMPONENT_TYPES
from uilayout.containers import GroupMap
from uilayout.expressions import OPERATOR_ALIASES, SUPPORTED_OPERATORS, coerce_condition
from uilayout.layout import Layout
from uilayout.model import Field, Node
from uilayout.sections import Section, Subsection

KNOWN_LEAF_TYPES = frozenset({
    "card", "table", "chart", "stats", "text", "alert", "list", "timeline",
    "media", "comment", "badge", "modal", "button", "component",
})


@dataclass
class LayoutReport:
    """Analysis report for a layout."""

    layout_name: str
    total_nodes: int = 0
    max_depth: int = 0
    nodes_by_type: Dict[str, int] = field(default_factory=dict)

    # Fields
    total_fields: int = 0
    required_fields: List[str] = field(default_factory=list)
    computed_fields: List[str] = field(default_factory=list)
    duplicate_field_names: Set[str] = field(default_factory=set)

    # Conditions
    condition_references: Set[str] = field(default_factory=set)
    undeclared_references: Set[str] = field(default_factory=set)
    unknown_operators: Set[str] = field(default_factory=set)
    malformed_conditions: int = 0

    # Authorization
    gated_nodes: List[str] = field(default_factory=list)
    gated_groups: List[str] = field(default_factory=list)

    # Structure
    duplicate_sibling_names: List[str] = field(default_factory=list)
    unknown_types: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def _node_conditions(node: Node) -> List[Any]:
    conditions = list(node.show_when_conditions) + list(node.hide_when_conditions) + list(node.enable_when_conditions)
    if isinstance(node, Field):
        conditions += list(node.required_conditions) + list(node.disabled_conditions)
    return conditions


def _visit(node: Any, depth: int, path: str, report: LayoutReport, references: Set[str], fields: List[Field]) -> None:
    report.total_nodes += 1
    report.max_depth = max(report.max_depth, depth)

    if not isinstance(node, Node):
        report.nodes_by_type[type(node).__name__] = report.nodes_by_type.get(type(node).__name__, 0) + 1
        return

    report.nodes_by_type[node.type] = report.nodes_by_type.get(node.type, 0) + 1
    if isinstance(node, Field):
        fields.append(node)
    elif (node.type not in COMPONENT_TYPES and node.type not in KNOWN_LEAF_TYPES
          and not isinstance(node, (Section, Subsection))):
        report.unknown_types.add(node.type)

    if node.permissions or node.roles or node.can_see_callback is not None:
        report.gated_nodes.append(path)

    for condition in _node_conditions(node):
        parsed = coerce_condition(condition)
        if parsed is None:
            report.malformed_conditions += 1
            continue
        references.add(parsed.field)
        operator = OPERATOR_ALIASES.get(parsed.operator, parsed.operator)
        if operator not in SUPPORTED_OPERATORS:
            report.unknown_operators.add(parsed.operator)

    for container in node.containers():
        if isinstance(container, GroupMap):
            for group in container.groups.values():
                if group.permissions or group.roles:
                    report.gated_groups.append(f"{path}.{container.key}.{group.id}")

        for label, children in container.branches():
            names = [getattr(child, "name", None) for child in children]
            seen: Set[str] = set()
            for name in names:
                if name is None:
                    continue
                if name in seen:
                    report.duplicate_sibling_names.append(f"{path}.{label}.{name}")
                seen.add(name)
            for child in children:
                child_path = f"{path}.{getattr(child, 'name', '?')}"
                _visit(child, depth + 1, child_path, report, references, fields)


def analyze_layout(layout: Layout) -> LayoutReport:
    """
    Perform analysis of a Layout.

    Checks for:
    - Node counts and nesting depth
    - Field inventory and duplicate field names across the whole layout
    - Condition references to plain names that are not fields of the layout
    - Unknown operators and malformed conditions
    - Gated nodes/groups and unrecognised type tags

    Returns a LayoutReport with metrics and warnings.
    """
    report = LayoutReport(layout_name=f"{layout.module}.{layout.context}")

    references: Set[str] = set()
    fields: List[Field] = []

    # =========================================================================
    # 1. TREE WALK
    # =========================================================================

    for name, component in layout.components.items():
        _visit(component, 1, name, report, references, fields)

    # =========================================================================
    # 2. FIELD INVENTORY
    # =========================================================================

    report.total_fields = len(fields)
    counts: Dict[str, int] = defaultdict(int)
    for form_field in fields:
        counts[form_field.name] += 1
        if form_field.is_required or form_field.required_conditions:
            report.required_fields.append(form_field.name)
        if form_field.is_computed:
            report.computed_fields.append(form_field.name)
    report.duplicate_field_names = {name for name, count in counts.items() if count > 1}

    # =========================================================================
    # 3. CONDITION REFERENCES
    # =========================================================================

    # Dotted paths point into the runtime context (user.role, ...), so only
    # plain names are expected to match a field of the layout.
    report.condition_references = references
    declared = set(counts)
    report.undeclared_references = {ref for ref in references if "." not in ref and ref not in declared}

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if report.undeclared_references:
        report.add_warning(
            f"Conditions reference undeclared fields: {', '.join(sorted(report.undeclared_references))}"
        )

    if report.unknown_operators:
        report.add_warning(
            f"Unknown condition operators (always false): {', '.join(sorted(report.unknown_operators))}"
        )

    if report.malformed_conditions:
        report.add_warning(f"Malformed conditions (ignored): {report.malformed_conditions}")

    if report.duplicate_field_names:
        report.add_warning(
            f"Duplicate field names: {', '.join(sorted(report.duplicate_field_names))}"
        )

    if report.duplicate_sibling_names:
        report.add_warning(
            f"Duplicate sibling names: {', '.join(report.duplicate_sibling_names)}"
        )

    if report.unknown_types:
        report.add_warning(
            f"Unrecognised component types: {', '.join(sorted(report.unknown_types))}"
        )

    if report.total_nodes == 0:
        report.add_warning("Layout has no components")

    return report
