"""
Section / Subsection structure.

The older way of describing a form page: a layout holds Sections, a
Section holds Subsections, a Subsection holds Fields.

    builder.section("info").with_label("User Info")
        .subsection("basic")
            .field("name").required().end()
            .end_subsection()
        .end_section()

Both levels use the shared node machinery (authorization, conditions,
ordering) but serialize to their own flat shape. columns/gap are only
emitted for multi-column sections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from uilayout.containers import ChildList, attach
from uilayout.expressions import condition_to_dict
from uilayout.model import Field, Node


def _layout_properties(node: "Node", columns: int, gap: str) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if columns > 1:
        data["columns"] = columns
        data["gap"] = gap
    if node.show_when_conditions:
        data["visible_conditions"] = [condition_to_dict(c) for c in node.show_when_conditions]
    if node.hide_when_conditions:
        data["hide_when"] = [condition_to_dict(c) for c in node.hide_when_conditions]
    if node.enable_when_conditions:
        data["enable_when"] = [condition_to_dict(c) for c in node.enable_when_conditions]
    if node.has_conditions:
        data["condition_logic"] = node.condition_logic
    return data


@dataclass(eq=False)
class Subsection(Node):
    type: str = "subsection"
    label: Optional[str] = None
    collapsible: bool = False
    collapsed: bool = False
    columns: int = 1
    gap: str = "md"
    fields: ChildList = field(default_factory=lambda: ChildList(key="fields", keyed=True))

    def with_label(self, label: str) -> "Subsection":
        self.label = label
        return self

    def with_collapsible(self, collapsible: bool = True) -> "Subsection":
        self.collapsible = collapsible
        return self

    def with_collapsed(self, collapsed: bool = True) -> "Subsection":
        self.collapsed = collapsed
        return self

    def with_columns(self, columns: int) -> "Subsection":
        self.columns = columns
        return self

    def with_gap(self, gap: str) -> "Subsection":
        self.gap = gap
        return self

    def add_field(self, form_field: Any) -> "Subsection":
        self.fields.add(attach(form_field, self))
        return self

    def add_fields(self, form_fields: Sequence[Any]) -> "Subsection":
        for form_field in form_fields:
            self.add_field(form_field)
        return self

    def field(self, name: str, field_type: str = "text") -> Field:
        form_field = Field.make(name, field_type=field_type)
        self.add_field(form_field)
        return form_field

    def get_field(self, name: str) -> Optional[Any]:
        return self.fields.get(name)

    def form_fields(self) -> List[Any]:
        return self.fields.nodes()

    def end_subsection(self) -> Any:
        return self.parent

    def containers(self) -> List[Any]:
        return [self.fields]

    def to_dict(self, authorized_only: bool = False) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "icon": self.icon,
            "fields": self.fields.serialize(authorized_only),
            "actions": self.actions,
            "order": self.order,
            "collapsible": self.collapsible,
            "collapsed": self.collapsed,
            "visible": self.visible,
            "enabled": self.enabled,
            "meta": self.meta,
            "permissions": self.permissions,
            "roles": self.roles,
            "authorized_to_see": self.authorized_to_see,
        }
        data.update(_layout_properties(self, self.columns, self.gap))
        return data


@dataclass(eq=False)
class Section(Node):
    type: str = "section"
    label: Optional[str] = None
    columns: int = 1
    gap: str = "md"
    subsections: ChildList = field(default_factory=lambda: ChildList(key="subsections", keyed=True))

    def with_label(self, label: str) -> "Section":
        self.label = label
        return self

    def with_columns(self, columns: int) -> "Section":
        self.columns = columns
        return self

    def with_gap(self, gap: str) -> "Section":
        self.gap = gap
        return self

    def subsection(self, name: str) -> Subsection:
        """Create a subsection in this section and return it; end_subsection() comes back here."""
        subsection = Subsection.make(name)
        self.add_subsection(subsection)
        return subsection

    def add_subsection(self, subsection: Subsection) -> "Section":
        self.subsections.add(attach(subsection, self))
        return self

    def get_subsection(self, name: str) -> Optional[Subsection]:
        return self.subsections.get(name)

    def containers(self) -> List[Any]:
        return [self.subsections]

    def to_dict(self, authorized_only: bool = False) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "icon": self.icon,
            "subsections": self.subsections.serialize(authorized_only),
            "actions": self.actions,
            "order": self.order,
            "visible": self.visible,
            "enabled": self.enabled,
            "meta": self.meta,
            "permissions": self.permissions,
            "roles": self.roles,
            "authorized_to_see": self.authorized_to_see,
        }
        data.update(_layout_properties(self, self.columns, self.gap))
        return data
