"""
Typed layout nodes.

Content nodes (flat children):
    - Component      generic leaf with a props bag (card, table, chart, ...)
    - GridSection    "components" in a column grid
    - FormSection    "fields"
    - CustomSection  arbitrary type + data bag

Group nodes (keyed groups):
    - TabsSection       "tabs"
    - AccordionSection  "items"
    - WizardSection     "steps" (keyed by "key")

Slot nodes (named regions):
    - HeaderSection  left / center / right
    - LayoutSection  header / sidebar / body / footer / aside

Every content node may additionally hold nested legacy sections.

make_component(type, name, **props) builds the right class for a type
tag and falls back to a generic Component for leaf types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

from uilayout.containers import ChildList, Group, GroupContent, GroupMap, Slot, SlotMap, attach
from uilayout.model import Field, Node

logger = logging.getLogger(__name__)


def _sections() -> ChildList:
    return ChildList(key="sections", keyed=True, emit_empty=False)


@dataclass(eq=False)
class Component(Node):
    """Content node; leaf types keep their settings in `props`."""

    props: Dict[str, Any] = field(default_factory=dict)
    sections: ChildList = field(default_factory=_sections)

    def with_props(self, props: Optional[Dict[str, Any]] = None, **extra: Any) -> "Component":
        self.props.update(props or {})
        self.props.update(extra)
        return self

    def set(self, key: str, value: Any) -> "Component":
        self.props[key] = value
        return self

    def add_section(self, section: Node) -> "Component":
        self.sections.add(attach(section, self))
        return self

    def add_sections(self, sections: Sequence[Node]) -> "Component":
        for section in sections:
            self.add_section(section)
        return self

    def get_section(self, name: str) -> Optional[Node]:
        return self.sections.get(name)

    @property
    def has_sections(self) -> bool:
        return len(self.sections) > 0

    def containers(self) -> List[Any]:
        return [self.sections]

    def properties(self) -> Dict[str, Any]:
        return {"props": self.props} if self.props else {}


@dataclass(eq=False)
class GridSection(Component):
    type: str = "grid"
    columns: int = 3
    gap: str = "md"
    components: ChildList = field(default_factory=lambda: ChildList(key="components"))

    def with_columns(self, columns: int) -> "GridSection":
        self.columns = columns
        return self

    def with_gap(self, gap: str) -> "GridSection":
        self.gap = gap
        return self

    def add_component(self, component: Any) -> "GridSection":
        self.components.add(attach(component, self))
        return self

    def add_components(self, components: Sequence[Any]) -> "GridSection":
        for component in components:
            self.add_component(component)
        return self

    def containers(self) -> List[Any]:
        return [self.components, self.sections]

    def properties(self) -> Dict[str, Any]:
        return {**super().properties(), "columns": self.columns, "gap": self.gap}


@dataclass(eq=False)
class FormSection(Component):
    type: str = "form"
    label: Optional[str] = None
    columns: int = 1
    gap: str = "md"
    collapsible: bool = False
    collapsed: bool = False
    fields: ChildList = field(default_factory=lambda: ChildList(key="fields", keyed=True))

    def with_label(self, label: str) -> "FormSection":
        self.label = label
        return self

    def with_columns(self, columns: int) -> "FormSection":
        self.columns = columns
        return self

    def with_gap(self, gap: str) -> "FormSection":
        self.gap = gap
        return self

    def with_collapsible(self, collapsible: bool = True, collapsed: bool = False) -> "FormSection":
        self.collapsible = collapsible
        self.collapsed = collapsed
        return self

    def add_field(self, form_field: Field) -> "FormSection":
        self.fields.add(attach(form_field, self))
        return self

    def add_fields(self, form_fields: Sequence[Field]) -> "FormSection":
        for form_field in form_fields:
            self.add_field(form_field)
        return self

    def field(self, name: str, field_type: str = "text") -> Field:
        """Create a field in this form and return it; end() comes back here."""
        form_field = Field.make(name, field_type=field_type)
        self.add_field(form_field)
        return form_field

    def get_field(self, name: str) -> Optional[Field]:
        return self.fields.get(name)

    def form_fields(self) -> List[Field]:
        return self.fields.nodes()

    def containers(self) -> List[Any]:
        return [self.fields, self.sections]

    def properties(self) -> Dict[str, Any]:
        return {
            **super().properties(),
            "label": self.label,
            "columns": self.columns,
            "gap": self.gap,
            "collapsible": self.collapsible,
            "collapsed": self.collapsed,
        }


@dataclass(eq=False)
class CustomSection(Component):
    """Escape hatch: any type tag, a view/component reference and a data bag."""

    type: str = "custom"
    view: Optional[str] = None
    component_name: Optional[str] = None
    custom_data: Dict[str, Any] = field(default_factory=dict)

    def with_type(self, type: str) -> "CustomSection":
        self.type = type
        return self

    def with_view(self, view: str) -> "CustomSection":
        self.view = view
        return self

    def with_component(self, component_name: str) -> "CustomSection":
        self.component_name = component_name
        return self

    def with_data(self, data: Optional[Dict[str, Any]] = None, **extra: Any) -> "CustomSection":
        self.custom_data.update(data or {})
        self.custom_data.update(extra)
        return self

    def with_value(self, key: str, value: Any) -> "CustomSection":
        self.custom_data[key] = value
        return self

    def properties(self) -> Dict[str, Any]:
        return {
            **super().properties(),
            "view": self.view,
            "component": self.component_name,
            "data": self.custom_data,
        }


# ----------------------------------------------------------------------
# Group nodes
# ----------------------------------------------------------------------

@dataclass(eq=False)
class TabsSection(Component):
    """
    Tabbed container.

    The active tab defaults to the first tab added. Each tab carries its
    own permissions/roles gate, resolved into Group.authorized.
    """

    type: str = "tabs"
    tabs: GroupMap = field(
        default_factory=lambda: GroupMap(
            key="tabs", defaults={"icon": None, "badge": None, "disabled": False, "visible": True}
        )
    )
    active_tab: Optional[str] = None
    position: str = "top"
    lazy: bool = False

    def add_tab(
        self,
        tab_id: str,
        label: str,
        components: GroupContent = None,
        permissions: Union[str, Sequence[str], None] = None,
        roles: Union[str, Sequence[str], None] = None,
        **options: Any,
    ) -> "TabsSection":
        self.tabs.add(tab_id, label, components, permissions, roles, owner=self, **options)
        if self.active_tab is None:
            self.active_tab = tab_id
        return self

    def get_tab(self, tab_id: str) -> Optional[Group]:
        return self.tabs.get(tab_id)

    def with_active_tab(self, tab_id: str) -> "TabsSection":
        self.active_tab = tab_id
        return self

    def with_position(self, position: str) -> "TabsSection":
        self.position = position
        return self

    def with_lazy(self, lazy: bool = True) -> "TabsSection":
        self.lazy = lazy
        return self

    def containers(self) -> List[Any]:
        return [self.tabs, self.sections]

    def properties(self) -> Dict[str, Any]:
        return {
            **super().properties(),
            "active_tab": self.active_tab,
            "position": self.position,
            "lazy": self.lazy,
        }


# ----------------------------------------------------------------------
# Slot nodes
# ----------------------------------------------------------------------

@dataclass(eq=False)
class SlotSection(Node):
    """
    Node whose children live in named slots.

    ALLOWED_SECTIONS restricts the slot names; an empty tuple allows any.
    """

    ALLOWED_SECTIONS: ClassVar[Tuple[str, ...]] = ()

    slots: Optional[SlotMap] = None
    sections: ChildList = field(default_factory=_sections)

    def __post_init__(self):
        if self.slots is None:
            self.slots = SlotMap(allowed=self.ALLOWED_SECTIONS)

    def section(self, name: str) -> Slot:
        """Return the slot called `name`, creating it on first use."""
        return self.slots.get_or_create(name, owner=self)

    def has_section(self, name: str) -> bool:
        return self.slots.has(name)

    def get_slot(self, name: str) -> Optional[Slot]:
        return self.slots.get(name)

    @property
    def allowed_sections(self) -> Tuple[str, ...]:
        return self.ALLOWED_SECTIONS

    def add_section(self, section: Node) -> "SlotSection":
        self.sections.add(attach(section, self))
        return self

    def get_section(self, name: str) -> Optional[Node]:
        return self.sections.get(name)

    def containers(self) -> List[Any]:
        return [self.slots, self.sections]


@dataclass(eq=False)
class HeaderSection(SlotSection):
    ALLOWED_SECTIONS: ClassVar[Tuple[str, ...]] = ("left", "center", "right")

    type: str = "header"
    variant: str = "default"
    is_sticky: bool = False
    is_transparent: bool = False
    is_bordered: bool = True
    height: Optional[str] = None
    background: Optional[str] = None

    def with_variant(self, variant: str) -> "HeaderSection":
        self.variant = variant
        return self

    def sticky(self, sticky: bool = True) -> "HeaderSection":
        self.is_sticky = sticky
        return self

    def transparent(self, transparent: bool = True) -> "HeaderSection":
        self.is_transparent = transparent
        return self

    def bordered(self, bordered: bool = True) -> "HeaderSection":
        self.is_bordered = bordered
        return self

    def with_height(self, height: str) -> "HeaderSection":
        self.height = height
        return self

    def with_background(self, background: str) -> "HeaderSection":
        self.background = background
        return self

    def properties(self) -> Dict[str, Any]:
        return {
            "variant": self.variant,
            "sticky": self.is_sticky,
            "transparent": self.is_transparent,
            "bordered": self.is_bordered,
            "height": self.height,
            "background": self.background,
        }


@dataclass(eq=False)
class LayoutSection(SlotSection):
    ALLOWED_SECTIONS: ClassVar[Tuple[str, ...]] = ("header", "sidebar", "body", "footer", "aside")

    type: str = "layout"
    variant: str = "default"
    has_sidebar: bool = True
    sidebar_position: str = "left"
    sidebar_width: str = "250px"
    sticky_header: bool = False
    sticky_footer: bool = False
    container_width: str = "full"

    def with_variant(self, variant: str) -> "LayoutSection":
        self.variant = variant
        return self

    def with_sidebar(self, position: str = "left", width: Optional[str] = None) -> "LayoutSection":
        self.has_sidebar = True
        self.sidebar_position = position
        if width is not None:
            self.sidebar_width = width
        return self

    def without_sidebar(self) -> "LayoutSection":
        self.has_sidebar = False
        return self

    def with_sticky_header(self, sticky: bool = True) -> "LayoutSection":
        self.sticky_header = sticky
        return self

    def with_sticky_footer(self, sticky: bool = True) -> "LayoutSection":
        self.sticky_footer = sticky
        return self

    def with_container_width(self, width: str) -> "LayoutSection":
        self.container_width = width
        return self

    def properties(self) -> Dict[str, Any]:
        return {
            "variant": self.variant,
            "has_sidebar": self.has_sidebar,
            "sidebar_position": self.sidebar_position,
            "sidebar_width": self.sidebar_width,
            "sticky_header": self.sticky_header,
            "sticky_footer": self.sticky_footer,
            "container_width": self.container_width,
        }


@dataclass(eq=False)
class AccordionSection(SlotSection):
    """
    Collapsible panels.

    Panels take either a list of nodes or a callable that fills a Slot:

        accordion.add_item("billing", "Billing", lambda slot: slot.form("invoice"))

    When nothing is explicitly expanded the first panel is.
    """

    type: str = "accordion"
    items: GroupMap = field(
        default_factory=lambda: GroupMap(key="items", defaults={"icon": None, "badge": None, "disabled": False})
    )
    multiple: bool = False
    collapsible: bool = True
    expanded: List[str] = field(default_factory=list)
    variant: str = "default"

    def add_item(
        self,
        item_id: str,
        label: str,
        content: GroupContent = None,
        permissions: Union[str, Sequence[str], None] = None,
        roles: Union[str, Sequence[str], None] = None,
        **options: Any,
    ) -> "AccordionSection":
        self.items.add(item_id, label, content, permissions, roles, owner=self, **options)
        return self

    def add_panel(self, item_id: str, label: str, content: GroupContent = None, **options: Any) -> "AccordionSection":
        return self.add_item(item_id, label, content, **options)

    def get_item(self, item_id: str) -> Optional[Group]:
        return self.items.get(item_id)

    def with_multiple(self, multiple: bool = True) -> "AccordionSection":
        self.multiple = multiple
        return self

    def with_collapsible(self, collapsible: bool = True) -> "AccordionSection":
        self.collapsible = collapsible
        return self

    def expand(self, *item_ids: str) -> "AccordionSection":
        self.expanded.extend(item_ids)
        return self

    def with_variant(self, variant: str) -> "AccordionSection":
        self.variant = variant
        return self

    @property
    def expanded_items(self) -> List[str]:
        if self.expanded:
            return list(self.expanded)
        return self.items.ids()[:1]

    def containers(self) -> List[Any]:
        return [self.items, self.slots, self.sections]

    def properties(self) -> Dict[str, Any]:
        return {
            "multiple": self.multiple,
            "collapsible": self.collapsible,
            "expanded": self.expanded_items,
            "variant": self.variant,
        }


@dataclass(eq=False)
class WizardSection(SlotSection):
    """
    Multi-step flow. Steps are keyed by "key" and the current step can be
    set by key or by index; an unknown key falls back to the first step.
    """

    type: str = "wizard"
    steps: GroupMap = field(
        default_factory=lambda: GroupMap(
            key="steps",
            id_key="key",
            defaults={"description": None, "icon": None, "optional": False, "validation": []},
        )
    )
    current_step: int = 0
    linear: bool = True
    show_step_numbers: bool = True
    orientation: str = "horizontal"
    validate_on_next: bool = True

    def add_step(
        self,
        key: str,
        label: str,
        content: GroupContent = None,
        permissions: Union[str, Sequence[str], None] = None,
        roles: Union[str, Sequence[str], None] = None,
        **options: Any,
    ) -> "WizardSection":
        self.steps.add(key, label, content, permissions, roles, owner=self, **options)
        return self

    def get_step(self, key: str) -> Optional[Group]:
        return self.steps.get(key)

    def with_current_step(self, step: Union[int, str]) -> "WizardSection":
        if isinstance(step, int):
            self.current_step = step
        else:
            keys = self.steps.ids()
            self.current_step = keys.index(step) if step in keys else 0
        return self

    def with_linear(self, linear: bool = True) -> "WizardSection":
        self.linear = linear
        return self

    def with_step_numbers(self, show: bool = True) -> "WizardSection":
        self.show_step_numbers = show
        return self

    def vertical(self) -> "WizardSection":
        self.orientation = "vertical"
        return self

    def horizontal(self) -> "WizardSection":
        self.orientation = "horizontal"
        return self

    def with_validate_on_next(self, validate: bool = True) -> "WizardSection":
        self.validate_on_next = validate
        return self

    def containers(self) -> List[Any]:
        return [self.steps, self.slots, self.sections]

    def properties(self) -> Dict[str, Any]:
        return {
            "current_step": self.current_step,
            "linear": self.linear,
            "show_step_numbers": self.show_step_numbers,
            "orientation": self.orientation,
            "validate_on_next": self.validate_on_next,
        }


# ----------------------------------------------------------------------
# Type registry
# ----------------------------------------------------------------------

COMPONENT_TYPES: Dict[str, Type[Node]] = {
    "grid": GridSection,
    "form": FormSection,
    "custom": CustomSection,
    "tabs": TabsSection,
    "header": HeaderSection,
    "layout": LayoutSection,
    "accordion": AccordionSection,
    "wizard": WizardSection,
}


def make_component(type: str, name: str, **props: Any) -> Node:
    """
    Build a node for a type tag.

    Known container types get their class; any other tag (card, table,
    chart, ...) becomes a generic Component carrying `props`.

    For known types each prop is applied as a settings attribute
    (variant="dark", is_sticky=True), a with_<key> setter (columns=4) or
    a verb of the class (sticky=True). Props matching none of these go
    into the props bag of Component types and are logged and dropped for
    slot nodes.
    """
    cls = COMPONENT_TYPES.get(type)
    if cls is None:
        return Component.make(name, type=type, props=dict(props))
    node = cls.make(name)
    leftover = {key: value for key, value in props.items() if not _apply_setting(node, key, value)}
    if leftover:
        if isinstance(node, Component):
            node.with_props(leftover)
        else:
            logger.warning("Ignoring unknown %s settings for %r: %s", type, name, ", ".join(sorted(leftover)))
    return node


_PROTECTED_SETTINGS = frozenset({"name", "type", "parent", "props", "data"})


def _apply_setting(node: Node, key: str, value: Any) -> bool:
    if key in _PROTECTED_SETTINGS:
        return False
    settings = {f.name for f in fields(node)}
    if key in settings and not isinstance(getattr(node, key), (ChildList, SlotMap, GroupMap)):
        setattr(node, key, value)
        return True
    setter = getattr(node, f"with_{key}", None)
    if setter is None and callable(vars(type(node)).get(key)):
        setter = getattr(node, key)
    if setter is None:
        return False
    setter(value)
    return True
