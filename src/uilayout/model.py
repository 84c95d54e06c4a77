"""
Core Layout Model Objects

Defines the building blocks of a layout tree:
    - DataBinding (where a node's data would be loaded from)
    - Node (anything placed in a layout: component, section, field)
    - Field (form input leaf)

Every node carries three independent kinds of state:
    - configuration (title, order, meta, data binding, ...)
    - conditional logic inputs (show/hide/enable conditions)
    - authorization inputs (permissions, roles, custom predicate)

and two kinds of resolved flags:
    - visible / enabled            <- evaluate_conditions(context)
    - authorized_to_see (/ _edit)  <- resolve_authorization(actor)

ARCHITECTURAL RULE:
    Nodes are configured through chained methods; every mutator returns
    the same instance. Resolution passes overwrite flags in place and
    never reset them. Use layout.resolve_layout() for a resolved copy.

Containment (children) is declared by subclasses through containers();
the base Node has none.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from uilayout.authorization import AccessPredicate, check_permissions, check_roles, listify, resolve_access
from uilayout.expressions import (
    Condition,
    ConditionLike,
    condition_to_dict,
    evaluate_multiple,
    invert_operator,
    negate_condition,
    normalize_condition,
)


@dataclass
class DataBinding:
    """
    Frontend data-loading configuration for a node.

    Nothing here is fetched by the library; it only describes where the
    renderer should load data from.
    """

    source: Optional[str] = None
    url: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    transform: Optional[str] = None
    load_on_mount: bool = True
    reload_on_change: bool = False
    use_shared_data: bool = False
    key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_source": self.source,
            "data_url": self.url,
            "data_params": self.params,
            "data_transform": self.transform,
            "load_on_mount": self.load_on_mount,
            "reload_on_change": self.reload_on_change,
            "use_shared_data": self.use_shared_data,
            "data_key": self.key,
        }


@dataclass(eq=False)
class Node:
    """
    Base class for everything placed in a layout tree.

    Properties:
        name:
            Identifier, unique among siblings of the same container
        type:
            Discriminator tag ("grid", "tabs", "form", "card", ...)
        order:
            Advisory sort key; unordered nodes sort last (see sort_key)
        visible / enabled:
            Recomputed by evaluate_conditions()
        authorized_to_see:
            Recomputed by resolve_authorization()
        permissions / roles / can_see_callback:
            Authorization inputs
        show_when_conditions / hide_when_conditions / enable_when_conditions:
            Conditional logic inputs, combined with condition_logic
        meta:
            Opaque passthrough for the renderer; merged on repeated calls
        parent:
            Container or builder this node was attached to (for end())

    Nodes compare by identity.
    """

    name: str
    type: str = "component"
    order: Optional[int] = None
    visible: bool = True
    enabled: bool = True
    meta: Dict[str, Any] = field(default_factory=dict)

    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    actions: List[Dict[str, Any]] = field(default_factory=list)
    data: DataBinding = field(default_factory=DataBinding)

    permissions: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    can_see_callback: Optional[AccessPredicate] = field(default=None, repr=False)
    authorized_to_see: bool = True

    show_when_conditions: List[ConditionLike] = field(default_factory=list)
    hide_when_conditions: List[ConditionLike] = field(default_factory=list)
    enable_when_conditions: List[ConditionLike] = field(default_factory=list)
    condition_logic: str = "AND"

    parent: Any = field(default=None, repr=False)

    @classmethod
    def make(cls, name: str, **kwargs: Any) -> "Node":
        return cls(name=name, **kwargs)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def with_order(self, order: int) -> "Node":
        self.order = order
        return self

    def with_visible(self, visible: bool = True) -> "Node":
        self.visible = visible
        return self

    def hide(self) -> "Node":
        return self.with_visible(False)

    def with_meta(self, meta: Optional[Dict[str, Any]] = None, **extra: Any) -> "Node":
        self.meta.update(meta or {})
        self.meta.update(extra)
        return self

    def with_title(self, title: str) -> "Node":
        self.title = title
        return self

    def with_subtitle(self, subtitle: str) -> "Node":
        self.subtitle = subtitle
        return self

    def with_description(self, description: str) -> "Node":
        self.description = description
        return self

    def with_icon(self, icon: str) -> "Node":
        self.icon = icon
        return self

    def add_action(self, label: str, url: str, **options: Any) -> "Node":
        """Append a button action; options override the button/GET defaults."""
        action = {"label": label, "url": url, "type": "button", "class": "btn btn-primary", "method": "GET"}
        action.update(options)
        self.actions.append(action)
        return self

    def with_actions(self, actions: List[Dict[str, Any]]) -> "Node":
        self.actions = list(actions)
        return self

    # Data binding

    def with_data_source(self, source: str) -> "Node":
        self.data.source = source
        return self

    def with_data_url(self, url: str) -> "Node":
        self.data.url = url
        return self

    def with_data_params(self, params: Optional[Dict[str, Any]] = None, **extra: Any) -> "Node":
        self.data.params.update(params or {})
        self.data.params.update(extra)
        return self

    def with_data_transform(self, transform: str) -> "Node":
        self.data.transform = transform
        return self

    def load_on_mount(self, load: bool = True) -> "Node":
        self.data.load_on_mount = load
        return self

    def reload_on_change(self, reload: bool = True) -> "Node":
        self.data.reload_on_change = reload
        return self

    def use_shared_data(self, shared: bool = True, key: Optional[str] = None) -> "Node":
        self.data.use_shared_data = shared
        if key is not None:
            self.data.key = key
        return self

    def with_data_key(self, key: str) -> "Node":
        self.data.key = key
        return self

    # ------------------------------------------------------------------
    # Conditional logic
    # ------------------------------------------------------------------

    def show_when(self, field: Union[str, ConditionLike], operator: Optional[str] = None, value: Any = None) -> "Node":
        """
        Show the node only when the condition holds.

        Accepts show_when("user.role", "==", "admin"),
        show_when("user.role == admin") or a condition mapping.
        """
        self.show_when_conditions.append(normalize_condition(field, operator, value))
        return self

    def hide_when(self, field: Union[str, ConditionLike], operator: Optional[str] = None, value: Any = None) -> "Node":
        self.hide_when_conditions.append(normalize_condition(field, operator, value))
        return self

    def enable_when(self, field: Union[str, ConditionLike], operator: Optional[str] = None, value: Any = None) -> "Node":
        self.enable_when_conditions.append(normalize_condition(field, operator, value))
        return self

    def visible_when(self, field: Union[str, ConditionLike], operator: Optional[str] = None, value: Any = None) -> "Node":
        return self.show_when(field, operator, value)

    def with_condition_logic(self, logic: str) -> "Node":
        self.condition_logic = logic.upper()
        return self

    @property
    def has_conditions(self) -> bool:
        return bool(self.show_when_conditions or self.hide_when_conditions or self.enable_when_conditions)

    def evaluate_conditions(self, context: Dict[str, Any]) -> "Node":
        """
        Recompute visible/enabled from this node's own conditions.

        Not recursive. Hide conditions can only switch visibility off.
        Kinds without conditions leave their flag untouched.
        """
        if self.show_when_conditions:
            self.visible = evaluate_multiple(self.show_when_conditions, context, self.condition_logic)

        if self.hide_when_conditions:
            if evaluate_multiple(self.hide_when_conditions, context, self.condition_logic):
                self.visible = False

        if self.enable_when_conditions:
            self.enabled = evaluate_multiple(self.enable_when_conditions, context, self.condition_logic)

        return self

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def require_permissions(self, *permissions: Union[str, List[str]]) -> "Node":
        self.permissions = [p for group in permissions for p in listify(group)]
        return self

    def require_roles(self, *roles: Union[str, List[str]]) -> "Node":
        self.roles = [r for group in roles for r in listify(group)]
        return self

    def visible_for_permissions(self, *permissions: Union[str, List[str]]) -> "Node":
        return self.require_permissions(*permissions)

    def visible_for_roles(self, *roles: Union[str, List[str]]) -> "Node":
        return self.require_roles(*roles)

    def can_see(self, predicate: AccessPredicate) -> "Node":
        self.can_see_callback = predicate
        return self

    def resolve_authorization(self, actor: Any = None) -> "Node":
        """Recompute authorized_to_see for this node and, recursively, every child container."""
        self.authorized_to_see = resolve_access(
            self.authorized_to_see, actor, self.permissions, self.roles, self.can_see_callback
        )
        for container in self.containers():
            container.resolve_authorization(actor)
        return self

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    def containers(self) -> List[Any]:
        """Child containers (ChildList, SlotMap, GroupMap); none for plain nodes."""
        return []

    def child_nodes(self) -> List[Any]:
        return [child for container in self.containers() for child in container.nodes()]

    def walk(self) -> Iterator[Any]:
        """Yield this node and every descendant, depth-first, across all container shapes."""
        yield self
        for child in self.child_nodes():
            if isinstance(child, Node):
                yield from child.walk()
            else:
                yield child

    @property
    def sort_key(self) -> int:
        return self.order if self.order is not None else sys.maxsize

    def end(self) -> Any:
        """Return to whatever this node was attached to."""
        return self.parent

    def end_section(self) -> Any:
        """Skip past a slot straight to the node that owns it."""
        return getattr(self.parent, "owner", self.parent)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def properties(self) -> Dict[str, Any]:
        """Type-specific properties; subclasses extend this."""
        return {}

    def common_properties(self) -> Dict[str, Any]:
        data = {
            "type": self.type,
            "name": self.name,
            "title": self.title,
            "subtitle": self.subtitle,
            "description": self.description,
            "icon": self.icon,
        }
        data.update(self.data.to_dict())
        data.update({
            "actions": self.actions,
            "order": self.order,
            "visible": self.visible,
            "enabled": self.enabled,
            "permissions": self.permissions,
            "roles": self.roles,
            "authorized_to_see": self.authorized_to_see,
            "meta": self.meta,
        })
        return data

    def conditional_properties(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.show_when_conditions:
            data["show_when"] = [condition_to_dict(c) for c in self.show_when_conditions]
        if self.hide_when_conditions:
            data["hide_when"] = [condition_to_dict(c) for c in self.hide_when_conditions]
        if self.enable_when_conditions:
            data["enable_when"] = [condition_to_dict(c) for c in self.enable_when_conditions]
        if self.has_conditions:
            data["condition_logic"] = self.condition_logic
        return data

    def to_dict(self, authorized_only: bool = False) -> Dict[str, Any]:
        """
        Serialize this node and all of its containers.

        With authorized_only=True, children (and groups) whose resolved
        authorization flag is False are dropped before recursing.
        """
        data = self.common_properties()
        data.update(self.properties())
        for container in self.containers():
            if container.emit_empty or len(container):
                data[container.key] = container.serialize(authorized_only)
        data.update(self.conditional_properties())
        return data


@dataclass(eq=False)
class Field(Node):
    """
    A form input leaf.

    Beyond Node it carries:
        - field_type, label, placeholder, default, options, attributes
        - is_required (mirrored into the "required" rule), min/max length
        - rules: validation rule tokens for an external validator
        - required_conditions / disabled_conditions (conditional state)
        - depends_on_*: cascading-option configuration
        - computed_callback: derives the value from data; forces read-only
        - authorized_to_edit plus editable_permissions / editable_roles

    IMPORTANT:
        Fields never run validation. rules are only carried.
    """

    type: str = "field"
    field_type: str = "text"
    label: Optional[str] = None
    placeholder: Optional[str] = None
    default: Any = None
    options: Any = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    group: Optional[str] = None

    is_required: bool = False
    is_readonly: bool = False
    is_disabled: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    rules: List[str] = field(default_factory=list)
    validation_messages: Dict[str, str] = field(default_factory=dict)

    required_conditions: List[ConditionLike] = field(default_factory=list)
    disabled_conditions: List[ConditionLike] = field(default_factory=list)
    depends_on_field: Optional[str] = None
    depends_on_url: Optional[str] = None
    depends_on_params: Dict[str, Any] = field(default_factory=dict)
    computed_callback: Optional[Callable[[Dict[str, Any]], Any]] = field(default=None, repr=False)

    column_span: Optional[int] = None
    column_start: Optional[str] = None
    help: Optional[str] = None
    tooltip: Optional[str] = None
    example: Optional[str] = None

    can_edit_callback: Optional[AccessPredicate] = field(default=None, repr=False)
    editable_permissions: List[str] = field(default_factory=list)
    editable_roles: List[str] = field(default_factory=list)
    guests_hidden: bool = False
    authorized_to_edit: bool = True

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def with_type(self, field_type: str) -> "Field":
        self.field_type = field_type
        return self

    def with_label(self, label: str) -> "Field":
        self.label = label
        return self

    def with_placeholder(self, placeholder: str) -> "Field":
        self.placeholder = placeholder
        return self

    def with_default(self, value: Any) -> "Field":
        self.default = value
        return self

    def with_options(self, options: Any) -> "Field":
        self.options = options
        return self

    def with_attributes(self, attributes: Optional[Dict[str, Any]] = None, **extra: Any) -> "Field":
        self.attributes.update(attributes or {})
        self.attributes.update(extra)
        return self

    def in_group(self, group: str) -> "Field":
        self.group = group
        return self

    def required(self, required: bool = True) -> "Field":
        self.is_required = required
        return self

    def readonly(self, readonly: bool = True) -> "Field":
        self.is_readonly = readonly
        return self

    def disabled(self, disabled: bool = True) -> "Field":
        self.is_disabled = disabled
        return self

    def with_min_length(self, length: int) -> "Field":
        self.min_length = length
        self.rules.append(f"min:{length}")
        return self

    def with_max_length(self, length: int) -> "Field":
        self.max_length = length
        self.rules.append(f"max:{length}")
        return self

    def with_rules(self, rules: Union[str, List[str]]) -> "Field":
        """Append rules given as "a|b:1" or as a list; "required" sets is_required."""
        if isinstance(rules, str):
            rules = rules.split("|")
        for rule in rules:
            if rule == "required":
                self.is_required = True
            else:
                self.rules.append(rule)
        return self

    def with_validation_message(self, rule: str, message: str) -> "Field":
        self.validation_messages[rule] = message
        return self

    @property
    def validation_rules(self) -> List[str]:
        """Rules in first-seen order without duplicates; "required" follows is_required."""
        seen = [r for r in dict.fromkeys(self.rules) if r != "required"]
        return ["required", *seen] if self.is_required else seen

    # Layout & help

    def with_column_span(self, span: int) -> "Field":
        self.column_span = span
        return self

    def full_width(self) -> "Field":
        return self.with_column_span(12)

    def half_width(self) -> "Field":
        return self.with_column_span(6)

    def third_width(self) -> "Field":
        return self.with_column_span(4)

    def quarter_width(self) -> "Field":
        return self.with_column_span(3)

    def with_column_start(self, column: Union[int, str]) -> "Field":
        self.column_start = str(column)
        return self

    def with_help(self, text: str) -> "Field":
        self.help = text
        return self

    def with_tooltip(self, text: str) -> "Field":
        self.tooltip = text
        return self

    def with_example(self, example: str) -> "Field":
        self.example = example
        return self

    # ------------------------------------------------------------------
    # Conditional state & dependencies
    # ------------------------------------------------------------------

    def hidden_when(self, field: str, operator: str, value: Any = None) -> "Field":
        inverse = invert_operator(operator)
        if inverse is None:
            self.hide_when_conditions.append(Condition(field, operator, value))
        else:
            self.show_when_conditions.append(Condition(field, inverse, value))
        return self

    def required_when(self, field: str, operator: str, value: Any = None) -> "Field":
        self.required_conditions.append(Condition(field, operator, value))
        return self

    def optional_when(self, field: str, operator: str, value: Any = None) -> "Field":
        self.required_conditions.append(negate_condition(field, operator, value))
        return self

    def disabled_when(self, field: str, operator: str, value: Any = None) -> "Field":
        self.disabled_conditions.append(Condition(field, operator, value))
        return self

    def enabled_when(self, field: str, operator: str, value: Any = None) -> "Field":
        self.disabled_conditions.append(negate_condition(field, operator, value))
        return self

    def depends_on(self, field: str, url: Optional[str] = None, params: Optional[Dict[str, Any]] = None) -> "Field":
        """Cascading options: reload this field's options from url when `field` changes."""
        self.depends_on_field = field
        self.depends_on_url = url
        self.depends_on_params = dict(params or {})
        return self

    def should_be_visible(self, data: Dict[str, Any]) -> bool:
        if not evaluate_multiple(self.show_when_conditions, data, self.condition_logic):
            return False
        return not (self.hide_when_conditions
                    and evaluate_multiple(self.hide_when_conditions, data, self.condition_logic))

    def should_be_required(self, data: Dict[str, Any]) -> bool:
        if not self.required_conditions:
            return self.is_required
        return evaluate_multiple(self.required_conditions, data)

    def should_be_disabled(self, data: Dict[str, Any]) -> bool:
        if not self.disabled_conditions:
            return self.is_disabled
        return evaluate_multiple(self.disabled_conditions, data)

    def evaluate_conditions(self, context: Dict[str, Any]) -> "Field":
        super().evaluate_conditions(context)
        if self.required_conditions:
            self.is_required = evaluate_multiple(self.required_conditions, context)
        if self.disabled_conditions:
            self.is_disabled = evaluate_multiple(self.disabled_conditions, context)
        return self

    # Computed values

    def computed(self, callback: Callable[[Dict[str, Any]], Any]) -> "Field":
        self.computed_callback = callback
        self.is_readonly = True
        return self

    @property
    def is_computed(self) -> bool:
        return self.computed_callback is not None

    def compute_value(self, data: Dict[str, Any]) -> Any:
        if self.computed_callback is None:
            return None
        return self.computed_callback(data)

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    def can_edit(self, predicate: AccessPredicate) -> "Field":
        self.can_edit_callback = predicate
        return self

    def editable_for_permissions(self, *permissions: Union[str, List[str]]) -> "Field":
        self.editable_permissions = [p for group in permissions for p in listify(group)]
        return self

    def editable_for_roles(self, *roles: Union[str, List[str]]) -> "Field":
        self.editable_roles = [r for group in roles for r in listify(group)]
        return self

    def hide_for_guests(self) -> "Field":
        self.guests_hidden = True
        return self

    def only_for_authenticated(self) -> "Field":
        return self.hide_for_guests()

    def resolve_authorization(self, actor: Any = None) -> "Field":
        """
        Recompute authorized_to_see and authorized_to_edit.

        A field that cannot be seen cannot be edited. A field that can be
        seen but not edited becomes read-only.
        """
        see = resolve_access(self.authorized_to_see, actor, self.permissions, self.roles, self.can_see_callback)
        edit = self.authorized_to_edit
        if self.can_edit_callback is not None:
            edit = bool(self.can_edit_callback(actor))

        if self.guests_hidden and actor is None:
            see = False
        if not see:
            edit = False

        if self.editable_permissions and actor is not None:
            edit = check_permissions(actor, self.editable_permissions)
        if self.editable_roles and actor is not None:
            edit = check_roles(actor, self.editable_roles)
        if not see:
            edit = False

        self.authorized_to_see = see
        self.authorized_to_edit = edit
        if see and not edit:
            self.is_readonly = True
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self, authorized_only: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.field_type,
            "label": self.label,
            "placeholder": self.placeholder,
            "description": self.description,
            "default": self.default,
            "required": self.is_required,
            "readonly": self.is_readonly,
            "disabled": self.is_disabled,
            "max_length": self.max_length,
            "min_length": self.min_length,
            "options": self.options,
            "rules": self.validation_rules,
            "attributes": self.attributes,
            "meta": self.meta,
            "order": self.order,
            "group": self.group,
            "visible": self.visible,
            "enabled": self.enabled,
        }

        optional = {
            "icon": self.icon,
            "depends_on": self.depends_on_field,
            "column_span": self.column_span,
            "column_start": self.column_start,
            "help": self.help,
            "tooltip": self.tooltip,
            "example": self.example,
        }
        data.update({k: v for k, v in optional.items() if v is not None})

        if self.depends_on_field is not None:
            if self.depends_on_url is not None:
                data["depends_on_url"] = self.depends_on_url
            if self.depends_on_params:
                data["depends_on_params"] = self.depends_on_params
        if self.required_conditions:
            data["required_conditions"] = [condition_to_dict(c) for c in self.required_conditions]
        if self.disabled_conditions:
            data["disabled_conditions"] = [condition_to_dict(c) for c in self.disabled_conditions]
        if self.validation_messages:
            data["validation_messages"] = self.validation_messages
        if self.is_computed:
            data["is_computed"] = True

        if self.permissions:
            data["permissions"] = self.permissions
        if self.roles:
            data["roles"] = self.roles
        if self.editable_permissions:
            data["editable_permissions"] = self.editable_permissions
        if self.editable_roles:
            data["editable_roles"] = self.editable_roles
        if self.guests_hidden:
            data["hide_for_guests"] = True
        data["authorized_to_see"] = self.authorized_to_see
        data["authorized_to_edit"] = self.authorized_to_edit

        data.update(self.conditional_properties())
        return data
