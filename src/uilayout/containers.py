"""
Child containers for layout nodes.

A node holds its children in one or more containers. There are three
shapes, and all of them answer the same questions:

    ChildList   flat, ordered list         ("components", "fields", ...)
    SlotMap     named slots (Slot)         ("section_slots")
    GroupMap    keyed groups (Group)       ("tabs", "items", "steps")

Shared interface:
    key                       -> serialization key on the owning node
    emit_empty                -> serialize even when there are no children
    branches()                -> [(label, [children])] one entry per list
    nodes()                   -> every direct child, across all branches
    resolve_authorization(a)  -> push the actor down into every child
    serialize(authorized_only)-> JSON-ready structure

IMPORTANT:
    With authorized_only=True, children whose authorized_to_see is False
    (and groups whose `authorized` flag is False) are dropped before
    recursing, so nothing below an unauthorized node leaks out.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from uilayout.authorization import listify, resolve_group_access
from uilayout.model import Node


class InvalidSectionError(ValueError):
    """Raised when a slot name is not in the owning node's allowed set."""
    pass


def is_authorized(node: Any) -> bool:
    return bool(getattr(node, "authorized_to_see", True))


def serialize_node(node: Any, authorized_only: bool = False) -> Dict[str, Any]:
    """Serialize a child; foreign leaves degrade to their to_dict(), mapping or attributes."""
    if isinstance(node, Node):
        return node.to_dict(authorized_only=authorized_only)
    to_dict = getattr(node, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(node, Mapping):
        return dict(node)
    if dataclasses.is_dataclass(node):
        return dataclasses.asdict(node)
    return dict(vars(node))


def serialize_nodes(nodes: Sequence[Any], authorized_only: bool = False) -> List[Dict[str, Any]]:
    return [
        serialize_node(node, authorized_only)
        for node in nodes
        if not authorized_only or is_authorized(node)
    ]


def resolve_children(nodes: Sequence[Any], actor: Any) -> None:
    for node in nodes:
        resolve = getattr(node, "resolve_authorization", None)
        if callable(resolve):
            resolve(actor)


def attach(node: Any, parent: Any) -> Any:
    if isinstance(node, Node):
        node.parent = parent
    return node


# ----------------------------------------------------------------------
# Flat list
# ----------------------------------------------------------------------

@dataclass
class ChildList:
    """
    Flat ordered children.

    With keyed=True a child whose name is already present replaces the
    earlier one in place (names are unique among siblings).
    """

    key: str = "components"
    keyed: bool = False
    emit_empty: bool = True
    children: List[Any] = field(default_factory=list)

    def add(self, node: Any) -> "ChildList":
        if self.keyed:
            name = getattr(node, "name", None)
            for index, existing in enumerate(self.children):
                if name is not None and getattr(existing, "name", None) == name:
                    self.children[index] = node
                    return self
        self.children.append(node)
        return self

    def get(self, name: str) -> Optional[Any]:
        for child in self.children:
            if getattr(child, "name", None) == name:
                return child
        return None

    def branches(self) -> List[Tuple[str, List[Any]]]:
        return [(self.key, self.children)]

    def nodes(self) -> List[Any]:
        return list(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self):
        return iter(self.children)

    def resolve_authorization(self, actor: Any) -> None:
        resolve_children(self.children, actor)

    def serialize(self, authorized_only: bool = False) -> List[Dict[str, Any]]:
        return serialize_nodes(self.children, authorized_only)


# ----------------------------------------------------------------------
# Named slots
# ----------------------------------------------------------------------

@dataclass(eq=False)
class Slot:
    """
    A named region (header "left", layout "sidebar", ...) holding components.

    Components are created in place through component() or one of the
    shortcuts; end() returns the node that owns the slot.
    """

    name: str
    owner: Any = field(default=None, repr=False)
    components: List[Any] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def add(self, component: Any) -> "Slot":
        self.components.append(attach(component, self))
        return self

    def add_many(self, components: Sequence[Any]) -> "Slot":
        for component in components:
            self.add(component)
        return self

    def with_meta(self, meta: Optional[Dict[str, Any]] = None, **extra: Any) -> "Slot":
        self.meta.update(meta or {})
        self.meta.update(extra)
        return self

    def end(self) -> Any:
        return self.owner

    def component(self, type: str, name: str, **props: Any) -> Any:
        """Create a node of the given type, add it to this slot and return it."""
        from uilayout.components import make_component

        node = make_component(type, name, **props)
        self.add(node)
        return node

    def form(self, name: str) -> Any:
        return self.component("form", name)

    def grid(self, name: str) -> Any:
        return self.component("grid", name)

    def tabs(self, name: str) -> Any:
        return self.component("tabs", name)

    def accordion(self, name: str) -> Any:
        return self.component("accordion", name)

    def wizard(self, name: str) -> Any:
        return self.component("wizard", name)

    def header(self, name: str) -> Any:
        return self.component("header", name)

    def layout(self, name: str) -> Any:
        return self.component("layout", name)

    def card(self, name: str, **props: Any) -> Any:
        return self.component("card", name, **props)

    def table(self, name: str, **props: Any) -> Any:
        return self.component("table", name, **props)

    def chart(self, name: str, **props: Any) -> Any:
        return self.component("chart", name, **props)

    def stats(self, name: str, **props: Any) -> Any:
        return self.component("stats", name, **props)

    def text(self, name: str, **props: Any) -> Any:
        return self.component("text", name, **props)

    def alert(self, name: str, **props: Any) -> Any:
        return self.component("alert", name, **props)

    def list_view(self, name: str, **props: Any) -> Any:
        return self.component("list", name, **props)

    def to_dict(self, authorized_only: bool = False) -> Dict[str, Any]:
        return {
            "name": self.name,
            "meta": self.meta,
            "components": serialize_nodes(self.components, authorized_only),
        }


@dataclass
class SlotMap:
    """Named slots, created on first use and optionally restricted to an allow-list."""

    allowed: Tuple[str, ...] = ()
    key: str = "section_slots"
    emit_empty: bool = False
    slots: Dict[str, Slot] = field(default_factory=dict)

    def get_or_create(self, name: str, owner: Any = None) -> Slot:
        if self.allowed and name not in self.allowed:
            owner_type = type(owner).__name__ if owner is not None else "this node"
            raise InvalidSectionError(
                f"Section '{name}' is not allowed in {owner_type}. "
                f"Allowed sections: {', '.join(self.allowed)}"
            )
        if name not in self.slots:
            self.slots[name] = Slot(name=name, owner=owner)
        return self.slots[name]

    def get(self, name: str) -> Optional[Slot]:
        return self.slots.get(name)

    def has(self, name: str) -> bool:
        return name in self.slots

    def __len__(self) -> int:
        return len(self.slots)

    def branches(self) -> List[Tuple[str, List[Any]]]:
        return [(name, slot.components) for name, slot in self.slots.items()]

    def nodes(self) -> List[Any]:
        return [child for slot in self.slots.values() for child in slot.components]

    def resolve_authorization(self, actor: Any) -> None:
        resolve_children(self.nodes(), actor)

    def serialize(self, authorized_only: bool = False) -> Dict[str, Dict[str, Any]]:
        return {name: slot.to_dict(authorized_only) for name, slot in self.slots.items()}


# ----------------------------------------------------------------------
# Keyed groups
# ----------------------------------------------------------------------

GroupContent = Union[Sequence[Any], Callable[[Slot], Any], None]


@dataclass(eq=False)
class Group:
    """
    One tab, accordion panel or wizard step.

    Properties:
        id: Group key (serialized as "id", or "key" for wizard steps)
        label: Display label
        components: Children
        permissions / roles: Group-level gate
        authorized: Resolved gate, recomputed by resolve_authorization()
        options: Extra display settings (icon, badge, disabled, ...)
    """

    id: str
    label: str
    components: List[Any] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    authorized: bool = True
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, id_key: str = "id", authorized_only: bool = False) -> Dict[str, Any]:
        data = {id_key: self.id, "label": self.label}
        data.update(self.options)
        data.update({
            "components": serialize_nodes(self.components, authorized_only),
            "permissions": self.permissions,
            "roles": self.roles,
            "authorized": self.authorized,
        })
        return data


@dataclass
class GroupMap:
    """
    Keyed groups in insertion order.

    `defaults` are merged under every group's options so each serialized
    group carries the same keys.
    """

    key: str = "tabs"
    id_key: str = "id"
    emit_empty: bool = True
    defaults: Dict[str, Any] = field(default_factory=dict)
    groups: Dict[str, Group] = field(default_factory=dict)

    def add(
        self,
        group_id: str,
        label: str,
        content: GroupContent = None,
        permissions: Union[str, Sequence[str], None] = None,
        roles: Union[str, Sequence[str], None] = None,
        owner: Any = None,
        **options: Any,
    ) -> Group:
        """
        Add (or replace) a group.

        `content` is either a list of nodes or a callable that receives a
        fresh Slot to populate.
        """
        if callable(content):
            slot = Slot(name=group_id, owner=owner)
            content(slot)
            components = slot.components
        else:
            components = [attach(node, owner) for node in (content or [])]

        group = Group(
            id=group_id,
            label=label,
            components=list(components),
            permissions=listify(permissions),
            roles=listify(roles),
            options={**self.defaults, **options},
        )
        self.groups[group_id] = group
        return group

    def get(self, group_id: str) -> Optional[Group]:
        return self.groups.get(group_id)

    def ids(self) -> List[str]:
        return list(self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    def branches(self) -> List[Tuple[str, List[Any]]]:
        return [(f"{self.key}.{group.id}", group.components) for group in self.groups.values()]

    def nodes(self) -> List[Any]:
        return [child for group in self.groups.values() for child in group.components]

    def resolve_authorization(self, actor: Any) -> None:
        for group in self.groups.values():
            group.authorized = resolve_group_access(actor, group.permissions, group.roles)
            resolve_children(group.components, actor)

    def serialize(self, authorized_only: bool = False) -> List[Dict[str, Any]]:
        return [
            group.to_dict(self.id_key, authorized_only)
            for group in self.groups.values()
            if not authorized_only or group.authorized
        ]
