"""
Layout orchestration.

LayoutBuilder collects top-level nodes under a (module, context) pair and
build()s an immutable-by-convention Layout. A Layout runs the two
resolution passes over the whole tree and serializes it:

    layout.resolve_authorization(user)      # authorized_to_see everywhere
    layout.evaluate_conditions(context)     # visible / enabled everywhere
    layout.to_authorized_dict()             # pruned, renderer-ready tree

Both passes overwrite flags in place. resolve_layout() does the same on
a deep copy and leaves the original untouched, which is what concurrent
callers sharing one layout definition want.
"""

from __future__ import annotations

import copy
import sys
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from uilayout.components import (
    AccordionSection,
    Component,
    CustomSection,
    FormSection,
    GridSection,
    HeaderSection,
    LayoutSection,
    TabsSection,
    WizardSection,
    make_component,
)
from uilayout.containers import attach, is_authorized, serialize_node
from uilayout.model import Field, Node
from uilayout.sections import Section, Subsection

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Layout:
    """
    A built layout: top-level nodes in insertion order plus page metadata.

    Properties:
        module: Owning module ("user", "product", ...)
        context: View context ("profile", "edit", "create", ...)
        components: Top-level nodes keyed by name
        shared_data_url / shared_data_params: Data shared by every node
        meta: Opaque page metadata
        root_key: "sections" or "components" in the serialized output
    """

    module: str
    context: str
    components: Dict[str, Any] = field(default_factory=dict)
    shared_data_url: Optional[str] = None
    shared_data_params: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    root_key: str = "sections"

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_component(self, component: Any) -> "Layout":
        self.components[component.name] = component
        return self

    def add_section(self, section: Any) -> "Layout":
        return self.add_component(section)

    def with_meta(self, meta: Optional[Dict[str, Any]] = None, **extra: Any) -> "Layout":
        self.meta.update(meta or {})
        self.meta.update(extra)
        return self

    def get_component(self, name: str) -> Optional[Any]:
        return self.components.get(name)

    def get_section(self, name: str) -> Optional[Any]:
        return self.get_component(name)

    def get_subsection(self, section_name: str, subsection_name: str) -> Optional[Subsection]:
        section = self.get_section(section_name)
        if isinstance(section, Section):
            return section.get_subsection(subsection_name)
        return None

    def get_form_field(self, section_name: str, subsection_name: str, field_name: str) -> Optional[Any]:
        subsection = self.get_subsection(section_name, subsection_name)
        return subsection.get_field(field_name) if subsection is not None else None

    def walk(self) -> Iterator[Any]:
        """Every node in the tree, depth-first, top-level nodes in insertion order."""
        for component in self.components.values():
            if isinstance(component, Node):
                yield from component.walk()
            else:
                yield component

    def all_form_fields(self) -> List[Field]:
        """Every Field reachable through any container shape."""
        return [node for node in self.walk() if isinstance(node, Field)]

    def form_field_by_name(self, name: str) -> Optional[Field]:
        for form_field in self.all_form_fields():
            if form_field.name == name:
                return form_field
        return None

    def validation_rules(self) -> Dict[str, List[str]]:
        return {f.name: f.validation_rules for f in self.all_form_fields() if f.validation_rules}

    def sorted_components(self) -> List[Any]:
        return sorted(self.components.values(), key=lambda c: getattr(c, "sort_key", sys.maxsize))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_authorization(self, actor: Any = None) -> "Layout":
        logger.debug("Resolving authorization for %s.%s (actor: %s)",
                     self.module, self.context, "yes" if actor is not None else "guest")
        for component in self.components.values():
            resolve = getattr(component, "resolve_authorization", None)
            if callable(resolve):
                resolve(actor)
        return self

    def evaluate_conditions(self, context: Dict[str, Any]) -> "Layout":
        logger.debug("Evaluating conditions for %s.%s", self.module, self.context)
        for node in self.walk():
            evaluate = getattr(node, "evaluate_conditions", None)
            if callable(evaluate):
                evaluate(context)
        return self

    def for_user(self, actor: Any = None) -> "Layout":
        return self.resolve_authorization(actor)

    def authorized_components(self) -> Dict[str, Any]:
        return {name: c for name, c in self.components.items() if is_authorized(c)}

    def calculate_computed_values(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run every computed field in declaration order.

        Each callback sees the input data plus the values computed before it.
        """
        computed: Dict[str, Any] = {}
        for form_field in self.all_form_fields():
            if form_field.is_computed:
                computed[form_field.name] = form_field.compute_value({**data, **computed})
        return computed

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _serialize(self, components: Sequence[Any], authorized_only: bool) -> Dict[str, Any]:
        return {
            "module": self.module,
            "context": self.context,
            "shared_data_url": self.shared_data_url,
            "shared_data_params": self.shared_data_params,
            self.root_key: [serialize_node(c, authorized_only) for c in components],
            "meta": self.meta,
        }

    def to_dict(self) -> Dict[str, Any]:
        return self._serialize(list(self.components.values()), authorized_only=False)

    def to_authorized_dict(self) -> Dict[str, Any]:
        """Same shape as to_dict(), with unauthorized nodes and groups pruned at every depth."""
        return self._serialize(list(self.authorized_components().values()), authorized_only=True)

    def render(self) -> Dict[str, Any]:
        return self.to_dict()


def resolve_layout(layout: Layout, actor: Any = None, context: Optional[Dict[str, Any]] = None) -> Layout:
    """
    Return a resolved deep copy of layout.

    Authorization is resolved for actor; conditions are evaluated only when
    a context is given. The input layout is not modified.
    """
    resolved = copy.deepcopy(layout)
    resolved.resolve_authorization(actor)
    if context is not None:
        resolved.evaluate_conditions(context)
    return resolved


class LayoutBuilder:
    """
    Fluent entry point.

    Example:
        layout = (LayoutBuilder.create("user", "profile")
                  .form_section("details").field("email").required().end()
                  .end()
                  .build())
    """

    def __init__(self, module: str, context: str):
        self.module = module
        self.context = context
        self.components: Dict[str, Any] = {}
        self.shared_data_url: Optional[str] = None
        self.shared_data_params: Dict[str, Any] = {}
        self.meta: Dict[str, Any] = {}

    @classmethod
    def create(cls, module: str, context: str) -> "LayoutBuilder":
        return cls(module, context)

    def with_shared_data_url(self, url: str) -> "LayoutBuilder":
        self.shared_data_url = url
        return self

    def with_shared_data_params(self, params: Optional[Dict[str, Any]] = None, **extra: Any) -> "LayoutBuilder":
        self.shared_data_params.update(params or {})
        self.shared_data_params.update(extra)
        return self

    def with_meta(self, meta: Optional[Dict[str, Any]] = None, **extra: Any) -> "LayoutBuilder":
        self.meta.update(meta or {})
        self.meta.update(extra)
        return self

    def add_component(self, component: Any) -> "LayoutBuilder":
        self.components[component.name] = attach(component, self)
        return self

    def add_section(self, section: Any) -> "LayoutBuilder":
        return self.add_component(section)

    def _attach_new(self, node: Node) -> Any:
        self.add_component(node)
        return node

    def component(self, type: str, name: str, **props: Any) -> Node:
        return self._attach_new(make_component(type, name, **props))

    def form_section(self, name: str) -> FormSection:
        return self._attach_new(FormSection.make(name))

    def grid_section(self, name: str) -> GridSection:
        return self._attach_new(GridSection.make(name))

    def tabs_section(self, name: str) -> TabsSection:
        return self._attach_new(TabsSection.make(name))

    def accordion_section(self, name: str) -> AccordionSection:
        return self._attach_new(AccordionSection.make(name))

    def wizard_section(self, name: str) -> WizardSection:
        return self._attach_new(WizardSection.make(name))

    def header_section(self, name: str) -> HeaderSection:
        return self._attach_new(HeaderSection.make(name))

    def layout_section(self, name: str) -> LayoutSection:
        return self._attach_new(LayoutSection.make(name))

    def custom_section(self, name: str, type: str = "custom") -> CustomSection:
        return self._attach_new(CustomSection.make(name, type=type))

    def card_section(self, name: str, **props: Any) -> Component:
        return self.component("card", name, **props)

    def section(self, name: str) -> Section:
        """Start a Section; end_section() comes back to this builder."""
        return self._attach_new(Section.make(name))

    def get_component(self, name: str) -> Optional[Any]:
        return self.components.get(name)

    def get_section(self, name: str) -> Optional[Any]:
        return self.get_component(name)

    def build(self) -> Layout:
        return Layout(
            module=self.module,
            context=self.context,
            components=dict(self.components),
            shared_data_url=self.shared_data_url,
            shared_data_params=dict(self.shared_data_params),
            meta=dict(self.meta),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without building first; top-level nodes go under "components"."""
        layout = self.build()
        layout.root_key = "components"
        return layout.to_dict()
