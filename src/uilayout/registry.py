"""
Registry of layout definitions.

A definition is a callable that receives a fresh LayoutBuilder and
configures it. Layouts are rebuilt on every get(), so callers never share
resolved flags.

    registry = LayoutRegistry()
    registry.register("user", "profile", lambda b: b.form_section("details"))
    layout = registry.get("user", "profile", actor=current_user)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from uilayout.layout import Layout, LayoutBuilder

logger = logging.getLogger(__name__)

LayoutDefinition = Callable[[LayoutBuilder], Any]


class LayoutNotFoundError(KeyError):
    """Raised by require() when no definition exists for module/context."""
    pass


def layout_key(module: str, context: str) -> str:
    return f"{module}.{context}"


@dataclass
class LayoutRegistry:
    definitions: Dict[str, LayoutDefinition] = field(default_factory=dict)

    def register(self, module: str, context: str, definition: LayoutDefinition) -> "LayoutRegistry":
        key = layout_key(module, context)
        if key in self.definitions:
            logger.warning("Replacing layout definition for %s", key)
        else:
            logger.debug("Registering layout definition for %s", key)
        self.definitions[key] = definition
        return self

    def has(self, module: str, context: str) -> bool:
        return layout_key(module, context) in self.definitions

    def registered(self) -> List[str]:
        return list(self.definitions)

    def builder(self, module: str, context: str) -> LayoutBuilder:
        return LayoutBuilder.create(module, context)

    def get(
        self,
        module: str,
        context: str,
        actor: Any = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Layout]:
        """
        Build the layout for module/context, or None when not registered.

        Authorization is resolved when an actor is given and conditions are
        evaluated when data is given.
        """
        definition = self.definitions.get(layout_key(module, context))
        if definition is None:
            return None

        logger.debug("Building layout %s", layout_key(module, context))
        builder = self.builder(module, context)
        result = definition(builder)
        if isinstance(result, Layout):
            layout = result
        elif isinstance(result, LayoutBuilder):
            layout = result.build()
        else:
            layout = builder.build()

        if actor is not None:
            layout.resolve_authorization(actor)
        if data is not None:
            layout.evaluate_conditions(data)
        return layout

    def require(self, module: str, context: str, actor: Any = None, data: Optional[Dict[str, Any]] = None) -> Layout:
        layout = self.get(module, context, actor, data)
        if layout is None:
            raise LayoutNotFoundError(f"No layout registered for {layout_key(module, context)}")
        return layout

    def unregister(self, module: str, context: str) -> bool:
        return self.definitions.pop(layout_key(module, context), None) is not None
