"""
UI Layout Schema Builder

Declarative, fluent description of pages (dashboards, forms, tabs,
wizards) as nested node trees, serialized to plain dicts for a frontend
renderer.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTML or any rendering
    - How permissions are granted (actors are asked, never inspected)
    - Persistence of layouts or data
    - Validation of user input (rules are carried as strings only)

This package defines LAYOUT STRUCTURE and its two resolution passes
(authorization, conditional visibility) only.
"""

__version__ = "0.1.0"
