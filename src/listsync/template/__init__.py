"""Template engine: variables, filters, resolution and front matter building."""

from listsync.template.filters import FILTERS, apply_filters, available_filters
from listsync.template.frontmatter import build_frontmatter, render_body, render_document
from listsync.template.parser import (
    extract_variables,
    parse_template_variable,
    resolve_template,
    tokenize,
)
from listsync.template.properties import format_property_value
from listsync.template.variables import VARIABLES, Variable, lookup_variable

__all__ = [
    # Filters
    "FILTERS",
    "apply_filters",
    "available_filters",
    # Parser
    "extract_variables",
    "parse_template_variable",
    "resolve_template",
    "tokenize",
    # Variables
    "VARIABLES",
    "Variable",
    "lookup_variable",
    # Output
    "build_frontmatter",
    "format_property_value",
    "render_body",
    "render_document",
]
