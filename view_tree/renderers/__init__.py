"""Renderer contract, registry and template engine adapters."""

from view_tree.renderers.base import Renderer
from view_tree.renderers.jinja2_renderer import Jinja2Renderer, make_jinja2_registry
from view_tree.renderers.registry import RendererRegistry

__all__ = ["Jinja2Renderer", "Renderer", "RendererRegistry", "make_jinja2_registry"]
