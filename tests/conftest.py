"""Pytest configuration and shared fixtures."""

from dataclasses import dataclass
from functools import partial
from typing import Any

import pytest

from view_tree.renderers.base import Renderer
from view_tree.renderers.registry import RendererRegistry
from view_tree.scheduler import TaskQueue
from view_tree.sinks import ResponseOutput
from view_tree.view import View


@dataclass
class RenderCall:
    """One call to a test renderer."""

    template_path: str
    data: dict[str, Any]
    renderer: Renderer


class RecordingRenderer(Renderer):
    """Renders synchronously, writing ``[template_path]``."""

    def __init__(self, calls: list[RenderCall], data=None, sink=None):
        super().__init__(data, sink)
        self.calls = calls

    def render(self, template_path: str) -> None:
        self.calls.append(RenderCall(template_path, dict(self.data), self))
        self.emit(f"[{template_path}]")


class DeferredRenderer(Renderer):
    """Records the render and waits for the test to finish or break it."""

    def __init__(self, calls: list[RenderCall], data=None, sink=None):
        super().__init__(data, sink)
        self.calls = calls
        self.template_path: str | None = None

    def render(self, template_path: str) -> None:
        self.template_path = template_path
        self.calls.append(RenderCall(template_path, dict(self.data), self))

    def complete(self, content: str | None = None) -> None:
        self.emit(content if content is not None else f"[{self.template_path}]")

    def break_with(self, error: Exception) -> None:
        self.fail(error)


class FailingRenderer(Renderer):
    """Fails every render with a RuntimeError."""

    def render(self, template_path: str) -> None:
        self.fail(RuntimeError(f"cannot render {template_path}"))


@pytest.fixture
def render_calls():
    """Every render performed by the test renderers, in order."""
    return []


@pytest.fixture
def registry(render_calls):
    """Registry with recording, deferred and failing renderers."""
    registry = RendererRegistry()
    registry.register("text/html", partial(RecordingRenderer, render_calls))
    registry.register("text/deferred", partial(DeferredRenderer, render_calls))
    registry.register("text/broken", FailingRenderer)
    return registry


@pytest.fixture
def task_queue():
    """Deterministic scheduler drained by the test."""
    return TaskQueue()


@pytest.fixture
def response():
    """Real output of the root view."""
    return ResponseOutput(media_type="text/html")


@pytest.fixture
def root(response, registry, task_queue):
    """Root view rendering text/html through the recording renderer."""
    return View(response, registry=registry, scheduler=task_queue, content_type="text/html")

