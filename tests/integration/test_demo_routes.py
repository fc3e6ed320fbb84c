"""Integration tests for the demo pages served through the FastAPI app."""

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from view_tree.core.app_factory import create_app
from view_tree.dependencies import get_view
from view_tree.renderers.base import Renderer
from view_tree.renderers.registry import RendererRegistry
from view_tree.responses import render_response
from view_tree.view import View


@pytest.fixture
def client():
    """Test client running the app lifespan with the packaged templates."""
    with TestClient(create_app()) as test_client:
        yield test_client


def test_index_renders_all_children(client):
    """Test the index page waits for every child, including the deferred one."""
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    body = response.text
    assert "<title>View Tree</title>" in body
    assert body.count('class="sub1"') == 1
    # The second child's template was set at creation
    assert 'class="sub2"' in body
    assert 'class="sub3"' in body
    # Child content is not escaped by the parent
    assert "&lt;section" not in body


def test_items_list(client):
    """Test a page made of several children sharing one template."""
    response = client.get("/items")

    assert response.status_code == 200
    assert "<li>First</li>" in response.text
    assert "<li>Second</li>" in response.text
    assert "<li>Third</li>" in response.text


def test_items_create(client):
    """Test creating an item responds with 201 and its location."""
    response = client.post("/items")

    assert response.status_code == 201
    assert response.headers["location"] == "/items/3"
    assert response.content == b""


def test_items_unsupported_method(client):
    """Test unsupported methods list the allowed ones."""
    response = client.put("/items")

    assert response.status_code == 405
    assert response.headers["allow"] == "GET,POST"


def test_missing_renders_not_found_page(client):
    """Test a half-built page is replaced by the not found template."""
    response = client.get("/missing")

    assert response.status_code == 404
    assert "<h1>Not found</h1>" in response.text
    assert "sub1" not in response.text


def test_moved_redirects(client):
    """Test the permanent redirect."""
    response = client.get("/moved", follow_redirects=False)

    assert response.status_code == 301
    assert response.headers["location"] == "/"


def test_broken_child_ends_with_500(client):
    """Test a failing child template terminates the whole page."""
    response = client.get("/broken")

    assert response.status_code == 500
    assert response.content == b""


def test_unregistered_content_type_is_structured_error():
    """Test a configuration error reaches the client as structured JSON."""
    app = create_app()

    @app.get("/json")
    async def json_page(view: View = Depends(get_view)):
        view.set_content_type("application/json")
        view.render("page")
        return await render_response(view, 1)

    with TestClient(app) as test_client:
        response = test_client.get("/json")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "RENDERER_NOT_REGISTERED"
    assert error["details"]["content_type"] == "application/json"


def test_unregistered_content_type_after_child_ends_with_500():
    """Test a page waiting on a later child fails fast on a missing renderer."""
    app = create_app()

    @app.get("/json-later")
    async def json_later(view: View = Depends(get_view)):
        view.set_content_type("application/json")
        child = view.child("child")
        child.set_content_type("text/html")
        view.render("page")
        view.scheduler.call_soon(child.render, "sub1")
        return await render_response(view, 5)

    with TestClient(app) as test_client:
        response = test_client.get("/json-later")

    assert response.status_code == 500
    assert response.content == b""


def test_error_outside_view_tree_hides_details():
    """Test an exception that escapes a route becomes a generic 500."""
    app = create_app()

    @app.get("/crash")
    async def crash():
        raise RuntimeError("database password is hunter2")

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/crash")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error == {"code": "INTERNAL_ERROR", "message": "The page could not be rendered"}
    assert "hunter2" not in response.text


class ShoutRenderer(Renderer):
    """Writes the template name and the word in upper case."""

    def render(self, template_path: str) -> None:
        self.emit(f"{template_path}:{self.data.get('word', '')}".upper())


def test_custom_registry_installed_before_startup():
    """Test an application can provide its own registry."""
    app = create_app()
    registry = RendererRegistry()
    registry.register("text/html", ShoutRenderer)
    app.state.renderer_registry = registry

    @app.get("/shout")
    async def shout(view: View = Depends(get_view)):
        view.child("word").set("word", "hi").render("inner")
        view.render("page")
        return await render_response(view, 1)

    with TestClient(app) as test_client:
        response = test_client.get("/shout")

    assert response.status_code == 200
    assert response.text == "PAGE:INNER:HI"
