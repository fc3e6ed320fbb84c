"""Demo pages assembled from view trees."""

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from view_tree.config import Settings, get_settings
from view_tree.dependencies import get_view
from view_tree.responses import render_response
from view_tree.view import View

router = APIRouter()

ITEMS = ["first", "second", "third"]


@router.get("/")
async def index(view: View = Depends(get_view), settings: Settings = Depends(get_settings)) -> Response:
    """Render the index page from three children finishing in different orders."""
    # Renders as soon as it is asked to
    first_child = view.child("first_child")
    first_child.render("sub1")

    # The template given at creation wins over the one passed to render
    second_child = view.child("second_child", "sub2")
    second_child.render("sub1")

    # Asked to render only on a later tick, after the root's own render call
    third_child = view.child("third_child")
    view.scheduler.call_soon(third_child.render, "sub3")

    view.fill(lambda: {"name": "View Tree", "date": datetime.now().strftime("%Y-%m-%d %H:%M:%S")})
    view.render("index")

    return await render_response(view, settings.render_timeout)


@router.get("/missing")
async def missing(view: View = Depends(get_view), settings: Settings = Depends(get_settings)) -> Response:
    """Abandon a half-built page and render the not found page instead."""
    view.child("body").render("sub1")
    view.status_not_found("not_found")
    return await render_response(view, settings.render_timeout)


@router.get("/moved")
async def moved(view: View = Depends(get_view), settings: Settings = Depends(get_settings)) -> Response:
    """Permanently redirect to the index page."""
    view.status_redirect("/", code=301)
    return await render_response(view, settings.render_timeout)


@router.get("/broken")
async def broken(view: View = Depends(get_view), settings: Settings = Depends(get_settings)) -> Response:
    """Render a child whose template does not exist; the tree ends with a 500."""
    view.child("body", "does_not_exist").render()
    view.render("index")
    return await render_response(view, settings.render_timeout)


@router.api_route("/items", methods=["GET", "POST", "PUT", "DELETE"])
async def items(
    request: Request,
    view: View = Depends(get_view),
    settings: Settings = Depends(get_settings),
) -> Response:
    """List items, or create one."""
    if request.method == "GET":
        for item in ITEMS:
            view.child(item, "item").set("item", item.title()).render()
        view.render("items")
    elif request.method == "POST":
        view.status_created(f"/items/{len(ITEMS)}")
    else:
        view.status_unsupported_method(["GET", "POST"])

    return await render_response(view, settings.render_timeout)
