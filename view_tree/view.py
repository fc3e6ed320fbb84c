"""View tree nodes and the render coordination state machine.

A view holds data for one template and any number of named child views.
Children render in any order; each child's output is spliced into its
parent's data under the child's key, and a parent only renders once all
of its children are complete. Whichever comes last, the parent's own
``render()`` call or the completion of its last child, triggers the
parent's render.

Example:
    root = View(ResponseOutput("text/html"), registry=registry, content_type="text/html")
    root.set_error_handler(lambda error: root.status_error(error))

    header = root.child("header", "header")
    header.set("title", "Hello World")
    header.render()

    root.render("index")  # renders after "header" is complete
"""

from collections.abc import Callable, Iterable, Mapping
from functools import partial
from typing import Any

from view_tree.exceptions import ConfigurationError, UnhandledRenderError
from view_tree.logging_config import get_logger, log_with_context
from view_tree.protocols import OutputSink, RendererProtocol, ResponseSink, Scheduler
from view_tree.renderers.registry import RendererRegistry
from view_tree.scheduler import EventLoopScheduler
from view_tree.sinks import ChildOutput
from view_tree.states import RenderState

logger = get_logger(__name__)

ErrorHandler = Callable[[Exception], None]

# States an ordinary render() call never leaves
_SETTLED_STATES = (RenderState.STARTED, RenderState.COMPLETE, RenderState.FAILED)


def default_error_handler(error: Exception) -> None:
    """Fail hard when a view without an error handler fails to render."""
    log_with_context(
        logger,
        "error",
        "View render failed without an error handler",
        error=str(error),
        error_type=type(error).__name__,
        event_type="view_unhandled_error",
    )
    raise UnhandledRenderError(details={"error": str(error), "error_type": type(error).__name__}) from error


class View:
    """One node of a view tree.

    Attributes:
        data: Values rendered by this view's template, including the
            content of completed children
        children: Child views by the key their content is rendered under
        render_state: Where this view is in its render lifecycle
        parent: The view this one renders into, None for the root
        root: Top-most view of the tree, the only one attached to a real response
        key: Key of this view in its parent's children, None for the root
        sink: Output the renderer writes to
        content_type: Selects the renderer from the registry
        template: Template to render; the first one set wins
        directory: Prefix joined to the template name when rendering
        error_handler: Called with the error when rendering fails
    """

    def __init__(
        self,
        sink: OutputSink | None = None,
        *,
        registry: RendererRegistry,
        scheduler: Scheduler | None = None,
        content_type: str | None = None,
        template: str | None = None,
        directory: str = "",
    ):
        """Create a root view.

        Child views are created with ``child()`` instead.

        Args:
            sink: Real output the final content is written to
            registry: Renderers available to this tree
            scheduler: Runs deferred parent renders; defaults to the running event loop
            content_type: Content type used to pick the renderer
            template: Template to render, if already known
            directory: Prefix joined to template names
        """
        self.data: dict[str, Any] = {}
        self.children: dict[str, View] = {}
        self.render_state = RenderState.NOT_CALLED
        self.parent: View | None = None
        self.root: View = self
        self.key: str | None = None
        self.sink = sink
        self.registry = registry
        self.scheduler: Scheduler = scheduler if scheduler is not None else EventLoopScheduler()
        self.content_type = content_type
        self.template = template
        self.directory = directory
        self.error_handler: ErrorHandler = default_error_handler
        self._render_attempt = 0

    def __repr__(self) -> str:
        return f"<View key={self.key!r} state={self.render_state.name} children={list(self.children)}>"

    # Configuration

    def set_sink(self, sink: OutputSink) -> "View":
        """Assign the output the final content is written to.

        Returns:
            self, for chaining
        """
        self.sink = sink
        return self

    def set_content_type(self, content_type: str) -> "View":
        """Set the content type used to choose a renderer.

        Returns:
            self, for chaining
        """
        self.content_type = content_type
        return self

    def set_template(self, template: str | None) -> "View":
        """Set the template rendered for this view.

        Returns:
            self, for chaining
        """
        self.template = template
        return self

    def set_error_handler(self, handler: ErrorHandler) -> "View":
        """Set the function called any time rendering this view fails.

        Children created afterwards inherit the handler.

        Args:
            handler: Takes a single parameter, the error

        Returns:
            self, for chaining
        """
        self.error_handler = handler
        return self

    # Data

    def set(self, key: str, value: Any) -> "View":
        """Set a value rendered by this view.

        Returns:
            self, for chaining
        """
        self.data[key] = value
        return self

    def set_to_root(self, key: str, value: Any) -> "View":
        """Set a value rendered by the root view (e.g. the page title).

        Returns:
            self, for chaining
        """
        self.root.set(key, value)
        return self

    def get(self, key: str | None = None) -> Any:
        """Return one value, or all of the data when no key is given."""
        if key is None:
            return self.data
        return self.data.get(key)

    def fill(self, func: Callable[[], Mapping[str, Any]]) -> "View":
        """Call ``func`` and add every key of the mapping it returns to the data.

        Returns:
            self, for chaining
        """
        self.data.update(func())
        return self

    # Render state machine

    def is_rendered(self) -> bool:
        return self.render_state == RenderState.COMPLETE

    def can_render(self) -> bool:
        """Whether the view has been asked to render and all children are complete.

        Both the view's own render() and the completion of a child check this,
        so whichever of the two happens last starts the render, and it starts
        exactly once.
        """
        if self.render_state != RenderState.REQUESTED:
            return False
        return all(child.is_rendered() for child in self.children.values())

    def render(self, template: str | None = None, force: bool = False) -> None:
        """Render the view once every child view is complete.

        If children are still pending the render is deferred, and the last
        child to complete triggers it.

        Args:
            template: Template to render unless one was set previously
            force: Cancel all child views and render ``template`` immediately
        """
        if force:
            self.cancel_render()
            if template is not None:
                self.template = template
            self.render_state = RenderState.REQUESTED
            log_with_context(
                logger,
                "info",
                "Forcing view render",
                view_key=self.key,
                template=self.template,
                event_type="view_render_forced",
            )
            self.render(template)
            return

        if self.render_state == RenderState.CANCELLED:
            log_with_context(
                logger,
                "debug",
                "Render of cancelled view ignored",
                view_key=self.key,
                event_type="view_render_cancelled",
            )
            return

        if self.render_state in _SETTLED_STATES:
            log_with_context(
                logger,
                "debug",
                "Render of already rendered view ignored",
                view_key=self.key,
                render_state=self.render_state.name,
                event_type="view_render_repeated",
            )
            return

        self.render_state = RenderState.REQUESTED

        if not self.can_render():
            # Remember the template so the render triggered by the last child uses it
            if self.template is None:
                self.template = template
            log_with_context(
                logger,
                "debug",
                "View render deferred",
                view_key=self.key,
                pending_children=[key for key, child in self.children.items() if not child.is_rendered()],
                event_type="view_render_deferred",
            )
            return

        if self.template is not None:
            template = self.template
        template_path = f"{self.directory}{template or ''}"

        # Fails before STARTED, so a view without a renderer can be rendered again
        renderer = self.build_renderer()
        self.render_state = RenderState.STARTED
        log_with_context(
            logger,
            "debug",
            "View render started",
            view_key=self.key,
            template=template_path,
            content_type=self.content_type,
            event_type="view_render_started",
        )
        renderer.render(template_path)

    def render_deferred(self) -> None:
        """Render on a later scheduler tick, after the last child completed.

        Nothing up the call stack can catch a configuration error raised
        here, so it goes to the error handler instead.
        """
        try:
            self.render()
        except ConfigurationError as error:
            log_with_context(
                logger,
                "error",
                "Deferred view render could not start",
                view_key=self.key,
                error=error.message,
                error_code=error.code.value,
                event_type="view_deferred_render_error",
            )
            self.error_handler(error)

    def cancel_render(self) -> None:
        """Stop this view and all of its descendants from rendering.

        Children are dropped, so a cancelled subtree can not be revisited.
        """
        self.render_state = RenderState.CANCELLED
        for child in self.children.values():
            child.cancel_render()
        self.children = {}

    def build_renderer(self) -> RendererProtocol:
        """Build a renderer with the data and output of this view.

        Raises:
            RendererNotRegisteredError: If no renderer handles the content type
        """
        factory = self.registry.lookup(self.content_type)

        # Each render of a child writes into a fresh buffer
        if isinstance(self.sink, ChildOutput):
            self.sink = ChildOutput(self, self.sink.key)
        renderer = factory(data=self.data, sink=self.sink)

        self._render_attempt += 1
        renderer.on_error(partial(self._render_failed, self._render_attempt))
        renderer.on_end(partial(self._render_ended, self._render_attempt))
        return renderer

    def _is_stale(self, attempt: int) -> bool:
        return attempt != self._render_attempt or self.render_state == RenderState.CANCELLED

    def _render_failed(self, attempt: int, error: Exception) -> None:
        if self._is_stale(attempt):
            log_with_context(
                logger,
                "debug",
                "Failure of superseded render ignored",
                view_key=self.key,
                error=str(error),
                event_type="view_stale_failure",
            )
            return

        self.render_state = RenderState.FAILED
        log_with_context(
            logger,
            "error",
            "View render failed",
            view_key=self.key,
            error=str(error),
            error_type=type(error).__name__,
            event_type="view_render_failed",
        )
        self.error_handler(error)

    def _render_ended(self, attempt: int) -> None:
        if self._is_stale(attempt):
            return
        # A child's output adapter may already have completed it
        if self.render_state == RenderState.STARTED:
            self.render_state = RenderState.COMPLETE
        log_with_context(
            logger,
            "debug",
            "View render complete",
            view_key=self.key,
            event_type="view_render_complete",
        )

    # Tree

    def child(self, key: str, template: str | None = None) -> "View":
        """Create a child view rendered into this view's data under ``key``.

        The child inherits content type, directory, error handler, registry
        and scheduler. Reusing a key replaces the previous child.

        Args:
            key: Key this view renders the child's content under
            template: Template of the child, if already known

        Returns:
            The new child view
        """
        view = View(
            registry=self.registry,
            scheduler=self.scheduler,
            content_type=self.content_type,
            template=template,
            directory=self.directory,
        )
        view.parent = self
        view.root = self.root
        view.key = key
        view.error_handler = self.error_handler
        view.sink = ChildOutput(view, key)

        if key in self.children:
            log_with_context(
                logger,
                "debug",
                "Child view replaced",
                view_key=key,
                event_type="child_view_replaced",
            )
        self.children[key] = view
        return view

    # Response

    def _response_sink(self) -> ResponseSink:
        sink = self.root.sink
        if sink is None:
            raise RuntimeError("Root view has no output sink")
        return sink  # type: ignore[return-value]

    def set_status_code(self, code: int) -> "View":
        """Set the status code of the response tied to the root view.

        Returns:
            self, for chaining
        """
        self._response_sink().status_code = code
        return self

    def set_headers(self, headers: Mapping[str, str]) -> "View":
        """Set a collection of headers on the response tied to the root view.

        Returns:
            self, for chaining
        """
        sink = self._response_sink()
        for name, value in headers.items():
            sink.set_header(name, value)
        return self

    # Status shortcuts

    def _terminate(
        self,
        status_code: int,
        template: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Cancel the whole tree and finish the response.

        Without a template the response ends with no body; with one, the
        template is rendered immediately on the root.
        """
        root = self.root
        root.cancel_render()
        root.set_status_code(status_code)
        if headers:
            root.set_headers(headers)

        log_with_context(
            logger,
            "info",
            "View tree terminated",
            status_code=status_code,
            template=template,
            event_type="view_tree_terminated",
        )

        if template is None:
            root._response_sink().end()
        else:
            root.render(template, force=True)

    def status_not_found(self, template: str | None = None) -> None:
        """Respond with 404 Not Found."""
        self._terminate(404, template)

    def status_error(self, error: Exception | None = None, template: str | None = None) -> None:
        """Respond with 500 Internal Server Error.

        Args:
            error: Made available to the root template as ``error``
            template: Rendered on the root instead of an empty body
        """
        self.root.set("error", error)
        self._terminate(500, template)

    def status_created(self, location: str, template: str | None = None) -> None:
        """Respond with 201 Created, pointing at the new resource.

        Use this whenever a request creates a resource, e.g. a PUT to /users
        creating user 1 ends with ``view.status_created("/users/1")``.
        """
        self._terminate(201, template, {"Location": location})

    def status_redirect(self, location: str, code: int = 302, template: str | None = None) -> None:
        """Respond with a 3xx redirect to ``location``.

        Raises:
            ValueError: If ``code`` is not a redirect status code
        """
        if not 300 <= code < 400:
            raise ValueError(f"Redirect status code must be 3xx, got {code}")
        self._terminate(code, template, {"Location": location})

    def status_not_modified(self, headers: Mapping[str, str] | None = None) -> None:
        """Respond with 304 Not Modified so the client uses its cached copy.

        Args:
            headers: Caching headers such as ETag, Expires or Cache-Control
        """
        self._terminate(304, None, headers)

    def status_unsupported_method(self, supported_methods: Iterable[str], template: str | None = None) -> None:
        """Respond with 405 Method Not Allowed, listing the supported methods."""
        self._terminate(405, template, {"Allow": ",".join(supported_methods)})

    def status_unauthorized(self, challenge: str | None = None, template: str | None = None) -> None:
        """Respond with 401 Unauthorized.

        Args:
            challenge: Value of the WWW-Authenticate header, e.g. 'Bearer realm="api"'
        """
        headers = {"WWW-Authenticate": challenge} if challenge else None
        self._terminate(401, template, headers)
