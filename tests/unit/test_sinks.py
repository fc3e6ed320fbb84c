"""Unit tests for the child output adapter and the response output."""

import asyncio
import logging

import pytest
from markupsafe import Markup

from view_tree.sinks import ChildOutput, ResponseOutput
from view_tree.states import RenderState


class TestChildOutput:
    """Tests for ChildOutput."""

    def test_child_output_installed_on_children(self, root):
        """Test every child writes through its own adapter."""
        child = root.child("header")

        assert isinstance(child.sink, ChildOutput)
        assert child.sink.key == "header"
        assert child.sink.view is child

    def test_write_accumulates_in_order(self, root):
        """Test chunks are kept in write order and bytes are decoded."""
        output = root.child("header").sink

        output.write("<h1>")
        output.write(b"Title")
        output.write("</h1>")

        assert output.content == "<h1>Title</h1>"

    def test_end_splices_content_into_parent(self, root, task_queue):
        """Test end completes the child and stores its content as markup."""
        child = root.child("header")
        child.sink.write("<h1>Hi</h1>")

        child.sink.end()

        assert child.render_state == RenderState.COMPLETE
        assert root.data["header"] == "<h1>Hi</h1>"
        assert isinstance(root.data["header"], Markup)
        # The parent was never asked to render
        assert len(task_queue) == 0

    def test_end_schedules_parent_render_when_gate_opens(self, root, render_calls, task_queue):
        """Test the last child schedules the parent render instead of calling it."""
        a = root.child("a")
        b = root.child("b")
        root.render("page")

        a.sink.end()
        assert len(task_queue) == 0

        b.sink.end()
        assert len(task_queue) == 1
        assert render_calls == []

        task_queue.run_pending()
        assert [call.template_path for call in render_calls] == ["page"]

    def test_end_of_cancelled_child_ignored(self, root):
        """Test a pruned child does not write into its former parent."""
        child = root.child("header")
        output = child.sink
        root.cancel_render()

        output.write("late")
        output.end()

        assert "header" not in root.data
        assert child.render_state == RenderState.CANCELLED


class TestResponseOutput:
    """Tests for ResponseOutput."""

    def test_defaults(self):
        """Test a new output is a 200 with the given content type."""
        output = ResponseOutput(media_type="text/html")

        assert output.status_code == 200
        assert output.headers == {"Content-Type": "text/html"}
        assert not output.ended

    def test_write_and_end(self):
        """Test text and bytes are collected and the output ends once."""
        output = ResponseOutput()
        output.write("café ")
        output.write(b"ok")
        output.end()

        assert output.ended
        assert output.body == "café ok".encode()

    def test_write_after_end_ignored(self):
        """Test nothing changes once the output has ended."""
        output = ResponseOutput()
        output.write("done")
        output.end()

        output.write("more")
        output.set_header("X-Late", "1")
        output.status_code = 500
        output.end()

        assert output.body == b"done"
        assert "X-Late" not in output.headers
        assert output.status_code == 200

    def test_status_change_after_end_is_logged(self, caplog):
        """Test a late status code is reported instead of silently applied."""
        output = ResponseOutput()
        output.status_code = 404
        output.end()

        with caplog.at_level(logging.WARNING, logger="view_tree.sinks"):
            output.status_code = 500

        assert output.status_code == 404
        record = next(r for r in caplog.records if r.getMessage() == "Status code set after response ended ignored")
        assert record.status_code == 500
        assert record.event_type == "response_status_after_end"

    def test_to_response(self):
        """Test the collected output becomes a FastAPI response."""
        output = ResponseOutput(media_type="text/plain")
        output.status_code = 201
        output.set_header("Location", "/items/1")
        output.write("created")
        output.end()

        response = output.to_response()

        assert response.status_code == 201
        assert response.body == b"created"
        assert response.headers["location"] == "/items/1"
        assert response.headers["content-type"].startswith("text/plain")

    @pytest.mark.asyncio
    async def test_wait_returns_response_once_ended(self):
        """Test waiting resolves when the output is ended on a later tick."""
        output = ResponseOutput(media_type="text/html")
        loop = asyncio.get_running_loop()
        loop.call_soon(output.write, "<p>late</p>")
        loop.call_soon(output.end)

        response = await output.wait(timeout=1)

        assert response.body == b"<p>late</p>"

    @pytest.mark.asyncio
    async def test_wait_times_out(self):
        """Test waiting on an output nobody ends raises TimeoutError."""
        output = ResponseOutput()

        with pytest.raises(TimeoutError):
            await output.wait(timeout=0.01)
