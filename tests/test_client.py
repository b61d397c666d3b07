"""Tests for the interactive test client."""

import io
import json

import pytest

from linemcp.client import McpTestClient, main, sample_arguments, sample_uri, sample_value


class LoopbackPipe:
    """Feeds written request lines to a server and queues its replies."""

    def __init__(self, server):
        self.server = server
        self.pending: list[str] = []
        self.sent: list[str] = []

    def write(self, data: str) -> None:
        for line in data.splitlines():
            self.sent.append(line)
            output = self.server.handle_line(line)
            if output is not None:
                self.pending.append(output + "\n")

    def flush(self) -> None:
        pass

    def readline(self) -> str:
        return self.pending.pop(0) if self.pending else ""


class TestSampleArguments:
    """Tests for schema-driven sample values."""

    @pytest.mark.parametrize(
        "schema, expected",
        [
            ({"type": "string"}, "test"),
            ({"type": "string", "enum": ["en", "es"]}, "en"),
            ({"type": "number"}, 42),
            ({"type": "integer"}, 42),
            ({"type": "boolean"}, True),
            ({"type": "array"}, []),
            ({"type": "object"}, {}),
            ({}, None),
        ],
    )
    def test_sample_value(self, schema, expected):
        assert sample_value(schema) == expected

    def test_sample_arguments(self):
        """Test that every property gets a value."""
        schema = {
            "type": "object",
            "properties": {"city": {"type": "string"}, "days": {"type": "number"}},
        }
        assert sample_arguments(schema) == {"city": "test", "days": 42}

    def test_sample_arguments_without_properties(self):
        assert sample_arguments({"type": "object"}) == {}
        assert sample_arguments(None) == {}

    def test_sample_uri(self):
        assert sample_uri("weather://{city}/current") == "weather://test/current"
        assert sample_uri("a://{x}/{y}") == "a://test/test"


class TestMcpTestClient:
    """Tests for running the test sequence against a server."""

    def test_run_tests_against_hello_world(self, server):
        """Test the full sequence with tools but no resources."""
        pipe = LoopbackPipe(server)
        out = io.StringIO()
        client = McpTestClient(pipe, pipe, out=out)

        sent = client.run_tests()

        # server info, list_tools, three tools, list_resources, list_resource_templates
        assert sent == 7
        transcript = out.getvalue()
        assert "Hello, test!" in transcript
        assert "All tests completed!" in transcript
        assert json.loads(pipe.sent[0])["id"] == 0

    def test_request_ids_increase_from_zero(self, server):
        """Test that ids start at 0 and count up."""
        pipe = LoopbackPipe(server)
        client = McpTestClient(pipe, pipe, out=io.StringIO())

        first = client.send_request("get_server_info")
        second = client.send_request("list_tools")
        assert (first.id, second.id) == (0, 1)

    def test_reads_resources_and_templates(self, server):
        """Test that every resource and template gets a read_resource call."""
        server.register_resource("memo://one", "One", "text/plain")
        server.register_resource_template("memo://{name}", "Memo")
        reads = []

        def reader(uri):
            reads.append(uri)
            return [{"uri": uri, "text": "memo"}]

        server.set_resource_reader(reader)
        pipe = LoopbackPipe(server)
        client = McpTestClient(pipe, pipe, out=io.StringIO())
        client.run_tests()

        assert reads == ["memo://one", "memo://test"]

    def test_no_response(self):
        """Test that a closed server yields None."""
        client = McpTestClient(io.StringIO(""), io.StringIO(), out=io.StringIO())
        assert client.send_request("get_server_info") is None


class TestMain:
    """Tests for the command line entrypoint."""

    def test_requires_command(self):
        """Test that a server command must be given."""
        with pytest.raises(SystemExit):
            main([])
