"""CLI tests for the service generator.

Tests cover:
- Argument parsing
- Generating from a request file into an output directory
- Plugin mode, reading the request from stdin and writing the response to stdout
- Running as a module
"""

from __future__ import annotations

import argparse
import io
import subprocess
import sys
from types import SimpleNamespace

import pytest
from conftest import make_request
from google.protobuf.compiler import plugin_pb2

from proto_service_generator.cli import main, setup_parser


@pytest.fixture
def request_file(tmp_path, echo_file):
    """A serialized request for the echo service, as protoc would send it."""
    path = tmp_path / "request.bin"
    path.write_bytes(make_request(echo_file).SerializeToString())
    return path


class TestArgumentParsing:
    """Test argument parsing."""

    def test_parser_setup(self):
        parser = setup_parser()
        assert isinstance(parser, argparse.ArgumentParser)

    def test_default_arguments(self):
        args = setup_parser().parse_args([])

        assert args.request is None
        assert args.output_dir is None
        assert args.parameter is None
        assert args.verbosity == 0

    def test_combined_arguments(self):
        args = setup_parser().parse_args(
            ["-r", "request.bin", "-o", "out", "-p", "requested_only", "-vv"],
        )

        assert args.request == "request.bin"
        assert args.output_dir == "out"
        assert args.parameter == "requested_only"
        assert args.verbosity == 2

    def test_long_options(self):
        args = setup_parser().parse_args(["--request", "r", "--output-dir", "o", "--parameter", "p", "--verbose"])

        assert (args.request, args.output_dir, args.parameter, args.verbosity) == ("r", "o", "p", 1)


class TestOutputDirectory:
    """Test generating into a directory."""

    def test_writes_sources(self, request_file, tmp_path):
        output_dir = tmp_path / "java"

        assert main(["--request", str(request_file), "--output-dir", str(output_dir)]) == 0

        assert sorted(p.name for p in (output_dir / "demo").iterdir()) == ["AbstractEcho.java", "EchoClient.java"]
        client = (output_dir / "demo" / "EchoClient.java").read_text()
        assert "public class EchoClient extends AbstractEcho<Void> {" in client

    def test_parameter_is_applied(self, request_file, tmp_path):
        output_dir = tmp_path / "java"

        main(["-r", str(request_file), "-o", str(output_dir), "-p", "runtime_package=org.demo.rpc"])

        assert "import org.demo.rpc.MethodHandler;" in (output_dir / "demo" / "EchoClient.java").read_text()

    def test_invalid_parameter_fails(self, request_file, tmp_path):
        output_dir = tmp_path / "java"

        assert main(["-r", str(request_file), "-o", str(output_dir), "-p", "colour=blue"]) == 1
        assert not output_dir.exists()


class TestPluginMode:
    """Test the protoc plugin protocol over stdin and stdout."""

    def run_plugin(self, monkeypatch, request_data: bytes, argv=()) -> plugin_pb2.CodeGeneratorResponse:
        stdout = io.BytesIO()
        monkeypatch.setattr(sys, "stdin", SimpleNamespace(buffer=io.BytesIO(request_data)))
        monkeypatch.setattr(sys, "stdout", SimpleNamespace(buffer=stdout))

        assert main(list(argv)) == 0

        response = plugin_pb2.CodeGeneratorResponse()
        response.ParseFromString(stdout.getvalue())
        return response

    def test_response_on_stdout(self, monkeypatch, echo_file):
        response = self.run_plugin(monkeypatch, make_request(echo_file).SerializeToString())

        assert not response.HasField("error")
        assert [f.name for f in response.file] == ["demo/AbstractEcho.java", "demo/EchoClient.java"]

    def test_error_in_response(self, monkeypatch, echo_file):
        # protoc expects a response even when generation fails
        request = make_request(echo_file, parameter="colour=blue")
        response = self.run_plugin(monkeypatch, request.SerializeToString())

        assert "Unknown option 'colour'" in response.error
        assert len(response.file) == 0


def test_run_as_module(request_file):
    result = subprocess.run(
        [sys.executable, "-m", "proto_service_generator", "--request", str(request_file)],
        capture_output=True,
        check=True,
    )

    response = plugin_pb2.CodeGeneratorResponse()
    response.ParseFromString(result.stdout)
    assert [f.name for f in response.file] == ["demo/AbstractEcho.java", "demo/EchoClient.java"]
