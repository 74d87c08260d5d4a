"""Top-level module for service generation."""

from __future__ import annotations

import argparse
import logging
import os.path
import sys
from collections.abc import Iterator

from google.protobuf.compiler import plugin_pb2
from google.protobuf.descriptor_pb2 import FileDescriptorProto
from google.protobuf.message import DecodeError

from proto_service_generator.config import GeneratorConfig
from proto_service_generator.schema_index import GeneratorError, SchemaIndex
from proto_service_generator.type_resolver import TypeResolver
from proto_service_generator.writer import ClientWriter, DispatcherWriter
from proto_service_generator.writer_dto import GeneratedFile

logger = logging.getLogger(__name__)


def _files_to_generate(request: plugin_pb2.CodeGeneratorRequest, config: GeneratorConfig) -> list[FileDescriptorProto]:
    """Select the schema files whose services are generated.

    Every file of the request is used, unless `requested_only` restricts the selection to protoc's
    `file_to_generate` list.
    """
    if not config.requested_only:
        return list(request.proto_file)

    requested = set(request.file_to_generate)
    return [file for file in request.proto_file if file.name in requested]


def generate_files(request: plugin_pb2.CodeGeneratorRequest, config: GeneratorConfig) -> Iterator[GeneratedFile]:
    """Generate the dispatcher and client of every service in a request.

    Args:
        request (CodeGeneratorRequest): The parsed plugin request.
        config (GeneratorConfig): The generator options.

    Raises:
        GeneratorError: If the schema files are inconsistent.

    Yields:
        GeneratedFile: For each service in input order, its dispatcher followed by its client.
    """
    index = SchemaIndex.from_files(request.proto_file)
    resolver = TypeResolver(index)

    # One timestamp per run, so that all outputs agree
    timestamp = config.timestamp()
    dispatcher_writer = DispatcherWriter(index, resolver, config, timestamp)
    client_writer = ClientWriter(index, resolver, config, timestamp)

    for file in _files_to_generate(request, config):
        for service_index, service in enumerate(file.service):
            logger.debug("Generating service '%s' of '%s'.", service.name, file.name)
            yield dispatcher_writer.generate(file, service_index)
            yield client_writer.generate(file, service_index)


def generate(
    request: plugin_pb2.CodeGeneratorRequest, config: GeneratorConfig | None = None
) -> plugin_pb2.CodeGeneratorResponse:
    """Entry-point for generating a plugin response from a plugin request.

    Generation errors are reported through the response's `error` field, without any files, which makes
    protoc abort the build.

    Args:
        request (CodeGeneratorRequest): The parsed plugin request.
        config (GeneratorConfig | None, optional): The generator options. Parsed from the request's parameter
            string when omitted.

    Returns:
        CodeGeneratorResponse: The populated response.
    """
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    try:
        if config is None:
            config = GeneratorConfig.from_parameter(request.parameter)
        generated = list(generate_files(request, config))
    except GeneratorError as e:
        logger.error("Generation failed: %s", e)
        response.error = str(e)
        return response

    for generated_file in generated:
        output = response.file.add()
        output.name = generated_file.name
        output.content = generated_file.content
        logger.info("Generated '%s'.", generated_file.name)

    return response


def read_request(request_path: str | None = None) -> plugin_pb2.CodeGeneratorRequest:
    """Read a serialized plugin request from a file, or from stdin when no path is given."""
    if request_path:
        with open(request_path, "rb") as f:
            request_data = f.read()
    else:
        request_data = sys.stdin.buffer.read()

    request = plugin_pb2.CodeGeneratorRequest()
    request.ParseFromString(request_data)
    return request


def write_files(response: plugin_pb2.CodeGeneratorResponse, output_dir: str):
    """Write the files of a response below an output directory, instead of handing them back to protoc."""
    for output in response.file:
        output_path = os.path.join(output_dir, output.name)
        os.makedirs(os.path.dirname(output_path), exist_ok=True)

        with open(output_path, "w", encoding="utf8") as f:
            f.write(output.content)

        logger.info("Wrote '%s'.", output_path)


def run(args: argparse.Namespace) -> int:
    """Run the generator with parsed command line arguments.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.

    Returns:
        int: The process exit code.
    """
    request_path: str | None = getattr(args, "request", None)
    output_dir: str | None = getattr(args, "output_dir", None)
    parameter: str | None = getattr(args, "parameter", None)

    try:
        request = read_request(request_path)
    except DecodeError as e:
        logger.error("Could not parse the plugin request: %s", e)
        return 1

    if parameter is not None:
        request.parameter = parameter

    logger.info("Read request with %d file(s).", len(request.proto_file))
    response = generate(request)

    if output_dir:
        if response.HasField("error"):
            return 1
        write_files(response, output_dir)
        return 0

    sys.stdout.buffer.write(response.SerializeToString())
    sys.stdout.buffer.flush()
    return 0
