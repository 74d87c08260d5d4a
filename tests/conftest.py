"""Pytest configuration and fixtures for the service generator tests.

Schema files are built in memory as descriptor protos, the same shape protoc hands to the plugin, so the
tests do not need a protoc binary.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import pytest
from google.protobuf.compiler import plugin_pb2
from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    FileDescriptorProto,
    MethodDescriptorProto,
    ServiceDescriptorProto,
)

from proto_service_generator.config import GeneratorConfig
from proto_service_generator.schema_index import SchemaIndex
from proto_service_generator.type_resolver import TypeResolver

PINNED_DATE = datetime(2024, 3, 1, 10, 15, 30, tzinfo=UTC)
PINNED_DATE_TEXT = "2024-03-01T10:15:30Z"


# Helper functions for tests
def make_method(
    name: str,
    input_type: str,
    output_type: str,
    client_streaming: bool = False,
    server_streaming: bool = False,
) -> MethodDescriptorProto:
    """Create a method definition. Type names are fully qualified, as protoc resolves them (".pkg.Name")."""
    method = MethodDescriptorProto(name=name, input_type=input_type, output_type=output_type)
    if client_streaming:
        method.client_streaming = True
    if server_streaming:
        method.server_streaming = True
    return method


def make_service(name: str, methods: Sequence[MethodDescriptorProto]) -> ServiceDescriptorProto:
    service = ServiceDescriptorProto(name=name)
    service.method.extend(methods)
    return service


def make_file(
    name: str,
    package: str,
    messages: Sequence[str] = (),
    services: Sequence[ServiceDescriptorProto] = (),
    java_package: str | None = None,
    multiple_files: bool = False,
    outer_classname: str | None = None,
) -> FileDescriptorProto:
    """Create a schema file with the given top-level messages, services and Java layout options."""
    file = FileDescriptorProto(name=name, package=package)
    for message_name in messages:
        file.message_type.append(DescriptorProto(name=message_name))
    file.service.extend(services)

    if java_package is not None:
        file.options.java_package = java_package
    if multiple_files:
        file.options.java_multiple_files = True
    if outer_classname is not None:
        file.options.java_outer_classname = outer_classname
    return file


def add_comment(file: FileDescriptorProto, path: Sequence[int], leading: str | None = None, trailing: str = ""):
    """Attach positional comment metadata to a schema file."""
    location = file.source_code_info.location.add()
    location.path.extend(path)
    if leading is not None:
        location.leading_comments = leading
    if trailing:
        location.trailing_comments = trailing


def make_request(*files: FileDescriptorProto, parameter: str = "") -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()
    request.proto_file.extend(files)
    request.file_to_generate.extend(f.name for f in files)
    if parameter:
        request.parameter = parameter
    return request


@pytest.fixture
def echo_file() -> FileDescriptorProto:
    """The example from the documentation: flat layout, one unary RPC `Say(EchoRequest) -> EchoReply`."""
    return make_file(
        "demo/echo.proto",
        "demo",
        messages=["EchoRequest", "EchoReply"],
        services=[make_service("Echo", [make_method("Say", ".demo.EchoRequest", ".demo.EchoReply")])],
        java_package="demo",
        multiple_files=True,
    )


@pytest.fixture
def common_file() -> FileDescriptorProto:
    """Shared messages in another package, nested under an outer class."""
    return make_file(
        "common/common.proto",
        "common",
        messages=["Empty", "Ack"],
        java_package="org.example.common",
    )


@pytest.fixture
def archive_file() -> FileDescriptorProto:
    """A service mixing unary and client-streaming RPCs, with documentation and cross-file types."""
    file = make_file(
        "archive/archive.proto",
        "archive",
        messages=["ListRequest", "ListResponse", "Sample", "UploadSummary"],
        services=[
            make_service(
                "ArchiveService",
                [
                    make_method("ListSamples", ".archive.ListRequest", ".archive.ListResponse"),
                    make_method("UploadSamples", ".archive.Sample", ".archive.UploadSummary", client_streaming=True),
                    make_method("Ping", ".common.Empty", ".common.Ack"),
                ],
            )
        ],
        java_package="org.example.archive",
        multiple_files=True,
        outer_classname="ArchiveProto",
    )
    add_comment(file, [6, 0], " Access to archived samples.\n")
    add_comment(file, [6, 0, 2, 0], " Lists samples.\n")
    add_comment(file, [6, 0, 2, 1], " Streams samples into the archive.\n")
    return file


@pytest.fixture
def pinned_config() -> GeneratorConfig:
    """Configuration with a fixed `@Generated` date."""
    return GeneratorConfig(generated_date=PINNED_DATE)


@pytest.fixture
def echo_index(echo_file) -> SchemaIndex:
    return SchemaIndex.from_files([echo_file])


@pytest.fixture
def archive_index(common_file, archive_file) -> SchemaIndex:
    return SchemaIndex.from_files([common_file, archive_file])


@pytest.fixture
def archive_resolver(archive_index) -> TypeResolver:
    return TypeResolver(archive_index)
