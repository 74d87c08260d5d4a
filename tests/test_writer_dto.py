"""Tests for writer_dto.py - Data Transfer Objects.

These tests verify that the DTOs resolve and name everything a writer needs for one service.
"""

from __future__ import annotations

import logging

import pytest
from conftest import make_file, make_method, make_service

from proto_service_generator.proto_types import StreamingShape
from proto_service_generator.schema_index import SchemaIndex, UnresolvedTypeError
from proto_service_generator.type_resolver import TypeResolver
from proto_service_generator.writer_dto import (
    GeneratedFile,
    MethodInfo,
    ResolvedMessage,
    ServiceGenerationContext,
)


class TestResolvedMessage:
    """Tests for ResolvedMessage."""

    def test_qualified_name(self):
        message = ResolvedMessage("demo.EchoRequest", "EchoRequest", "org.demo.Echo")
        assert message.qualified_name == "org.demo.Echo.EchoRequest"
        assert str(message) == "org.demo.Echo.EchoRequest"

    def test_qualified_name_in_default_package(self):
        assert ResolvedMessage("Thing", "Thing", "").qualified_name == "Thing"


class TestMethodInfo:
    """Tests for MethodInfo."""

    def test_create_unary(self, archive_resolver):
        method = make_method("ListSamples", ".archive.ListRequest", ".archive.ListResponse")
        info = MethodInfo.create(method, 0, archive_resolver, " Lists samples.\n")

        assert info.name == "ListSamples"
        assert info.java_name == "listSamples"
        assert info.index == 0
        assert info.shape is StreamingShape.UNARY
        assert not info.client_streaming
        assert info.input_type.qualified_name == "org.example.archive.ListRequest"
        assert info.output_type.qualified_name == "org.example.archive.ListResponse"
        assert info.javadoc == " Lists samples.\n"

    def test_create_client_streaming(self, archive_resolver):
        method = make_method("UploadSamples", ".archive.Sample", ".archive.UploadSummary", client_streaming=True)
        info = MethodInfo.create(method, 1, archive_resolver)

        assert info.shape is StreamingShape.CLIENT_STREAMING
        assert info.client_streaming
        assert info.javadoc is None

    def test_server_streaming_is_reported(self, archive_resolver, caplog):
        method = make_method("Follow", ".archive.ListRequest", ".archive.Sample", server_streaming=True)

        with caplog.at_level(logging.WARNING):
            info = MethodInfo.create(method, 0, archive_resolver)

        assert info.shape is StreamingShape.UNARY
        assert "server-streaming" in caplog.text

    def test_unresolved_output(self, archive_resolver):
        method = make_method("Broken", ".archive.ListRequest", ".archive.Missing")
        with pytest.raises(UnresolvedTypeError, match="archive.Missing"):
            MethodInfo.create(method, 0, archive_resolver)


class TestServiceGenerationContext:
    """Tests for ServiceGenerationContext."""

    def test_create(self, archive_file, archive_index, archive_resolver):
        context = ServiceGenerationContext.create(archive_file, 0, archive_index, archive_resolver)

        assert context.name == "ArchiveService"
        assert context.service_index == 0
        assert context.java_package == "org.example.archive"
        assert context.outer_classname == "ArchiveProto"
        assert context.javadoc == " Access to archived samples.\n"
        assert [m.java_name for m in context.methods] == ["listSamples", "uploadSamples", "ping"]
        assert [m.index for m in context.methods] == [0, 1, 2]
        assert context.methods[2].input_type.qualified_name == "org.example.common.Common.Empty"

    def test_class_names_and_paths(self, archive_file, archive_index, archive_resolver):
        context = ServiceGenerationContext.create(archive_file, 0, archive_index, archive_resolver)

        assert context.dispatcher_name == "AbstractArchiveService"
        assert context.client_name == "ArchiveServiceClient"
        assert context.output_path(context.dispatcher_name) == "org/example/archive/AbstractArchiveService.java"
        assert context.output_path(context.client_name) == "org/example/archive/ArchiveServiceClient.java"

    def test_output_path_in_default_package(self):
        file = make_file(
            "bare.proto",
            "",
            messages=["Thing"],
            services=[make_service("Things", [make_method("Get", ".Thing", ".Thing")])],
        )
        index = SchemaIndex.from_files([file])
        context = ServiceGenerationContext.create(file, 0, index, TypeResolver(index))

        assert context.output_path(context.client_name) == "ThingsClient.java"

    def test_second_service(self):
        file = make_file(
            "ops.proto",
            "ops",
            messages=["Request"],
            services=[
                make_service("First", [make_method("A", ".ops.Request", ".ops.Request")]),
                make_service("Second", [make_method("B", ".ops.Request", ".ops.Request")]),
            ],
        )
        index = SchemaIndex.from_files([file])
        context = ServiceGenerationContext.create(file, 1, index, TypeResolver(index))

        assert context.name == "Second"
        assert context.service_index == 1
        assert context.methods[0].name == "B"


class TestGeneratedFile:
    """Tests for GeneratedFile."""

    def test_is_immutable(self):
        generated = GeneratedFile("demo/EchoClient.java", "package demo;\n")
        with pytest.raises(AttributeError):
            generated.name = "other"  # type: ignore[misc]
