"""Constants for protobuf descriptors and the Java code that is generated from them."""

from __future__ import annotations

from enum import Enum

from google.protobuf.descriptor_pb2 import FileDescriptorProto, ServiceDescriptorProto

# Positional path segments in SourceCodeInfo locations
SERVICE_FIELD_NUMBER = FileDescriptorProto.SERVICE_FIELD_NUMBER
METHOD_FIELD_NUMBER = ServiceDescriptorProto.METHOD_FIELD_NUMBER

SERVICE_PATH_LENGTH = 2
METHOD_PATH_LENGTH = 4

JAVA_SUFFIX = ".java"

DEFAULT_RUNTIME_PACKAGE = "org.yamcs.api"
DEFAULT_GENERATOR_NAME = "proto_service_generator"

PROTOBUF_MESSAGE = "com.google.protobuf.Message"
PROTOBUF_METHOD_DESCRIPTOR = "com.google.protobuf.Descriptors.MethodDescriptor"
PROTOBUF_SERVICE_DESCRIPTOR = "com.google.protobuf.Descriptors.ServiceDescriptor"

GENERATED_ANNOTATION = "javax.annotation.processing.Generated"


class JavaRuntimeType:
    """Simple names of the runtime types that generated code builds on."""

    API = "Api"
    OBSERVER = "Observer"
    METHOD_HANDLER = "MethodHandler"


class StreamingShape(Enum):
    """How the request side of an RPC is framed."""

    UNARY = "unary"
    CLIENT_STREAMING = "client_streaming"
