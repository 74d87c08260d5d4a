from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

from proto_service_generator import helper, proto_types
from proto_service_generator.proto_types import StreamingShape

if TYPE_CHECKING:
    from google.protobuf.descriptor_pb2 import FileDescriptorProto, MethodDescriptorProto, ServiceDescriptorProto

    from proto_service_generator.schema_index import SchemaIndex
    from proto_service_generator.type_resolver import TypeResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedMessage:
    """A message together with the Java names it is generated under.

    Attributes:
        full_name: The fully-qualified protobuf name (e.g. "demo.EchoRequest")
        simple_name: The message name, which is also the Java class name (e.g. "EchoRequest")
        java_package: The package that owns the Java class; the outer class for nested layouts
            (e.g. "org.demo.Echo")
    """

    full_name: str
    simple_name: str
    java_package: str

    @property
    def qualified_name(self) -> str:
        """The Java qualified name, e.g. `org.demo.Echo.EchoRequest`."""
        return helper.qualify(self.java_package, self.simple_name)

    @override
    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class MethodInfo:
    """Information about a single RPC, resolved against the schema index.

    Attributes:
        name: The RPC name as declared in the schema
        java_name: The decapitalized Java method name
        index: Position within the service, which matches `MethodDescriptor.getIndex()`
        input_type: The resolved request message
        output_type: The resolved response message
        shape: Streaming shape of the request side
        javadoc: Leading comment of the RPC, if any
    """

    name: str
    java_name: str
    index: int
    input_type: ResolvedMessage
    output_type: ResolvedMessage
    shape: StreamingShape
    javadoc: str | None = None

    @property
    def client_streaming(self) -> bool:
        return self.shape is StreamingShape.CLIENT_STREAMING

    @classmethod
    def create(
        cls,
        method: MethodDescriptorProto,
        index: int,
        resolver: TypeResolver,
        javadoc: str | None = None,
    ) -> MethodInfo:
        """Factory method that resolves the request and response types of an RPC.

        Args:
            method: The method definition
            index: Position of the method within its service
            resolver: Resolver for the input and output types
            javadoc: Leading comment of the RPC

        Raises:
            UnresolvedTypeError: If the input or output type is not declared in any file.

        Returns:
            A fully initialized MethodInfo
        """
        if method.server_streaming:
            logger.warning(
                "RPC '%s' is server-streaming, which is not supported. Only its request side is generated.",
                method.name,
            )

        shape = StreamingShape.CLIENT_STREAMING if method.client_streaming else StreamingShape.UNARY
        return cls(
            name=method.name,
            java_name=helper.decapitalize(method.name),
            index=index,
            input_type=resolver.resolve(method.input_type),
            output_type=resolver.resolve(method.output_type),
            shape=shape,
            javadoc=javadoc,
        )


@dataclass
class ServiceGenerationContext:
    """Context object containing all metadata needed to generate the classes for one service.

    Attributes:
        file: The schema file that declares the service
        service: The service definition
        service_index: Position of the service within its file
        java_package: Package that the generated classes are placed in
        outer_classname: Outer class of the schema file, which holds the file descriptor
        methods: Resolved information for each RPC, in declaration order
        javadoc: Leading comment of the service, if any
    """

    file: FileDescriptorProto
    service: ServiceDescriptorProto
    service_index: int
    java_package: str
    outer_classname: str
    methods: list[MethodInfo]
    javadoc: str | None = None

    @property
    def name(self) -> str:
        return self.service.name

    @property
    def dispatcher_name(self) -> str:
        """Name of the abstract dispatch class, e.g. `AbstractEcho`."""
        return f"Abstract{self.service.name}"

    @property
    def client_name(self) -> str:
        """Name of the client class, e.g. `EchoClient`."""
        return f"{self.service.name}Client"

    def output_path(self, class_name: str) -> str:
        """Virtual path of a generated class, e.g. `org/demo/EchoClient.java`."""
        directory = helper.package_to_path(self.java_package)
        file_name = f"{class_name}{proto_types.JAVA_SUFFIX}"
        return f"{directory}/{file_name}" if directory else file_name

    @classmethod
    def create(
        cls,
        file: FileDescriptorProto,
        service_index: int,
        index: SchemaIndex,
        resolver: TypeResolver,
    ) -> ServiceGenerationContext:
        """Factory method to create the context with all RPC types resolved.

        Args:
            file: The schema file declaring the service
            service_index: Position of the service within the file
            index: The schema index, for documentation lookups
            resolver: The type resolver

        Returns:
            A fully initialized ServiceGenerationContext
        """
        service = file.service[service_index]
        methods = [
            MethodInfo.create(method, i, resolver, index.method_comment(file, service_index, i))
            for i, method in enumerate(service.method)
        ]
        return cls(
            file=file,
            service=service,
            service_index=service_index,
            java_package=resolver.java_package(file),
            outer_classname=resolver.outer_classname(file),
            methods=methods,
            javadoc=index.service_comment(file, service_index),
        )


@dataclass(frozen=True)
class GeneratedFile:
    """One output unit: a virtual file path and its text."""

    name: str
    content: str
