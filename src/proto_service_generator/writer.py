"""Generate the Java dispatcher and client classes for protobuf services.

For a service `Echo` two classes are written:

- `AbstractEcho<T>`: abstract base with one operation per RPC, plus the index based dispatch operations that
  the runtime's `Api<T>` interface requires.
- `EchoClient`: concrete subclass that forwards every RPC to a `MethodHandler`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from google.protobuf.descriptor_pb2 import FileDescriptorProto

from proto_service_generator import helper, proto_types
from proto_service_generator.config import GeneratorConfig
from proto_service_generator.proto_types import JavaRuntimeType
from proto_service_generator.schema_index import SchemaIndex
from proto_service_generator.source_builder import MethodBuilder, SourceBuilder
from proto_service_generator.type_resolver import TypeResolver
from proto_service_generator.writer_dto import GeneratedFile, MethodInfo, ResolvedMessage, ServiceGenerationContext

logger = logging.getLogger(__name__)

CONTEXT_TYPE_PARAMETER = "T"
CLIENT_CONTEXT_TYPE = "Void"

SUPPRESS_UNCHECKED = '@SuppressWarnings("unchecked")'
OVERRIDE = "@Override"

SERVICE_GUARD = [
    "if (method.getService() != getDescriptorForType()) {",
    '    throw new IllegalArgumentException("Method not contained by this service.");',
    "}",
]
UNKNOWN_INDEX = [
    "default:",
    "    throw new IllegalStateException();",
    "}",
]
UNCHECKED_CAST_NOTE = "// Unchecked casts: case labels follow the method order of the service descriptor."


class TypeReferences:
    """Decides how generated code refers to message types, adding imports where needed.

    The first type to claim a simple name is imported and referred to by that name. Any later type with the
    same simple name is written out fully qualified.
    """

    def __init__(self, source: SourceBuilder, resolver: TypeResolver, reserved: dict[str, str]):
        """Initialize the references for one compilation unit.

        Args:
            source (SourceBuilder): The unit that receives the imports.
            resolver (TypeResolver): Resolver for import decisions.
            reserved (dict[str, str]): Simple names already taken by runtime types, mapped to their qualified names.
        """
        self._source = source
        self._resolver = resolver
        self._claimed: dict[str, str] = dict(reserved)

    def name(self, message: ResolvedMessage) -> str:
        """The name under which generated code can refer to a message."""
        if message.java_package and not self._resolver.is_importable(message.full_name):
            # Nested in an outer class of the default package, reachable only through that class
            return message.qualified_name

        claimed = self._claimed.get(message.simple_name)
        if claimed is None:
            self._claimed[message.simple_name] = message.qualified_name
            if self._resolver.needs_import(self._source.package, message.full_name):
                self._source.add_import(message.qualified_name)
            return message.simple_name

        if claimed == message.qualified_name:
            return message.simple_name

        logger.debug("'%s' clashes with '%s', using its qualified name.", message.qualified_name, claimed)
        return message.qualified_name

    def local(self, simple_name: str, qualified_name: str) -> str:
        """The name under which generated code can refer to a class that needs no import.

        Args:
            simple_name (str): The class name, e.g. the outer class of a schema file.
            qualified_name (str): The qualified name, used when the simple name is already taken.

        Returns:
            str: The simple name if it is free or already refers to the class, else the qualified name.
        """
        claimed = self._claimed.setdefault(simple_name, qualified_name)
        if claimed == qualified_name:
            return simple_name

        logger.debug("'%s' clashes with '%s', using its qualified name.", qualified_name, claimed)
        return qualified_name

    def observer(self, message: ResolvedMessage) -> str:
        """An observer of the message, e.g. `Observer<EchoReply>`."""
        return helper.new_generic(JavaRuntimeType.OBSERVER, [self.name(message)])


class ServiceWriter:
    """Common base of the writers that generate one Java class per service."""

    def __init__(
        self,
        index: SchemaIndex,
        resolver: TypeResolver | None = None,
        config: GeneratorConfig | None = None,
        timestamp: datetime | None = None,
    ):
        """Initialize the writer.

        Args:
            index (SchemaIndex): The populated schema index.
            resolver (TypeResolver | None, optional): Type resolver over the same index. Created when omitted.
            config (GeneratorConfig | None, optional): Generator options. Defaults to the default options.
            timestamp (datetime | None, optional): The date for `@Generated`. Defaults to `config.timestamp()`.
        """
        self._index = index
        self._resolver = resolver or TypeResolver(index)
        self._config = config or GeneratorConfig()
        self._timestamp = timestamp or self._config.timestamp()

    def runtime_type(self, simple_name: str) -> str:
        """Qualified name of a runtime type, e.g. `org.yamcs.api.Observer`."""
        return f"{self._config.runtime_package}.{simple_name}"

    def create_context(self, file: FileDescriptorProto, service_index: int) -> ServiceGenerationContext:
        return ServiceGenerationContext.create(file, service_index, self._index, self._resolver)

    def _new_source(
        self, context: ServiceGenerationContext, class_name: str, type_parameters: list[str] | None = None
    ) -> SourceBuilder:
        source = SourceBuilder(class_name, type_parameters or [])
        source.set_package(context.java_package)
        source.set_javadoc(context.javadoc)

        if self._config.generated_annotation:
            source.add_annotation(
                helper.new_annotation(
                    proto_types.GENERATED_ANNOTATION,
                    {"value": self._config.generator_name, "date": helper.format_instant(self._timestamp)},
                )
            )
        return source

    def _new_references(self, source: SourceBuilder, *imports: str) -> TypeReferences:
        """Import runtime types and reserve their simple names."""
        for import_name in imports:
            source.add_import(import_name)
        reserved = {helper.simple_name(import_name): import_name for import_name in imports}
        reserved[source.class_name] = helper.qualify(source.package, source.class_name)
        return TypeReferences(source, self._resolver, reserved)


class DispatcherWriter(ServiceWriter):
    """Writes the abstract dispatch class of a service."""

    def generate(self, file: FileDescriptorProto, service_index: int) -> GeneratedFile:
        """Generate `Abstract<Service>` for a service.

        Args:
            file (FileDescriptorProto): The schema file declaring the service.
            service_index (int): Position of the service within the file.

        Raises:
            UnresolvedTypeError: If an RPC refers to an unknown message.

        Returns:
            GeneratedFile: The dispatcher source.
        """
        context = self.create_context(file, service_index)

        source = self._new_source(context, context.dispatcher_name, [CONTEXT_TYPE_PARAMETER])
        source.set_abstract(True)
        source.set_implements(helper.new_generic(JavaRuntimeType.API, [CONTEXT_TYPE_PARAMETER]))
        source.add_annotation(SUPPRESS_UNCHECKED)
        refs = self._new_references(
            source,
            proto_types.PROTOBUF_MESSAGE,
            proto_types.PROTOBUF_METHOD_DESCRIPTOR,
            proto_types.PROTOBUF_SERVICE_DESCRIPTOR,
            self.runtime_type(JavaRuntimeType.API),
            self.runtime_type(JavaRuntimeType.OBSERVER),
        )

        # The outer class holds the file descriptor and shares the package of the dispatcher
        outer_class = refs.local(
            context.outer_classname, helper.qualify(context.java_package, context.outer_classname)
        )

        for method in context.methods:
            self._add_rpc_operation(source, refs, method)

        self._add_get_descriptor_for_type(source, context, outer_class)
        self._add_prototype_lookup(source, refs, context, "getRequestPrototype", lambda m: m.input_type)
        self._add_prototype_lookup(source, refs, context, "getResponsePrototype", lambda m: m.output_type)
        self._add_unary_call_method(source, refs, context)
        self._add_streaming_call_method(source, refs, context)

        return GeneratedFile(context.output_path(context.dispatcher_name), source.dumps())

    def _add_rpc_operation(self, source: SourceBuilder, refs: TypeReferences, method: MethodInfo):
        """Add the abstract operation that implementers override for one RPC.

        A client-streaming RPC returns the observer for incoming requests instead of taking a request.
        """
        operation = source.add_method(method.java_name)
        operation.javadoc = method.javadoc
        operation.abstract = True

        if method.client_streaming:
            operation.return_type = refs.observer(method.input_type)
            operation.add_arg(CONTEXT_TYPE_PARAMETER, "ctx")
            operation.add_arg(refs.observer(method.output_type), "observer")
        else:
            operation.add_arg(CONTEXT_TYPE_PARAMETER, "ctx")
            operation.add_arg(refs.name(method.input_type), "request")
            operation.add_arg(refs.observer(method.output_type), "observer")

    def _new_dispatch_operation(self, source: SourceBuilder, name: str, return_type: str = "void") -> MethodBuilder:
        operation = source.add_method(name)
        operation.return_type = return_type
        operation.final = True
        operation.add_annotation(OVERRIDE)
        return operation

    def _add_get_descriptor_for_type(
        self, source: SourceBuilder, context: ServiceGenerationContext, outer_class: str
    ):
        operation = self._new_dispatch_operation(source, "getDescriptorForType", "ServiceDescriptor")
        operation.add_line(f"return {outer_class}.getDescriptor().getServices().get({context.service_index});")

    def _add_prototype_lookup(
        self,
        source: SourceBuilder,
        refs: TypeReferences,
        context: ServiceGenerationContext,
        name: str,
        select: Callable[[MethodInfo], ResolvedMessage],
    ):
        """Add a lookup of the default instance of a request or response type, by method index."""
        operation = self._new_dispatch_operation(source, name, "Message")
        operation.add_arg("MethodDescriptor", "method")
        operation.body.extend(SERVICE_GUARD)
        operation.add_line("switch (method.getIndex()) {")
        for method in context.methods:
            operation.add_line(f"case {method.index}:")
            operation.add_line(f"    return {refs.name(select(method))}.getDefaultInstance();")
        operation.body.extend(UNKNOWN_INDEX)

    def _add_unary_call_method(self, source: SourceBuilder, refs: TypeReferences, context: ServiceGenerationContext):
        operation = self._new_dispatch_operation(source, "callMethod")
        operation.add_arg("MethodDescriptor", "method")
        operation.add_arg(CONTEXT_TYPE_PARAMETER, "ctx")
        operation.add_arg("Message", "request")
        operation.add_arg("Observer<Message>", "future")
        operation.body.extend(SERVICE_GUARD)
        operation.add_line(UNCHECKED_CAST_NOTE)
        operation.add_line("switch (method.getIndex()) {")
        for method in context.methods:
            if method.client_streaming:
                continue
            request = f"({refs.name(method.input_type)}) request"
            observer = f"({refs.observer(method.output_type)})(Object) future"
            operation.add_line(f"case {method.index}:")
            operation.add_line(f"    {method.java_name}(ctx, {request}, {observer});")
            operation.add_line("    return;")
        operation.body.extend(UNKNOWN_INDEX)

    def _add_streaming_call_method(
        self, source: SourceBuilder, refs: TypeReferences, context: ServiceGenerationContext
    ):
        operation = self._new_dispatch_operation(source, "callMethod", "Observer<Message>")
        operation.add_arg("MethodDescriptor", "method")
        operation.add_arg(CONTEXT_TYPE_PARAMETER, "ctx")
        operation.add_arg("Observer<Message>", "future")
        operation.body.extend(SERVICE_GUARD)
        operation.add_line(UNCHECKED_CAST_NOTE)
        operation.add_line("switch (method.getIndex()) {")
        for method in context.methods:
            if not method.client_streaming:
                continue
            observer = f"({refs.observer(method.output_type)})(Object) future"
            operation.add_line(f"case {method.index}:")
            operation.add_line(f"    return (Observer<Message>)(Object) {method.java_name}(ctx, {observer});")
        operation.body.extend(UNKNOWN_INDEX)


class ClientWriter(ServiceWriter):
    """Writes the client class of a service, which delegates every RPC to a `MethodHandler`."""

    def generate(self, file: FileDescriptorProto, service_index: int) -> GeneratedFile:
        """Generate `<Service>Client` for a service.

        Args:
            file (FileDescriptorProto): The schema file declaring the service.
            service_index (int): Position of the service within the file.

        Raises:
            UnresolvedTypeError: If an RPC refers to an unknown message.

        Returns:
            GeneratedFile: The client source.
        """
        context = self.create_context(file, service_index)

        source = self._new_source(context, context.client_name)
        source.set_extends(helper.new_generic(context.dispatcher_name, [CLIENT_CONTEXT_TYPE]))
        refs = self._new_references(
            source,
            self.runtime_type(JavaRuntimeType.METHOD_HANDLER),
            self.runtime_type(JavaRuntimeType.OBSERVER),
        )

        source.add_field(JavaRuntimeType.METHOD_HANDLER, "handler")
        constructor = source.add_constructor()
        constructor.add_arg(JavaRuntimeType.METHOD_HANDLER, "handler")
        constructor.add_line("this.handler = handler;")

        for method in context.methods:
            if method.client_streaming:
                self._add_streaming_call(source, refs, method)
            else:
                self._add_unary_call(source, refs, method)

        return GeneratedFile(context.output_path(context.client_name), source.dumps())

    def _new_rpc_override(self, source: SourceBuilder, method: MethodInfo) -> MethodBuilder:
        operation = source.add_method(method.java_name)
        operation.javadoc = method.javadoc
        operation.final = True
        operation.add_annotation(OVERRIDE)
        return operation

    def _add_unary_call(self, source: SourceBuilder, refs: TypeReferences, method: MethodInfo):
        operation = self._new_rpc_override(source, method)
        operation.add_arg(CLIENT_CONTEXT_TYPE, "ctx")
        operation.add_arg(refs.name(method.input_type), "request")
        operation.add_arg(refs.observer(method.output_type), "observer")

        operation.add_line("handler.call(")
        operation.add_line(f"    getDescriptorForType().getMethods().get({method.index}),")
        operation.add_line("    request,")
        operation.add_line(f"    {refs.name(method.output_type)}.getDefaultInstance(),")
        operation.add_line("    observer);")

    def _add_streaming_call(self, source: SourceBuilder, refs: TypeReferences, method: MethodInfo):
        operation = self._new_rpc_override(source, method)
        operation.add_annotation(SUPPRESS_UNCHECKED)
        operation.return_type = refs.observer(method.input_type)
        operation.add_arg(CLIENT_CONTEXT_TYPE, "ctx")
        operation.add_arg(refs.observer(method.output_type), "observer")

        operation.add_line(f"return ({refs.observer(method.input_type)})(Object) handler.streamingCall(")
        operation.add_line(f"    getDescriptorForType().getMethods().get({method.index}),")
        operation.add_line(f"    {refs.name(method.input_type)}.getDefaultInstance(),")
        operation.add_line(f"    {refs.name(method.output_type)}.getDefaultInstance(),")
        operation.add_line("    observer);")
