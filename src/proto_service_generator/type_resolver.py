"""Maps protobuf messages to the Java names that protoc's Java generator gives them."""

from __future__ import annotations

from google.protobuf.descriptor_pb2 import FileDescriptorProto

from proto_service_generator import helper
from proto_service_generator.schema_index import SchemaIndex, full_message_name
from proto_service_generator.writer_dto import ResolvedMessage


class TypeResolver:
    """Resolves messages against the code-layout options of their owning file."""

    def __init__(self, index: SchemaIndex):
        self._index = index

    @staticmethod
    def java_package(file: FileDescriptorProto) -> str:
        """The Java package of a file: the `java_package` option, or else the protobuf package."""
        if file.options.HasField("java_package"):
            return file.options.java_package
        return file.package

    @staticmethod
    def outer_classname(file: FileDescriptorProto) -> str:
        """The name of the umbrella class that protoc generates for a file.

        Args:
            file (FileDescriptorProto): The schema file.

        Returns:
            str: The explicit `java_outer_classname` if present, else derived from the file's base name.
        """
        if file.options.HasField("java_outer_classname"):
            return file.options.java_outer_classname
        return helper.outer_classname_from_filename(file.name)

    def owning_package(self, file: FileDescriptorProto) -> str:
        """The Java package that the messages of a file end up in.

        With `java_multiple_files` every message is a top-level class of the Java package. Otherwise messages
        are nested in the outer class, which then acts as their package.
        """
        if file.options.java_multiple_files:
            return self.java_package(file)
        return helper.qualify(self.java_package(file), self.outer_classname(file))

    def resolve(self, type_name: str) -> ResolvedMessage:
        """Resolve a message to its Java qualified name.

        Args:
            type_name (str): The fully-qualified protobuf name, with or without leading dot.

        Raises:
            UnresolvedTypeError: If the message is not part of the index.

        Returns:
            ResolvedMessage: The resolved names.
        """
        message = self._index.message(type_name)
        file = self._index.file_for_message(type_name)
        return ResolvedMessage(
            full_name=full_message_name(file, message),
            simple_name=message.name,
            java_package=self.owning_package(file),
        )

    def is_importable(self, type_name: str) -> bool:
        """Whether the message can be imported at all. Java has no imports from the default package."""
        return bool(self.java_package(self._index.file_for_message(type_name)))

    def needs_import(self, from_package: str, type_name: str) -> bool:
        """Whether code in `from_package` has to import the message to refer to it by its simple name."""
        return self.resolve(type_name).java_package != from_package and self.is_importable(type_name)
