"""Lookup tables over every schema file of a generation run."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from google.protobuf.descriptor_pb2 import DescriptorProto, FileDescriptorProto

from proto_service_generator import proto_types

logger = logging.getLogger(__name__)

ServiceKey = tuple[str, int]
MethodKey = tuple[str, int, int]


class GeneratorError(Exception):
    """Base class for errors that abort a generation run."""


class SchemaConflictError(GeneratorError):
    """Raised when two schema files declare the same fully-qualified message name."""


class UnresolvedTypeError(GeneratorError):
    """Raised when an RPC refers to a message that is not part of the request."""


def full_message_name(file: FileDescriptorProto, message: DescriptorProto) -> str:
    """The fully-qualified protobuf name of a top-level message, e.g. `demo.EchoRequest`."""
    if file.package:
        return f"{file.package}.{message.name}"
    return message.name


def normalize_type_name(type_name: str) -> str:
    """Strip the leading dot that protoc puts in front of resolved type references."""
    return type_name[1:] if type_name.startswith(".") else type_name


class SchemaIndex:
    """Index of messages and leading comments, populated once and read-only afterwards."""

    def __init__(self) -> None:
        self._messages: dict[str, DescriptorProto] = {}
        self._file_for_message: dict[str, FileDescriptorProto] = {}

        self._service_comments: dict[ServiceKey, str] = {}
        self._method_comments: dict[MethodKey, str] = {}

    @classmethod
    def from_files(cls, files: Iterable[FileDescriptorProto]) -> SchemaIndex:
        index = cls()
        index.index(files)
        return index

    def index(self, files: Iterable[FileDescriptorProto]) -> None:
        """Ingest a set of schema files.

        Args:
            files (Iterable[FileDescriptorProto]): The parsed files, in request order.

        Raises:
            SchemaConflictError: If a fully-qualified message name is declared more than once.
        """
        for file in files:
            self._scan_comments(file)

            for message in file.message_type:
                qualified_name = full_message_name(file, message)
                if qualified_name in self._messages:
                    other = self._file_for_message[qualified_name]
                    raise SchemaConflictError(
                        f"Message '{qualified_name}' is declared in both '{other.name}' and '{file.name}'."
                    )

                self._messages[qualified_name] = message
                self._file_for_message[qualified_name] = file

            logger.debug(
                "Indexed '%s': %d message(s), %d service(s).", file.name, len(file.message_type), len(file.service)
            )

    def _scan_comments(self, file: FileDescriptorProto) -> None:
        """Attach leading comments to services and methods, based on positional paths.

        A path `[service, s]` locates service `s`, a path `[service, s, method, m]` locates method `m` of that
        service. Any other shape is ignored.
        """
        services = file.service

        for location in file.source_code_info.location:
            if not location.HasField("leading_comments"):
                continue

            path = list(location.path)
            if not path or path[0] != proto_types.SERVICE_FIELD_NUMBER:
                continue

            if len(path) == proto_types.SERVICE_PATH_LENGTH:
                service_index = path[1]
                if service_index < len(services):
                    self._service_comments[(file.name, service_index)] = location.leading_comments
                    continue

            elif len(path) == proto_types.METHOD_PATH_LENGTH and path[2] == proto_types.METHOD_FIELD_NUMBER:
                service_index, method_index = path[1], path[3]
                if service_index < len(services) and method_index < len(services[service_index].method):
                    self._method_comments[(file.name, service_index, method_index)] = location.leading_comments
                    continue

            logger.debug("Ignoring comment at path %s in '%s'.", path, file.name)

    def message(self, type_name: str) -> DescriptorProto:
        """Look up a message by its fully-qualified name.

        Args:
            type_name (str): The fully-qualified name, with or without protoc's leading dot.

        Raises:
            UnresolvedTypeError: If no indexed file declares the message.

        Returns:
            DescriptorProto: The message definition.
        """
        try:
            return self._messages[normalize_type_name(type_name)]
        except KeyError:
            raise UnresolvedTypeError(f"Type '{type_name}' is not declared in any of the input files.") from None

    def file_for_message(self, type_name: str) -> FileDescriptorProto:
        """The schema file that owns a message.

        Raises:
            UnresolvedTypeError: If no indexed file declares the message.
        """
        try:
            return self._file_for_message[normalize_type_name(type_name)]
        except KeyError:
            raise UnresolvedTypeError(f"Type '{type_name}' is not declared in any of the input files.") from None

    def service_comment(self, file: FileDescriptorProto, service_index: int) -> str | None:
        return self._service_comments.get((file.name, service_index))

    def method_comment(self, file: FileDescriptorProto, service_index: int, method_index: int) -> str | None:
        return self._method_comments.get((file.name, service_index, method_index))
