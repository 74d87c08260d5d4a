"""Generator options, as passed through protoc's parameter string."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from datetime import UTC, datetime

from proto_service_generator import proto_types
from proto_service_generator.schema_index import GeneratorError

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "yes", "on", "1"}
FALSE_VALUES = {"false", "no", "off", "0"}


class ConfigurationError(GeneratorError):
    """Raised for unknown or malformed generator options."""


@dataclass(frozen=True)
class GeneratorConfig:
    """Options of a generation run.

    Attributes:
        runtime_package: Java package of the `Api`, `Observer` and `MethodHandler` runtime types.
        generated_annotation: Whether generated classes carry a `@Generated` annotation.
        generated_date: Pinned date for the `@Generated` annotation. The current time is used when unset.
        generator_name: The `value` of the `@Generated` annotation.
        requested_only: Only generate for the files that protoc asks for, instead of every file in the request.
    """

    runtime_package: str = proto_types.DEFAULT_RUNTIME_PACKAGE
    generated_annotation: bool = True
    generated_date: datetime | None = None
    generator_name: str = proto_types.DEFAULT_GENERATOR_NAME
    requested_only: bool = False

    @classmethod
    def option_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_parameter(cls, parameter: str) -> GeneratorConfig:
        """Parse a protoc parameter string, e.g. `runtime_package=org.demo.api,generated_annotation=false`.

        Args:
            parameter (str): The comma separated `key=value` pairs. May be empty.

        Raises:
            ConfigurationError: If a key is unknown or a value cannot be converted.

        Returns:
            GeneratorConfig: The parsed configuration.
        """
        return cls().with_parameter(parameter)

    def with_parameter(self, parameter: str) -> GeneratorConfig:
        """Return a copy of this configuration with the options of a parameter string applied on top."""
        options: dict[str, object] = {}
        for chunk in parameter.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue

            key, separator, value = chunk.partition("=")
            key = key.strip()
            value = value.strip()
            if key not in self.option_names():
                raise ConfigurationError(
                    f"Unknown option '{key}'. Valid options are: {', '.join(self.option_names())}."
                )
            if not separator and _CONVERTERS[key] is _parse_bool:
                # A bare flag switches a boolean option on
                value = "true"

            options[key] = _convert(key, value)

        if options:
            logger.debug("Generator options: %s", options)
        return replace(self, **options)

    def timestamp(self) -> datetime:
        """The moment to stamp into generated code."""
        if self.generated_date is not None:
            return self.generated_date
        return datetime.now(UTC)


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ConfigurationError(f"Option '{key}' expects a boolean, got '{value}'.")


def _parse_datetime(key: str, value: str) -> datetime:
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise ConfigurationError(f"Option '{key}' expects an ISO 8601 timestamp, got '{value}'.") from None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


def _parse_text(key: str, value: str) -> str:
    if not value:
        raise ConfigurationError(f"Option '{key}' requires a value.")
    return value


_CONVERTERS = {
    "runtime_package": _parse_text,
    "generated_annotation": _parse_bool,
    "generated_date": _parse_datetime,
    "generator_name": _parse_text,
    "requested_only": _parse_bool,
}


def _convert(key: str, value: str) -> object:
    return _CONVERTERS[key](key, value)
