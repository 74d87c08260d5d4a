"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import posixpath
from collections.abc import Sequence
from datetime import UTC, datetime

PROTO_SUFFIX = ".proto"


def decapitalize(name: str) -> str:
    """Convert a name to its Java method form.

    Follows `java.beans.Introspector.decapitalize`: the first character is lower-cased, unless the first two
    characters are both upper case, in which case the name is kept as it is.

    Args:
        name (str): The original name, e.g. an RPC name.

    Returns:
        str: The decapitalized name.

    Examples:
        >>> decapitalize("GetParameter")
        'getParameter'
        >>> decapitalize("URLInfo")
        'URLInfo'
    """
    if not name:
        return name

    if len(name) > 1 and name[0].isupper() and name[1].isupper():
        return name

    return name[0].lower() + name[1:]


def capitalize_first(name: str) -> str:
    """Upper-case the first character of a name, leaving the rest untouched."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def outer_classname_from_filename(filename: str) -> str:
    """Derive the outer class name for a schema file without an explicit one.

    E.g. `yamcs/protobuf/mdb/mdb.proto` becomes `Mdb`.

    Args:
        filename (str): The schema file name, as given by protoc.

    Returns:
        str: The derived outer class name.
    """
    base_name = posixpath.basename(filename).replace(PROTO_SUFFIX, "")
    return capitalize_first(base_name)


def package_to_path(package: str) -> str:
    """Converts a dotted package name into path segments, e.g. `org.demo` becomes `org/demo`."""
    return package.replace(".", "/")


def package_of(qualified_name: str) -> str:
    """Get the package part of a qualified name.

    Args:
        qualified_name (str): A dotted name, e.g. `org.demo.Echo`.

    Returns:
        str: Everything up to the last dot, or an empty string for a simple name.
    """
    package, _, _ = qualified_name.rpartition(".")
    return package


def simple_name(qualified_name: str) -> str:
    """Get the last segment of a dotted name."""
    return qualified_name.rpartition(".")[2]


def escape_javadoc(raw: str) -> str:
    """Escape free text so that it can be placed inside a Javadoc block.

    The input is not expected to be HTML, so it is wrapped in `<pre></pre>`. Characters that could
    terminate the comment block, open a Javadoc tag, or be taken for markup are neutralized.

    Args:
        raw (str): The raw documentation text.

    Returns:
        str: The escaped text, still without comment prefixes.
    """
    escaped = (
        raw.replace("@", "{@literal @}")
        .replace("/*", "{@literal /}*")
        .replace("*/", "*{@literal /}")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
    )
    return f"<pre>\n{escaped}</pre>"


def javadoc_lines(raw: str, indent: str = "") -> list[str]:
    """Render a complete Javadoc block.

    Args:
        raw (str): The raw documentation text.
        indent (str, optional): Indentation to put in front of every line. Defaults to "".

    Returns:
        list[str]: The lines of the block, including the opening and closing markers.
    """
    lines = [f"{indent}/**"]
    for line in escape_javadoc(raw).split("\n"):
        lines.append(f"{indent} * {line}".rstrip())
    lines.append(f"{indent} */")
    return lines


def join_parameters(parameters: Sequence[str] | None) -> str:
    """Joins parameters by means of ', '.

    Args:
        parameters (Sequence[str] | None): The parameters to join.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(p for p in parameters if p)

    else:
        return ""


def new_generic(name: str, type_arguments: Sequence[str]) -> str:
    """Create a string for a parameterized type.

    For example, for the name 'Observer' and the type argument 'EchoReply', the output is 'Observer<EchoReply>'.

    Args:
        name (str): The raw type name.
        type_arguments (Sequence[str]): The type arguments.

    Returns:
        str: The parameterized type.
    """
    if not type_arguments:
        return name
    return f"{name}<{join_parameters(type_arguments)}>"


def new_annotation(name: str, arguments: dict[str, str] | None = None) -> str:
    """Create a Java annotation.

    Args:
        name (str): The (possibly qualified) annotation name, without the `@`.
        arguments (dict[str, str] | None, optional): Named string arguments. Defaults to None.

    Returns:
        str: The annotation string, e.g. `@Generated(value = "x", date = "y")`.
    """
    if not arguments:
        return f"@{name}"

    rendered = [f'{key} = "{value}"' for key, value in arguments.items()]
    return f"@{name}({join_parameters(rendered)})"


def format_instant(moment: datetime) -> str:
    """Format a moment the way `java.time.Instant.toString` does, e.g. `2024-03-01T10:15:30.125Z`.

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)

    moment = moment.astimezone(UTC)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")

    # The fraction is printed in groups of three digits
    if moment.microsecond % 1000:
        text += f".{moment.microsecond:06d}"
    elif moment.microsecond:
        text += f".{moment.microsecond // 1000:03d}"
    return f"{text}Z"


def qualify(package: str, name: str) -> str:
    """Join a package and a simple name. A name in the default package stays unqualified."""
    if not package:
        return name
    return f"{package}.{name}"
