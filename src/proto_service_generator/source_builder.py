"""Accumulates the parts of a single Java class and renders them as source text.

The builder is a pure formatter. It performs no semantic validation; callers are responsible for passing
consistent types, names and statements.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

if sys.version_info >= (3, 12):
    from typing import override
else:
    from typing_extensions import override

from proto_service_generator import helper

MEMBER_INDENT = "    "
BODY_INDENT = MEMBER_INDENT * 2


@dataclass
class Parameter:
    """A typed parameter of a constructor or method."""

    type_name: str
    name: str

    @override
    def __str__(self) -> str:
        return f"{self.type_name} {self.name}"


@dataclass
class ConstructorBuilder:
    """A constructor with typed parameters and a body of pre-formatted statements."""

    parameters: list[Parameter] = field(default_factory=list)
    body: list[str] = field(default_factory=list)

    def add_arg(self, type_name: str, name: str) -> ConstructorBuilder:
        self.parameters.append(Parameter(type_name, name))
        return self

    def add_line(self, line: str = "") -> ConstructorBuilder:
        self.body.append(line)
        return self


@dataclass
class MethodBuilder:
    """A method declaration, optionally with a body of pre-formatted statements.

    Attributes:
        name: The method name.
        return_type: The declared return type, `void` unless set otherwise.
        abstract: Whether the method is abstract. Abstract methods are rendered without body.
        final: Whether the method is final.
        javadoc: Raw documentation text, escaped on rendering.
        annotations: Annotations placed in front of the method, in insertion order.
        parameters: The typed parameters, in declaration order.
        body: Statement lines, indented relative to the method body.
    """

    name: str
    return_type: str = "void"
    abstract: bool = False
    final: bool = False
    javadoc: str | None = None
    annotations: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    body: list[str] = field(default_factory=list)

    def add_arg(self, type_name: str, name: str) -> MethodBuilder:
        self.parameters.append(Parameter(type_name, name))
        return self

    def add_annotation(self, annotation: str) -> MethodBuilder:
        self.annotations.append(annotation)
        return self

    def add_line(self, line: str = "") -> MethodBuilder:
        self.body.append(line)
        return self

    @property
    def modifiers(self) -> str:
        modifiers = ["public"]
        if self.abstract:
            modifiers.append("abstract")
        if self.final:
            modifiers.append("final")
        return " ".join(modifiers)

    @property
    def signature(self) -> str:
        """The declaration line without trailing `;` or `{`."""
        arguments = helper.join_parameters([str(p) for p in self.parameters])
        return f"{self.modifiers} {self.return_type} {self.name}({arguments})"


def _render_body(lines: Sequence[str]) -> list[str]:
    """Indent statement lines, trimming leading and trailing blank lines."""
    text = "\n".join(lines).strip()
    return [f"{BODY_INDENT}{line}".rstrip() for line in text.split("\n")]


class SourceBuilder:
    """Builds one Java compilation unit containing a single top-level class."""

    def __init__(self, class_name: str, type_parameters: Sequence[str] = ()):
        """Initialize the builder for a class.

        Args:
            class_name (str): The simple name of the class.
            type_parameters (Sequence[str], optional): Generic type parameters of the class. Defaults to ().
        """
        self.class_name = class_name
        self.type_parameters = list(type_parameters)

        self.package = ""
        self.abstract = False
        self.javadoc: str | None = None
        self.extends: str | None = None
        self.implements: list[str] = []

        self._imports: set[str] = set()
        self.annotations: list[str] = []
        self.fields: list[Parameter] = []
        self.constructors: list[ConstructorBuilder] = []
        self.methods: list[MethodBuilder] = []

    def set_package(self, package: str):
        self.package = package

    def set_abstract(self, abstract: bool):
        self.abstract = abstract

    def set_javadoc(self, javadoc: str | None):
        """Sets the class documentation.

        Unlike regular Javadoc, the input is not expected to be HTML. It is surrounded by `<pre></pre>` tags
        and escaped as necessary.

        Args:
            javadoc (str | None): The raw text, or None to omit the block.
        """
        self.javadoc = javadoc

    def set_extends(self, superclass: str | None):
        self.extends = superclass

    def set_implements(self, *interfaces: str):
        self.implements = list(interfaces)

    def add_import(self, import_name: str):
        """Add a fully qualified import. Duplicates are ignored."""
        self._imports.add(import_name)

    def add_annotation(self, annotation: str):
        self.annotations.append(annotation)

    def add_field(self, type_name: str, name: str):
        """Add a `private final` field."""
        self.fields.append(Parameter(type_name, name))

    def add_constructor(self) -> ConstructorBuilder:
        constructor = ConstructorBuilder()
        self.constructors.append(constructor)
        return constructor

    def add_method(self, name: str) -> MethodBuilder:
        method = MethodBuilder(name)
        self.methods.append(method)
        return method

    @property
    def imports(self) -> list[str]:
        """The sorted imports that will be rendered.

        Imports of the unit's own package, or of types that live directly in it, are left out.

        Returns:
            list[str]: The import names, lexicographically sorted.
        """
        return sorted(
            imp for imp in self._imports if imp != self.package and helper.package_of(imp) != self.package
        )

    @property
    def declaration(self) -> str:
        """The class header, e.g. `public abstract class AbstractEcho<T> implements Api<T>`."""
        modifiers = "public abstract" if self.abstract else "public"
        header = f"{modifiers} class {helper.new_generic(self.class_name, self.type_parameters)}"
        if self.extends:
            header += f" extends {self.extends}"
        if self.implements:
            header += f" implements {helper.join_parameters(self.implements)}"
        return header

    def _constructor_lines(self, constructor: ConstructorBuilder) -> list[str]:
        arguments = helper.join_parameters([str(p) for p in constructor.parameters])
        lines = [f"{MEMBER_INDENT}public {self.class_name}({arguments}) {{"]
        lines.extend(_render_body(constructor.body))
        lines.append(f"{MEMBER_INDENT}}}")
        return lines

    def _method_lines(self, method: MethodBuilder) -> list[str]:
        lines: list[str] = []
        if method.javadoc is not None:
            lines.extend(helper.javadoc_lines(method.javadoc, MEMBER_INDENT))

        lines.extend(f"{MEMBER_INDENT}{annotation}" for annotation in method.annotations)

        if method.abstract:
            lines.append(f"{MEMBER_INDENT}{method.signature};")
        else:
            lines.append(f"{MEMBER_INDENT}{method.signature} {{")
            lines.extend(_render_body(method.body))
            lines.append(f"{MEMBER_INDENT}}}")
        return lines

    def dumps(self) -> str:
        """Generates the source text of the compilation unit.

        Returns:
            str: The output string, terminated by a newline.
        """
        out: list[str] = []
        if self.package:
            out.extend([f"package {self.package};", ""])

        imports = self.imports
        out.extend(f"import {imp};" for imp in imports)
        if imports:
            out.append("")

        if self.javadoc is not None:
            out.extend(helper.javadoc_lines(self.javadoc))

        out.extend(self.annotations)
        out.append(f"{self.declaration} {{")

        if self.fields:
            out.append("")
            out.extend(f"{MEMBER_INDENT}private final {f.type_name} {f.name};" for f in self.fields)

        for constructor in self.constructors:
            out.append("")
            out.extend(self._constructor_lines(constructor))

        for method in self.methods:
            out.append("")
            out.extend(self._method_lines(method))

        out.append("}")
        return "\n".join(out) + "\n"

    @override
    def __str__(self) -> str:
        return self.dumps()
