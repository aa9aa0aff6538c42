from typing import List

from kbuilder.models.builder_config import RunConfig
from kbuilder.models.builder_description import (
    BuilderDescription, DefaultInstanceOverlayBody, RequiredArgument, RequiredOnlyBody,
    RequiredThenOverlayBody,
)
from kbuilder.models.type_model import TypeParameter, TypeRef

KOTLIN_HARD_KEYWORDS = {
    'as', 'break', 'class', 'continue', 'do', 'else', 'false', 'for', 'fun', 'if', 'in',
    'interface', 'is', 'null', 'object', 'package', 'return', 'super', 'this', 'throw',
    'true', 'try', 'typealias', 'typeof', 'val', 'var', 'when', 'while',
}


def quote_identifier(name: str) -> str:
    if name in KOTLIN_HARD_KEYWORDS:
        return f"`{name}`"
    return name


class KotlinEmitter:
    """Renders a BuilderDescription as a Kotlin source file."""

    file_extension = "kt"

    def __init__(self, run_config: RunConfig = None):
        self.run_config = run_config or RunConfig()

    def file_name(self, description: BuilderDescription) -> str:
        return f"{description.class_name}.{self.file_extension}"

    def emit(self, description: BuilderDescription) -> str:
        lines: List[str] = []
        if self.run_config.header_comment:
            lines.append(f"// {self.run_config.header_comment}")
        if description.package_name:
            lines.append(f"package {description.package_name}")
        imports = self._imports(description)
        if imports:
            lines.append("")
            lines.extend(f"import {name}" for name in imports)
        lines.append("")
        lines.append(f"class {self._class_header(description)} {{")

        for spec in description.fields:
            lines.append(self._indent(1, f"private var {quote_identifier(spec.name)}: {spec.holder_type.render()} = null"))

        for setter in description.setters:
            param = quote_identifier(setter.param_name)
            lines.append("")
            lines.append(self._indent(1, f"fun {quote_identifier(setter.function_name)}({param}: "
                                         f"{setter.param_type.render()}): {setter.return_type.render()} {{"))
            lines.append(self._indent(2, f"this.{param} = {param}"))
            lines.append(self._indent(2, "return this"))
            lines.append(self._indent(1, "}"))

        lines.append("")
        lines.extend(self._build_function(description))

        if description.shared_default_instance:
            lines.append("")
            lines.extend(self._companion(description))

        lines.append("}")
        return self.run_config.line_separator.join(lines) + self.run_config.line_separator

    def _imports(self, description: BuilderDescription) -> List[str]:
        markers = self.run_config.marker_annotations
        kept = []
        for name in description.imports:
            last = name.split(" as ")[0].strip().split(".")[-1]
            if last in markers or name in kept:
                continue
            kept.append(name)
        return kept

    def _class_header(self, description: BuilderDescription) -> str:
        parameters = description.type_parameters
        if not parameters:
            return description.class_name
        declared = ", ".join(self._type_parameter(p) for p in parameters)
        header = f"{description.class_name}<{declared}>"
        constraints = [
            f"{p.name} : {bound.render()}"
            for p in parameters if len(p.bounds) > 1
            for bound in p.bounds
        ]
        if constraints:
            header += " where " + ", ".join(constraints)
        return header

    def _type_parameter(self, parameter: TypeParameter) -> str:
        if len(parameter.bounds) == 1:
            return f"{parameter.name} : {parameter.bounds[0].render()}"
        return parameter.name

    def _build_function(self, description: BuilderDescription) -> List[str]:
        function = description.build_function
        body = function.body
        lines = []
        generic_overlay = isinstance(body, DefaultInstanceOverlayBody) and bool(description.type_parameters)
        if generic_overlay:
            lines.append(self._indent(1, '@Suppress("UNCHECKED_CAST")'))
        lines.append(self._indent(1, f"fun build(): {function.return_type.render()} {{"))

        if isinstance(body, RequiredOnlyBody):
            lines.append(self._indent(2, f"return {self._construct(body.target, body.arguments)}"))
        elif isinstance(body, DefaultInstanceOverlayBody):
            source = self._shared_reference(description)
            if generic_overlay:
                lines.append(self._indent(2, f"val source = {source} as {body.target.render()}"))
                source = "source"
            lines.append(self._indent(2, f"return {self._overlay(source, body.overlays)}"))
        elif isinstance(body, RequiredThenOverlayBody):
            lines.append(self._indent(2, f"val result = {self._construct(body.target, body.arguments)}"))
            lines.append(self._indent(2, f"return {self._overlay('result', body.overlays)}"))
        else:
            raise ValueError(f"Unsupported build body: {body!r}")

        lines.append(self._indent(1, "}"))
        return lines

    def _shared_reference(self, description: BuilderDescription) -> str:
        name = description.shared_default_instance.name
        # A builder field of the same name hides the companion member.
        if any(spec.name == name for spec in description.fields):
            return f"Companion.{name}"
        return name

    def _construct(self, target: TypeRef, arguments) -> str:
        return f"{target.name}(" + ", ".join(self._required_argument(a) for a in arguments) + ")"

    def _required_argument(self, argument: RequiredArgument) -> str:
        name = quote_identifier(argument.name)
        if argument.checked:
            return (f"{name} = this.{name} ?: throw IllegalArgumentException("
                    f"\"Property {argument.name} is mandatory and must be set in builder\")")
        return f"{name} = this.{name}"

    def _overlay(self, source: str, overlays) -> str:
        assignments = ", ".join(
            f"{quote_identifier(name)} = this.{quote_identifier(name)} ?: {source}.{quote_identifier(name)}"
            for name in overlays
        )
        return f"{source}.copy({assignments})"

    def _companion(self, description: BuilderDescription) -> List[str]:
        shared = description.shared_default_instance
        instance_type = shared.type
        arguments = ""
        if instance_type.arguments:
            arguments = "<" + ", ".join("Nothing" for _ in instance_type.arguments) + ">"
        return [
            self._indent(1, "private companion object {"),
            self._indent(2, f"private val {shared.name}: {instance_type.render()} by lazy {{ "
                            f"{instance_type.name}{arguments}() }}"),
            self._indent(1, "}"),
        ]

    def _indent(self, level: int, text: str) -> str:
        return self.run_config.indent * level + text
