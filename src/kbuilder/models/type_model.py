from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

STAR = "*"


@dataclass(frozen=True)
class TypeRef:
    """Structural reference to a type, e.g. ``Map<String, List<T>>?``."""
    name: str
    arguments: Tuple['TypeRef', ...] = ()
    nullable: bool = False
    projection: str = ""
    opaque: bool = False

    @property
    def is_star(self) -> bool:
        return self.name == STAR

    def as_nullable(self) -> 'TypeRef':
        if self.nullable or self.is_star:
            return self
        return replace(self, nullable=True)

    def render(self) -> str:
        if self.is_star:
            return STAR
        text = self.name
        if self.arguments:
            text += "<" + ", ".join(argument.render() for argument in self.arguments) + ">"
        if self.nullable:
            text = f"({text})?" if self.opaque else f"{text}?"
        if self.projection:
            text = f"{self.projection} {text}"
        return text

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class TypeParameter:
    name: str
    bounds: Tuple[TypeRef, ...] = ()
    variance: str = ""

    def as_argument(self) -> TypeRef:
        return TypeRef(self.name)


@dataclass(frozen=True)
class PropertyModel:
    name: str
    type: TypeRef
    has_default_value: bool = False


@dataclass(frozen=True)
class TargetTypeModel:
    """Builder-relevant shape of a target value type."""
    qualified_name: str
    package_name: str
    simple_name: str
    enclosing_names: Tuple[str, ...] = ()
    type_parameters: Tuple[TypeParameter, ...] = ()
    properties: Tuple[PropertyModel, ...] = ()
    imports: Tuple[str, ...] = ()

    @property
    def nested_path(self) -> str:
        """Class path after the package, e.g. ``Parent.Child``."""
        return ".".join(self.enclosing_names + (self.simple_name,))

    @property
    def builder_base_name(self) -> str:
        return "".join(self.enclosing_names + (self.simple_name,))

    def as_type(self) -> TypeRef:
        return TypeRef(self.nested_path, tuple(p.as_argument() for p in self.type_parameters))


# Raw declarations as delivered by type-model providers, before validation.

@dataclass(frozen=True)
class ParameterDeclaration:
    name: str
    type_text: str
    has_default: bool = False


@dataclass(frozen=True)
class ConstructorDeclaration:
    parameters: Tuple[ParameterDeclaration, ...] = ()
    is_primary: bool = True


@dataclass(frozen=True)
class TypeParameterDeclaration:
    name: str
    bound_texts: Tuple[str, ...] = ()
    variance: str = ""


@dataclass(frozen=True)
class ClassDeclaration:
    """Unvalidated class description produced by a type-model provider."""
    qualified_name: str
    package_name: str = ""
    kind: str = "class"
    is_data: bool = True
    type_parameters: Tuple[TypeParameterDeclaration, ...] = ()
    constraints: Tuple[Tuple[str, str], ...] = ()
    constructors: Tuple[ConstructorDeclaration, ...] = ()
    imports: Tuple[str, ...] = ()
    config_sources: Tuple[Dict[str, object], ...] = ()
    file_path: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "qualified_name": self.qualified_name,
            "package_name": self.package_name,
            "kind": self.kind,
            "is_data": self.is_data,
            "type_parameters": [{
                "name": parameter.name,
                "bounds": list(parameter.bound_texts),
                "variance": parameter.variance,
            } for parameter in self.type_parameters],
            "constraints": [list(constraint) for constraint in self.constraints],
            "constructors": [{
                "primary": constructor.is_primary,
                "parameters": [{
                    "name": parameter.name,
                    "type": parameter.type_text,
                    "has_default": parameter.has_default,
                } for parameter in constructor.parameters],
            } for constructor in self.constructors],
            "imports": list(self.imports),
            "config_sources": [dict(source) for source in self.config_sources],
            "file_path": self.file_path,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ClassDeclaration':
        """Build a declaration from its dictionary form.

        Raises ValueError when a nested entry has the wrong shape.
        """
        constraints = []
        for constraint in data.get("constraints", ()):
            constraint = _strings(constraint, "constraint")
            if len(constraint) != 2:
                raise ValueError(f"constraint must be a [name, bound] pair, got {list(constraint)}")
            constraints.append(constraint)
        config_sources = data.get("config_sources", ())
        if not all(isinstance(source, dict) for source in config_sources):
            raise ValueError(f"config_sources must be objects, got {config_sources!r}")

        return cls(
            qualified_name=_string(data["qualified_name"], "qualified_name"),
            package_name=_string(data.get("package_name", ""), "package_name"),
            kind=data.get("kind", "class"),
            is_data=data.get("is_data", True),
            type_parameters=tuple(
                TypeParameterDeclaration(
                    name=_string(parameter["name"], "type parameter name"),
                    bound_texts=_strings(parameter.get("bounds", ()), "bounds"),
                    variance=parameter.get("variance", ""),
                )
                for parameter in data.get("type_parameters", ())
            ),
            constraints=tuple(constraints),
            constructors=tuple(
                ConstructorDeclaration(
                    parameters=tuple(
                        ParameterDeclaration(
                            name=_string(parameter["name"], "parameter name"),
                            type_text=_string(parameter["type"], "parameter type"),
                            has_default=parameter.get("has_default", False),
                        )
                        for parameter in constructor.get("parameters", ())
                    ),
                    is_primary=constructor.get("primary", True),
                )
                for constructor in data.get("constructors", ())
            ),
            imports=_strings(data.get("imports", ()), "imports"),
            config_sources=tuple(dict(source) for source in config_sources),
            file_path=data.get("file_path"),
        )


def _string(value, what: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a string, got {value!r}")
    return value


def _strings(values, what: str) -> Tuple[str, ...]:
    if isinstance(values, str) or not all(isinstance(value, str) for value in values):
        raise ValueError(f"{what} must be a list of strings, got {values!r}")
    return tuple(values)


@dataclass(frozen=True)
class ExtractedClassModel:
    """Extractor output: the validated model plus its property partition."""
    model: TargetTypeModel
    required: Tuple[PropertyModel, ...] = field(default_factory=tuple)
    optional: Tuple[PropertyModel, ...] = field(default_factory=tuple)
