import logging
from typing import Dict, List, Optional, Tuple

from kbuilder.models.builder_config import BuilderConfig
from kbuilder.models.errors import DuplicateIdentifier, NotABuildableType, UnresolvableBound
from kbuilder.models.type_model import (
    ClassDeclaration, ExtractedClassModel, PropertyModel, TargetTypeModel,
    TypeParameter, TypeRef,
)
from kbuilder.services.type_resolver import KotlinTypeResolver, TypeParseError

logger = logging.getLogger(__name__)

BUILD_FUNCTION_NAME = "build"


def setter_name(property_name: str, prefix: str) -> str:
    """``name`` without a prefix, ``prefix + Name`` otherwise."""
    if not prefix:
        return property_name
    return prefix + property_name[:1].upper() + property_name[1:]


class ClassModelExtractor:
    """Turns a raw class declaration into a validated builder model."""

    def __init__(self, type_resolver: Optional[KotlinTypeResolver] = None):
        self.type_resolver = type_resolver or KotlinTypeResolver()

    def extract(self, declaration: ClassDeclaration, config: BuilderConfig) -> ExtractedClassModel:
        target = declaration.qualified_name
        self._require_value_type(declaration)
        constructor = self._single_primary_constructor(declaration)

        package_name, enclosing_names, simple_name = self._split_qualified_name(
            target, declaration.package_name
        )
        type_parameters = self._resolve_type_parameters(declaration)
        properties = self._resolve_properties(declaration, constructor.parameters)
        self._check_setter_names(target, properties, config.setter_prefix)

        model = TargetTypeModel(
            qualified_name=target,
            package_name=package_name,
            simple_name=simple_name,
            enclosing_names=enclosing_names,
            type_parameters=type_parameters,
            properties=properties,
            imports=declaration.imports,
        )
        required, optional = self.partition(properties)
        logger.debug(f"Extracted {target}: {len(required)} required, {len(optional)} optional, "
                     f"{len(type_parameters)} type parameters")
        return ExtractedClassModel(model=model, required=required, optional=optional)

    def partition(self, properties: Tuple[PropertyModel, ...]) -> Tuple[Tuple[PropertyModel, ...], Tuple[PropertyModel, ...]]:
        """Split properties into (required, optional), keeping declaration order."""
        required = tuple(p for p in properties if not p.has_default_value)
        optional = tuple(p for p in properties if p.has_default_value)
        return required, optional

    def _require_value_type(self, declaration: ClassDeclaration) -> None:
        if declaration.kind != "class":
            raise NotABuildableType(declaration.qualified_name, f"must be a data class, not {declaration.kind}")
        if not declaration.is_data:
            raise NotABuildableType(declaration.qualified_name, "must be a data class")

    def _single_primary_constructor(self, declaration: ClassDeclaration):
        primaries = [c for c in declaration.constructors if c.is_primary]
        if len(primaries) != 1:
            raise NotABuildableType(
                declaration.qualified_name,
                f"expected exactly one primary constructor, found {len(primaries)}"
            )
        if not primaries[0].parameters:
            raise NotABuildableType(declaration.qualified_name, "primary constructor has no parameters")
        return primaries[0]

    def _split_qualified_name(self, qualified_name: str, package_name: str) -> Tuple[str, Tuple[str, ...], str]:
        if package_name and qualified_name.startswith(package_name + "."):
            nested_path = qualified_name[len(package_name) + 1:]
        elif package_name:
            raise NotABuildableType(qualified_name, f"not declared in package {package_name}")
        else:
            nested_path = qualified_name
        names = nested_path.split(".")
        if not all(names):
            raise NotABuildableType(qualified_name, "malformed qualified name")
        return package_name, tuple(names[:-1]), names[-1]

    def _resolve_type_parameters(self, declaration: ClassDeclaration) -> Tuple[TypeParameter, ...]:
        target = declaration.qualified_name
        bounds: Dict[str, List[TypeRef]] = {}
        order: List[str] = []
        variances: Dict[str, str] = {}

        for parameter in declaration.type_parameters:
            if parameter.name in bounds:
                raise DuplicateIdentifier(target, parameter.name, "type parameter")
            order.append(parameter.name)
            variances[parameter.name] = parameter.variance
            bounds[parameter.name] = [
                self._resolve_bound(target, parameter.name, text) for text in parameter.bound_texts
            ]

        for name, bound_text in declaration.constraints:
            if name not in bounds:
                raise UnresolvableBound(target, name, bound_text, "constraint on an undeclared type parameter")
            bound = self._resolve_bound(target, name, bound_text)
            if bound not in bounds[name]:
                bounds[name].append(bound)

        return tuple(
            TypeParameter(name=name, bounds=tuple(bounds[name]), variance=variances[name])
            for name in order
        )

    def _resolve_bound(self, target: str, parameter: str, bound_text: str) -> TypeRef:
        try:
            return self.type_resolver.parse_bound(bound_text)
        except TypeParseError as e:
            raise UnresolvableBound(target, parameter, bound_text, str(e)) from e

    def _resolve_properties(self, declaration: ClassDeclaration, parameters) -> Tuple[PropertyModel, ...]:
        target = declaration.qualified_name
        seen = set()
        properties = []
        for parameter in parameters:
            if parameter.name in seen:
                raise DuplicateIdentifier(target, parameter.name, "property")
            seen.add(parameter.name)
            try:
                property_type = self.type_resolver.parse(parameter.type_text)
            except TypeParseError as e:
                raise NotABuildableType(
                    target, f"cannot resolve type '{parameter.type_text}' of property {parameter.name}: {e}"
                ) from e
            properties.append(PropertyModel(parameter.name, property_type, parameter.has_default))
        return tuple(properties)

    def _check_setter_names(self, target: str, properties: Tuple[PropertyModel, ...], prefix: str) -> None:
        seen = {BUILD_FUNCTION_NAME}
        for prop in properties:
            function_name = setter_name(prop.name, prefix)
            if function_name in seen:
                raise DuplicateIdentifier(target, function_name, "builder function")
            seen.add(function_name)
