import collections.abc
import dataclasses
import typing
from typing import Any, List, Type

from kbuilder.models.errors import NotABuildableType, UnresolvableBound
from kbuilder.models.type_model import (
    ClassDeclaration, ConstructorDeclaration, ParameterDeclaration, TypeParameterDeclaration,
)

_NONE_TYPE = type(None)


class DataclassProcessor:
    """Reflects a Python dataclass into a class declaration."""

    def process_class(self, cls: Type) -> ClassDeclaration:
        qualified_name = f"{cls.__module__}.{cls.__qualname__}"
        if not dataclasses.is_dataclass(cls) or not isinstance(cls, type):
            raise NotABuildableType(qualified_name, "must be a dataclass")
        try:
            hints = typing.get_type_hints(cls)
        except (NameError, TypeError) as e:
            raise NotABuildableType(qualified_name, f"cannot resolve annotations: {e}") from e

        parameters = []
        for field in dataclasses.fields(cls):
            if not field.init:
                continue
            has_default = (field.default is not dataclasses.MISSING
                           or field.default_factory is not dataclasses.MISSING)
            parameters.append(ParameterDeclaration(
                name=field.name,
                type_text=self.render_type(hints.get(field.name, Any)),
                has_default=has_default,
            ))

        return ClassDeclaration(
            qualified_name=qualified_name,
            package_name=cls.__module__,
            kind="class",
            is_data=True,
            type_parameters=tuple(
                self._type_parameter(qualified_name, parameter)
                for parameter in getattr(cls, '__parameters__', ())
            ),
            constructors=(ConstructorDeclaration(parameters=tuple(parameters), is_primary=True),),
        )

    def _type_parameter(self, target: str, parameter: typing.TypeVar) -> TypeParameterDeclaration:
        if parameter.__constraints__:
            raise UnresolvableBound(target, parameter.__name__, parameter.__constraints__,
                                    "value-restricted type variables have no single upper bound")
        variance = "out" if parameter.__covariant__ else "in" if parameter.__contravariant__ else ""
        bounds = (self.render_type(parameter.__bound__),) if parameter.__bound__ is not None else ()
        return TypeParameterDeclaration(name=parameter.__name__, bound_texts=bounds, variance=variance)

    def render_type(self, annotation: Any) -> str:
        """Render a Python annotation in the ``Name<Arg>?`` notation."""
        if annotation is Any:
            return "Any?"
        if annotation is None or annotation is _NONE_TYPE:
            return "Nothing?"
        if isinstance(annotation, typing.TypeVar):
            return annotation.__name__
        if isinstance(annotation, typing.ForwardRef):
            return annotation.__forward_arg__

        origin = typing.get_origin(annotation)
        arguments = typing.get_args(annotation)
        if origin is typing.Union or type(annotation).__name__ == "UnionType":
            members = [a for a in arguments if a is not _NONE_TYPE]
            nullable = len(members) != len(arguments)
            if len(members) == 1:
                rendered = self.render_type(members[0])
            else:
                rendered = "Union<" + ", ".join(self.render_type(m) for m in members) + ">"
            return rendered + "?" if nullable and not rendered.endswith("?") else rendered
        if origin is collections.abc.Callable:
            params, result = arguments if arguments else ([], Any)
            rendered_params = "..." if params is Ellipsis else ", ".join(self.render_type(p) for p in params)
            return f"({rendered_params}) -> {self.render_type(result)}"
        if origin is not None:
            name = getattr(origin, '__name__', str(origin))
            if not arguments:
                return name
            rendered: List[str] = [
                "*" if a is Ellipsis else self.render_type(a) for a in arguments
            ]
            return f"{name}<{', '.join(rendered)}>"
        return getattr(annotation, '__qualname__', None) or getattr(annotation, '__name__', str(annotation))
