"""Materialize a BuilderDescription as a live Python builder class.

The generated class follows the same ``build()`` semantics as the emitted
Kotlin code, with ``dataclasses.replace`` standing in for ``copy``::

    PointBuilder = create_builder_class(description, Point)
    point = PointBuilder().x(1).y(2).build()
"""

import dataclasses
import threading
from typing import Any, Dict, Type

from kbuilder.models.builder_description import (
    BuilderDescription, DefaultInstanceOverlayBody, RequiredOnlyBody, RequiredThenOverlayBody,
)
from kbuilder.models.errors import MissingRequiredValue

_UNSET = object()


def create_builder_class(description: BuilderDescription, target_cls: Type) -> Type:
    """Create a builder class for ``target_cls`` shaped by ``description``."""
    if not dataclasses.is_dataclass(target_cls):
        raise TypeError(f"{target_cls!r} is not a dataclass")

    body = description.build_function.body
    field_names = tuple(spec.name for spec in description.fields)
    namespace: Dict[str, Any] = {
        "__doc__": f"Fluent builder for {description.build_function.return_type.render()}.",
        "_target": target_cls,
        "_shared_default": _UNSET,
        "_shared_lock": threading.Lock(),
    }

    def __init__(self):
        self._values = dict.fromkeys(field_names)

    namespace["__init__"] = __init__
    for setter in description.setters:
        namespace[setter.function_name] = _make_setter(setter.function_name, setter.param_name)
    namespace["build"] = _make_build(body)
    if description.shared_default_instance:
        namespace["_default_instance"] = classmethod(_default_instance)

    return type(description.class_name, (object,), namespace)


def _make_setter(function_name: str, name: str):
    def setter(self, value):
        self._values[name] = value
        return self

    setter.__name__ = function_name
    return setter


def _default_instance(cls):
    # Created once on first use, then shared by every builder instance.
    if cls._shared_default is _UNSET:
        with cls._shared_lock:
            if cls._shared_default is _UNSET:
                cls._shared_default = cls._target()
    return cls._shared_default


def _required_kwargs(builder, arguments) -> Dict[str, Any]:
    kwargs = {}
    for argument in arguments:
        value = builder._values[argument.name]
        if value is None and argument.checked:
            raise MissingRequiredValue(argument.name, builder._target.__qualname__)
        kwargs[argument.name] = value
    return kwargs


def _overlay(builder, base, overlays):
    changes = {}
    for name in overlays:
        value = builder._values[name]
        if value is not None:
            changes[name] = value
    return dataclasses.replace(base, **changes) if changes else base


def _make_build(body):
    if isinstance(body, RequiredOnlyBody):
        def build(self):
            return self._target(**_required_kwargs(self, body.arguments))
    elif isinstance(body, DefaultInstanceOverlayBody):
        def build(self):
            return _overlay(self, type(self)._default_instance(), body.overlays)
    elif isinstance(body, RequiredThenOverlayBody):
        def build(self):
            result = self._target(**_required_kwargs(self, body.arguments))
            return _overlay(self, result, body.overlays)
    else:
        raise ValueError(f"Unsupported build body: {body!r}")
    return build
