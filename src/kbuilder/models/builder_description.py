from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from kbuilder.models.errors import KBuilderError
from kbuilder.models.type_model import TypeParameter, TypeRef


class BodyKind(Enum):
    REQUIRED_ONLY = "required_only"
    DEFAULT_INSTANCE_OVERLAY = "default_instance_overlay"
    REQUIRED_THEN_OVERLAY = "required_then_overlay"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: TypeRef
    holder_type: TypeRef


@dataclass(frozen=True)
class SetterSpec:
    function_name: str
    param_name: str
    param_type: TypeRef
    return_type: TypeRef


@dataclass(frozen=True)
class RequiredArgument:
    """Constructor argument taken from a required field; non-nullable ones are checked."""
    name: str
    nullable: bool

    @property
    def checked(self) -> bool:
        return not self.nullable


@dataclass(frozen=True)
class RequiredOnlyBody:
    target: TypeRef
    arguments: Tuple[RequiredArgument, ...]
    kind: BodyKind = field(default=BodyKind.REQUIRED_ONLY, init=False)


@dataclass(frozen=True)
class DefaultInstanceOverlayBody:
    target: TypeRef
    overlays: Tuple[str, ...]
    kind: BodyKind = field(default=BodyKind.DEFAULT_INSTANCE_OVERLAY, init=False)


@dataclass(frozen=True)
class RequiredThenOverlayBody:
    target: TypeRef
    arguments: Tuple[RequiredArgument, ...]
    overlays: Tuple[str, ...]
    kind: BodyKind = field(default=BodyKind.REQUIRED_THEN_OVERLAY, init=False)


BuildBody = Union[RequiredOnlyBody, DefaultInstanceOverlayBody, RequiredThenOverlayBody]


@dataclass(frozen=True)
class BuildFunction:
    return_type: TypeRef
    body: BuildBody

    @property
    def body_kind(self) -> BodyKind:
        return self.body.kind


@dataclass(frozen=True)
class SharedDefaultInstance:
    """Marker for a lazily created, never mutated default target instance."""
    name: str
    type: TypeRef


@dataclass(frozen=True)
class BuilderDescription:
    package_name: str
    class_name: str
    type_parameters: Tuple[TypeParameter, ...]
    fields: Tuple[FieldSpec, ...]
    setters: Tuple[SetterSpec, ...]
    build_function: BuildFunction
    shared_default_instance: Optional[SharedDefaultInstance] = None
    imports: Tuple[str, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.package_name}.{self.class_name}" if self.package_name else self.class_name

    @property
    def builder_type(self) -> TypeRef:
        return TypeRef(self.class_name, tuple(p.as_argument() for p in self.type_parameters))


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of the pipeline for one target type."""
    target: str
    description: Optional[BuilderDescription] = None
    source: Optional[str] = None
    error: Optional[KBuilderError] = None
    file_path: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict:
        """Convert to a JSON-serializable report entry."""
        entry = {
            "target": self.target,
            "succeeded": self.succeeded,
            "file_path": self.file_path,
        }
        if self.description:
            entry["builder"] = self.description.qualified_name
            entry["body_kind"] = self.description.build_function.body_kind.value
        if self.error:
            entry["error"] = {"kind": self.error.kind, "message": str(self.error)}
        return entry
