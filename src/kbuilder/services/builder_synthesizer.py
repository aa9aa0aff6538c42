import logging
from typing import Tuple

from kbuilder.models.builder_config import BuilderConfig, RunConfig
from kbuilder.models.builder_description import (
    BodyKind, BuildBody, BuildFunction, BuilderDescription, DefaultInstanceOverlayBody,
    FieldSpec, RequiredArgument, RequiredOnlyBody, RequiredThenOverlayBody, SetterSpec,
    SharedDefaultInstance,
)
from kbuilder.models.type_model import STAR, ExtractedClassModel, PropertyModel, TypeRef
from kbuilder.services.class_model_extractor import setter_name

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_NAME = "defaultInstance"


class BuilderSynthesizer:
    """Composes the abstract structure of a builder for one target type."""

    def synthesize(self, extracted: ExtractedClassModel, config: BuilderConfig,
                   run_config: RunConfig, body_kind: BodyKind) -> BuilderDescription:
        model = extracted.model
        class_name = config.builder_class_name(model, run_config)
        builder_type = TypeRef(class_name, tuple(p.as_argument() for p in model.type_parameters))
        target_type = model.as_type()

        fields = tuple(
            FieldSpec(name=prop.name, type=prop.type, holder_type=prop.type.as_nullable())
            for prop in model.properties
        )
        setters = tuple(
            SetterSpec(
                function_name=setter_name(prop.name, config.setter_prefix),
                param_name=prop.name,
                param_type=prop.type,
                return_type=builder_type,
            )
            for prop in model.properties
        )

        body = self._build_body(extracted, target_type, body_kind)
        shared_default = None
        if body_kind is BodyKind.DEFAULT_INSTANCE_OVERLAY:
            shared_default = SharedDefaultInstance(DEFAULT_INSTANCE_NAME, self._shared_instance_type(extracted))

        logger.debug(f"Synthesized {class_name} for {model.qualified_name} using {body_kind.value}")
        return BuilderDescription(
            package_name=model.package_name,
            class_name=class_name,
            type_parameters=model.type_parameters,
            fields=fields,
            setters=setters,
            build_function=BuildFunction(return_type=target_type, body=body),
            shared_default_instance=shared_default,
            imports=model.imports,
        )

    def _build_body(self, extracted: ExtractedClassModel, target_type: TypeRef, body_kind: BodyKind) -> BuildBody:
        if body_kind is BodyKind.REQUIRED_ONLY:
            return RequiredOnlyBody(target_type, self._required_arguments(extracted.required))
        if body_kind is BodyKind.DEFAULT_INSTANCE_OVERLAY:
            return DefaultInstanceOverlayBody(target_type, self._overlays(extracted.optional))
        if body_kind is BodyKind.REQUIRED_THEN_OVERLAY:
            return RequiredThenOverlayBody(
                target_type,
                self._required_arguments(extracted.required),
                self._overlays(extracted.optional),
            )
        raise ValueError(f"Unsupported body kind: {body_kind}")

    def _required_arguments(self, required: Tuple[PropertyModel, ...]) -> Tuple[RequiredArgument, ...]:
        return tuple(RequiredArgument(prop.name, prop.type.nullable) for prop in required)

    def _overlays(self, optional: Tuple[PropertyModel, ...]) -> Tuple[str, ...]:
        return tuple(prop.name for prop in optional)

    def _shared_instance_type(self, extracted: ExtractedClassModel) -> TypeRef:
        # One instance serves every parameterization, so generic targets are star-projected.
        model = extracted.model
        return TypeRef(model.nested_path, tuple(TypeRef(STAR) for _ in model.type_parameters))
