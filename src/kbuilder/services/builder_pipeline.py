import logging
from typing import Dict, Iterable, Optional, Sequence

from kbuilder.factory.config_builder import merge_builder_configs
from kbuilder.models.builder_config import RunConfig
from kbuilder.models.builder_description import BuilderDescription, GenerationResult
from kbuilder.models.errors import KBuilderError
from kbuilder.models.type_model import ClassDeclaration
from kbuilder.services.build_strategy_selector import select_body_kind
from kbuilder.services.builder_synthesizer import BuilderSynthesizer
from kbuilder.services.class_model_extractor import ClassModelExtractor
from kbuilder.services.kotlin_emitter import KotlinEmitter

logger = logging.getLogger(__name__)


class BuilderPipeline:
    """Runs extract -> select -> synthesize -> emit for one target at a time."""

    def __init__(self, run_config: RunConfig, emitter: Optional[KotlinEmitter] = None):
        self.run_config = run_config
        self.extractor = ClassModelExtractor()
        self.synthesizer = BuilderSynthesizer()
        self.emitter = emitter or KotlinEmitter(run_config)

    def describe(self, declaration: ClassDeclaration,
                 overrides: Sequence[Dict[str, object]] = ()) -> BuilderDescription:
        """Build the description for one target, raising KBuilderError on failure."""
        config = merge_builder_configs(
            declaration.qualified_name, tuple(declaration.config_sources) + tuple(overrides)
        )
        extracted = self.extractor.extract(declaration, config)
        body_kind = select_body_kind(extracted.required, extracted.optional, config.optimize_copy)
        return self.synthesizer.synthesize(extracted, config, self.run_config, body_kind)

    def generate(self, declaration: ClassDeclaration,
                 overrides: Sequence[Dict[str, object]] = ()) -> GenerationResult:
        """Generate one builder; failures are returned, never raised."""
        target = declaration.qualified_name
        try:
            description = self.describe(declaration, overrides)
        except KBuilderError as e:
            logger.error(f"{e.kind}: {e}")
            return GenerationResult(target=target, error=e, file_path=declaration.file_path)
        source = self.emitter.emit(description)
        return GenerationResult(target=target, description=description, source=source,
                                file_path=declaration.file_path)

    def generate_all(self, declarations: Iterable[ClassDeclaration],
                     overrides: Optional[Dict[str, Sequence[Dict[str, object]]]] = None):
        """Generate builders for every declaration, one independent result each."""
        overrides = overrides or {}
        return [
            self.generate(declaration, overrides.get(declaration.qualified_name, ()))
            for declaration in declarations
        ]
