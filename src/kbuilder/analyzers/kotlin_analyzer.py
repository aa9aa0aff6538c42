import logging

from tree_sitter import Language, Parser
from tree_sitter_languages import get_language

from kbuilder.analyzers.base_analyzer import BaseBuilderGenerator
from kbuilder.models.builder_config import RunConfig
from kbuilder.processors.kotlin_processor import KotlinFileProcessor

logger = logging.getLogger(__name__)


class KotlinBuilderGenerator(BaseBuilderGenerator):
    """Generates builders for annotated data classes in Kotlin sources."""

    def __init__(self, config: RunConfig = None):
        super().__init__(config or RunConfig())

        try:
            self.language: Language = get_language("kotlin")
            self.parser = Parser()
            self.parser.set_language(self.language)
        except Exception as e:
            logger.error(f"Failed to initialize Tree-sitter for Kotlin: {e}")
            raise

        self._file_processor = KotlinFileProcessor(self.config, self.language, self.parser)

    @property
    def file_processor(self) -> KotlinFileProcessor:
        return self._file_processor
