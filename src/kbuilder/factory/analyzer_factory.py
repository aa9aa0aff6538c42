from typing import Optional

from kbuilder.analyzers.base_analyzer import BaseBuilderGenerator
from kbuilder.models.builder_config import RunConfig

SUPPORTED_LANGUAGES = ('kotlin', 'json')


class GeneratorFactory:
    """Factory for creating input-specific builder generators."""

    @staticmethod
    def create_generator(language: str, config: Optional[RunConfig] = None) -> BaseBuilderGenerator:
        """Create a generator for the specified input language."""
        language = language.lower()
        if language == 'kotlin':
            from kbuilder.analyzers.kotlin_analyzer import KotlinBuilderGenerator
            return KotlinBuilderGenerator(config or RunConfig())
        elif language == 'json':
            from kbuilder.analyzers.json_analyzer import JsonBuilderGenerator
            return JsonBuilderGenerator(config or RunConfig())
        else:
            raise ValueError(f"Unsupported language: {language}")

