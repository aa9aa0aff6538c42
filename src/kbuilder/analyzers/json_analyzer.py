from kbuilder.analyzers.base_analyzer import BaseBuilderGenerator
from kbuilder.models.builder_config import RunConfig
from kbuilder.processors.json_processor import JsonModelProcessor


class JsonBuilderGenerator(BaseBuilderGenerator):
    """Generates builders from serialized class declarations."""

    def __init__(self, config: RunConfig = None):
        super().__init__(config or RunConfig())
        self._file_processor = JsonModelProcessor(self.config)

    @property
    def file_processor(self) -> JsonModelProcessor:
        return self._file_processor
