from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from kbuilder.models.builder_config import RunConfig
from kbuilder.models.type_model import ClassDeclaration


class BaseFileProcessor(ABC):
    """Abstract base class for type-model providers reading source or model files."""

    file_suffixes: tuple = ()

    def __init__(self, config: RunConfig):
        self.config = config

    def accepts(self, file_path: Path) -> bool:
        return file_path.suffix in self.file_suffixes

    @abstractmethod
    def process_file(self, file_path: Path) -> List[ClassDeclaration]:
        """Process a single file and return the declarations that request a builder."""
        pass

    def _read_file_content(self, file_path: Path) -> str:
        """Read file content with encoding fallback."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except UnicodeDecodeError:
            with open(file_path, 'r', encoding='latin1') as f:
                return f.read()
