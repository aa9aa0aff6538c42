import json
import logging
from pathlib import Path
from typing import List

from kbuilder.models.type_model import ClassDeclaration
from kbuilder.processors.base_processor import BaseFileProcessor

logger = logging.getLogger(__name__)


class JsonModelProcessor(BaseFileProcessor):
    """Loads serialized class declarations.

    A file holds either one declaration object, a list of them, or an
    object with a ``classes`` list.
    """

    file_suffixes = ('.json',)

    def process_file(self, file_path: Path) -> List[ClassDeclaration]:
        try:
            data = json.loads(self._read_file_content(file_path))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading model file {file_path}: {e}")
            return []
        return self.process_data(data, str(file_path))

    def process_data(self, data, file_path: str = None) -> List[ClassDeclaration]:
        if isinstance(data, dict) and "classes" in data:
            data = data["classes"]
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            logger.error(f"Unsupported model document in {file_path}: expected an object or a list")
            return []

        declarations = []
        for index, entry in enumerate(data):
            try:
                declaration = ClassDeclaration.from_dict(entry)
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                logger.error(f"Skipping malformed declaration #{index} in {file_path}: {e}")
                continue
            if declaration.file_path is None and file_path:
                declaration = ClassDeclaration.from_dict({**entry, "file_path": file_path})
            declarations.append(declaration)
        return declarations
