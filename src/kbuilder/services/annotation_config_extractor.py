import logging
import re
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Positional order of the marker annotation's parameters.
ANNOTATION_PARAMETERS = ("className", "prefix", "optimizeCopy")

_ANNOTATION = re.compile(r'^@(?:\w+:)?([\w.]+)\s*(?:\((.*)\))?\s*$', re.DOTALL)
_NAMED_ARGUMENT = re.compile(r'^(\w+)\s*=(?!=)\s*(.*)$', re.DOTALL)


class AnnotationConfigExtractor:
    """Reads builder options from marker annotations such as ``@GenerateBuilder(prefix = "set")``."""

    def __init__(self, marker_annotations: Iterable[str]):
        self.marker_annotations = set(marker_annotations)

    def is_marker(self, annotation_text: str) -> bool:
        return self._marker_name(annotation_text) is not None

    def extract(self, annotation_texts: Iterable[str]) -> List[Dict[str, object]]:
        """Return one configuration source per marker annotation found."""
        sources = []
        for text in annotation_texts:
            if self._marker_name(text) is None:
                continue
            sources.append(self._parse_arguments(text))
        return sources

    def _marker_name(self, annotation_text: str) -> Optional[str]:
        match = _ANNOTATION.match(annotation_text.strip())
        if not match:
            return None
        name = match.group(1)
        if name in self.marker_annotations or name.split('.')[-1] in self.marker_annotations:
            return name
        return None

    def _parse_arguments(self, annotation_text: str) -> Dict[str, object]:
        match = _ANNOTATION.match(annotation_text.strip())
        arguments = (match.group(2) or "").strip()
        options: Dict[str, object] = {}
        if not arguments:
            return options

        for position, argument in enumerate(self._split_arguments(arguments)):
            named = _NAMED_ARGUMENT.match(argument)
            if named:
                name, raw_value = named.group(1), named.group(2)
            elif position < len(ANNOTATION_PARAMETERS):
                name, raw_value = ANNOTATION_PARAMETERS[position], argument
            else:
                logger.warning(f"Ignoring extra annotation argument: {argument}")
                continue
            if name not in ANNOTATION_PARAMETERS:
                logger.warning(f"Ignoring unknown annotation argument '{name}' in {annotation_text}")
                continue
            options[name] = self._parse_value(raw_value.strip())
        return options

    def _split_arguments(self, arguments: str) -> List[str]:
        parts = []
        current = ""
        in_string = False
        escaped = False
        for char in arguments:
            if in_string:
                current += char
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
                current += char
            elif char == ',':
                if current.strip():
                    parts.append(current.strip())
                current = ""
            else:
                current += char
        if current.strip():
            parts.append(current.strip())
        return parts

    def _parse_value(self, raw_value: str) -> object:
        if raw_value in ("true", "false"):
            return raw_value == "true"
        if len(raw_value) >= 2 and raw_value.startswith('"') and raw_value.endswith('"'):
            return re.sub(r'\\(.)', r'\1', raw_value[1:-1])
        logger.warning(f"Unsupported annotation argument value: {raw_value}")
        return raw_value
