import re
from abc import ABC, abstractmethod
from typing import List

from kbuilder.models.type_model import STAR, TypeRef

_QUALIFIED_NAME = re.compile(r'^`?[A-Za-z_][\w]*`?(\.`?[A-Za-z_][\w]*`?)*$')
_PROJECTIONS = ('out', 'in')


class TypeParseError(ValueError):
    """Raised when a type expression cannot be parsed."""


class BaseTypeResolver(ABC):
    """Abstract base class for type resolvers across different languages."""

    @abstractmethod
    def parse(self, type_text: str) -> TypeRef:
        """Parse a type expression into a TypeRef."""
        pass


class KotlinTypeResolver(BaseTypeResolver):
    """Parses Kotlin type expressions such as ``Map<String, List<T?>>?``."""

    def parse(self, type_text: str) -> TypeRef:
        text = self._strip_annotations(type_text or "").strip()
        if not text:
            raise TypeParseError("empty type expression")
        return self._parse(text, allow_projection=False)

    def parse_bound(self, bound_text: str) -> TypeRef:
        """Parse an upper bound; star projections are not valid bounds."""
        bound = self.parse(bound_text)
        if bound.is_star:
            raise TypeParseError("a star projection cannot be an upper bound")
        return bound

    def _parse(self, text: str, allow_projection: bool) -> TypeRef:
        text = text.strip()
        if text == STAR:
            if not allow_projection:
                raise TypeParseError("star projection outside of a type argument list")
            return TypeRef(STAR)

        projection = ""
        head = text.split(None, 1)
        if len(head) == 2 and head[0] in _PROJECTIONS:
            if not allow_projection:
                raise TypeParseError(f"variance '{head[0]}' outside of a type argument list: {text}")
            projection, text = head[0], head[1].strip()

        if self._has_top_level_arrow(text):
            return TypeRef(text, projection=projection, opaque=True)

        nullable = False
        if text.endswith('?'):
            nullable = True
            text = text[:-1].strip()
            if text.endswith('?'):
                raise TypeParseError(f"redundant nullability marker in {text}?")

        if text.startswith('(') and self.find_matching_paren(text, 0) == len(text) - 1:
            inner = self._parse(text[1:-1], allow_projection=False)
            if inner.nullable and nullable:
                raise TypeParseError(f"redundant nullability marker in ({text})?")
            return TypeRef(inner.name, inner.arguments, nullable or inner.nullable, projection, inner.opaque)

        name = text
        arguments: List[TypeRef] = []
        if '<' in text:
            generic_start = text.find('<')
            generic_end = self.find_matching_bracket(text, generic_start)
            if generic_end != len(text) - 1:
                raise TypeParseError(f"unbalanced or trailing type arguments in {text}")
            name = text[:generic_start].strip()
            generic_content = text[generic_start + 1:generic_end]
            parts = self.split_by_top_level_comma(generic_content)
            if not parts:
                raise TypeParseError(f"empty type argument list in {text}")
            arguments = [self._parse(part, allow_projection=True) for part in parts]

        name = re.sub(r'\s*\.\s*', '.', name)
        if not _QUALIFIED_NAME.match(name):
            raise TypeParseError(f"invalid type name '{name}'")
        return TypeRef(name, tuple(arguments), nullable, projection)

    def _strip_annotations(self, text: str) -> str:
        return re.sub(r'@[\w.]+(\([^)]*\))?\s*', '', text)

    def _has_top_level_arrow(self, text: str) -> bool:
        depth = 0
        for index, char in enumerate(text):
            if char in '<(':
                depth += 1
            elif char in '>)':
                if char == '>' and index > 0 and text[index - 1] == '-':
                    if depth == 0:
                        return True
                    continue
                depth -= 1
        return False

    def find_matching_bracket(self, text: str, start_pos: int) -> int:
        return self._find_matching(text, start_pos, '<', '>')

    def find_matching_paren(self, text: str, start_pos: int) -> int:
        return self._find_matching(text, start_pos, '(', ')')

    def _find_matching(self, text: str, start_pos: int, opening: str, closing: str) -> int:
        if start_pos >= len(text) or text[start_pos] != opening:
            return -1
        depth = 1
        pos = start_pos + 1
        while pos < len(text) and depth > 0:
            if text[pos] == opening:
                depth += 1
            elif text[pos] == closing and not (closing == '>' and text[pos - 1] == '-'):
                depth -= 1
            pos += 1
        return pos - 1 if depth == 0 else -1

    def split_by_top_level_comma(self, content: str) -> List[str]:
        parts = []
        current_part = ""
        depth = 0
        for index, char in enumerate(content):
            if char in '<(':
                depth += 1
                current_part += char
            elif char in '>)':
                if not (char == '>' and index > 0 and content[index - 1] == '-'):
                    depth -= 1
                current_part += char
            elif char == ',' and depth == 0:
                if not current_part.strip():
                    raise TypeParseError(f"empty type argument in <{content}>")
                parts.append(current_part.strip())
                current_part = ""
            else:
                current_part += char
        if current_part.strip():
            parts.append(current_part.strip())
        elif parts:
            raise TypeParseError(f"trailing comma in <{content}>")
        return parts

