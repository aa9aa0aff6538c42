import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from tree_sitter import Language, Node, Parser

from kbuilder.models.builder_config import RunConfig
from kbuilder.models.type_model import (
    ClassDeclaration, ConstructorDeclaration, ParameterDeclaration, TypeParameterDeclaration,
)
from kbuilder.processors.base_processor import BaseFileProcessor
from kbuilder.services.annotation_config_extractor import AnnotationConfigExtractor

logger = logging.getLogger(__name__)

DECLARATION_TYPES = ('class_declaration', 'object_declaration')
_IMPORT = re.compile(r'^import\s+(.*?)\s*;?\s*$', re.DOTALL)


class KotlinFileProcessor(BaseFileProcessor):
    """Finds classes marked for builder generation in Kotlin source files."""

    file_suffixes = ('.kt',)

    def __init__(self, config: RunConfig, language: Language, parser: Parser):
        super().__init__(config)
        self.language = language
        self.parser = parser
        self.annotation_extractor = AnnotationConfigExtractor(config.marker_annotations)

    def process_file(self, file_path: Path) -> List[ClassDeclaration]:
        """Process a single Kotlin file."""
        try:
            content = self._read_file_content(file_path)
        except OSError as e:
            logger.error(f"Error reading file {file_path}: {e}")
            return []
        return self.process_source(content, str(file_path))

    def process_source(self, content: str, file_path: Optional[str] = None) -> List[ClassDeclaration]:
        """Process Kotlin source text and return one declaration per marked class."""
        if not content.strip():
            return []
        source = bytes(content, 'utf8')
        tree = self.parser.parse(source)
        root_node = tree.root_node

        package = self._extract_package(root_node, source)
        imports = self._extract_imports(root_node, source)
        declarations = []
        for class_node in self._extract_all_class_nodes(root_node):
            annotations = self._extract_annotations(class_node, source)
            config_sources = self.annotation_extractor.extract(annotations)
            if not config_sources:
                continue
            declaration = self._parse_class_node(
                class_node, source, package, imports, tuple(config_sources), file_path
            )
            if declaration:
                logger.debug(f"Found builder target {declaration.qualified_name} in {file_path}")
                declarations.append(declaration)
        return declarations

    def _text(self, node: Node, source: bytes) -> str:
        return source[node.start_byte:node.end_byte].decode('utf8')

    def _extract_package(self, root_node: Node, source: bytes) -> str:
        """Extract package declaration."""
        for child in root_node.children:
            if child.type == 'package_header':
                for header_child in child.children:
                    if header_child.type == 'identifier':
                        return re.sub(r'\s+', '', self._text(header_child, source))
        return ""

    def _extract_imports(self, root_node: Node, source: bytes) -> Tuple[str, ...]:
        """Extract import statements."""
        imports = []
        pending = [child for child in root_node.children if child.type in ('import_list', 'import_header')]
        while pending:
            node = pending.pop(0)
            if node.type == 'import_list':
                pending[:0] = [child for child in node.children if child.type == 'import_header']
                continue
            match = _IMPORT.match(self._text(node, source).strip())
            if match:
                imports.append(re.sub(r'\s*\.\s*', '.', match.group(1)))
        return tuple(imports)

    def _extract_all_class_nodes(self, root_node: Node) -> List[Node]:
        """Extract all class and object nodes including nested ones."""
        all_class_nodes = []
        try:
            class_query = self.language.query("""
                (class_declaration) @class
                (object_declaration) @object
            """)
            captures = class_query.captures(root_node)
            all_class_nodes = [capture[0] for capture in captures]
        except Exception as e:
            logger.debug(f"Error extracting class nodes: {e}")
        return all_class_nodes

    def _modifier_nodes(self, node: Node) -> List[Node]:
        for child in node.children:
            if child.type == 'modifiers':
                return list(child.children)
        return []

    def _extract_annotations(self, class_node: Node, source: bytes) -> List[str]:
        """Extract annotations from a declaration's modifier list."""
        return [
            self._text(modifier, source)
            for modifier in self._modifier_nodes(class_node)
            if modifier.type == 'annotation'
        ]

    def _extract_modifiers(self, class_node: Node, source: bytes) -> List[str]:
        return [
            self._text(modifier, source)
            for modifier in self._modifier_nodes(class_node)
            if modifier.type != 'annotation' and not modifier.type.endswith('comment')
        ]

    def _get_class_name(self, class_node: Node, source: bytes) -> Optional[str]:
        for child in class_node.children:
            if child.type in ('type_identifier', 'simple_identifier'):
                return self._text(child, source)
        return None

    def _detect_kind(self, class_node: Node) -> str:
        if class_node.type == 'object_declaration':
            return "object"
        if any(child.type == 'interface' for child in class_node.children):
            return "interface"
        return "class"

    def _enclosing_names(self, class_node: Node, source: bytes) -> List[str]:
        names = []
        parent = class_node.parent
        while parent is not None:
            if parent.type in DECLARATION_TYPES:
                parent_name = self._get_class_name(parent, source)
                if parent_name:
                    names.append(parent_name)
            parent = parent.parent
        names.reverse()
        return names

    def _parse_class_node(self, class_node: Node, source: bytes, package: str, imports: Tuple[str, ...],
                          config_sources: tuple, file_path: Optional[str]) -> Optional[ClassDeclaration]:
        """Parse a single class node into a raw declaration."""
        class_name = self._get_class_name(class_node, source)
        if not class_name:
            logger.debug(f"Skipping unnamed declaration in {file_path}")
            return None

        nested_path = '.'.join(self._enclosing_names(class_node, source) + [class_name])
        qualified_name = f"{package}.{nested_path}" if package else nested_path
        modifiers = self._extract_modifiers(class_node, source)

        type_parameters: Tuple[TypeParameterDeclaration, ...] = ()
        constraints: Tuple[Tuple[str, str], ...] = ()
        constructors: List[ConstructorDeclaration] = []
        for child in class_node.children:
            if child.type == 'type_parameters':
                type_parameters = self._extract_type_parameters(child, source)
            elif child.type == 'type_constraints':
                constraints = self._extract_type_constraints(child, source)
            elif child.type == 'primary_constructor':
                constructors.append(self._extract_primary_constructor(child, source))
            elif child.type == 'class_body':
                constructors.extend(self._extract_secondary_constructors(child, source))

        return ClassDeclaration(
            qualified_name=qualified_name,
            package_name=package,
            kind=self._detect_kind(class_node),
            is_data='data' in modifiers,
            type_parameters=type_parameters,
            constraints=constraints,
            constructors=tuple(constructors),
            imports=imports,
            config_sources=config_sources,
            file_path=file_path,
        )

    def _type_after_colon(self, node: Node, source: bytes) -> Optional[str]:
        """Text of the first named child following a ``:`` token."""
        seen_colon = False
        for child in node.children:
            if child.type == ':':
                seen_colon = True
            elif seen_colon and child.is_named and not child.type.endswith('comment'):
                return self._text(child, source)
        return None

    def _extract_type_parameters(self, node: Node, source: bytes) -> Tuple[TypeParameterDeclaration, ...]:
        parameters = []
        for child in node.children:
            if child.type != 'type_parameter':
                continue
            name = None
            variance = ""
            for part in child.children:
                if part.type == 'type_parameter_modifiers':
                    words = self._text(part, source).split()
                    variance = next((w for w in words if w in ('in', 'out')), "")
                elif part.type in ('type_identifier', 'simple_identifier') and name is None:
                    name = self._text(part, source)
            if not name:
                continue
            bound = self._type_after_colon(child, source)
            parameters.append(TypeParameterDeclaration(
                name=name,
                bound_texts=(bound,) if bound else (),
                variance=variance,
            ))
        return tuple(parameters)

    def _extract_type_constraints(self, node: Node, source: bytes) -> Tuple[Tuple[str, str], ...]:
        constraints = []
        for child in node.children:
            if child.type != 'type_constraint':
                continue
            name = next(
                (self._text(part, source) for part in child.children
                 if part.type in ('type_identifier', 'simple_identifier')),
                None,
            )
            bound = self._type_after_colon(child, source)
            if name and bound:
                constraints.append((name, bound))
        return tuple(constraints)

    def _extract_primary_constructor(self, node: Node, source: bytes) -> ConstructorDeclaration:
        parameters = []
        for child in node.children:
            if child.type == 'class_parameters':
                parameters.extend(self._extract_parameters(child, source, 'class_parameter'))
            elif child.type == 'class_parameter':
                parameters.append(self._parse_parameter(child, source))
        return ConstructorDeclaration(parameters=tuple(p for p in parameters if p), is_primary=True)

    def _extract_secondary_constructors(self, body_node: Node, source: bytes) -> List[ConstructorDeclaration]:
        constructors = []
        for child in body_node.children:
            if child.type != 'secondary_constructor':
                continue
            parameters = []
            for part in child.children:
                if part.type == 'function_value_parameters':
                    parameters.extend(self._extract_parameters(part, source, 'parameter'))
            constructors.append(ConstructorDeclaration(parameters=tuple(p for p in parameters if p), is_primary=False))
        return constructors

    def _extract_parameters(self, node: Node, source: bytes, parameter_type: str) -> List[Optional[ParameterDeclaration]]:
        parameters = []
        children = list(node.children)
        for index, child in enumerate(children):
            if child.type != parameter_type:
                continue
            parameter = self._parse_parameter(child, source)
            # function_value_parameters keep "= default" as siblings of the parameter node.
            if parameter and index + 1 < len(children) and children[index + 1].type == '=':
                parameter = ParameterDeclaration(parameter.name, parameter.type_text, True)
            parameters.append(parameter)
        return parameters

    def _parse_parameter(self, node: Node, source: bytes) -> Optional[ParameterDeclaration]:
        name = None
        for child in node.children:
            if child.type == 'simple_identifier':
                name = self._text(child, source)
                break
        type_text = self._type_after_colon(node, source)
        if not name or not type_text:
            logger.debug(f"Skipping malformed parameter: {self._text(node, source)}")
            return None
        has_default = any(child.type == '=' for child in node.children)
        return ParameterDeclaration(name=name, type_text=type_text, has_default=has_default)
