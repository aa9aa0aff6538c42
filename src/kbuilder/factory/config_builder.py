import logging
import os
from typing import Dict, Iterable, Optional, Set

from kbuilder.models.builder_config import BuilderConfig, RunConfig
from kbuilder.models.errors import DuplicateConfiguration, InvalidConfiguration

logger = logging.getLogger(__name__)

LINE_SEPARATORS = {"lf": "\n", "crlf": "\r\n", "system": os.linesep}

# Annotation argument name -> BuilderConfig field.
BUILDER_OPTIONS = {
    "className": "custom_class_name",
    "prefix": "setter_prefix",
    "optimizeCopy": "optimize_copy",
}

OPTION_TYPES = {"className": str, "prefix": str, "optimizeCopy": bool}


class RunConfigBuilder:
    """Builder pattern for creating run-wide configuration."""

    def __init__(self):
        self.config_data = {}

    def with_line_separator(self, line_separator: str) -> 'RunConfigBuilder':
        self.config_data['line_separator'] = LINE_SEPARATORS.get(line_separator, line_separator)
        return self

    def with_builder_suffix(self, builder_suffix: str) -> 'RunConfigBuilder':
        self.config_data['builder_suffix'] = builder_suffix
        return self

    def with_indent(self, indent: str) -> 'RunConfigBuilder':
        self.config_data['indent'] = indent
        return self

    def with_header_comment(self, header_comment: str) -> 'RunConfigBuilder':
        self.config_data['header_comment'] = header_comment
        return self

    def with_marker_annotations(self, annotations: Set[str]) -> 'RunConfigBuilder':
        self.config_data['marker_annotations'] = set(annotations)
        return self

    def build(self) -> RunConfig:
        return RunConfig(**self.config_data)


class BuilderConfigBuilder:
    """Builder pattern for creating per-target builder configuration."""

    def __init__(self):
        self.config_data = {}

    def with_class_name(self, class_name: Optional[str]) -> 'BuilderConfigBuilder':
        self.config_data['custom_class_name'] = class_name or None
        return self

    def with_setter_prefix(self, prefix: str) -> 'BuilderConfigBuilder':
        self.config_data['setter_prefix'] = prefix
        return self

    def with_optimize_copy(self, optimize_copy: bool) -> 'BuilderConfigBuilder':
        self.config_data['optimize_copy'] = optimize_copy
        return self

    def build(self) -> BuilderConfig:
        return BuilderConfig(**self.config_data)


def merge_builder_configs(target: str, sources: Iterable[Dict[str, object]]) -> BuilderConfig:
    """Merge configuration sources for one target.

    Options left out of a source do not take part in the merge, and an empty
    ``className`` counts as left out. Values of the wrong type raise
    InvalidConfiguration; two sources giving different explicit values for
    one option raise DuplicateConfiguration.
    """
    merged: Dict[str, object] = {}
    for source in sources:
        for option, value in source.items():
            if option not in BUILDER_OPTIONS:
                logger.warning(f"Ignoring unknown builder option '{option}' for {target}")
                continue
            expected = OPTION_TYPES[option]
            if type(value) is not expected:
                raise InvalidConfiguration(target, option, value, expected.__name__)
            if option == 'className' and not value:
                continue
            if option in merged and merged[option] != value:
                raise DuplicateConfiguration(target, option, merged[option], value)
            merged[option] = value

    builder = BuilderConfigBuilder()
    if 'className' in merged:
        builder.with_class_name(merged['className'])
    if 'prefix' in merged:
        builder.with_setter_prefix(merged['prefix'])
    if 'optimizeCopy' in merged:
        builder.with_optimize_copy(merged['optimizeCopy'])
    return builder.build()
