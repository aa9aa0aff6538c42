import os
from dataclasses import dataclass, field
from typing import Optional, Set

from kbuilder.models.type_model import TargetTypeModel

DEFAULT_BUILDER_SUFFIX = "Builder"
DEFAULT_HEADER_COMMENT = "Code auto-generated by KBuilder. Do not edit."


@dataclass(frozen=True)
class RunConfig:
    """Run-wide options shared by every generated builder."""
    line_separator: str = os.linesep
    builder_suffix: str = DEFAULT_BUILDER_SUFFIX
    indent: str = "    "
    header_comment: str = DEFAULT_HEADER_COMMENT
    marker_annotations: Set[str] = field(default_factory=lambda: {'GenerateBuilder'})
    excluded_dirs: Set[str] = field(default_factory=lambda: {
        ".git", ".idea", ".gradle", ".github", "build", "out", "target",
        "bin", ".vscode", "node_modules", "__pycache__"
    })


@dataclass(frozen=True)
class BuilderConfig:
    """Per-target options, normally read from the marker annotation."""
    custom_class_name: Optional[str] = None
    setter_prefix: str = ""
    optimize_copy: bool = False

    def builder_class_name(self, model: TargetTypeModel, run_config: RunConfig) -> str:
        if self.custom_class_name:
            return self.custom_class_name
        return model.builder_base_name + run_config.builder_suffix
