import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from kbuilder.models.builder_config import RunConfig
from kbuilder.models.builder_description import GenerationResult
from kbuilder.models.errors import BuilderNameCollision
from kbuilder.models.type_model import ClassDeclaration
from kbuilder.processors.base_processor import BaseFileProcessor
from kbuilder.services.builder_pipeline import BuilderPipeline
from kbuilder.services.result_exporter import ResultExporter
from kbuilder.services.statistics_generator import StatisticsGenerator

logger = logging.getLogger(__name__)

Overrides = Dict[str, Sequence[Dict[str, object]]]


class BaseBuilderGenerator(ABC):
    """Abstract base class for builder generators over a project tree."""

    def __init__(self, config: RunConfig):
        self.config = config
        self.pipeline = BuilderPipeline(config)
        self.statistics_generator = StatisticsGenerator()
        self.result_exporter = ResultExporter(self.pipeline.emitter)

    @property
    @abstractmethod
    def file_processor(self) -> BaseFileProcessor:
        """Type-model provider used for every discovered file."""
        pass

    def find_files(self, root: Path) -> List[Path]:
        """Find input files below ``root``, skipping build and VCS directories."""
        if root.is_file():
            return [root] if self.file_processor.accepts(root) else []
        return sorted(
            path for path in root.rglob("*")
            if path.is_file()
            and self.file_processor.accepts(path)
            and not any(part in self.config.excluded_dirs for part in path.relative_to(root).parts[:-1])
        )

    def collect_declarations(self, root: Path) -> List[ClassDeclaration]:
        files = self.find_files(root)
        logger.info(f"Found {len(files)} input files under {root}")
        declarations = []
        for i, file_path in enumerate(files):
            logger.debug(f"Processing file {i+1}/{len(files)}: {file_path}")
            declarations.extend(self.file_processor.process_file(file_path))
        logger.info(f"Found {len(declarations)} builder targets")
        return declarations

    def generate_project(self, root: Path, overrides: Optional[Overrides] = None) -> List[GenerationResult]:
        """Generate builders for every target found under ``root``."""
        declarations = self.collect_declarations(root)
        if not declarations:
            logger.warning("No builder targets found")
            return []
        results = self.pipeline.generate_all(declarations, overrides)
        results = self._reject_name_collisions(results)
        failed = sum(1 for result in results if not result.succeeded)
        logger.info(f"Generated {len(results) - failed} builders, {failed} failed")
        return results

    def _reject_name_collisions(self, results: List[GenerationResult]) -> List[GenerationResult]:
        claimed: Dict[Tuple[str, str], str] = {}
        checked = []
        for result in results:
            if result.succeeded:
                key = (result.description.package_name, result.description.class_name)
                if key in claimed:
                    error = BuilderNameCollision(result.target, result.description.qualified_name, claimed[key])
                    logger.error(f"{error.kind}: {error}")
                    result = GenerationResult(target=result.target, error=error, file_path=result.file_path)
                else:
                    claimed[key] = result.target
            checked.append(result)
        return checked

    def export_results(self, results: List[GenerationResult], output_path: Path) -> List[Path]:
        """Write generated sources and the run report."""
        return self.result_exporter.export_results(results, output_path)

    def generate_statistics(self, results: List[GenerationResult]) -> Dict:
        """Summarize a run."""
        return self.statistics_generator.generate_statistics(results)
