import json
import logging
from pathlib import Path
from typing import Dict, List

from kbuilder.models.builder_description import GenerationResult
from kbuilder.services.kotlin_emitter import KotlinEmitter
from kbuilder.services.statistics_generator import StatisticsGenerator

logger = logging.getLogger(__name__)

REPORT_FILE = 'report.json'


class ResultExporter:
    """Writes generated builder sources and a JSON run report."""

    def __init__(self, emitter: KotlinEmitter):
        self.emitter = emitter

    def export_results(self, results: List[GenerationResult], output_path: Path) -> List[Path]:
        """Write one source file per successful result plus ``report.json``."""
        output_path.mkdir(parents=True, exist_ok=True)
        written = []
        for result in results:
            if result.succeeded:
                written.append(self._export_source(result, output_path))
        stats = StatisticsGenerator().generate_statistics(results)
        self._export_report(results, stats, output_path)
        logger.info(f"Wrote {len(written)} builder files to {output_path}")
        return written

    def source_path(self, result: GenerationResult, output_path: Path) -> Path:
        description = result.description
        package_dir = output_path.joinpath(*description.package_name.split('.')) if description.package_name else output_path
        return package_dir / self.emitter.file_name(description)

    def _export_source(self, result: GenerationResult, output_path: Path) -> Path:
        path = self.source_path(result, output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        # newline='' keeps the configured line separator untouched
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(result.source)
        logger.debug(f"Wrote {path}")
        return path

    def _export_report(self, results: List[GenerationResult], stats: Dict, output_path: Path) -> None:
        report = {
            "results": [result.to_dict() for result in results],
            "statistics": stats,
        }
        with open(output_path / REPORT_FILE, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
