from typing import Dict, List

from kbuilder.models.builder_description import BodyKind, GenerationResult


class StatisticsGenerator:
    """Summarizes the results of a generation run."""

    def generate_statistics(self, results: List[GenerationResult]) -> Dict:
        succeeded = [result for result in results if result.succeeded]
        return {
            'total_targets': len(results),
            'generated': len(succeeded),
            'failed': len(results) - len(succeeded),
            'body_kinds': self._count_body_kinds(succeeded),
            'errors': self._count_errors(results),
            'generic_builders': sum(1 for result in succeeded if result.description.type_parameters),
            'total_setters': sum(len(result.description.setters) for result in succeeded),
            'package_distribution': self._analyze_packages(succeeded),
        }

    def _count_body_kinds(self, results: List[GenerationResult]) -> Dict[str, int]:
        body_kinds = {kind.value: 0 for kind in BodyKind}
        for result in results:
            body_kinds[result.description.build_function.body_kind.value] += 1
        return body_kinds

    def _count_errors(self, results: List[GenerationResult]) -> Dict[str, int]:
        errors = {}
        for result in results:
            if result.error is not None:
                errors[result.error.kind] = errors.get(result.error.kind, 0) + 1
        return errors

    def _analyze_packages(self, results: List[GenerationResult]) -> Dict[str, int]:
        packages = {}
        for result in results:
            package = result.description.package_name or '<default>'
            packages[package] = packages.get(package, 0) + 1
        return packages
