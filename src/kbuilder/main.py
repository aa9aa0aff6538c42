import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from kbuilder.factory.analyzer_factory import SUPPORTED_LANGUAGES, GeneratorFactory
from kbuilder.factory.config_builder import LINE_SEPARATORS, RunConfigBuilder
from kbuilder.models.builder_config import DEFAULT_BUILDER_SUFFIX

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Configure and return the root logger for kbuilder."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("kbuilder")


def create_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="kbuilder", description="Generate fluent builders for data classes")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate builders for a project or file")
    generate.add_argument("root", help="Project directory or single input file")
    generate.add_argument("--output", required=True, help="Directory receiving the generated sources")
    generate.add_argument("--language", choices=SUPPORTED_LANGUAGES, default="kotlin",
                          help="Input format: Kotlin sources or JSON class models (default: kotlin)")
    generate.add_argument("--line-separator", choices=sorted(LINE_SEPARATORS), default="system",
                          help="Line separator for generated files (default: system)")
    generate.add_argument("--builder-suffix", default=DEFAULT_BUILDER_SUFFIX,
                          help=f"Suffix appended to builder class names (default: {DEFAULT_BUILDER_SUFFIX})")
    generate.add_argument("--overrides", help="JSON file with per-target builder options keyed by qualified name")
    generate.set_defaults(handler=_handle_generate)
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for handling CLI execution."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return args.handler(args)


def load_overrides(path: Path) -> Dict[str, List[Dict[str, object]]]:
    """Read an overrides file; each target maps to one option object or a list of them."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected an object keyed by qualified class name")
    return {
        target: list(options) if isinstance(options, list) else [options]
        for target, options in data.items()
    }


def _handle_generate(args: argparse.Namespace) -> int:
    root = Path(args.root)
    if not root.exists():
        logger.error(f"Path {root} does not exist")
        return 2

    overrides = None
    if args.overrides:
        try:
            overrides = load_overrides(Path(args.overrides))
        except (OSError, ValueError) as e:
            logger.error(f"Cannot read overrides: {e}")
            return 2

    config = (RunConfigBuilder()
              .with_line_separator(args.line_separator)
              .with_builder_suffix(args.builder_suffix)
              .build())
    generator = GeneratorFactory.create_generator(args.language, config)

    logger.info(f"Generating builders for {args.language} input at: {root}")
    results = generator.generate_project(root, overrides)
    generator.export_results(results, Path(args.output))

    stats = generator.generate_statistics(results)
    logger.info(f"Targets: {stats['total_targets']}, generated: {stats['generated']}, failed: {stats['failed']}")
    for body_kind, count in stats['body_kinds'].items():
        if count:
            logger.info(f"  {body_kind}: {count}")
    for error_kind, count in stats['errors'].items():
        logger.info(f"  {error_kind}: {count}")
    return 0 if stats['failed'] == 0 else 1


def main() -> int:
    return run_cli()


if __name__ == "__main__":
    raise SystemExit(main())
