"""Pytest configuration for kbuilder tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence, Tuple

import pytest


def pytest_configure() -> None:
    """Ensure the src directory is importable during tests."""
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


def make_declaration(qualified_name: str, parameters: Sequence[Tuple[str, str, bool]],
                     package_name: str = "com.example", **kwargs):
    """Build a ClassDeclaration from (name, type, has_default) triples."""
    from kbuilder.models.type_model import ClassDeclaration, ConstructorDeclaration, ParameterDeclaration

    constructor = ConstructorDeclaration(
        parameters=tuple(ParameterDeclaration(name, type_text, has_default)
                         for name, type_text, has_default in parameters)
    )
    kwargs.setdefault("constructors", (constructor,))
    return ClassDeclaration(qualified_name=qualified_name, package_name=package_name, **kwargs)


@pytest.fixture
def declaration_factory():
    return make_declaration


@pytest.fixture
def run_config():
    from kbuilder.models.builder_config import RunConfig
    return RunConfig(line_separator="\n")
