"""Tests for live Python builders created from builder descriptions."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar, Union

import pytest

from kbuilder.models.builder_config import RunConfig
from kbuilder.models.builder_description import BodyKind
from kbuilder.models.errors import MissingRequiredValue, NotABuildableType, UnresolvableBound
from kbuilder.processors.dataclass_processor import DataclassProcessor
from kbuilder.services.builder_pipeline import BuilderPipeline
from kbuilder.services.builder_runtime import create_builder_class

T = TypeVar("T", bound=int)
N = TypeVar("N", int, str)


@dataclass(frozen=True)
class Point:
    x: int
    y: Optional[int]


@dataclass(frozen=True)
class Ticket:
    id: int
    note: str = "none"
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Settings:
    retries: int = 3
    name: str = "default"


@dataclass
class Box(Generic[T]):
    value: T
    label: Optional[str] = None


@dataclass
class Constrained(Generic[N]):
    value: N


@dataclass
class Computed:
    base: int
    doubled: int = field(init=False, default=0)


_created = []


def _slow_counter() -> int:
    _created.append(1)
    time.sleep(0.05)
    return len(_created)


@dataclass(frozen=True)
class Counted:
    serial: int = field(default_factory=_slow_counter)


class NotAData:
    pass


def builder_for(cls, overrides=()):
    declaration = DataclassProcessor().process_class(cls)
    description = BuilderPipeline(RunConfig()).describe(declaration, overrides)
    return description, create_builder_class(description, cls)


def test_required_only_builder() -> None:
    description, PointBuilder = builder_for(Point)

    assert description.build_function.body_kind is BodyKind.REQUIRED_ONLY
    assert PointBuilder.__name__ == "PointBuilder"
    assert PointBuilder().x(1).y(2).build() == Point(1, 2)
    # Nullable required properties are passed through unchecked.
    assert PointBuilder().x(1).build() == Point(1, None)


def test_missing_required_value() -> None:
    _, PointBuilder = builder_for(Point)

    with pytest.raises(MissingRequiredValue) as excinfo:
        PointBuilder().y(2).build()
    assert excinfo.value.property_name == "x"
    assert str(excinfo.value) == "Property x is mandatory and must be set in builder"


def test_required_then_overlay_keeps_defaults() -> None:
    description, TicketBuilder = builder_for(Ticket)

    assert description.build_function.body_kind is BodyKind.REQUIRED_THEN_OVERLAY
    assert TicketBuilder().id(7).build() == Ticket(7)
    assert TicketBuilder().id(7).note("urgent").build() == Ticket(7, "urgent")
    assert TicketBuilder().id(7).tags(["a"]).build().tags == ["a"]


def test_setters_are_last_write_wins_and_chainable() -> None:
    _, TicketBuilder = builder_for(Ticket)
    builder = TicketBuilder()

    assert builder.id(1) is builder
    assert builder.id(2).note("x").note("y").build() == Ticket(2, "y")


def test_default_instance_overlay_shares_one_instance() -> None:
    description, SettingsBuilder = builder_for(Settings, [{"optimizeCopy": True}])

    assert description.build_function.body_kind is BodyKind.DEFAULT_INSTANCE_OVERLAY
    first = SettingsBuilder().build()
    assert first == Settings()
    assert SettingsBuilder().build() is first
    assert SettingsBuilder().retries(5).build() == Settings(retries=5)
    assert SettingsBuilder().build() == Settings()


def test_prefix_and_custom_class_name() -> None:
    _, Builder = builder_for(Point, [{"prefix": "with", "className": "PointMaker"}])

    assert Builder.__name__ == "PointMaker"
    assert Builder().withX(4).withY(5).build() == Point(4, 5)


def test_builder_requires_a_dataclass() -> None:
    description, _ = builder_for(Point)

    with pytest.raises(TypeError):
        create_builder_class(description, NotAData)


def test_dataclass_processor_reads_fields() -> None:
    declaration = DataclassProcessor().process_class(Ticket)

    assert declaration.qualified_name.endswith(".Ticket")
    assert declaration.package_name == Ticket.__module__
    parameters = declaration.constructors[0].parameters
    assert [(p.name, p.type_text, p.has_default) for p in parameters] == [
        ("id", "int", False), ("note", "str", True), ("tags", "list<str>", True),
    ]


def test_dataclass_processor_skips_init_false_fields() -> None:
    declaration = DataclassProcessor().process_class(Computed)

    assert [p.name for p in declaration.constructors[0].parameters] == ["base"]


def test_dataclass_processor_type_parameters() -> None:
    declaration = DataclassProcessor().process_class(Box)

    assert [(p.name, p.bound_texts) for p in declaration.type_parameters] == [("T", ("int",))]
    description, BoxBuilder = builder_for(Box)
    assert description.class_name == "BoxBuilder"
    assert BoxBuilder().value(3).build() == Box(3)

    with pytest.raises(UnresolvableBound):
        DataclassProcessor().process_class(Constrained)


def test_dataclass_processor_rejects_plain_classes() -> None:
    with pytest.raises(NotABuildableType):
        DataclassProcessor().process_class(NotAData)


@pytest.mark.parametrize("annotation,expected", [
    (Optional[int], "int?"),
    (Dict[str, List[int]], "dict<str, list<int>>"),
    (Tuple[int, ...], "tuple<int, *>"),
    (Union[int, str], "Union<int, str>"),
    (Optional[Union[int, str]], "Union<int, str>?"),
    (Callable[[int], str], "(int) -> str"),
    (T, "T"),
])
def test_render_type(annotation, expected) -> None:
    assert DataclassProcessor().render_type(annotation) == expected


def test_setter_function_names_follow_the_prefix() -> None:
    _, Builder = builder_for(Point, [{"prefix": "with"}])

    assert Builder.withX.__name__ == "withX"
    assert not hasattr(Builder, "x")


def test_shared_default_is_created_once_across_threads() -> None:
    _, CountedBuilder = builder_for(Counted, [{"optimizeCopy": True}])
    barrier = threading.Barrier(8)

    def build_after_barrier():
        barrier.wait()
        return CountedBuilder().build()

    with ThreadPoolExecutor(max_workers=8) as pool:
        built = list(pool.map(lambda _: build_after_barrier(), range(8)))

    assert len(_created) == 1
    assert all(instance is built[0] for instance in built)
