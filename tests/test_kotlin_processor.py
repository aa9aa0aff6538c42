"""Tests for reading builder targets out of Kotlin sources."""

import pytest

pytest.importorskip("tree_sitter_languages")

from kbuilder.analyzers.kotlin_analyzer import KotlinBuilderGenerator  # noqa: E402
from kbuilder.models.builder_config import BuilderConfig, RunConfig  # noqa: E402
from kbuilder.models.errors import NotABuildableType  # noqa: E402
from kbuilder.models.type_model import TypeRef  # noqa: E402
from kbuilder.services.class_model_extractor import ClassModelExtractor  # noqa: E402

SOURCE = '''\
package com.example.model

import java.time.Instant
import com.example.annotations.GenerateBuilder

@GenerateBuilder
data class Event(val id: Long, val at: Instant, val note: String? = null)

@GenerateBuilder(prefix = "with", optimizeCopy = true)
data class Settings(val retries: Int = 3, val tags: List<String> = emptyList())

data class Plain(val x: Int)

@GenerateBuilder
class NotData(val x: Int)

class Parent {
    @GenerateBuilder
    data class Child<out T : Comparable<T>>(val value: T)
}
'''


@pytest.fixture(scope="module")
def generator():
    return KotlinBuilderGenerator(RunConfig(line_separator="\n"))


@pytest.fixture(scope="module")
def declarations(generator):
    return {d.qualified_name: d for d in generator.file_processor.process_source(SOURCE, "Model.kt")}


def test_only_marked_classes_are_targets(declarations) -> None:
    assert sorted(declarations) == [
        "com.example.model.Event",
        "com.example.model.NotData",
        "com.example.model.Parent.Child",
        "com.example.model.Settings",
    ]


def test_package_imports_and_constructor(declarations) -> None:
    event = declarations["com.example.model.Event"]

    assert event.package_name == "com.example.model"
    assert event.imports == ("java.time.Instant", "com.example.annotations.GenerateBuilder")
    assert event.is_data
    assert event.file_path == "Model.kt"
    parameters = event.constructors[0].parameters
    assert [(p.name, p.type_text, p.has_default) for p in parameters] == [
        ("id", "Long", False), ("at", "Instant", False), ("note", "String?", True),
    ]
    assert event.config_sources == ({},)


def test_annotation_arguments_become_config_sources(declarations) -> None:
    assert declarations["com.example.model.Settings"].config_sources == ({"prefix": "with", "optimizeCopy": True},)


def test_nested_generic_class(declarations) -> None:
    child = declarations["com.example.model.Parent.Child"]

    assert [(p.name, p.bound_texts, p.variance) for p in child.type_parameters] == [
        ("T", ("Comparable<T>",), "out"),
    ]
    assert not declarations["com.example.model.NotData"].is_data


def test_generate_project_from_sources(generator, tmp_path) -> None:
    source_dir = tmp_path / "src"
    source_dir.mkdir()
    (source_dir / "Model.kt").write_text(SOURCE, encoding="utf-8")

    results = {r.target: r for r in generator.generate_project(source_dir)}

    assert not results["com.example.model.NotData"].succeeded
    child = results["com.example.model.Parent.Child"]
    assert child.description.class_name == "ParentChildBuilder"
    assert "class ParentChildBuilder<T : Comparable<T>> {" in child.source
    settings = results["com.example.model.Settings"].source
    assert "fun withRetries(retries: Int): SettingsBuilder {" in settings
    assert "return defaultInstance.copy(" in settings
    assert "import com.example.annotations.GenerateBuilder" not in results["com.example.model.Event"].source


SAMPLE = '''\
package com.example

import io.github.boazy.kbuilder.annotations.GenerateBuilder

typealias Foo<T, R> = TestDataClass2<T, R>

class IntArrayList : ArrayList<Int>()

@GenerateBuilder
data class TestDataClass1(val counter: Int = 1, val name: List<String?>) {

  constructor() : this(0, listOf())

  fun copy(): TestDataClass1 = TestDataClass1()
}

class Parent {
  @GenerateBuilder
  data class TestDataClass6<out T, R>(val foo: Foo<T, R>, val list: IntArrayList?) where R : Any, R : Runnable
}

@GenerateBuilder
object Registry
'''


@pytest.fixture(scope="module")
def sample(generator):
    return {d.qualified_name: d for d in generator.file_processor.process_source(SAMPLE, "Test.kt")}


def test_secondary_constructors_are_not_primary(sample) -> None:
    declaration = sample["com.example.TestDataClass1"]

    primaries = [c for c in declaration.constructors if c.is_primary]
    secondaries = [c for c in declaration.constructors if not c.is_primary]
    assert len(primaries) == 1
    assert len(secondaries) == 1
    assert secondaries[0].parameters == ()
    assert [(p.name, p.type_text, p.has_default) for p in primaries[0].parameters] == [
        ("counter", "Int", True), ("name", "List<String?>", False),
    ]
    extracted = ClassModelExtractor().extract(declaration, BuilderConfig())
    assert [p.name for p in extracted.required] == ["name"]


def test_where_clause_bounds_are_merged(sample) -> None:
    declaration = sample["com.example.Parent.TestDataClass6"]

    assert [(p.name, p.bound_texts, p.variance) for p in declaration.type_parameters] == [
        ("T", (), "out"), ("R", (), ""),
    ]
    assert declaration.constraints == (("R", "Any"), ("R", "Runnable"))
    model = ClassModelExtractor().extract(declaration, BuilderConfig()).model
    assert model.type_parameters[1].bounds == (TypeRef("Any"), TypeRef("Runnable"))


def test_where_clause_is_emitted(generator, sample) -> None:
    result = generator.pipeline.generate(sample["com.example.Parent.TestDataClass6"])

    assert result.succeeded
    assert "class ParentTestDataClass6Builder<T, R> where R : Any, R : Runnable {" in result.source
    assert "    fun build(): Parent.TestDataClass6<T, R> {" in result.source


def test_annotated_object_is_reported_and_rejected(generator, sample) -> None:
    declaration = sample["com.example.Registry"]

    assert declaration.kind == "object"
    with pytest.raises(NotABuildableType):
        ClassModelExtractor().extract(declaration, BuilderConfig())
    assert generator.pipeline.generate(declaration).error.kind == "NotABuildableType"
