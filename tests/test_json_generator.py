"""End-to-end tests for generating builders from JSON class models."""

import json

import pytest

from kbuilder.analyzers.json_analyzer import JsonBuilderGenerator
from kbuilder.factory.analyzer_factory import GeneratorFactory
from kbuilder.models.builder_config import RunConfig
from kbuilder.models.type_model import ClassDeclaration
from kbuilder.processors.json_processor import JsonModelProcessor

from conftest import make_declaration


def write_models(path, declarations):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"classes": [d.to_dict() for d in declarations]}), encoding="utf-8")


def test_declaration_dict_round_trip() -> None:
    declaration = make_declaration(
        "com.example.Event", [("at", "Instant", False), ("note", "String?", True)],
        imports=("java.time.Instant",),
        config_sources=({"prefix": "with"},),
    )

    assert ClassDeclaration.from_dict(declaration.to_dict()) == declaration


def test_processor_accepts_single_objects_and_skips_malformed_entries(tmp_path, caplog) -> None:
    processor = JsonModelProcessor(RunConfig())
    single = make_declaration("com.example.A", [("x", "Int", False)]).to_dict()

    assert [d.qualified_name for d in processor.process_data(single, "a.json")] == ["com.example.A"]
    declarations = processor.process_data([single, {"kind": "class"}, "junk"], "b.json")
    assert len(declarations) == 1
    assert declarations[0].file_path == "b.json"
    assert "Skipping malformed declaration #1" in caplog.text

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert processor.process_file(broken) == []


def test_generate_project_writes_sources_and_report(tmp_path) -> None:
    root = tmp_path / "models"
    output = tmp_path / "out"
    write_models(root / "model.json", [
        make_declaration("com.example.Point", [("x", "Int", False), ("y", "Int", False)]),
        make_declaration("com.example.Settings", [("retries", "Int", True)],
                         config_sources=({"optimizeCopy": True},)),
        make_declaration("com.example.Broken", [("x", "Int", False)], is_data=False),
    ])
    write_models(root / "build" / "ignored.json", [make_declaration("com.example.Ignored", [("x", "Int", False)])])

    generator = JsonBuilderGenerator(RunConfig(line_separator="\n"))
    results = generator.generate_project(root)
    written = generator.export_results(results, output)

    assert [r.target for r in results] == ["com.example.Point", "com.example.Settings", "com.example.Broken"]
    assert [r.succeeded for r in results] == [True, True, False]
    assert sorted(p.name for p in written) == ["PointBuilder.kt", "SettingsBuilder.kt"]
    point_source = (output / "com" / "example" / "PointBuilder.kt").read_text(encoding="utf-8")
    assert point_source == results[0].source

    report = json.loads((output / "report.json").read_text(encoding="utf-8"))
    assert report["statistics"]["total_targets"] == 3
    assert report["statistics"]["failed"] == 1
    assert report["statistics"]["errors"] == {"NotABuildableType": 1}
    assert report["statistics"]["body_kinds"]["default_instance_overlay"] == 1
    assert report["results"][2]["error"]["kind"] == "NotABuildableType"
    assert report["results"][0]["builder"] == "com.example.PointBuilder"


def test_overrides_apply_per_target(tmp_path) -> None:
    write_models(tmp_path / "model.json", [make_declaration("com.example.Url", [("url", "String", False)])])

    generator = JsonBuilderGenerator(RunConfig(line_separator="\n"))
    result, = generator.generate_project(tmp_path, {"com.example.Url": [{"prefix": "with"}]})

    assert "fun withUrl(url: String): UrlBuilder {" in result.source


def test_conflicting_configuration_fails_only_that_target(tmp_path) -> None:
    write_models(tmp_path / "model.json", [
        make_declaration("com.example.A", [("x", "Int", False)], config_sources=({"prefix": "with"},)),
        make_declaration("com.example.B", [("x", "Int", False)]),
    ])

    results = JsonBuilderGenerator(RunConfig()).generate_project(tmp_path, {"com.example.A": [{"prefix": "set"}]})

    assert results[0].error.kind == "DuplicateConfiguration"
    assert results[1].succeeded


def test_builder_name_collision(tmp_path) -> None:
    write_models(tmp_path / "model.json", [
        make_declaration("com.example.Parent.Child", [("x", "Int", False)]),
        make_declaration("com.example.ParentChild", [("x", "Int", False)]),
    ])

    results = JsonBuilderGenerator(RunConfig()).generate_project(tmp_path)

    assert results[0].succeeded
    assert results[1].error.kind == "BuilderNameCollision"
    assert results[1].error.other_target == "com.example.Parent.Child"


def test_statistics_for_empty_run(tmp_path) -> None:
    generator = GeneratorFactory.create_generator("json", RunConfig())

    results = generator.generate_project(tmp_path)
    stats = generator.generate_statistics(results)

    assert results == []
    assert stats["total_targets"] == 0
    assert stats["body_kinds"] == {"required_only": 0, "default_instance_overlay": 0, "required_then_overlay": 0}


def _with(entry, **changes):
    return {**entry, **changes}


GOOD = make_declaration("com.example.Good", [("x", "Int", False)]).to_dict()


@pytest.mark.parametrize("bad", [
    _with(GOOD, qualified_name="com.example.Bad", constraints=[["T"]]),
    _with(GOOD, qualified_name="com.example.Bad", type_parameters=[{"name": "T", "bounds": [5]}]),
    _with(GOOD, qualified_name="com.example.Bad", config_sources=[5]),
    _with(GOOD, qualified_name="com.example.Bad", imports="java.util.List"),
    _with(GOOD, qualified_name="com.example.Bad", constructors=[{"parameters": [{"name": "x", "type": 5}]}]),
])
def test_malformed_entry_does_not_abort_the_run(tmp_path, bad) -> None:
    (tmp_path / "model.json").write_text(json.dumps([bad, GOOD]), encoding="utf-8")

    results = JsonBuilderGenerator(RunConfig()).generate_project(tmp_path)

    assert [r.target for r in results] == ["com.example.Good"]
    assert results[0].succeeded
