"""Tests for parsing Kotlin type expressions."""

import pytest

from kbuilder.models.type_model import TypeRef
from kbuilder.services.type_resolver import KotlinTypeResolver, TypeParseError


@pytest.fixture
def resolver():
    return KotlinTypeResolver()


def test_simple_and_nullable_types(resolver) -> None:
    assert resolver.parse("Int") == TypeRef("Int")
    assert resolver.parse("String?") == TypeRef("String", nullable=True)
    assert resolver.parse("kotlin.collections.List<String>") == TypeRef(
        "kotlin.collections.List", (TypeRef("String"),)
    )


def test_nested_generics_keep_argument_nullability(resolver) -> None:
    parsed = resolver.parse("Map<String, List<T?>>?")

    assert parsed.nullable
    assert parsed.name == "Map"
    assert parsed.arguments[1] == TypeRef("List", (TypeRef("T", nullable=True),))
    assert parsed.render() == "Map<String, List<T?>>?"


def test_star_and_use_site_projections(resolver) -> None:
    parsed = resolver.parse("TestDataClass2<Z, *>")
    assert parsed.arguments[1].is_star

    projected = resolver.parse("Comparable<in T>")
    assert projected.arguments[0] == TypeRef("T", projection="in")
    assert projected.render() == "Comparable<in T>"


def test_function_types_are_opaque(resolver) -> None:
    parsed = resolver.parse("((Int) -> Unit)?")

    assert parsed.opaque
    assert parsed.nullable
    assert parsed.render() == "((Int) -> Unit)?"
    assert resolver.parse("Map<String, (Int) -> String>").arguments[1].opaque


def test_annotations_and_whitespace_are_ignored(resolver) -> None:
    assert resolver.parse("@Foo List < String >") == TypeRef("List", (TypeRef("String"),))


@pytest.mark.parametrize("text", ["", "List<", "List<String>>", "*", "out T", "Int??", "Map<,>", "1Int"])
def test_malformed_types_are_rejected(resolver, text) -> None:
    with pytest.raises(TypeParseError):
        resolver.parse(text)


def test_star_is_not_a_valid_bound(resolver) -> None:
    with pytest.raises(TypeParseError):
        resolver.parse_bound("*")
    assert resolver.parse_bound("Comparable<T>") == TypeRef("Comparable", (TypeRef("T"),))
