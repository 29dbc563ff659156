from __future__ import annotations

import libcst as cst

from argswap.types import (
    TypeEnvironment,
    TypeRef,
    literal_type,
    swap_compatible,
    type_from_expression,
)


def _parse(text: str) -> TypeRef | None:
    return type_from_expression(cst.parse_expression(text))


def test_parses_builtin_and_typing_aliases() -> None:
    assert _parse("str") == TypeRef("str")
    assert _parse("List[str]") == TypeRef("list", (TypeRef("str"),))
    assert _parse("typing.Dict[str, int]") == TypeRef(
        "dict", (TypeRef("str"), TypeRef("int"))
    )


def test_parses_optional_and_pipe_unions_alike() -> None:
    assert _parse("Optional[int]") == _parse("int | None")
    assert _parse("Union[int, str]").render() == "int | str"
    assert _parse("Union[int]") == TypeRef("int")


def test_parses_string_annotations() -> None:
    assert _parse("'list[int]'") == TypeRef("list", (TypeRef("int"),))


def test_unparseable_string_annotation_warns() -> None:
    warnings: list[str] = []
    assert type_from_expression(cst.parse_expression("'list[int'"), warnings) is None
    assert warnings and "Failed to parse type hint" in warnings[0]


def test_literal_types() -> None:
    assert literal_type(cst.parse_expression("'x'")) == TypeRef("str")
    assert literal_type(cst.parse_expression("b'x'")) == TypeRef("bytes")
    assert literal_type(cst.parse_expression("f'{x}'")) == TypeRef("str")
    assert literal_type(cst.parse_expression("-3")) == TypeRef("int")
    assert literal_type(cst.parse_expression("2.5")) == TypeRef("float")
    assert literal_type(cst.parse_expression("True")) == TypeRef("bool")
    assert literal_type(cst.parse_expression("None")) == TypeRef("None")
    assert literal_type(cst.parse_expression("name")) is None
    assert literal_type(cst.parse_expression("-name")) is None


def test_unknown_types_are_assignable() -> None:
    env = TypeEnvironment()
    assert env.is_assignable(None, TypeRef("int"))
    assert env.is_assignable(TypeRef("int"), None)
    assert env.is_assignable(TypeRef("int"), TypeRef("object"))
    assert env.is_assignable(TypeRef("Any"), TypeRef("str"))


def test_unrelated_types_are_not_assignable() -> None:
    env = TypeEnvironment()
    assert not env.is_assignable(TypeRef("str"), TypeRef("int"))
    assert not env.is_assignable(TypeRef("float"), TypeRef("int"))
    assert env.is_assignable(TypeRef("bool"), TypeRef("float"))


def test_parameterized_types_require_identical_arguments() -> None:
    env = TypeEnvironment()
    assert not env.is_assignable(_parse("list[str]"), _parse("list[int]"))
    assert env.is_assignable(_parse("list[str]"), _parse("List[str]"))
    assert env.is_assignable(_parse("list[str]"), _parse("Sequence[str]"))
    assert not env.is_assignable(_parse("list[str]"), _parse("Sequence[int]"))
    assert env.is_assignable(_parse("list"), _parse("list[int]"))


def test_unions() -> None:
    env = TypeEnvironment()
    assert env.is_assignable(TypeRef("None"), _parse("Optional[str]"))
    assert env.is_assignable(TypeRef("str"), _parse("str | None"))
    assert not env.is_assignable(_parse("str | None"), TypeRef("str"))


def test_module_class_hierarchy() -> None:
    env = TypeEnvironment(bases={"Child": ("Base",), "Base": ()})
    assert env.is_assignable(TypeRef("Child"), TypeRef("Base"))
    assert not env.is_assignable(TypeRef("Base"), TypeRef("Child"))


def test_swap_compatibility_checks_both_directions() -> None:
    env = TypeEnvironment()
    assert swap_compatible(env, TypeRef("str"), TypeRef("str"), TypeRef("str"), TypeRef("str"))
    assert not swap_compatible(
        env, TypeRef("str"), TypeRef("str"), TypeRef("int"), TypeRef("int")
    )
    assert not swap_compatible(
        env, TypeRef("int"), TypeRef("int"), TypeRef("bool"), TypeRef("bool")
    )
    assert swap_compatible(
        env, TypeRef("bool"), TypeRef("int"), TypeRef("bool"), TypeRef("int")
    )


def test_object_argument_is_not_assignable_to_narrower_parameter() -> None:
    env = TypeEnvironment()
    assert not env.is_assignable(TypeRef("object"), TypeRef("str"))
    assert env.is_assignable(TypeRef("object"), TypeRef("object"))
    assert env.is_assignable(TypeRef("object"), TypeRef("Any"))
    assert not swap_compatible(
        env, TypeRef("object"), TypeRef("object"), TypeRef("str"), TypeRef("str")
    )
