"""Type descriptors parsed from annotations and the assignability check."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import libcst as cst

UNION = "Union"

_ALIASES = {
    "List": "list",
    "Dict": "dict",
    "Set": "set",
    "FrozenSet": "frozenset",
    "Tuple": "tuple",
    "Type": "type",
    "Text": "str",
    "DefaultDict": "defaultdict",
    "OrderedDict": "OrderedDict",
}

# Any accepts and is accepted by everything; object only accepts.
_ANY = "Any"
_TOP_TYPES = {"Any", "object"}

# Raw name -> direct supertypes. Covers numeric promotion and the container
# ABCs; module-local classes are added per TypeEnvironment.
_BUILTIN_SUPERTYPES: dict[str, tuple[str, ...]] = {
    "bool": ("int",),
    "int": ("float",),
    "float": ("complex",),
    "list": ("MutableSequence",),
    "MutableSequence": ("Sequence",),
    "tuple": ("Sequence",),
    "str": ("Sequence",),
    "bytes": ("Sequence",),
    "Sequence": ("Collection", "Reversible"),
    "dict": ("MutableMapping",),
    "defaultdict": ("dict",),
    "OrderedDict": ("dict",),
    "MutableMapping": ("Mapping",),
    "Mapping": ("Collection",),
    "set": ("MutableSet",),
    "MutableSet": ("AbstractSet",),
    "frozenset": ("AbstractSet",),
    "AbstractSet": ("Collection",),
    "Collection": ("Iterable", "Container", "Sized"),
    "Reversible": ("Iterable",),
    "Iterator": ("Iterable",),
    "Generator": ("Iterator",),
}


@dataclass(frozen=True)
class TypeRef:
    name: str
    args: tuple[TypeRef, ...] = ()

    @property
    def is_union(self) -> bool:
        return self.name == UNION

    def members(self) -> tuple[TypeRef, ...]:
        return self.args if self.is_union else (self,)

    def render(self) -> str:
        if self.is_union:
            return " | ".join(member.render() for member in self.args)
        if not self.args:
            return self.name
        return f"{self.name}[{', '.join(arg.render() for arg in self.args)}]"


def union_of(members: list[TypeRef]) -> TypeRef:
    flat: list[TypeRef] = []
    for member in members:
        for item in member.members():
            if item not in flat:
                flat.append(item)
    if len(flat) == 1:
        return flat[0]
    return TypeRef(UNION, tuple(flat))


def _raw_name(expr: cst.BaseExpression) -> str | None:
    if isinstance(expr, cst.Name):
        return _ALIASES.get(expr.value, expr.value)
    if isinstance(expr, cst.Attribute):
        return _ALIASES.get(expr.attr.value, expr.attr.value)
    return None


def type_from_expression(
    expr: cst.BaseExpression | None, warnings: list[str] | None = None
) -> TypeRef | None:
    """Parse an annotation expression into a TypeRef.

    Returns None for anything that cannot be described, which callers treat as
    an unknown type.
    """
    if expr is None:
        return None
    if isinstance(expr, cst.SimpleString):
        text = expr.evaluated_value
        if not isinstance(text, str):
            return None
        try:
            inner = cst.parse_expression(text)
        except cst.ParserSyntaxError as exc:
            if warnings is not None:
                warnings.append(f"Failed to parse type hint '{text}': {exc}")
            return None
        return type_from_expression(inner, warnings)
    if isinstance(expr, cst.Ellipsis):
        return TypeRef("...")
    if isinstance(expr, cst.BinaryOperation) and isinstance(expr.operator, cst.BitOr):
        left = type_from_expression(expr.left, warnings)
        right = type_from_expression(expr.right, warnings)
        if left is None or right is None:
            return None
        return union_of([left, right])
    if isinstance(expr, cst.List):
        items = [type_from_expression(element.value, warnings) for element in expr.elements]
        if any(item is None for item in items):
            return None
        return TypeRef("[]", tuple(item for item in items if item is not None))
    if isinstance(expr, cst.Subscript):
        base = _raw_name(expr.value)
        if base is None:
            return None
        args: list[TypeRef] = []
        for element in expr.slice:
            if not isinstance(element.slice, cst.Index):
                return None
            arg = type_from_expression(element.slice.value, warnings)
            if arg is None:
                return None
            args.append(arg)
        if base == "Optional" and len(args) == 1:
            return union_of([args[0], TypeRef("None")])
        if base == UNION:
            return union_of(args)
        if base == "Annotated" and args:
            return args[0]
        if base == "Literal":
            return None
        return TypeRef(base, tuple(args))
    name = _raw_name(expr)
    if name is None:
        return None
    return TypeRef(name)


def literal_type(expr: cst.BaseExpression) -> TypeRef | None:
    """Type of a literal constant expression, or None if it is not one."""
    if isinstance(expr, cst.SimpleString):
        return TypeRef("bytes" if "b" in expr.prefix.lower() else "str")
    if isinstance(expr, cst.ConcatenatedString):
        return literal_type(expr.left)
    if isinstance(expr, cst.FormattedString):
        return TypeRef("str")
    if isinstance(expr, cst.Integer):
        return TypeRef("int")
    if isinstance(expr, cst.Float):
        return TypeRef("float")
    if isinstance(expr, cst.Imaginary):
        return TypeRef("complex")
    if isinstance(expr, cst.Ellipsis):
        return TypeRef("ellipsis")
    if isinstance(expr, cst.Name):
        if expr.value in {"True", "False"}:
            return TypeRef("bool")
        if expr.value == "None":
            return TypeRef("None")
        return None
    if isinstance(expr, cst.UnaryOperation) and isinstance(
        expr.operator, (cst.Minus, cst.Plus)
    ):
        if isinstance(expr.expression, (cst.Integer, cst.Float, cst.Imaginary)):
            return literal_type(expr.expression)
    return None


@dataclass(frozen=True, eq=False)
class TypeEnvironment:
    """Assignability rules for one module.

    ``bases`` maps module-local class names to their declared base names.
    """

    bases: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def supertypes(self, name: str) -> set[str]:
        seen: set[str] = set()
        pending = [name]
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            pending.extend(self.bases.get(current, ()))
            pending.extend(_BUILTIN_SUPERTYPES.get(current, ()))
        return seen

    def is_assignable(self, source: TypeRef | None, target: TypeRef | None) -> bool:
        if source is None or target is None:
            return True
        if target.name in _TOP_TYPES or source.name == _ANY:
            return True
        if target.is_union:
            return any(self.is_assignable(source, member) for member in target.args)
        if source.is_union:
            return all(self.is_assignable(member, target) for member in source.args)
        if target.name not in self.supertypes(source.name):
            return False
        if not source.args or not target.args:
            return True
        if source.name == target.name or len(source.args) == len(target.args):
            return source.args == target.args
        return True


def swap_compatible(
    environment: TypeEnvironment,
    first_argument: TypeRef | None,
    first_parameter: TypeRef | None,
    second_argument: TypeRef | None,
    second_parameter: TypeRef | None,
) -> bool:
    """True when exchanging the two arguments keeps both positions well typed."""
    return environment.is_assignable(
        first_argument, second_parameter
    ) and environment.is_assignable(second_argument, first_parameter)
