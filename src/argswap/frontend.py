"""LibCST front end: turns Python call sites into invocations and rewrites them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider

from argswap.config import DetectorConfig
from argswap.detector import resolve_invocation, suggested_fix
from argswap.exceptions import InapplicableInvocation
from argswap.model import Argument, ArgumentKind, Finding, Invocation, Parameter
from argswap.types import TypeEnvironment, TypeRef, literal_type, type_from_expression

FUNCTION = "function"
METHOD = "method"
STATICMETHOD = "staticmethod"
CLASSMETHOD = "classmethod"
PROPERTY = "property"

_RECORD_BASES = {"NamedTuple"}


@dataclass(frozen=True)
class Signature:
    name: str
    parameters: tuple[Parameter, ...]
    variadic: bool = False
    kind: str = FUNCTION
    returns: TypeRef | None = None


@dataclass
class ClassInfo:
    name: str
    bases: tuple[str, ...] = ()
    methods: dict[str, Signature] = field(default_factory=dict)
    attributes: dict[str, TypeRef | None] = field(default_factory=dict)
    fields: list[Parameter] = field(default_factory=list)
    is_record: bool = False


@dataclass
class ModuleIndex:
    functions: dict[str, Signature] = field(default_factory=dict)
    classes: dict[str, ClassInfo] = field(default_factory=dict)
    constants: dict[str, TypeRef | None] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def environment(self) -> TypeEnvironment:
        return TypeEnvironment(
            bases={name: info.bases for name, info in self.classes.items()}
        )

    def _lineage(self, class_name: str) -> list[ClassInfo]:
        lineage: list[ClassInfo] = []
        seen: set[str] = set()
        pending = [class_name]
        while pending:
            name = pending.pop(0)
            if name in seen:
                continue
            seen.add(name)
            info = self.classes.get(name)
            if info is None:
                continue
            lineage.append(info)
            pending.extend(info.bases)
        return lineage

    def lookup_method(self, class_name: str, method: str) -> Signature | None:
        for info in self._lineage(class_name):
            if method in info.methods:
                return info.methods[method]
        return None

    def attribute_type(self, class_name: str, attribute: str) -> TypeRef | None:
        for info in self._lineage(class_name):
            if attribute in info.attributes:
                return info.attributes[attribute]
        return None

    def constructor(self, class_name: str) -> Signature | None:
        init = self.lookup_method(class_name, "__init__")
        if init is not None:
            return replace(init, name=class_name, returns=TypeRef(class_name))
        fields = self._record_fields(class_name, set())
        if not fields:
            return None
        return Signature(
            name=class_name,
            parameters=tuple(
                replace(param, position=index) for index, param in enumerate(fields)
            ),
            returns=TypeRef(class_name),
        )

    def _record_fields(self, class_name: str, seen: set[str]) -> list[Parameter]:
        info = self.classes.get(class_name)
        if info is None or not info.is_record or class_name in seen:
            return []
        seen.add(class_name)
        fields: list[Parameter] = []
        for base in info.bases:
            fields.extend(self._record_fields(base, seen))
        for own in info.fields:
            fields = [param for param in fields if param.name != own.name]
            fields.append(own)
        return fields


@dataclass
class ModuleAnalysis:
    path: str
    original: str
    source: str
    findings: list[Finding] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.source != self.original


def _annotation(
    annotation: cst.Annotation | None, warnings: list[str] | None
) -> TypeRef | None:
    if annotation is None:
        return None
    return type_from_expression(annotation.annotation, warnings)


def _simple_name(expr: cst.BaseExpression) -> str | None:
    if isinstance(expr, cst.Name):
        return expr.value
    if isinstance(expr, cst.Attribute):
        return expr.attr.value
    return None


def _decorator_names(decorators: tuple[cst.Decorator, ...] | list[cst.Decorator]) -> set[str]:
    names: set[str] = set()
    for decorator in decorators:
        expr = decorator.decorator
        if isinstance(expr, cst.Call):
            expr = expr.func
        name = _simple_name(expr)
        if name:
            names.add(name)
    return names


def _method_kind(node: cst.FunctionDef) -> str:
    decorators = _decorator_names(node.decorators)
    if STATICMETHOD in decorators:
        return STATICMETHOD
    if CLASSMETHOD in decorators:
        return CLASSMETHOD
    if PROPERTY in decorators:
        return PROPERTY
    return METHOD


def _positional_params(node: cst.FunctionDef) -> list[cst.Param]:
    return [*node.params.posonly_params, *node.params.params]


def _signature(node: cst.FunctionDef, kind: str, warnings: list[str]) -> Signature:
    positional = _positional_params(node)
    if kind in {METHOD, CLASSMETHOD, PROPERTY} and positional:
        positional = positional[1:]
    parameters = tuple(
        Parameter(
            name=param.name.value,
            type=_annotation(param.annotation, warnings),
            position=index,
        )
        for index, param in enumerate(positional)
    )
    return Signature(
        name=node.name.value,
        parameters=parameters,
        variadic=isinstance(node.params.star_arg, cst.Param),
        kind=kind,
        returns=_annotation(node.returns, warnings),
    )


def _receiver_attribute(target: cst.BaseExpression, receiver: str) -> str | None:
    if not isinstance(target, cst.Attribute):
        return None
    if not isinstance(target.value, cst.Name) or target.value.value != receiver:
        return None
    return target.attr.value


class _SelfAttributeCollector(cst.CSTVisitor):
    """Collects ``self.x: T`` and ``self.x = <typed value>`` inside one method."""

    def __init__(
        self,
        *,
        receiver: str,
        parameters: dict[str, TypeRef | None],
        warnings: list[str],
    ) -> None:
        self.receiver = receiver
        self.parameters = parameters
        self.warnings = warnings
        self.attributes: dict[str, TypeRef | None] = {}

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:
        return False

    def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
        attr = _receiver_attribute(node.target, self.receiver)
        if attr is not None:
            self.attributes[attr] = _annotation(node.annotation, self.warnings)

    def visit_Assign(self, node: cst.Assign) -> None:
        for target in node.targets:
            attr = _receiver_attribute(target.target, self.receiver)
            if attr is None or attr in self.attributes:
                continue
            value = node.value
            if isinstance(value, cst.Name) and value.value in self.parameters:
                value_type = self.parameters[value.value]
            else:
                value_type = literal_type(value)
            if value_type is not None:
                self.attributes[attr] = value_type


def _index_class(node: cst.ClassDef, warnings: list[str]) -> ClassInfo:
    bases = tuple(
        name
        for name in (_simple_name(arg.value) for arg in node.bases if arg.keyword is None)
        if name
    )
    info = ClassInfo(
        name=node.name.value,
        bases=bases,
        is_record="dataclass" in _decorator_names(node.decorators)
        or bool(_RECORD_BASES & set(bases)),
    )
    if not isinstance(node.body, cst.IndentedBlock):
        return info
    self_attributes: dict[str, TypeRef | None] = {}
    for stmt in node.body.body:
        if isinstance(stmt, cst.FunctionDef):
            kind = _method_kind(stmt)
            signature = _signature(stmt, kind, warnings)
            if kind == PROPERTY:
                info.attributes[stmt.name.value] = signature.returns
                continue
            info.methods[stmt.name.value] = signature
            positional = _positional_params(stmt)
            if kind == METHOD and positional:
                collector = _SelfAttributeCollector(
                    receiver=positional[0].name.value,
                    parameters={
                        param.name.value: _annotation(param.annotation, None)
                        for param in positional
                    },
                    warnings=warnings,
                )
                stmt.body.visit(collector)
                for name, value_type in collector.attributes.items():
                    self_attributes.setdefault(name, value_type)
            continue
        if not isinstance(stmt, cst.SimpleStatementLine):
            continue
        for item in stmt.body:
            if isinstance(item, cst.AnnAssign) and isinstance(item.target, cst.Name):
                hint = _annotation(item.annotation, warnings)
                if hint is not None and hint.name == "ClassVar":
                    info.attributes[item.target.value] = hint.args[0] if hint.args else None
                    continue
                info.attributes[item.target.value] = hint
                info.fields.append(
                    Parameter(name=item.target.value, type=hint, position=len(info.fields))
                )
            elif isinstance(item, cst.Assign):
                for target in item.targets:
                    if isinstance(target.target, cst.Name):
                        info.attributes.setdefault(target.target.value, literal_type(item.value))
    for name, value_type in self_attributes.items():
        info.attributes.setdefault(name, value_type)
    return info


def index_module(module: cst.Module) -> ModuleIndex:
    """Collect module-level functions, classes and constants."""
    index = ModuleIndex()
    for stmt in module.body:
        if isinstance(stmt, cst.FunctionDef):
            index.functions[stmt.name.value] = _signature(stmt, FUNCTION, index.warnings)
        elif isinstance(stmt, cst.ClassDef):
            index.classes[stmt.name.value] = _index_class(stmt, index.warnings)
        elif isinstance(stmt, cst.SimpleStatementLine):
            for item in stmt.body:
                if isinstance(item, cst.AnnAssign) and isinstance(item.target, cst.Name):
                    index.constants[item.target.value] = _annotation(
                        item.annotation, index.warnings
                    )
                elif isinstance(item, cst.Assign):
                    value_type = literal_type(item.value)
                    for target in item.targets:
                        if isinstance(target.target, cst.Name):
                            index.constants.setdefault(target.target.value, value_type)
    return index


@dataclass
class _Scope:
    names: dict[str, TypeRef | None]
    owner: str | None = None
    receiver: str | None = None
    kind: str = FUNCTION


class _SwapTransformer(cst.CSTTransformer):
    METADATA_DEPENDENCIES = (PositionProvider,)

    def __init__(
        self,
        *,
        module: cst.Module,
        index: ModuleIndex,
        config: DetectorConfig,
        path: str,
    ) -> None:
        self.module = module
        self.index = index
        self.config = config
        self.path = path
        self.environment = index.environment()
        self.findings: list[Finding] = []
        self._frames: list[str | _Scope] = []

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:
        self._frames.append(node.name.value)
        return True

    def leave_ClassDef(
        self, original_node: cst.ClassDef, updated_node: cst.ClassDef
    ) -> cst.CSTNode:
        self._frames.pop()
        return updated_node

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        owner = self._frames[-1] if self._frames and isinstance(self._frames[-1], str) else None
        kind = _method_kind(node) if owner else FUNCTION
        positional = _positional_params(node)
        receiver = None
        if owner and kind != STATICMETHOD and positional:
            receiver = positional[0].name.value
        params = [*positional, *node.params.kwonly_params]
        names = {
            param.name.value: _annotation(param.annotation, None)
            for param in params
            if param.name.value != receiver
        }
        self._frames.append(_Scope(names=names, owner=owner, receiver=receiver, kind=kind))
        return True

    def leave_FunctionDef(
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.CSTNode:
        self._frames.pop()
        return updated_node

    def visit_AnnAssign(self, node: cst.AnnAssign) -> None:
        scope = self._scope()
        if scope is not None and isinstance(node.target, cst.Name):
            scope.names[node.target.value] = _annotation(node.annotation, None)

    def visit_Assign(self, node: cst.Assign) -> None:
        scope = self._scope()
        if scope is None:
            return
        value_type = literal_type(node.value)
        for target in node.targets:
            if isinstance(target.target, cst.Name):
                scope.names.setdefault(target.target.value, value_type)

    def _scope(self) -> _Scope | None:
        if self._frames and isinstance(self._frames[-1], _Scope):
            return self._frames[-1]
        return None

    def _method_scope(self) -> _Scope | None:
        for frame in reversed(self._frames):
            if isinstance(frame, str):
                return None
            if frame.owner is not None:
                return frame
        return None

    def _is_local(self, name: str) -> bool:
        return any(
            isinstance(frame, _Scope) and name in frame.names for frame in self._frames
        )

    def _receiver_scope(self, name: str) -> _Scope | None:
        scope = self._method_scope()
        if scope is None or scope.receiver != name:
            return None
        return scope

    def _name_type(self, name: str) -> TypeRef | None:
        for frame in reversed(self._frames):
            if isinstance(frame, _Scope) and name in frame.names:
                return frame.names[name]
        return self.index.constants.get(name)

    def _expression_type(self, expr: cst.BaseExpression) -> TypeRef | None:
        value_type = literal_type(expr)
        if value_type is not None:
            return value_type
        if isinstance(expr, cst.Name):
            scope = self._receiver_scope(expr.value)
            if scope is not None:
                return TypeRef(scope.owner) if scope.kind == METHOD else None
            return self._name_type(expr.value)
        if isinstance(expr, cst.Attribute):
            attr = expr.attr.value
            if (
                isinstance(expr.value, cst.Name)
                and expr.value.value in self.index.classes
                and not self._is_local(expr.value.value)
            ):
                return self.index.attribute_type(expr.value.value, attr)
            base = self._expression_type(expr.value)
            if base is not None and base.name in self.index.classes:
                return self.index.attribute_type(base.name, attr)
            return None
        if isinstance(expr, cst.Call):
            signature = self._resolve_callee(expr.func)
            return signature.returns if signature is not None else None
        return None

    def _resolve_callee(self, func: cst.BaseExpression) -> Signature | None:
        if isinstance(func, cst.Name):
            name = func.value
            if self._is_local(name):
                return None
            if name in self.index.functions:
                return self.index.functions[name]
            if name in self.index.classes:
                return self.index.constructor(name)
            return None
        if not isinstance(func, cst.Attribute) or not isinstance(func.value, cst.Name):
            return None
        method = func.attr.value
        owner = func.value.value
        scope = self._receiver_scope(owner)
        if scope is not None and scope.owner is not None:
            signature = self.index.lookup_method(scope.owner, method)
            if signature is None:
                return None
            if scope.kind == CLASSMETHOD and signature.kind == METHOD:
                return None
            return signature
        if owner in self.index.classes and not self._is_local(owner):
            signature = self.index.lookup_method(owner, method)
            if signature is not None and signature.kind in {STATICMETHOD, CLASSMETHOD}:
                return signature
            return None
        owner_type = self._name_type(owner)
        if owner_type is not None and owner_type.name in self.index.classes:
            return self.index.lookup_method(owner_type.name, method)
        return None

    def _describe(self, expr: cst.BaseExpression) -> Argument:
        source = self.module.code_for_node(expr)
        value_type = literal_type(expr)
        if value_type is not None:
            return Argument(source=source, type=value_type, kind=ArgumentKind.LITERAL)
        if isinstance(expr, cst.Name):
            scope = self._receiver_scope(expr.value)
            if scope is not None:
                return Argument(
                    source=source,
                    name=scope.owner,
                    type=self._expression_type(expr),
                    kind=ArgumentKind.SELF,
                )
            return Argument(
                source=source,
                name=expr.value,
                type=self._expression_type(expr),
                kind=ArgumentKind.NAME,
            )
        if isinstance(expr, cst.Attribute):
            return Argument(
                source=source,
                name=expr.attr.value,
                type=self._expression_type(expr),
                kind=ArgumentKind.ATTRIBUTE,
            )
        if isinstance(expr, cst.Call) and not expr.args:
            name = _simple_name(expr.func)
            if name is not None:
                return Argument(
                    source=source,
                    name=name,
                    type=self._expression_type(expr),
                    kind=ArgumentKind.METHOD_CALL,
                )
        return Argument(source=source)

    def _invocation(self, call: cst.Call, signature: Signature) -> Invocation | None:
        callee = self.module.code_for_node(call.func)
        if signature.variadic:
            raise InapplicableInvocation(f"{callee}: variadic callee")
        if any(arg.star for arg in call.args):
            raise InapplicableInvocation(f"{callee}: unpacked arguments")
        positional = [arg for arg in call.args if arg.keyword is None]
        if len(positional) < 2:
            return None
        if len(positional) > len(signature.parameters):
            raise InapplicableInvocation(
                f"{callee}: {len(positional)} positional arguments for "
                f"{len(signature.parameters)} parameters"
            )
        parameters = signature.parameters[: len(positional)]
        keywords = {arg.keyword.value for arg in call.args if arg.keyword is not None}
        if keywords & {param.name for param in parameters}:
            raise InapplicableInvocation(f"{callee}: parameter bound twice")
        return Invocation(
            callee=callee,
            parameters=parameters,
            arguments=tuple(self._describe(arg.value) for arg in positional),
            environment=self.environment,
        )

    def leave_Call(self, original_node: cst.Call, updated_node: cst.Call) -> cst.BaseExpression:
        signature = self._resolve_callee(original_node.func)
        if signature is None:
            return updated_node
        try:
            invocation = self._invocation(original_node, signature)
        except InapplicableInvocation:
            return updated_node
        if invocation is None:
            return updated_node
        resolution = resolve_invocation(invocation, self.config)
        fix = suggested_fix(invocation, resolution)
        if fix is None:
            return updated_node
        args = list(updated_node.args)
        values = [args[index].value for index in fix.order]
        for position, value in enumerate(values):
            args[position] = args[position].with_changes(value=value)
        rewritten = updated_node.with_changes(args=args)
        start = self.get_metadata(PositionProvider, original_node).start
        self.findings.append(
            Finding(
                path=self.path,
                line=start.line,
                column=start.column + 1,
                callee=invocation.callee,
                original=self.module.code_for_node(original_node),
                proposals=resolution.proposals,
                fix=replace(fix, replacement=self.module.code_for_node(rewritten)),
            )
        )
        return rewritten


def analyze_module(
    module: cst.Module, *, path: str = "<string>", config: DetectorConfig | None = None
) -> ModuleAnalysis:
    index = index_module(module)
    wrapper = MetadataWrapper(module)
    transformer = _SwapTransformer(
        module=wrapper.module,
        index=index,
        config=config or DetectorConfig(),
        path=path,
    )
    updated = wrapper.visit(transformer)
    return ModuleAnalysis(
        path=path,
        original=module.code,
        source=updated.code,
        findings=transformer.findings,
        warnings=list(index.warnings),
    )


def analyze_source(
    source: str, *, path: str = "<string>", config: DetectorConfig | None = None
) -> ModuleAnalysis:
    """Parse ``source`` and check every resolvable call in it.

    Raises ``libcst.ParserSyntaxError`` when the source does not parse.
    """
    return analyze_module(cst.parse_module(source), path=path, config=config)
