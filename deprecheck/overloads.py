"""Select the overload a call binds to.

Matching is three-valued: an overload definitely accepts the call, definitely
rejects it, or cannot be decided from what the source tells us.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Callable, Sequence

from .models import (
    KEYWORD_ONLY,
    POSITIONAL_ONLY,
    POSITIONAL_OR_KEYWORD,
    VAR_KEYWORD,
    VAR_POSITIONAL,
    Parameter,
)

YES = "yes"
NO = "no"
MAYBE = "maybe"

ANY_NAMES = {"Any", "object"}
BUILTIN_ACCEPTS = {
    "int": {"int", "bool"},
    "float": {"float", "int", "bool"},
    "complex": {"complex", "float", "int", "bool"},
    "bool": {"bool"},
    "str": {"str"},
    "bytes": {"bytes"},
    "bytearray": {"bytearray"},
    "list": {"list"},
    "List": {"list"},
    "dict": {"dict"},
    "Dict": {"dict"},
    "set": {"set"},
    "Set": {"set"},
    "frozenset": {"frozenset"},
    "FrozenSet": {"frozenset"},
    "tuple": {"tuple"},
    "Tuple": {"tuple"},
    "Sequence": {"list", "tuple", "str", "bytes"},
    "MutableSequence": {"list"},
    "Mapping": {"dict"},
    "MutableMapping": {"dict"},
    "AbstractSet": {"set", "frozenset"},
    "MutableSet": {"set"},
    "Collection": {"list", "tuple", "str", "bytes", "dict", "set", "frozenset"},
    "Iterable": {"list", "tuple", "str", "bytes", "dict", "set", "frozenset", "generator"},
    "Iterator": {"generator"},
    "Generator": {"generator"},
    "Callable": {"function", "type"},
    "type": {"type"},
    "Type": {"type"},
    "None": {"None"},
    "NoneType": {"None"},
}


@dataclass(frozen=True)
class ArgType:
    """What is statically known about one call argument.

    ``kind`` is a builtin type name, ``"instance"`` for instances of analyzed
    classes (with their MRO in ``mro``), ``"type"`` or ``"function"``, or
    ``None`` when nothing is known.
    """

    kind: str | None = None
    literal: object = None
    has_literal: bool = False
    mro: tuple[str, ...] = ()
    complete: bool = False


@dataclass(frozen=True)
class CallArguments:
    args: tuple[ArgType, ...] = ()
    keywords: tuple[tuple[str, ArgType], ...] = ()
    star: bool = False
    double_star: bool = False


# resolves a dotted annotation to a class-like object with `node_id` and `is_protocol`
ClassLookup = Callable[[tuple[str, ...]], object]


def select_overload(overloads: Sequence, arguments: CallArguments, bound: bool, lookup: ClassLookup):
    """Return the overload item the call binds to, or ``None`` if ambiguous.

    Overloads that cannot accept the call are dropped. The call binds to the
    first remaining overload when it matches definitely, or to the only one
    left.
    """
    candidates = []
    for item in overloads:
        verdict = evaluate_overload(item.params, arguments, bound, lookup)
        if verdict != NO:
            candidates.append((item, verdict))
    if not candidates:
        return None
    item, verdict = candidates[0]
    if verdict == YES or len(candidates) == 1:
        return item
    return None


def evaluate_overload(
    params: tuple[Parameter, ...] | None,
    arguments: CallArguments,
    bound: bool,
    lookup: ClassLookup,
) -> str:
    if params is None:
        return MAYBE
    arity, pairs = bind_arguments(params, arguments, bound)
    if arity == NO:
        return NO
    verdicts = [arity, *(match_annotation(param.annotation, arg, lookup) for param, arg in pairs)]
    if NO in verdicts:
        return NO
    if MAYBE in verdicts:
        return MAYBE
    return YES


def bind_arguments(
    params: tuple[Parameter, ...],
    arguments: CallArguments,
    bound: bool,
) -> tuple[str, list[tuple[Parameter, ArgType]]]:
    remaining = list(params)
    if bound and remaining and remaining[0].kind in (POSITIONAL_ONLY, POSITIONAL_OR_KEYWORD):
        remaining = remaining[1:]

    positional = [p for p in remaining if p.kind in (POSITIONAL_ONLY, POSITIONAL_OR_KEYWORD)]
    by_keyword = {p.name: p for p in remaining if p.kind in (POSITIONAL_OR_KEYWORD, KEYWORD_ONLY)}
    var_positional = next((p for p in remaining if p.kind == VAR_POSITIONAL), None)
    var_keyword = next((p for p in remaining if p.kind == VAR_KEYWORD), None)

    pairs: list[tuple[Parameter, ArgType]] = []
    assigned: set[str] = set()
    for index, arg in enumerate(arguments.args):
        if index < len(positional):
            pairs.append((positional[index], arg))
            assigned.add(positional[index].name)
        elif var_positional is not None:
            pairs.append((var_positional, arg))
        else:
            return NO, []

    for name, arg in arguments.keywords:
        param = by_keyword.get(name)
        if param is not None:
            if param.name in assigned:
                return NO, []
            pairs.append((param, arg))
            assigned.add(param.name)
        elif var_keyword is not None:
            pairs.append((var_keyword, arg))
        else:
            return NO, []

    uncertain = arguments.star or arguments.double_star
    missing = [
        p
        for p in remaining
        if p.kind in (POSITIONAL_ONLY, POSITIONAL_OR_KEYWORD, KEYWORD_ONLY)
        and not p.has_default
        and p.name not in assigned
    ]
    if missing and not uncertain:
        return NO, []
    return (MAYBE if uncertain else YES), pairs


def match_annotation(annotation: str | None, arg: ArgType, lookup: ClassLookup) -> str:
    if annotation is None:
        return YES
    if arg.kind is None:
        return MAYBE
    try:
        expression = ast.parse(annotation, mode="eval").body
    except SyntaxError:
        return MAYBE
    return _match(expression, arg, lookup)


def _match(node: ast.expr, arg: ArgType, lookup: ClassLookup) -> str:
    if isinstance(node, ast.Constant):
        if node.value is None:
            return YES if arg.kind == "None" else NO
        if isinstance(node.value, str):
            # forward reference
            try:
                inner = ast.parse(node.value, mode="eval").body
            except SyntaxError:
                return MAYBE
            return _match(inner, arg, lookup)
        return MAYBE

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _any_of([_match(node.left, arg, lookup), _match(node.right, arg, lookup)])

    if isinstance(node, ast.Subscript):
        base = _final_name(node.value)
        elements = list(node.slice.elts) if isinstance(node.slice, ast.Tuple) else [node.slice]
        if base == "Optional":
            return _any_of([_match(elements[0], arg, lookup), YES if arg.kind == "None" else NO])
        if base == "Union":
            return _any_of([_match(element, arg, lookup) for element in elements])
        if base == "Literal":
            return _match_literal(elements, arg)
        if base == "Annotated":
            return _match(elements[0], arg, lookup)
        if base in ("type", "Type"):
            return MAYBE if arg.kind == "type" else NO
        return _match_name(base, node.value, arg, lookup)

    if isinstance(node, (ast.Name, ast.Attribute)):
        return _match_name(_final_name(node), node, arg, lookup)

    return MAYBE


def _match_name(name: str | None, node: ast.expr, arg: ArgType, lookup: ClassLookup) -> str:
    if name is None:
        return MAYBE
    if name in ANY_NAMES:
        return YES

    if name in BUILTIN_ACCEPTS:
        if arg.kind == "instance":
            if name in arg.mro:
                return YES
            if name == "Callable":
                return MAYBE
            return NO if arg.complete else MAYBE
        return YES if arg.kind in BUILTIN_ACCEPTS[name] else NO

    parts = _dotted_parts(node)
    info = lookup(parts) if parts else None
    if info is None:
        return MAYBE
    if arg.kind == "instance":
        if info.node_id in arg.mro:
            return YES
        if info.is_protocol:
            return MAYBE
        return NO if arg.complete else MAYBE
    return MAYBE if info.is_protocol else NO


def _match_literal(elements: list[ast.expr], arg: ArgType) -> str:
    values = []
    for element in elements:
        try:
            values.append(ast.literal_eval(element))
        except ValueError:
            # enum members and other non-literal values
            return MAYBE
    if arg.has_literal:
        matched = any(type(value) is type(arg.literal) and value == arg.literal for value in values)
        return YES if matched else NO
    kinds = {"None" if value is None else type(value).__name__ for value in values}
    return MAYBE if arg.kind in kinds else NO


def _any_of(verdicts: list[str]) -> str:
    if YES in verdicts:
        return YES
    if MAYBE in verdicts:
        return MAYBE
    return NO


def _final_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _dotted_parts(node: ast.expr) -> tuple[str, ...] | None:
    if isinstance(node, ast.Name):
        return (node.id,)
    if isinstance(node, ast.Attribute):
        base = _dotted_parts(node.value)
        return (*base, node.attr) if base else None
    return None
