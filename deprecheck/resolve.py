"""Static name resolution over the symbol graph."""

from __future__ import annotations

from dataclasses import dataclass

from .extract import CALL_PART, ExtractedModule
from .graph import EDGE_INHERITS, DefinitionInfo, SymbolGraph
from .log import get_logger
from .models import ArgExpr, Binding, NameUse
from .overloads import ArgType

logger = get_logger(__name__)

# bases that say nothing about what an instance is compatible with
NEUTRAL_BASES = {"object", "Generic", "ABC", "Protocol"}
# bases whose instances are builtin containers
BUILTIN_BASES = {"NamedTuple": "tuple", "TypedDict": "dict"}


@dataclass(frozen=True)
class ModuleTarget:
    name: str


@dataclass(frozen=True)
class DefinitionTarget:
    node_id: str


@dataclass(frozen=True)
class InstanceTarget:
    node_id: str


Target = ModuleTarget | DefinitionTarget | InstanceTarget


@dataclass(frozen=True)
class Step:
    """One resolved segment of a name chain.

    ``implicit`` steps were reached through a local alias, ``self``/``cls``
    or an annotation rather than by naming the definition.
    """

    name: str
    target: Target | None
    bound: bool = False
    via_wildcard: bool = False
    implicit: bool = False


class Resolver:
    def __init__(self, symbols: SymbolGraph) -> None:
        self.symbols = symbols
        self._bases: dict[str, tuple[list[str], list[str]]] = {}
        self._exports: dict[str, set[str]] = {}
        self._packages = {
            ".".join(name.split(".")[:index])
            for name in symbols.modules
            for index in range(1, name.count(".") + 1)
        }

    def resolve_use(self, source: ExtractedModule, use: NameUse) -> list[Step]:
        if use.import_from is not None:
            return [Step(use.parts[0], self.module_member(use.import_from, use.parts[0]))]
        return self.resolve_chain(source, use.scope_id, use.parts)

    def resolve_chain(
        self,
        source: ExtractedModule,
        scope_id: int,
        parts: tuple[str, ...],
        seen: frozenset = frozenset(),
    ) -> list[Step]:
        step = self._lookup(source, scope_id, parts[0], seen)
        steps = [step]
        target = step.target
        for part in parts[1:]:
            if target is None:
                steps.append(Step(part, None))
                continue
            if part == CALL_PART:
                target = self.call_result(target, seen)
                steps.append(Step(part, target))
                continue
            target, bound = self.member(target, part, seen)
            steps.append(Step(part, target, bound=bound))
        return steps

    def member(
        self, target: Target, name: str, seen: frozenset = frozenset()
    ) -> tuple[Target | None, bool]:
        if isinstance(target, ModuleTarget):
            return self.module_member(target.name, name, seen), False

        info = self.symbols.definitions.get(target.node_id)
        if info is None or info.kind != "class":
            return None, False
        found = self.class_member(info.node_id, name, seen)
        if not isinstance(found, DefinitionTarget):
            return found, False

        member_info = self.symbols.definitions.get(found.node_id)
        if member_info is None or member_info.kind != "function":
            return found, False
        if isinstance(target, InstanceTarget):
            return found, not member_info.is_staticmethod
        return found, member_info.is_classmethod

    def module_member(self, module: str, name: str, seen: frozenset = frozenset()) -> Target | None:
        key = ("module", module, name)
        if key in seen:
            return None
        seen = seen | {key}

        source = self.symbols.modules.get(module)
        if source is not None:
            bindings = source.bindings(0, name)
            if bindings:
                return self._from_bindings(source, 0, name, bindings, seen).target
            for star in reversed(source.scopes[0].star_imports):
                if name in self.exported_names(star):
                    return self.module_member(star, name, seen)

        submodule = f"{module}.{name}"
        if submodule in self.symbols.modules or submodule in self._packages:
            return ModuleTarget(submodule)
        return None

    def class_member(self, class_id: str, name: str, seen: frozenset = frozenset()) -> Target | None:
        key = ("class", class_id, name)
        if key in seen:
            return None
        seen = seen | {key}
        for node_id in self.mro(class_id):
            info = self.symbols.definitions[node_id]
            scope_id = info.definition.body_scope_id
            bindings = info.source.bindings(scope_id, name)
            if bindings:
                return self._from_bindings(info.source, scope_id, name, bindings, seen).target
        return None

    def mro(self, class_id: str) -> list[str]:
        """Left-to-right depth-first walk over the resolved bases."""
        order: list[str] = []

        def visit(node_id: str) -> None:
            if node_id in order:
                return
            order.append(node_id)
            for base in self.bases(node_id)[0]:
                visit(base)

        visit(class_id)
        return order

    def bases(self, class_id: str) -> tuple[list[str], list[str]]:
        """Return (resolved base class ids, names of bases outside the analysis)."""
        if class_id in self._bases:
            return self._bases[class_id]
        self._bases[class_id] = ([], [])

        info = self.symbols.definitions[class_id]
        resolved: list[str] = []
        external: list[str] = []
        for chain in info.definition.bases:
            target = self.resolve_chain(info.source, info.definition.scope_id, chain)[-1].target
            base = self._class_info(target)
            if base is not None and base.node_id != class_id:
                resolved.append(base.node_id)
            else:
                external.append(chain[-1])

        self._bases[class_id] = (resolved, external)
        return resolved, external

    def call_result(self, target: Target | None, seen: frozenset = frozenset()) -> Target | None:
        if not isinstance(target, DefinitionTarget):
            return None
        key = ("call", target.node_id)
        if key in seen:
            return None
        info = self.symbols.definitions.get(target.node_id)
        if info is None:
            return None
        if info.kind == "class":
            return InstanceTarget(info.node_id)
        returns = info.definition.returns
        if returns:
            steps = self.resolve_chain(info.source, info.definition.scope_id, returns, seen | {key})
            return self.instance_of(steps[-1].target)
        return None

    def instance_of(self, target: Target | None) -> Target | None:
        info = self._class_info(target)
        return InstanceTarget(info.node_id) if info is not None else None

    def exported_names(self, module: str, seen: frozenset = frozenset()) -> set[str]:
        """Names a ``from module import *`` brings into scope."""
        if module in self._exports:
            return self._exports[module]
        source = self.symbols.modules.get(module)
        if source is None:
            return set()
        if source.all_names is not None:
            names = set(source.all_names)
        else:
            names = {name for name in source.scopes[0].bindings if not name.startswith("_")}
            for star in source.scopes[0].star_imports:
                if star not in seen and star != module:
                    names |= {
                        name
                        for name in self.exported_names(star, seen | {module})
                        if not name.startswith("_")
                    }
        self._exports[module] = names
        return names

    def describe_argument(self, source: ExtractedModule, scope_id: int, arg: ArgExpr) -> ArgType:
        if arg.kind is not None:
            return ArgType(kind=arg.kind, literal=arg.literal, has_literal=arg.has_literal)
        if not arg.chain:
            return ArgType()
        target = self.resolve_chain(source, scope_id, arg.chain)[-1].target
        if isinstance(target, InstanceTarget):
            return self.instance_type(target.node_id)
        if isinstance(target, DefinitionTarget):
            info = self.symbols.definitions.get(target.node_id)
            if info is not None:
                return ArgType(kind="type" if info.kind == "class" else "function")
        return ArgType()

    def instance_type(self, class_id: str) -> ArgType:
        names: list[str] = []
        complete = True
        for node_id in self.mro(class_id):
            names.append(node_id)
            for external in self.bases(node_id)[1]:
                names.append(external)
                if external in BUILTIN_BASES:
                    names.append(BUILTIN_BASES[external])
                elif external not in NEUTRAL_BASES:
                    complete = False
        names.append("object")
        return ArgType(kind="instance", mro=tuple(names), complete=complete)

    def annotation_class(
        self, source: ExtractedModule, scope_id: int, parts: tuple[str, ...]
    ) -> DefinitionInfo | None:
        return self._class_info(self.resolve_chain(source, scope_id, parts)[-1].target)

    def link_inheritance(self) -> None:
        for node_id, info in self.symbols.definitions.items():
            if info.kind != "class":
                continue
            for order, base in enumerate(self.bases(node_id)[0]):
                self.symbols.graph.add_edge(node_id, base, type=EDGE_INHERITS, order=order)

    def _lookup(self, source: ExtractedModule, scope_id: int, name: str, seen: frozenset) -> Step:
        scope = source.scopes[scope_id]
        innermost = True
        while scope is not None:
            if scope.kind == "class" and not innermost:
                # class bodies are not visible from nested scopes
                scope = source.scopes[scope.parent] if scope.parent is not None else None
                continue
            if scope.kind != "module" and name in scope.globals:
                scope = source.scopes[0]
                innermost = False
                continue
            bindings = scope.bindings.get(name)
            if bindings:
                return self._from_bindings(source, scope.id, name, bindings, seen)
            if scope.kind == "module":
                for star in reversed(scope.star_imports):
                    if name in self.exported_names(star):
                        return Step(name, self.module_member(star, name, seen), via_wildcard=True)
                return Step(name, None)
            scope = source.scopes[scope.parent] if scope.parent is not None else None
            innermost = False
        return Step(name, None)

    def _from_bindings(
        self,
        source: ExtractedModule,
        scope_id: int,
        name: str,
        bindings: list[Binding],
        seen: frozenset,
    ) -> Step:
        distinct = list(dict.fromkeys(bindings))
        if len(distinct) != 1:
            logger.debug("%s is bound %d ways in %s, not resolved", name, len(distinct), source.module)
            return Step(name, None)
        key = ("scope", id(source), scope_id, name)
        if key in seen:
            return Step(name, None)
        seen = seen | {key}

        binding = distinct[0]
        kind = binding.kind
        if kind == "definition":
            info = self.symbols.definition_for(source, binding.target)
            return Step(name, DefinitionTarget(info.node_id) if info else None)
        if kind == "module":
            return Step(name, ModuleTarget(binding.target))
        if kind == "from":
            return Step(name, self.module_member(binding.target, binding.name, seen))
        if kind in ("self", "cls"):
            info = self.symbols.definition_for(source, binding.target)
            if info is None:
                return Step(name, None, implicit=True)
            target = InstanceTarget(info.node_id) if kind == "self" else DefinitionTarget(info.node_id)
            return Step(name, target, implicit=True)
        if kind in ("value", "annotated"):
            target = self.resolve_chain(source, scope_id, binding.value, seen)[-1].target
            if kind == "annotated":
                target = self.instance_of(target)
            return Step(name, target, implicit=True)
        return Step(name, None)

    def _class_info(self, target: Target | None) -> DefinitionInfo | None:
        if not isinstance(target, DefinitionTarget):
            return None
        info = self.symbols.definitions.get(target.node_id)
        if info is None or info.kind != "class":
            return None
        return info
