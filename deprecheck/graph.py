"""NetworkX symbol graph construction from extracted modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import networkx as nx

from .config import DEFAULT_DECORATORS
from .extract import CALL_PART, ExtractedModule
from .log import get_logger
from .models import (
    KEYWORD_ONLY,
    VAR_KEYWORD,
    VAR_POSITIONAL,
    Binding,
    Definition,
    DeprecationMarker,
    Location,
    Parameter,
)

logger = get_logger(__name__)

NODE_MODULE = "Module"
NODE_CLASS = "Class"
NODE_FUNCTION = "Function"

EDGE_DEFINES = "DEFINES"
EDGE_IMPORTS = "IMPORTS"
EDGE_INHERITS = "INHERITS"
EDGE_USES_DEPRECATED = "USES_DEPRECATED"

OVERLOAD_DECORATORS = frozenset({"typing.overload", "typing_extensions.overload", "overload"})


def module_node_id(name: str) -> str:
    return f"module:{name}"


def definition_node_id(module: str, qualname: str) -> str:
    return f"def:{module}:{qualname}"


def overload_target_id(node_id: str, index: int) -> str:
    return f"{node_id}#{index}"


@dataclass(frozen=True)
class OverloadItem:
    index: int
    params: tuple[Parameter, ...] | None
    marker: DeprecationMarker | None
    location: Location


@dataclass(frozen=True)
class DefinitionInfo:
    node_id: str
    source: ExtractedModule
    definition: Definition
    marker: DeprecationMarker | None
    overloads: tuple[OverloadItem, ...] = ()
    decorators: frozenset[str] = frozenset()

    @property
    def kind(self) -> str:
        return self.definition.kind

    @property
    def qualname(self) -> str:
        return self.definition.qualname

    @property
    def is_staticmethod(self) -> bool:
        return "staticmethod" in self.decorators

    @property
    def is_classmethod(self) -> bool:
        return "classmethod" in self.decorators

    @property
    def is_protocol(self) -> bool:
        return any(base[-1] == "Protocol" for base in self.definition.bases)


class SymbolGraph:
    """Graph of analyzed modules and their class and function definitions.

    When a module exists both as ``.py`` and ``.pyi`` the stub provides the
    definitions and markers; both files are still analyzed for uses.
    """

    def __init__(
        self,
        sources: Iterable[ExtractedModule],
        decorators: Iterable[str] = DEFAULT_DECORATORS,
    ) -> None:
        self.graph = nx.DiGraph()
        self.sources = list(sources)
        self.modules: dict[str, ExtractedModule] = {}
        self.definitions: dict[str, DefinitionInfo] = {}
        self._decorators = frozenset(decorators)
        self._scope_owner: dict[tuple[int, int], str] = {}
        # sources whose module name is already taken, keyed by id()
        self._detached: dict[int, str] = {}

        detached: list[ExtractedModule] = []
        for source in self.sources:
            current = self.modules.get(source.module)
            if current is None or (source.is_stub and not current.is_stub):
                self.modules[source.module] = source
            elif current.is_stub == source.is_stub:
                logger.warning(
                    "module %s found at %s and %s, imports resolve to the first",
                    source.module,
                    current.path,
                    source.path,
                )
                self._detached[id(source)] = f"{source.module}@{source.path}"
                detached.append(source)

        for source in [*self.modules.values(), *detached]:
            self._add_module(source)
        for source in [*self.modules.values(), *detached]:
            self._add_import_edges(source)

    def module_key(self, source: ExtractedModule) -> str:
        """Name used for ``source``'s graph nodes; colliding files get their path appended."""
        return self._detached.get(id(source), source.module)

    def owns_definitions(self, source: ExtractedModule) -> bool:
        if id(source) in self._detached:
            return True
        preferred = self.modules.get(source.module)
        if preferred is source:
            return True
        return preferred is not None and preferred.is_stub and not source.is_stub

    def definition_for(self, source: ExtractedModule, qualname: str) -> DefinitionInfo | None:
        if not self.owns_definitions(source):
            return None
        return self.definitions.get(definition_node_id(self.module_key(source), qualname))

    def deprecated_definitions(self) -> list[DefinitionInfo]:
        return [
            info
            for info in self.definitions.values()
            if info.marker is not None or any(item.marker for item in info.overloads)
        ]

    def qualify(self, source: ExtractedModule, scope_id: int, chain: tuple[str, ...]) -> str | None:
        """Expand a decorator's dotted name through the imports in scope.

        Unbound names come back as written; names bound to anything but an
        import or a definition give ``None``.
        """
        head, rest = chain[0], list(chain[1:])
        scope = source.scopes[scope_id]
        while scope is not None:
            bindings = scope.bindings.get(head)
            if bindings:
                binding = bindings[-1]
                if binding.kind == "module":
                    return ".".join([binding.target, *rest])
                if binding.kind == "from":
                    return ".".join([binding.target, binding.name, *rest])
                if binding.kind == "definition":
                    return ".".join([source.module, binding.target, *rest])
                return None
            scope = source.scopes[scope.parent] if scope.parent is not None else None
        return ".".join(chain)

    def _add_module(self, source: ExtractedModule) -> None:
        module_id = module_node_id(self.module_key(source))
        self.graph.add_node(
            module_id,
            type=NODE_MODULE,
            name=source.module,
            path=source.path,
            stub=source.is_stub,
        )

        groups: dict[str, list[Definition]] = {}
        for definition in source.definitions:
            groups.setdefault(definition.qualname, []).append(definition)

        for qualname, items in groups.items():
            info = self._build_definition(source, qualname, items)
            self.definitions[info.node_id] = info
            for item in items:
                self._scope_owner[(id(source), item.body_scope_id)] = info.node_id

            definition = info.definition
            self.graph.add_node(
                info.node_id,
                type=NODE_CLASS if definition.kind == "class" else NODE_FUNCTION,
                name=definition.name,
                qualname=qualname,
                module=source.module,
                path=source.path,
                line=definition.location.line,
                deprecated=info.marker.message if info.marker else None,
                overloads=[
                    {
                        "index": item.index,
                        "line": item.location.line,
                        "signature": format_signature(item.params),
                        "deprecated": item.marker.message if item.marker else None,
                    }
                    for item in info.overloads
                ],
            )
            owner_id = module_id
            if definition.scope_id != 0:
                owner_id = self._scope_owner.get((id(source), definition.scope_id), module_id)
            self.graph.add_edge(owner_id, info.node_id, type=EDGE_DEFINES)

    def _build_definition(
        self, source: ExtractedModule, qualname: str, items: list[Definition]
    ) -> DefinitionInfo:
        node_id = definition_node_id(self.module_key(source), qualname)
        overload_items: list[Definition] = []
        others: list[Definition] = []
        decorators: set[str] = set()
        for item in items:
            names = {
                self.qualify(source, item.scope_id, decorator.name) for decorator in item.decorators
            }
            decorators.update(name for name in names if name and name not in OVERLOAD_DECORATORS)
            if names & OVERLOAD_DECORATORS:
                overload_items.append(item)
            else:
                others.append(item)

        # the implementation is the last definition not marked @overload
        representative = others[-1] if others else items[-1]
        # property accessors and if/else variants share a name; any marked one marks it
        markers = (self._marker(source, item, node_id) for item in others)
        marker = next((item for item in markers if item is not None), None)
        overloads = tuple(
            OverloadItem(
                index=index,
                params=item.params,
                marker=self._marker(source, item, overload_target_id(node_id, index)),
                location=item.location,
            )
            for index, item in enumerate(overload_items)
        )
        return DefinitionInfo(
            node_id=node_id,
            source=source,
            definition=representative,
            marker=marker,
            overloads=overloads,
            decorators=frozenset(decorators),
        )

    def _marker(self, source: ExtractedModule, definition: Definition, target: str) -> DeprecationMarker | None:
        for decorator in definition.decorators:
            name, message = decorator.name, decorator.message
            if not decorator.is_call:
                factory = self._factory(source, definition.scope_id, decorator.name)
                if factory is None:
                    continue
                name, message = factory.value[:-1], factory.message
            if self.qualify(source, definition.scope_id, name) not in self._decorators:
                continue
            if message is None:
                logger.debug("%s: deprecation message is not a string literal, ignored", target)
                continue
            return DeprecationMarker(target=target, message=message, location=definition.location)
        return None

    def _factory(self, source: ExtractedModule, scope_id: int, name: tuple[str, ...]) -> Binding | None:
        """The ``todo = deprecated("...")`` binding a bare ``@todo`` refers to."""
        if len(name) != 1:
            return None
        scope = source.scopes[scope_id]
        while scope is not None:
            bindings = scope.bindings.get(name[0])
            if bindings:
                binding = bindings[-1]
                value = binding.value or ()
                # only a direct call of a dotted name, not ``a().b()``
                if binding.kind == "value" and len(value) > 1 and value[-1] == CALL_PART and CALL_PART not in value[:-1]:
                    return binding
                return None
            scope = source.scopes[scope.parent] if scope.parent is not None else None
        return None

    def _add_import_edges(self, source: ExtractedModule) -> None:
        module_id = module_node_id(self.module_key(source))
        targets: list[str] = []
        for scope in source.scopes:
            targets.extend(scope.star_imports)
            for bindings in scope.bindings.values():
                targets.extend(
                    binding.target for binding in bindings if binding.kind in ("module", "from")
                )

        for target in dict.fromkeys(targets):
            target_id = module_node_id(target)
            if target_id not in self.graph:
                self.graph.add_node(target_id, type=NODE_MODULE, name=target, path=None, external=True)
            if target_id != module_id:
                self.graph.add_edge(module_id, target_id, type=EDGE_IMPORTS)


def build_graph(
    sources: Iterable[ExtractedModule],
    decorators: Iterable[str] = DEFAULT_DECORATORS,
) -> SymbolGraph:
    return SymbolGraph(sources, decorators=decorators)


def format_signature(params: tuple[Parameter, ...] | None) -> str:
    if params is None:
        return "(...)"
    parts: list[str] = []
    keyword_marker_added = False
    for param in params:
        if param.kind == KEYWORD_ONLY and not keyword_marker_added:
            parts.append("*")
            keyword_marker_added = True
        name = param.name
        if param.kind == VAR_POSITIONAL:
            name = f"*{name}"
            keyword_marker_added = True
        elif param.kind == VAR_KEYWORD:
            name = f"**{name}"
        if param.annotation:
            name = f"{name}: {param.annotation}"
        if param.has_default:
            name = f"{name} = ..."
        parts.append(name)
    return f"({', '.join(parts)})"
