"""Report references that bind to deprecated definitions."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterator

from .config import AnalyzerConfig
from .extract import ExtractedModule
from .graph import EDGE_USES_DEPRECATED, DefinitionInfo, SymbolGraph, module_node_id
from .log import get_logger
from .models import (
    Diagnostic,
    DeprecationMarker,
    NameUse,
    ReferenceKind,
    Severity,
    SymbolReference,
)
from .overloads import CallArguments, select_overload
from .resolve import DefinitionTarget, Resolver, Step

logger = get_logger(__name__)

CONSTRUCTOR_METHODS = ("__init__", "__new__")


class UsageAnalyzer:
    def __init__(self, symbols: SymbolGraph, config: AnalyzerConfig | None = None) -> None:
        self.symbols = symbols
        self.config = config or AnalyzerConfig()
        self.resolver = Resolver(symbols)
        self.resolver.link_inheritance()

    def analyze(self) -> list[Diagnostic]:
        if self.config.severity is Severity.IGNORE:
            return []
        diagnostics: list[Diagnostic] = []
        for source in self.symbols.sources:
            diagnostics.extend(self.analyze_module(source))
        return sorted(diagnostics, key=_sort_key)

    def analyze_module(self, source: ExtractedModule) -> list[Diagnostic]:
        if self.config.severity is Severity.IGNORE:
            return []
        if source.ignore_file:
            logger.debug("%s: skipped by ignore-file comment", source.path or source.module)
            return []

        diagnostics: list[Diagnostic] = []
        for use in source.uses:
            reported: set[str] = set()
            for reference, marker in self._check_use(source, use):
                if marker is None or marker.target in reported:
                    continue
                reported.add(marker.target)
                if reference.location.line in source.suppressed_lines:
                    continue
                diagnostics.append(
                    Diagnostic(
                        location=reference.location,
                        message=marker.message,
                        severity=self.config.severity,
                        target=marker.target,
                        reference_kind=reference.reference_kind,
                    )
                )
                self._record_use(source, marker)
        return diagnostics

    def iter_references(self, source: ExtractedModule) -> Iterator[SymbolReference]:
        """Yield every reference in ``source`` that resolves to a definition."""
        for use in source.uses:
            for reference, _marker in self._check_use(source, use):
                yield reference

    def _check_use(
        self, source: ExtractedModule, use: NameUse
    ) -> Iterator[tuple[SymbolReference, DeprecationMarker | None]]:
        steps = self.resolver.resolve_use(source, use)
        last = len(steps) - 1
        for index, step in enumerate(steps):
            if index < use.report_from or step.implicit:
                continue
            if not isinstance(step.target, DefinitionTarget):
                continue
            info = self.symbols.definitions.get(step.target.node_id)
            if info is None:
                continue

            called = index == last and use.call is not None
            reference = SymbolReference(
                location=use.location_of(index),
                resolved_target=info.node_id,
                reference_kind=_kind(use, steps, index, called),
                name=".".join(use.parts[: index + 1]),
            )
            yield reference, info.marker

            if not called:
                continue
            if info.kind == "function" and info.overloads:
                yield from self._overload(source, use, reference, info, step.bound)
            elif info.kind == "class":
                yield from self._constructor(source, use, reference, info)

    def _overload(
        self,
        source: ExtractedModule,
        use: NameUse,
        reference: SymbolReference,
        info: DefinitionInfo,
        bound: bool,
    ) -> Iterator[tuple[SymbolReference, DeprecationMarker | None]]:
        def lookup(parts: tuple[str, ...]):
            return self.resolver.annotation_class(info.source, info.definition.scope_id, parts)

        item = select_overload(info.overloads, self._arguments(source, use), bound, lookup)
        if item is None:
            logger.debug("%s: call to %s matches no single overload", use.location, info.qualname)
            return
        if item.marker is not None:
            yield replace(
                reference,
                resolved_target=item.marker.target,
                reference_kind=ReferenceKind.OVERLOAD,
            ), item.marker

    def _constructor(
        self,
        source: ExtractedModule,
        use: NameUse,
        reference: SymbolReference,
        info: DefinitionInfo,
    ) -> Iterator[tuple[SymbolReference, DeprecationMarker | None]]:
        for name in CONSTRUCTOR_METHODS:
            target = self.resolver.class_member(info.node_id, name)
            if not isinstance(target, DefinitionTarget):
                continue
            method = self.symbols.definitions.get(target.node_id)
            if method is None or method.kind != "function":
                continue
            method_reference = replace(reference, resolved_target=method.node_id)
            yield method_reference, method.marker
            if method.overloads:
                yield from self._overload(source, use, method_reference, method, bound=True)
            return

    def _arguments(self, source: ExtractedModule, use: NameUse) -> CallArguments:
        call = use.call
        describe = self.resolver.describe_argument
        return CallArguments(
            args=tuple(describe(source, use.scope_id, arg) for arg in call.args),
            keywords=tuple((name, describe(source, use.scope_id, arg)) for name, arg in call.keywords),
            star=call.star,
            double_star=call.double_star,
        )

    def _record_use(self, source: ExtractedModule, marker: DeprecationMarker) -> None:
        graph = self.symbols.graph
        module_id = module_node_id(self.symbols.module_key(source))
        target_id = marker.target.split("#", 1)[0]
        if target_id not in graph:
            return
        if not graph.has_edge(module_id, target_id):
            graph.add_edge(module_id, target_id, type=EDGE_USES_DEPRECATED, count=1)
            return
        data = graph.edges[module_id, target_id]
        if data.get("type") == EDGE_USES_DEPRECATED:
            data["count"] += 1
        else:
            # a module using its own top-level definition already has a DEFINES edge
            data["deprecated_uses"] = data.get("deprecated_uses", 0) + 1


def analyze(symbols: SymbolGraph, config: AnalyzerConfig | None = None) -> list[Diagnostic]:
    return UsageAnalyzer(symbols, config).analyze()


def _kind(use: NameUse, steps: list[Step], index: int, called: bool) -> ReferenceKind:
    if use.kind is ReferenceKind.IMPORT:
        return ReferenceKind.IMPORT
    if index == 0 and steps[0].via_wildcard:
        return ReferenceKind.WILDCARD_IMPORT
    if called:
        return ReferenceKind.CALL
    if index > 0:
        return ReferenceKind.ATTRIBUTE
    return ReferenceKind.NAME


def _sort_key(diagnostic: Diagnostic) -> tuple:
    location = diagnostic.location
    return (location.path or "", location.line, location.column, diagnostic.target)
