from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory

from deprecheck.analyzer import UsageAnalyzer
from deprecheck.extract import extract_module
from deprecheck.graph import (
    EDGE_DEFINES,
    EDGE_IMPORTS,
    EDGE_INHERITS,
    build_graph,
    definition_node_id,
    format_signature,
    module_node_id,
)
from deprecheck.models import KEYWORD_ONLY, POSITIONAL_OR_KEYWORD, VAR_KEYWORD, Parameter
from deprecheck.parser import PythonParser
from deprecheck.storage import graph_from_dict, graph_to_dict, load_graph, save_graph


LIB = """
import json
from typing import overload
from typing_extensions import deprecated

@deprecated("Use Spam instead")
class Ham:
    @deprecated("Use eat")
    def chew(self):
        pass

class Spam(Ham):
    pass

@overload
@deprecated("Only str will be allowed")
def foo(x: int) -> str: ...
@overload
def foo(x: str) -> str: ...
def foo(x):
    return json.dumps(x)
"""

APP = """
from lib import Spam

Spam().chew()
"""


def build(**modules):
    parser = PythonParser()
    sources = [
        extract_module(parser.parse_text(text, path=f"{name}.py"), module=name, is_package=False)
        for name, text in modules.items()
    ]
    return build_graph(sources)


def test_nodes_and_defines_edges():
    symbols = build(lib=LIB)
    graph = symbols.graph

    ham = definition_node_id("lib", "Ham")
    chew = definition_node_id("lib", "Ham.chew")
    assert graph.nodes[module_node_id("lib")]["type"] == "Module"
    assert graph.nodes[ham]["type"] == "Class"
    assert graph.nodes[ham]["deprecated"] == "Use Spam instead"
    assert graph.nodes[chew]["deprecated"] == "Use eat"
    assert graph.edges[module_node_id("lib"), ham]["type"] == EDGE_DEFINES
    assert graph.edges[ham, chew]["type"] == EDGE_DEFINES


def test_overloads_are_grouped():
    symbols = build(lib=LIB)
    foo = symbols.definitions[definition_node_id("lib", "foo")]

    assert foo.marker is None
    assert [item.marker.message if item.marker else None for item in foo.overloads] == [
        "Only str will be allowed",
        None,
    ]
    assert foo.overloads[0].marker.target == "def:lib:foo#0"
    node = symbols.graph.nodes[foo.node_id]
    assert node["overloads"][0]["signature"] == "(x: int)"
    assert node["overloads"][1]["deprecated"] is None


def test_import_edges_include_external_modules():
    symbols = build(lib=LIB, app=APP)
    graph = symbols.graph

    assert graph.edges[module_node_id("app"), module_node_id("lib")]["type"] == EDGE_IMPORTS
    assert graph.nodes[module_node_id("json")]["external"] is True


def test_deprecated_definitions():
    symbols = build(lib=LIB)
    names = {info.qualname for info in symbols.deprecated_definitions()}
    assert names == {"Ham", "Ham.chew", "foo"}


def test_inheritance_and_use_edges_after_analysis():
    symbols = build(lib=LIB, app=APP)
    diagnostics = UsageAnalyzer(symbols).analyze()
    graph = symbols.graph

    spam = definition_node_id("lib", "Spam")
    ham = definition_node_id("lib", "Ham")
    assert graph.edges[spam, ham]["type"] == EDGE_INHERITS
    assert [d.message for d in diagnostics] == ["Use eat", "Use Spam instead"]
    assert graph.edges[module_node_id("app"), definition_node_id("lib", "Ham.chew")]["count"] == 1


def test_format_signature():
    params = (
        Parameter("self", POSITIONAL_OR_KEYWORD),
        Parameter("x", POSITIONAL_OR_KEYWORD, "int", has_default=True),
        Parameter("flag", KEYWORD_ONLY, "bool"),
        Parameter("extra", VAR_KEYWORD),
    )
    assert format_signature(params) == "(self, x: int = ..., *, flag: bool, **extra)"
    assert format_signature(None) == "(...)"


def test_graph_roundtrip():
    symbols = build(lib=LIB, app=APP)
    restored = graph_from_dict(graph_to_dict(symbols.graph))
    assert set(restored.nodes) == set(symbols.graph.nodes)

    with TemporaryDirectory() as tmpdir:
        out_path = Path(tmpdir) / "graph.json"
        save_graph(symbols.graph, out_path)
        loaded = load_graph(out_path)

    assert loaded.number_of_nodes() == symbols.graph.number_of_nodes()
    assert loaded.number_of_edges() == symbols.graph.number_of_edges()
    assert loaded.nodes[definition_node_id("lib", "Ham")]["deprecated"] == "Use Spam instead"
