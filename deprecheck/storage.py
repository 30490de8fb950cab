"""JSON serialization helpers for the symbol graph."""

from __future__ import annotations

import json
from pathlib import Path

import networkx as nx
from networkx.readwrite import json_graph


def graph_to_dict(graph: nx.DiGraph) -> dict:
    return json_graph.node_link_data(graph, edges="links")


def graph_from_dict(data: dict) -> nx.DiGraph:
    return json_graph.node_link_graph(data, directed=True, edges="links")


def save_graph(graph: nx.DiGraph, path: str | Path) -> None:
    Path(path).write_text(json.dumps(graph_to_dict(graph), indent=2), encoding="utf-8")


def load_graph(path: str | Path) -> nx.DiGraph:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return graph_from_dict(data)
