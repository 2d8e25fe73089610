# tests/test_cloning.py
import io
import logging
import socket
import threading
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal

import pytest
from pydantic import BaseModel

from marketplace import cloning
from marketplace.cloning import (
    CIRCULAR_MARKER,
    MAX_GRAPH_DEPTH,
    clone_workflow_data,
    degraded_copy,
    exceeds_depth,
    safe_clone,
)
from marketplace.errors import SerializationError

from conftest import SAMPLE_CONNECTIONS, SAMPLE_NODES, nested


def build_graph():
    return {
        "nodes": [
            {**node, "parameters": dict(node["parameters"])} for node in SAMPLE_NODES
        ],
        "connections": SAMPLE_CONNECTIONS,
        "settings": {"executionOrder": "v1", "timezone": "UTC"},
        "staticData": {"lastRun": datetime(2024, 1, 1, tzinfo=UTC)},
    }


def test_acyclic_graph_is_deep_equal_and_independent():
    """Un grafo sin ciclos se copia campo por campo, sin compartir identidad."""
    graph = build_graph()
    clone = safe_clone(graph)

    assert clone == graph
    assert clone is not graph
    assert clone["nodes"][0] is not graph["nodes"][0]
    assert clone["nodes"][1]["parameters"]["options"] is not graph["nodes"][1]["parameters"]["options"]

    clone["nodes"][1]["parameters"]["options"]["timeout"] = 5
    assert graph["nodes"][1]["parameters"]["options"]["timeout"] == 1000


def test_cycle_is_replaced_by_marker():
    """Un ciclo real termina y deja el marcador en el punto del ciclo."""
    params = {"name": "loop"}
    params["self"] = params
    nodes = [{"type": "n8n-nodes-base.set", "parameters": params}]
    nodes.append(nodes)

    clone = safe_clone({"nodes": nodes})

    assert clone["nodes"][0]["parameters"]["self"] == CIRCULAR_MARKER
    assert clone["nodes"][0]["parameters"]["name"] == "loop"
    assert clone["nodes"][1] == CIRCULAR_MARKER


def test_shared_reference_is_copied_not_marked():
    """Una referencia compartida (DAG) no es un ciclo: se copia en ambas ramas."""
    shared = {"credentials": {"id": "c1"}}
    value = {"a": shared, "b": [shared, shared]}

    clone = safe_clone(value)

    assert clone == {"a": shared, "b": [shared, shared]}
    assert clone["a"] is not clone["b"][0]
    assert CIRCULAR_MARKER not in str(clone)


def test_functions_become_named_placeholders():
    def transform(item):
        return item

    clone = safe_clone({"fn": transform, "lambda": lambda x: x, "builtin": len, "method": "abc".upper})

    assert clone["fn"] == "[Function: test_functions_become_named_placeholders.<locals>.transform]"
    assert clone["lambda"].startswith("[Function: ")
    assert clone["builtin"] == "[Function: len]"
    assert clone["method"] == "[Function: str.upper]"


def test_host_objects_become_typed_placeholders():
    """Sockets, archivos y locks embebidos en parámetros se neutralizan."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        clone = safe_clone(
            {
                "sock": sock,
                "file": io.StringIO("x"),
                "lock": threading.Lock(),
                "gen": (i for i in range(3)),
                "module": socket,
            }
        )
    finally:
        sock.close()

    assert clone["sock"] == "[Unserializable: socket]"
    assert clone["file"] == "[Unserializable: StringIO]"
    assert clone["lock"].startswith("[Unserializable: ")
    assert clone["gen"] == "[Unserializable: generator]"
    assert clone["module"] == "[Unserializable: module]"


def test_models_and_dataclasses_become_dicts():
    class Credentials(BaseModel):
        id: str
        scopes: list

    @dataclass
    class Retry:
        attempts: int
        wait: Decimal

    clone = safe_clone({"creds": Credentials(id="c1", scopes=["a"]), "retry": Retry(3, Decimal("1.5"))})

    assert clone == {"creds": {"id": "c1", "scopes": ["a"]}, "retry": {"attempts": 3, "wait": Decimal("1.5")}}


def test_unknown_objects_become_object_placeholder():
    class Opaque:
        __slots__ = ()

    assert safe_clone({"x": Opaque()}) == {"x": "[Object: Opaque]"}


def test_unexpected_failure_falls_back_to_degraded_copy(monkeypatch, caplog):
    """Si el recorrido falla se guarda una copia de un nivel y se registra la degradación."""

    def boom(self, value):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(cloning._Cloner, "clone", boom)
    value = {"name": "x", "count": 2, "empty": {}, "nested": {"a": 1}, "items": [1, 2]}

    with caplog.at_level(logging.WARNING):
        clone = safe_clone(value)

    assert clone == {"name": "x", "count": 2, "empty": {}, "nested": "[dict]", "items": "[list]"}
    assert "degraded copy" in caplog.text


def test_deep_nesting_is_truncated_without_recursion_error():
    """Anidamiento muy profundo: sin RecursionError, se corta en MAX_GRAPH_DEPTH."""
    clone = safe_clone({"root": nested(5000)})

    current, depth = clone, 1
    while isinstance(current, dict) and ("root" in current or "child" in current):
        current = current.get("root", current.get("child"))
        depth += 1
    assert current == "[Truncated: dict]"
    assert depth == MAX_GRAPH_DEPTH + 1


def test_nesting_up_to_the_limit_is_copied_losslessly():
    value = nested(MAX_GRAPH_DEPTH)
    assert not exceeds_depth(value)
    assert safe_clone(value) == value
    assert exceeds_depth(nested(MAX_GRAPH_DEPTH + 1))


def test_exceeds_depth_terminates_on_cycles():
    loop = {}
    loop["self"] = loop
    assert exceeds_depth(loop)
    assert not exceeds_depth({"a": [1, {"b": 2}]}, limit=3)


def test_deep_node_does_not_degrade_its_siblings():
    """Un nodo con parámetros profundos no afecta a los demás nodos."""
    deep_node = {"name": "Deep", "type": "pkg.set", "parameters": {"body": nested(400)}}
    clone = clone_workflow_data({"nodes": [SAMPLE_NODES[0], deep_node]})

    assert clone["nodes"][0] == SAMPLE_NODES[0]
    assert clone["nodes"][1]["name"] == "Deep"
    assert clone["nodes"][1]["type"] == "pkg.set"
    assert not exceeds_depth(clone["nodes"][1])
    assert "[Truncated: dict]" in str(clone["nodes"][1])


def test_degraded_node_stays_a_dict(monkeypatch):
    """Si la copia de un nodo falla, queda un dict con sus escalares."""

    def boom(self, value):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(cloning._Cloner, "clone", boom)
    clone = clone_workflow_data({"nodes": [SAMPLE_NODES[1]]})

    assert clone["nodes"] == [
        {"name": "Fetch", "type": "n8n-nodes-base.httpRequest", "parameters": "[dict]"}
    ]


def test_non_dict_nodes_are_dropped():
    clone = clone_workflow_data({"nodes": [SAMPLE_NODES[0], "[dict]", None, 3]})
    assert clone["nodes"] == [SAMPLE_NODES[0]]


def test_serialization_error_when_fallback_fails(monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(cloning._Cloner, "clone", boom)
    monkeypatch.setattr(cloning, "degraded_copy", boom)

    with pytest.raises(SerializationError) as exc:
        safe_clone({"a": 1})
    assert "unexpected" not in exc.value.message


def test_degraded_copy_keeps_scalars_and_empty_composites():
    assert degraded_copy([1, "a", None, [], [1], {"k": 1}]) == [1, "a", None, [], "[list]", "[dict]"]
    assert degraded_copy("plain") == "plain"


def test_clone_workflow_data_normalizes_missing_fields():
    clone = clone_workflow_data({"nodes": None})
    assert clone == {"nodes": [], "connections": {}, "settings": None, "staticData": None}


def test_clone_workflow_data_degrades_one_field_only(monkeypatch):
    """La degradación de un campo no afecta a los otros."""
    original = cloning.safe_clone
    graph = build_graph()

    def flaky(value, logger=None):
        if value is graph["settings"]:
            return "[dict]"
        return original(value, logger)

    monkeypatch.setattr(cloning, "safe_clone", flaky)
    clone = clone_workflow_data(graph)

    assert clone["nodes"] == graph["nodes"]
    assert clone["connections"] == graph["connections"]
    assert clone["settings"] is None
