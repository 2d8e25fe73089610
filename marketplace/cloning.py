"""
Safe clone of workflow graph data.

Workflow parameters are arbitrary nested data coming from the editor and from
node executions. They may carry reference cycles, callables or live host
objects (sockets, open files, HTTP connections) that cannot be stored or
shared. `safe_clone` returns an independent, acyclic copy where those values
are replaced by inert text placeholders. It only raises when even the
degraded fallback fails.

The traversal uses an explicit stack, so nesting depth never hits the
interpreter recursion limit. Containers nested deeper than MAX_GRAPH_DEPTH
are replaced by a placeholder; the API rejects input beyond that depth, so
accepted graphs are always copied losslessly.
"""
from __future__ import annotations

import dataclasses
import io
import logging
import select
import socket
import ssl
import sqlite3
import threading
import types
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from http.client import HTTPConnection, HTTPResponse
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple
from uuid import UUID

from pydantic import BaseModel

from .errors import SerializationError

CIRCULAR_MARKER = "[Circular Reference]"

# Por debajo del límite de recursión del serializador de pydantic
MAX_GRAPH_DEPTH = 64

_SCALARS = (str, bytes, int, float, bool, complex, Decimal, UUID, Enum, datetime, date, time, timedelta)

# Objetos del host que no se pueden portar a otra instancia ni guardar como JSON.
_HOST_OBJECTS = (
    socket.socket,
    ssl.SSLContext,
    io.IOBase,
    HTTPConnection,
    HTTPResponse,
    sqlite3.Connection,
    sqlite3.Cursor,
    type(threading.Lock()),
    type(threading.RLock()),
    threading.Thread,
    types.ModuleType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    types.FrameType,
    types.TracebackType,
)
if hasattr(select, "epoll"):
    _HOST_OBJECTS += (select.epoll,)

_FUNCTION_TYPES = (
    types.FunctionType,
    types.LambdaType,
    types.MethodType,
    types.BuiltinFunctionType,
    types.BuiltinMethodType,
    staticmethod,
    classmethod,
)


def function_placeholder(value: Any) -> str:
    name = getattr(value, "__qualname__", None) or getattr(value, "__name__", None)
    return f"[Function: {name}]" if name else "[Function]"


def host_object_placeholder(value: Any) -> str:
    return f"[Unserializable: {type(value).__name__}]"


def object_placeholder(value: Any) -> str:
    return f"[Object: {type(value).__name__}]"


def truncated_placeholder(value: Any) -> str:
    return f"[Truncated: {type(value).__name__}]"


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _is_composite(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple, BaseModel)) or _is_dataclass_instance(value)


def _children(value: Any) -> Iterator[Tuple[Any, Any]]:
    """Pares (clave, hijo) de un contenedor; las secuencias usan el índice."""
    if isinstance(value, dict):
        return iter(value.items())
    if isinstance(value, (list, tuple)):
        return enumerate(value)
    if isinstance(value, BaseModel):
        return ((name, getattr(value, name)) for name in type(value).model_fields)
    return ((f.name, getattr(value, f.name)) for f in dataclasses.fields(value))


def exceeds_depth(value: Any, limit: int = MAX_GRAPH_DEPTH) -> bool:
    """True si hay dicts/listas anidados más de `limit` niveles. Termina aunque haya ciclos."""
    stack: List[Tuple[Any, int]] = [(value, 1)]
    while stack:
        current, level = stack.pop()
        if isinstance(current, dict):
            children = current.values()
        elif isinstance(current, (list, tuple)):
            children = current
        else:
            continue
        if level > limit:
            return True
        stack.extend((child, level + 1) for child in children)
    return False


@dataclasses.dataclass
class _Frame:
    source: Any
    target: Any
    children: Iterator[Tuple[Any, Any]]
    key: Any
    depth: int

    def put(self, key: Any, value: Any) -> None:
        # Los hijos se completan en orden, así que las listas solo necesitan append
        if isinstance(self.target, list):
            self.target.append(value)
        else:
            self.target[key] = value

    def result(self) -> Any:
        return tuple(self.target) if isinstance(self.source, tuple) else self.target


class _Cloner:
    """
    Recorrido en profundidad iterativo con un conjunto de ancestros ("seen").

    Solo los contenedores de la rama actual (los que están en la pila) están
    en `seen`: un mismo dict referenciado desde dos ramas distintas (DAG) se
    copia dos veces, y solo una arista hacia un ancestro se reemplaza por
    CIRCULAR_MARKER.
    """

    def __init__(self, max_depth: int = MAX_GRAPH_DEPTH) -> None:
        self.max_depth = max_depth
        self.seen: Set[int] = set()

    def clone(self, value: Any) -> Any:
        if not _is_composite(value):
            return self._leaf(value)

        stack = [self._open(value, None, 1)]
        while True:
            frame = stack[-1]
            child_frame = None
            for key, child in frame.children:
                if not _is_composite(child):
                    frame.put(key, self._leaf(child))
                elif id(child) in self.seen:
                    frame.put(key, CIRCULAR_MARKER)
                elif frame.depth >= self.max_depth:
                    frame.put(key, truncated_placeholder(child))
                else:
                    child_frame = self._open(child, key, frame.depth + 1)
                    break

            if child_frame is not None:
                stack.append(child_frame)
                continue

            stack.pop()
            self.seen.discard(id(frame.source))
            if not stack:
                return frame.result()
            stack[-1].put(frame.key, frame.result())

    def _open(self, value: Any, key: Any, depth: int) -> _Frame:
        self.seen.add(id(value))
        target: Any = [] if isinstance(value, (list, tuple)) else {}
        return _Frame(value, target, _children(value), key, depth)

    def _leaf(self, value: Any) -> Any:
        if value is None or isinstance(value, _SCALARS):
            return value
        if isinstance(value, _HOST_OBJECTS):
            return host_object_placeholder(value)
        if isinstance(value, _FUNCTION_TYPES):
            return function_placeholder(value)
        if isinstance(value, (set, frozenset)):
            # Los elementos de un set ya son hashables (inmutables)
            return type(value)(value)
        if isinstance(value, type) or callable(value):
            return function_placeholder(value)
        return object_placeholder(value)


def _is_empty_composite(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple, set, frozenset)) and len(value) == 0


def _shallow_value(value: Any) -> Any:
    if value is None or isinstance(value, _SCALARS):
        return value
    if _is_empty_composite(value):
        return type(value)()
    return f"[{type(value).__name__}]"


def degraded_copy(value: Any) -> Any:
    """
    Copia de un solo nivel: escalares y contenedores vacíos pasan tal cual,
    los contenedores anidados no vacíos se reemplazan por el nombre de su tipo.
    """
    if isinstance(value, dict):
        return {k: _shallow_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_shallow_value(v) for v in value)
    return _shallow_value(value)


def safe_clone(value: Any, logger: Optional[logging.Logger | logging.LoggerAdapter] = None) -> Any:
    """
    Deep copy `value` without shared identity, cycles, callables or host objects.

    Falls back to `degraded_copy` on any unexpected failure and logs the
    degradation. A dict input always yields a dict. Raises
    SerializationError only if even the degraded copy fails.
    """
    log = logger or logging.getLogger(__name__)
    try:
        return _Cloner().clone(value)
    except Exception as exc:
        log.warning("Safe clone failed (%s); storing a degraded copy", type(exc).__name__)
        try:
            return degraded_copy(value)
        except Exception as inner:
            log.error("Degraded copy failed as well (%s)", type(inner).__name__)
            raise SerializationError("Workflow data could not be copied") from None


def clone_workflow_data(
    source: Dict[str, Any],
    logger: Optional[logging.Logger | logging.LoggerAdapter] = None,
) -> Dict[str, Any]:
    """
    Copia segura de los cuatro campos del grafo: nodes, connections, settings, staticData.

    Cada nodo y cada campo se copian por separado para que una degradación
    afecte solo al elemento problemático. Los nodos que no son dicts se descartan.
    """
    log = logger or logging.getLogger(__name__)

    raw_nodes = source.get("nodes")
    if not isinstance(raw_nodes, (list, tuple)):
        raw_nodes = []
    nodes = []
    for node in raw_nodes:
        if not isinstance(node, dict):
            log.warning("Dropping workflow node of type %s", type(node).__name__)
            continue
        cloned = safe_clone(node, log)
        if isinstance(cloned, dict):
            nodes.append(cloned)

    connections = safe_clone(source.get("connections") or {}, log)
    settings = safe_clone(source.get("settings"), log)
    static_data = safe_clone(source.get("staticData"), log)
    return {
        "nodes": nodes,
        "connections": connections if isinstance(connections, dict) else {},
        "settings": settings if isinstance(settings, dict) else None,
        "staticData": static_data if isinstance(static_data, dict) else None,
    }
