# marketplace/ia/descriptions.py
"""
Generación de descripciones para entradas del marketplace.

El proveedor externo es opcional: si está deshabilitado, tarda más que el
timeout o falla, se usa una descripción heurística construida a partir de
los tipos de nodos. Publicar nunca falla por culpa del proveedor.
"""
import json
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import Any, Dict, List, Optional

from ..errors import ExternalServiceError
from .providers import DescriptionProviderStrategy

DEFAULT_MAX_WORDS = 30
DEFAULT_SUMMARY_MAX_CHARS = 8000


def truncate_words(text: str, max_words: int = DEFAULT_MAX_WORDS) -> str:
    words = text.split()
    if len(words) > max_words:
        return " ".join(words[:max_words])
    return " ".join(words)


def _short_type(node_type: Any) -> str:
    return str(node_type or "").split(".")[-1]


def build_workflow_summary(
    name: str,
    workflow_data: Dict[str, Any],
    max_chars: int = DEFAULT_SUMMARY_MAX_CHARS,
) -> Dict[str, Any]:
    """
    Resumen del workflow para el proveedor: nombre, nodos (nombre, tipo,
    parámetros) y conexiones.

    Si el JSON excede `max_chars` se quitan primero los parámetros, luego las
    conexiones y por último se recortan nodos del final.
    """
    nodes = [
        {
            "name": node.get("name"),
            "type": node.get("type"),
            "parameters": node.get("parameters") or {},
        }
        for node in workflow_data.get("nodes") or []
        if isinstance(node, dict)
    ]
    summary: Dict[str, Any] = {
        "name": name,
        "nodes": nodes,
        "connections": workflow_data.get("connections") or {},
    }

    def size(value: Dict[str, Any]) -> int:
        return len(json.dumps(value, default=str))

    if size(summary) <= max_chars:
        return summary

    summary["nodes"] = [{"name": n["name"], "type": n["type"]} for n in nodes]
    if size(summary) <= max_chars:
        return summary

    summary["connections"] = {}
    while summary["nodes"] and size(summary) > max_chars:
        summary["nodes"].pop()
    return summary


def fallback_description(name: str, nodes: List[Dict[str, Any]]) -> str:
    """
    Descripción heurística: triggers vs acciones y total de nodos.

    Ej.: Workflow "Backup" triggered by scheduleTrigger using httpRequest, s3 (3 nodes total)
    """
    try:
        trigger_nodes: List[str] = []
        action_nodes: List[str] = []
        for node in nodes:
            node_type = str(node.get("type") or "")
            short = _short_type(node_type)
            if not short:
                continue
            if "trigger" in node_type.lower():
                trigger_nodes.append(short)
            else:
                action_nodes.append(short)

        description = f'Workflow "{name}"'

        if trigger_nodes:
            description += f" triggered by {' and '.join(trigger_nodes[:2])}"
            if len(trigger_nodes) > 2:
                description += " and more"

        if action_nodes:
            description += f" using {', '.join(action_nodes[:3])}"
            if len(action_nodes) > 3:
                description += " and more"

        description += f" ({len(nodes)} nodes total)"
        return description
    except Exception:
        # Último recurso
        return f'Workflow "{name}" with {len(nodes)} nodes'


class DescriptionGenerator:
    """
    Coordina el proveedor (opcional) y el fallback heurístico.
    """

    def __init__(
        self,
        provider: Optional[DescriptionProviderStrategy] = None,
        timeout_sec: float = 10.0,
        max_words: int = DEFAULT_MAX_WORDS,
        summary_max_chars: int = DEFAULT_SUMMARY_MAX_CHARS,
        logger: Optional[logging.Logger] = None,
    ):
        self.provider = provider
        self.timeout_sec = timeout_sec
        self.max_words = max_words
        self.summary_max_chars = summary_max_chars
        self.logger = logger or logging.getLogger(__name__)

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    def generate(self, name: str, workflow_data: Dict[str, Any], logger=None) -> str:
        """
        Devuelve la descripción del proveedor truncada a `max_words`, o la
        heurística si el proveedor no está disponible o falla.
        """
        log = logger or self.logger
        nodes = [n for n in workflow_data.get("nodes") or [] if isinstance(n, dict)]

        if self.provider is None:
            log.debug("Auto description generation is disabled, using fallback description")
            return fallback_description(name, nodes)

        summary = build_workflow_summary(name, workflow_data, self.summary_max_chars)
        try:
            text = self._call_provider(summary)
        except ExternalServiceError as exc:
            log.warning("Description provider unavailable (%s), using fallback description", exc.message)
            return fallback_description(name, nodes)

        text = truncate_words(text, self.max_words)
        if not text:
            log.warning("Description provider returned an empty text, using fallback description")
            return fallback_description(name, nodes)
        return text

    def _call_provider(self, summary: Dict[str, Any]) -> str:
        """
        Llama al proveedor en un hilo aparte, acotado por `timeout_sec`.

        Raises:
            ExternalServiceError: por timeout, error del proveedor o respuesta inválida
        """
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="description")
        future = executor.submit(self.provider.describe, summary)
        try:
            text = future.result(timeout=self.timeout_sec)
        except FuturesTimeoutError:
            raise ExternalServiceError(f"timed out after {self.timeout_sec}s") from None
        except Exception as exc:
            raise ExternalServiceError(f"{self.provider.name} failed: {type(exc).__name__}") from exc
        finally:
            # No esperar a un proveedor colgado. El hilo no es daemon: concurrent.futures
            # lo espera al cerrar el intérprete, y queda acotado por el timeout de
            # request que cada proveedor pasa a su SDK (ver providers.py).
            executor.shutdown(wait=False, cancel_futures=True)

        if not isinstance(text, str):
            raise ExternalServiceError(f"{self.provider.name} returned {type(text).__name__}")
        return text
