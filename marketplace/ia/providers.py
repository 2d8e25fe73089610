# marketplace/ia/providers.py
"""
Strategy Pattern: proveedores de descripciones de workflows.

Permite intercambiar entre Mock, Gemini u OpenAI sin cambiar el generador.
Todos reciben el mismo resumen acotado del workflow y devuelven texto plano.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import json


DESCRIPTION_PROMPT = """Based on this workflow JSON, generate a clear, concise description (maximum {max_words} words) explaining what this workflow does.
Focus on the main purpose and outcome, not technical details.

Workflow: {workflow}

Description:"""


def build_prompt(summary: Dict[str, Any], max_words: int = 30) -> str:
    return DESCRIPTION_PROMPT.format(
        max_words=max_words,
        workflow=json.dumps(summary, indent=2, default=str),
    )


class DescriptionProviderStrategy(ABC):
    """Interfaz común para todos los proveedores de descripciones."""

    name: str = "base"

    @abstractmethod
    def describe(self, summary: Dict[str, Any]) -> str:
        """
        Genera una descripción corta del workflow.

        Args:
            summary: Resumen del workflow:
                {
                    "name": str,
                    "nodes": [{"name": str, "type": str, "parameters": dict}],
                    "connections": dict
                }

        Returns:
            Texto de la descripción (puede exceder el máximo de palabras;
            el generador se encarga de truncarlo)
        """
        pass


class MockDescriptionProvider(DescriptionProviderStrategy):
    """
    Proveedor mock determinístico para testing y desarrollo.

    No hace llamadas externas.
    """

    name = "mock"

    def describe(self, summary: Dict[str, Any]) -> str:
        nodes: List[Dict[str, Any]] = list(summary.get("nodes", []))
        types = []
        for node in nodes:
            short = str(node.get("type", "")).split(".")[-1]
            if short and short not in types:
                types.append(short)

        if not types:
            return f"Runs the {summary.get('name', 'workflow')} workflow."
        return f"Runs the {summary.get('name', 'workflow')} workflow with {', '.join(types[:3])}."


class GeminiProvider(DescriptionProviderStrategy):
    """
    Proveedor que usa Google Gemini (Google AI Studio API).
    """

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-1.5-flash",
        timeout: float = 10.0,
        max_words: int = 30,
    ):
        """
        Args:
            api_key: API key de Google AI Studio
            model: Modelo a usar
            timeout: Timeout por request, en segundos
            max_words: Máximo de palabras pedido en el prompt
        """
        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "El paquete 'google-generativeai' no está instalado. "
                "Ejecuta: pip install google-generativeai"
            )

        if not api_key:
            raise ValueError(
                "API key de Gemini no encontrada. "
                "Configura la variable de entorno GEMINI_API_KEY."
            )

        self.api_key = api_key
        self.model_name = model
        self.timeout = timeout
        self.max_words = max_words
        genai.configure(api_key=self.api_key)
        self.model = genai.GenerativeModel(model)

    def describe(self, summary: Dict[str, Any]) -> str:
        response = self.model.generate_content(
            build_prompt(summary, self.max_words),
            generation_config={
                "temperature": 0.2,
                "max_output_tokens": 100,
            },
            request_options={"timeout": self.timeout},
        )
        return response.text.strip()


class OpenAIProvider(DescriptionProviderStrategy):
    """Proveedor que usa OpenAI (chat completions)."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 10.0,
        max_words: int = 30,
    ):
        try:
            from openai import OpenAI
        except ImportError:
            raise ImportError("El paquete 'openai' no está instalado. Ejecuta: pip install openai")

        if not api_key:
            raise ValueError("API key de OpenAI no encontrada.")

        self.api_key = api_key
        self.model = model
        self.max_words = max_words
        # Sin reintentos: el generador ya tiene su propio fallback
        self.client = OpenAI(api_key=self.api_key, timeout=timeout, max_retries=0)

    def describe(self, summary: Dict[str, Any]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "user", "content": build_prompt(summary, self.max_words)},
            ],
            temperature=0.2,
            max_tokens=100,
        )
        content = response.choices[0].message.content
        return (content or "").strip()
