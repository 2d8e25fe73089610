# marketplace/ia/factory.py
"""
Factory Pattern: creación de proveedores de descripciones según configuración.
"""
import logging
from typing import Optional

from ..config import Settings
from .providers import DescriptionProviderStrategy, MockDescriptionProvider, GeminiProvider, OpenAIProvider

logger = logging.getLogger(__name__)


class DescriptionProviderFactory:
    """
    Factory para crear instancias de proveedores de descripciones.

    "disabled" (o vacío) no crea proveedor: el generador usa la heurística.
    """

    @staticmethod
    def create_provider(settings: Settings) -> Optional[DescriptionProviderStrategy]:
        """
        Crea el proveedor indicado por `settings.ia_provider`.

        Raises:
            ValueError: Si el tipo de proveedor no es válido o falta la API key
            ImportError: Si el SDK del proveedor no está instalado
        """
        provider_type = (settings.ia_provider or "disabled").lower()

        if provider_type in ("disabled", "none", "off"):
            return None

        elif provider_type == "mock":
            return MockDescriptionProvider()

        elif provider_type == "gemini":
            return GeminiProvider(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                timeout=settings.description_timeout_sec,
                max_words=settings.description_max_words,
            )

        elif provider_type == "openai":
            return OpenAIProvider(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                timeout=settings.description_timeout_sec,
                max_words=settings.description_max_words,
            )

        else:
            raise ValueError(
                f"Tipo de proveedor desconocido: {provider_type}. "
                f"Tipos válidos: {', '.join(DescriptionProviderFactory.get_available_providers())}"
            )

    @staticmethod
    def create_from_settings(settings: Settings) -> Optional[DescriptionProviderStrategy]:
        """
        Igual que create_provider, pero una configuración inválida deshabilita
        la generación (se registra el error) en lugar de impedir el arranque.
        """
        try:
            provider = DescriptionProviderFactory.create_provider(settings)
        except (ImportError, ValueError) as exc:
            logger.error("Description provider '%s' disabled: %s", settings.ia_provider, exc)
            return None

        if provider is None:
            logger.info("Auto description generation is disabled; using heuristic descriptions")
        else:
            logger.info("Description provider initialized: %s", provider.name)
        return provider

    @staticmethod
    def get_available_providers() -> list[str]:
        return ["disabled", "mock", "gemini", "openai"]
