"""
Módulo de IA del marketplace: descripciones automáticas de workflows.

Componentes principales:
- Providers: implementaciones de proveedores (Strategy Pattern)
- Factory: creación del proveedor desde la configuración
- Descriptions: generador con timeout y fallback heurístico
"""

from .providers import DescriptionProviderStrategy, MockDescriptionProvider, GeminiProvider, OpenAIProvider
from .factory import DescriptionProviderFactory
from .descriptions import DescriptionGenerator, fallback_description, build_workflow_summary, truncate_words

__all__ = [
    "DescriptionProviderStrategy",
    "MockDescriptionProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "DescriptionProviderFactory",
    "DescriptionGenerator",
    "fallback_description",
    "build_workflow_summary",
    "truncate_words",
]
