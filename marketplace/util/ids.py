import uuid

import ulid


def new_id(prefix: str = "") -> str:
    """
    Genera un ID string ordenable por tiempo usando ULID.
    El prefijo identifica el tipo de entidad (wf_, mkt_, prj_, usr_).
    """
    return prefix + ulid.new().str


def new_version_id() -> str:
    """Token opaco de versión; se regenera en cada copia estructural del grafo."""
    return str(uuid.uuid4())
