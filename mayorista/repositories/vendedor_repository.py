# ==============================================================================
# REPOSITORIO DE VENDEDORES
# ==============================================================================
# Encapsula todo el acceso a vendedores.json
# ==============================================================================

from typing import Any, Dict, List

from mayorista.models.schema import VENDEDORES
from mayorista.repositories.base import TableRepository


class VendedorRepository(TableRepository):
    """
    Repositorio de vendedores.

    Formato de datos en vendedores.json:
    {
        "3f2a...": {"id": "3f2a...", "nombre": "Juan", "email": null, "created_at": "..."}
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, VENDEDORES)

    def get_all_ordenados(self) -> List[Dict[str, Any]]:
        """Vendedores ordenados por nombre."""
        return sorted(self.get_all(), key=lambda v: v.get('nombre', '').lower())
