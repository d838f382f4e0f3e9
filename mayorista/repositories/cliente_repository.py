# ==============================================================================
# REPOSITORIO DE CLIENTES
# ==============================================================================
# Encapsula todo el acceso a clientes.json
# ==============================================================================

from typing import Any, Dict, List

from mayorista.models.schema import CLIENTES
from mayorista.repositories.base import TableRepository


class ClienteRepository(TableRepository):
    """
    Repositorio de clientes.

    Formato de datos en clientes.json:
    {
        "a1b2...": {
            "id": "a1b2...",
            "nombre": "Acme",
            "tier": "2",
            "vendedor_id": "3f2a..." | null,
            "created_at": "..."
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, CLIENTES)

    def get_all_ordenados(self) -> List[Dict[str, Any]]:
        return sorted(self.get_all(), key=lambda c: c.get('nombre', '').lower())

    def get_by_vendedor(self, vendedor_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('vendedor_id', vendedor_id)

    def get_by_tier(self, tier: str) -> List[Dict[str, Any]]:
        return self.find_all_by('tier', tier)

    def search(self, texto: str) -> List[Dict[str, Any]]:
        """Búsqueda por nombre sin distinguir mayúsculas."""
        texto = (texto or '').strip().lower()
        return [c for c in self.get_all_ordenados() if texto in c.get('nombre', '').lower()]
