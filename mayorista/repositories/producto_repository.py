# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a productos.json
# El SKU es único en todo el catálogo (ver models/schema.py).
# ==============================================================================

from typing import Any, Dict, List, Optional

from mayorista.models.schema import PRODUCTOS
from mayorista.repositories.base import TableRepository


class ProductoRepository(TableRepository):
    """
    Repositorio de productos del catálogo.

    Formato de datos en productos.json:
    {
        "c3d4...": {
            "id": "c3d4...",
            "sku": "DV1234-001",
            "nombre": "Air Max 90",
            "rubro": "Calzados",
            "genero": "Mens",
            "precio_usd": 55.0,
            "tier": "1",
            "game_plan": false,
            ...
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, PRODUCTOS)

    def get_by_sku(self, sku: str) -> Optional[Dict[str, Any]]:
        return self.find_by('sku', sku)

    def sku_exists(self, sku: str) -> bool:
        return self.get_by_sku(sku) is not None

    def get_all_ordenados(self) -> List[Dict[str, Any]]:
        """Productos ordenados por SKU."""
        return sorted(self.get_all(), key=lambda p: p.get('sku', ''))

    def valores_distintos(self, campo: str) -> List[str]:
        """
        Valores distintos (no vacíos) de una columna, ordenados.

        Args:
            campo: rubro, linea, categoria o genero
        """
        return sorted({p[campo] for p in self.get_all() if p.get(campo)})
