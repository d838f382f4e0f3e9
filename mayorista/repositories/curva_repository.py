# ==============================================================================
# REPOSITORIO DE CURVAS DE TALLES
# ==============================================================================

from typing import Any, Dict, List, Optional

from mayorista.models.schema import CURVAS
from mayorista.repositories.base import TableRepository


class CurvaRepository(TableRepository):
    """
    Repositorio de curvas.

    Formato de datos en curvas.json:
    {
        "e5f6...": {
            "id": "e5f6...",
            "nombre": "Mens Prendas - Opción 1",
            "genero": "Mens",
            "rubro": "Prendas",
            "talles": {"S": 2, "M": 4, "L": 4, "XL": 3, "XXL": 2},
            "created_at": "..."
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, CURVAS)

    def get_by_genero(self, genero: str, rubro: Optional[str] = None) -> List[Dict[str, Any]]:
        """Curvas de un género (y rubro si se indica), sin distinguir mayúsculas."""
        genero = (genero or '').lower()
        curvas = [c for c in self.get_all() if (c.get('genero') or '').lower() == genero]
        if rubro:
            curvas = [c for c in curvas if (c.get('rubro') or '').lower() == rubro.lower()]
        return curvas
