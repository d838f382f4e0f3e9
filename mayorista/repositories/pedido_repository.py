# ==============================================================================
# REPOSITORIO DE PEDIDOS E ITEMS
# ==============================================================================
# Encapsula el acceso a pedidos.json e items_pedido.json
# La relación pedido → items se resuelve en services/pedido_service.py
# ==============================================================================

from typing import Any, Dict, Iterable, List, Optional

from mayorista.models.schema import ITEMS_PEDIDO, PEDIDOS
from mayorista.repositories.base import TableRepository


class PedidoRepository(TableRepository):
    """
    Repositorio de pedidos.

    Formato de datos en pedidos.json:
    {
        "abcdef0123456789": {
            "id": "abcdef0123456789",
            "cliente_id": "a1b2...",
            "vendedor_id": null,
            "total_usd": 150.0,
            "estado": "pendiente",
            "created_at": "2025-03-01T12:00:00+00:00",
            "updated_at": "2025-03-01T12:00:00+00:00"
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, PEDIDOS)

    def filtrar(
        self,
        cliente_id: Optional[str] = None,
        vendedor_id: Optional[str] = None,
        estados: Optional[Iterable[str]] = None,
        fecha_desde: Optional[str] = None,
        fecha_hasta: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Pedidos que cumplen todos los filtros, del más reciente al más antiguo.

        Args:
            cliente_id: Solo pedidos de este cliente
            vendedor_id: Solo pedidos de este vendedor
            estados: Lista de estados aceptados
            fecha_desde: Fecha ISO mínima (inclusive)
            fecha_hasta: Fecha ISO máxima (inclusive, se compara por prefijo de día)

        Returns:
            Lista de filas de pedidos
        """
        estados = set(estados) if estados else None
        resultado = []
        for pedido in self.get_all():
            if cliente_id and pedido.get('cliente_id') != cliente_id:
                continue
            if vendedor_id and pedido.get('vendedor_id') != vendedor_id:
                continue
            if estados and pedido.get('estado') not in estados:
                continue
            creado = pedido.get('created_at', '')
            if fecha_desde and creado < fecha_desde:
                continue
            if fecha_hasta and creado[:len(fecha_hasta)] > fecha_hasta:
                continue
            resultado.append(pedido)
        resultado.sort(key=lambda p: p.get('created_at', ''), reverse=True)
        return resultado

    def count_by_estado(self) -> Dict[str, int]:
        conteo: Dict[str, int] = {}
        for pedido in self.get_all():
            estado = pedido.get('estado', '')
            conteo[estado] = conteo.get(estado, 0) + 1
        return conteo


class ItemPedidoRepository(TableRepository):
    """
    Repositorio de líneas de pedido.

    Formato de datos en items_pedido.json:
    {
        "0f1e...": {
            "id": "0f1e...",
            "pedido_id": "abcdef0123456789",
            "producto_id": "c3d4...",
            "curva_id": "e5f6...",
            "cantidad_curvas": 3,
            "talles_cantidades": {"S": 3, "M": 6, "L": 3},
            "cantidad": 12,
            "precio_unitario": 10.0,
            "subtotal_usd": 120.0,
            "created_at": "..."
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, ITEMS_PEDIDO)

    def get_by_pedido(self, pedido_id: str) -> List[Dict[str, Any]]:
        return self.find_all_by('pedido_id', pedido_id)

    def items_por_pedido(self) -> Dict[str, List[Dict[str, Any]]]:
        """Todos los items agrupados por pedido_id (una sola lectura)."""
        agrupados: Dict[str, List[Dict[str, Any]]] = {}
        for item in self.get_all():
            agrupados.setdefault(item.get('pedido_id'), []).append(item)
        return agrupados

    def delete_by_pedido(self, pedido_id: str) -> int:
        return self.delete_where('pedido_id', pedido_id)
