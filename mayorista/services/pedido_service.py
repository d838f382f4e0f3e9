# ==============================================================================
# SERVICIO DE PEDIDOS
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con pedidos.
# Gestiona el ciclo de vida completo de un pedido:
#
#   pendiente ──► autorizado ──► completado
#       │
#       └──────► rechazado
#
# INVARIANTES DE LÍNEA:
#   talles_cantidades = curva.talles × cantidad_curvas   (si hay curva)
#   cantidad          = Σ talles_cantidades
#   subtotal_usd      = cantidad × precio_unitario
#   pedido.total_usd  = Σ subtotal_usd
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from mayorista.errors import MayoristaError
from mayorista.models.entities import (
    EstadoPedido,
    PedidoConDetalles,
    TRANSICIONES_ESTADO,
)
from mayorista.performance_logger import profile_function
from mayorista.repositories.interfaces import (
    IItemPedidoRepository,
    IPedidoRepository,
    IProductoRepository,
    ITableRepository,
)
from mayorista.services.talles import (
    expandir_curva,
    validar_cantidad_curvas,
    validar_talles_cantidades,
)

logger = logging.getLogger(__name__)


def calcular_linea(precio_unitario: float, talles_cantidades: Dict[str, int]) -> Dict[str, Any]:
    """
    Cantidad y subtotal de una línea.

    Args:
        precio_unitario: Precio del producto en USD
        talles_cantidades: Desglose final talle → unidades

    Returns:
        Dict {'cantidad': int, 'subtotal_usd': float}
    """
    cantidad = sum(talles_cantidades.values())
    return {'cantidad': cantidad, 'subtotal_usd': round(cantidad * precio_unitario, 2)}


def calcular_total(items: List[Dict[str, Any]]) -> float:
    """Total del pedido: suma de subtotales redondeada a centavos."""
    return round(sum(float(i.get('subtotal_usd') or 0) for i in items), 2)


class PedidoService:
    """
    Servicio para gestión de pedidos.

    Responsabilidades:
    - Crear pedidos desde el carrito (única función que crea pedidos)
    - Consultar pedidos con cliente, vendedor, items y productos resueltos
    - Gestionar estados
    - Borrado en cascada de items
    """

    def __init__(
        self,
        pedido_repo: IPedidoRepository,
        item_repo: IItemPedidoRepository,
        producto_repo: IProductoRepository,
        curva_repo: ITableRepository,
        cliente_repo: ITableRepository,
        vendedor_repo: ITableRepository,
    ):
        self.pedido_repo = pedido_repo
        self.item_repo = item_repo
        self.producto_repo = producto_repo
        self.curva_repo = curva_repo
        self.cliente_repo = cliente_repo
        self.vendedor_repo = vendedor_repo

    # =========================================================================
    # CREACIÓN DE PEDIDOS
    # =========================================================================

    def build_lines(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Arma las líneas de pedido con precio, desglose y subtotal.

        Args:
            items: [{producto_id, curva_id?, cantidad_curvas?, talles_cantidades?}]
                   Si hay curva, el desglose sale de la curva; si no, de
                   talles_cantidades tal cual.

        Returns:
            Dict {'ok': True, 'lineas': [...]} o {'ok': False, 'error': str}
        """
        lineas = []
        errors = []
        for item in items:
            if not isinstance(item, dict):
                errors.append("Cada item debe ser un objeto")
                continue
            producto = self.producto_repo.get_by_id(item.get('producto_id'))
            if not producto:
                errors.append(f"Producto {item.get('producto_id')} no encontrado")
                continue

            cantidad_curvas = item.get('cantidad_curvas', 1)
            curva_id = item.get('curva_id')
            try:
                if curva_id:
                    curva = self.curva_repo.get_by_id(curva_id)
                    if not curva:
                        errors.append(f"Curva {curva_id} no encontrada")
                        continue
                    talles = expandir_curva(curva.get('talles') or {}, cantidad_curvas)
                else:
                    validar_cantidad_curvas(cantidad_curvas)
                    talles = validar_talles_cantidades(item.get('talles_cantidades'))
            except ValueError as e:
                errors.append(f"{producto.get('sku')}: {e}")
                continue

            if not talles or sum(talles.values()) <= 0:
                errors.append(f"{producto.get('sku')}: sin unidades")
                continue

            precio = float(producto.get('precio_usd') or 0)
            lineas.append({
                'producto_id': producto['id'],
                'curva_id': curva_id or None,
                'cantidad_curvas': cantidad_curvas,
                'talles_cantidades': talles,
                'precio_unitario': precio,
                **calcular_linea(precio, talles),
            })

        if errors:
            return {'ok': False, 'error': '; '.join(errors)}
        if not lineas:
            return {'ok': False, 'error': 'El pedido no tiene items'}
        return {'ok': True, 'lineas': lineas}

    @profile_function(name="Crear pedido")
    def create_pedido(
        self,
        cliente_id: str,
        items: List[Dict[str, Any]],
        vendedor_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Crea un pedido en estado 'pendiente' con sus items.
        Si no se indica vendedor, se usa el vendedor asignado al cliente.
        Si falla la inserción de un item, el pedido completo se deshace.

        Args:
            cliente_id: Cliente que hace el pedido
            items: Ver build_lines()
            vendedor_id: Vendedor del pedido (opcional)

        Returns:
            Dict {'ok': True, 'pedido': fila, 'items': [...], 'total': float}
            o {'ok': False, 'error': str}

        Raises:
            SchemaViolation / ReferenceViolation si el contrato de las tablas se rompe
        """
        if not items:
            return {'ok': False, 'error': 'El carrito está vacío'}

        cliente = self.cliente_repo.get_by_id(cliente_id)
        if not cliente:
            return {'ok': False, 'error': 'Cliente no encontrado'}

        resultado = self.build_lines(items)
        if not resultado['ok']:
            return resultado
        lineas = resultado['lineas']

        total = calcular_total(lineas)
        pedido = self.pedido_repo.insert({
            'cliente_id': cliente_id,
            'vendedor_id': vendedor_id or cliente.get('vendedor_id'),
            'total_usd': total,
            'estado': EstadoPedido.PENDIENTE.value,
        })

        creados = []
        try:
            for linea in lineas:
                creados.append(self.item_repo.insert({'pedido_id': pedido['id'], **linea}))
        except MayoristaError:
            logger.error("Fallo al crear items del pedido %s, se deshace", pedido['id'])
            self.item_repo.delete_by_pedido(pedido['id'])
            self.pedido_repo.delete(pedido['id'])
            raise

        logger.info("Pedido %s creado: cliente=%s total=%.2f", pedido['id'], cliente_id, total)
        return {'ok': True, 'pedido': pedido, 'items': creados, 'total': total}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def _join(self, pedidos: List[Dict[str, Any]]) -> List[PedidoConDetalles]:
        """Resuelve cliente, vendedor, items y productos (una lectura por tabla)."""
        clientes = {c['id']: c for c in self.cliente_repo.get_all()}
        vendedores = {v['id']: v for v in self.vendedor_repo.get_all()}
        productos = {p['id']: p for p in self.producto_repo.get_all()}
        items = self.item_repo.items_por_pedido()

        resultado = []
        for pedido in pedidos:
            resultado.append(PedidoConDetalles.from_dict({
                **pedido,
                'cliente': clientes.get(pedido.get('cliente_id')),
                'vendedor': vendedores.get(pedido.get('vendedor_id')),
                'items': [
                    {**i, 'producto': productos.get(i.get('producto_id'))}
                    for i in items.get(pedido['id'], [])
                ],
            }))
        return resultado

    def get_pedido(self, pedido_id: str) -> Optional[PedidoConDetalles]:
        pedido = self.pedido_repo.get_by_id(pedido_id)
        if not pedido:
            return None
        return self._join([pedido])[0]

    def list_pedidos(
        self,
        cliente_id: Optional[str] = None,
        vendedor_id: Optional[str] = None,
        estados: Optional[List[str]] = None,
        fecha_desde: Optional[str] = None,
        fecha_hasta: Optional[str] = None,
    ) -> List[PedidoConDetalles]:
        """
        Pedidos con detalles, del más reciente al más antiguo.

        Args:
            estados: Lista de estados aceptados (None = todos)
            fecha_desde / fecha_hasta: 'YYYY-MM-DD' o ISO completo
        """
        pedidos = self.pedido_repo.filtrar(
            cliente_id=cliente_id,
            vendedor_id=vendedor_id,
            estados=estados,
            fecha_desde=fecha_desde,
            fecha_hasta=fecha_hasta,
        )
        return self._join(pedidos)

    def count(self, estados: Optional[List[str]] = None) -> int:
        return len(self.pedido_repo.filtrar(estados=estados))

    # =========================================================================
    # CAMBIO DE ESTADO
    # =========================================================================

    def change_estado(self, pedido_id: str, nuevo_estado: str) -> Dict[str, Any]:
        """
        Cambia el estado de un pedido respetando las transiciones permitidas.

        Returns:
            Dict {'ok': True, 'old_estado', 'new_estado'} o {'ok': False, 'error'}
        """
        try:
            nuevo = EstadoPedido(nuevo_estado)
        except ValueError:
            return {'ok': False, 'error': f'Estado inválido: {nuevo_estado}'}

        pedido = self.pedido_repo.get_by_id(pedido_id)
        if not pedido:
            return {'ok': False, 'error': 'Pedido no encontrado'}

        actual = EstadoPedido(pedido.get('estado', EstadoPedido.PENDIENTE.value))
        if nuevo not in TRANSICIONES_ESTADO[actual]:
            return {
                'ok': False,
                'error': f"Un pedido '{actual.value}' no puede pasar a '{nuevo.value}'"
            }

        self.pedido_repo.update(pedido_id, {'estado': nuevo.value})
        logger.info("Pedido %s: %s -> %s", pedido_id, actual.value, nuevo.value)
        return {'ok': True, 'old_estado': actual.value, 'new_estado': nuevo.value}

    # =========================================================================
    # BORRADO Y MANTENIMIENTO
    # =========================================================================

    def delete_pedido(self, pedido_id: str) -> Optional[Dict[str, Any]]:
        """Elimina un pedido y, en cascada, todos sus items."""
        if not self.pedido_repo.exists(pedido_id):
            return None
        borrados = self.item_repo.delete_by_pedido(pedido_id)
        logger.info("Pedido %s eliminado junto con %d items", pedido_id, borrados)
        return self.pedido_repo.delete(pedido_id)

    def recompute_total(self, pedido_id: str) -> Optional[float]:
        """
        Recalcula total_usd desde los items y lo guarda si difiere.

        Returns:
            Total recalculado o None si el pedido no existe
        """
        pedido = self.pedido_repo.get_by_id(pedido_id)
        if not pedido:
            return None
        total = calcular_total(self.item_repo.get_by_pedido(pedido_id))
        if abs(total - float(pedido.get('total_usd') or 0)) >= 0.005:
            logger.warning("Pedido %s: total %.2f corregido a %.2f",
                           pedido_id, pedido.get('total_usd') or 0, total)
            self.pedido_repo.update(pedido_id, {'total_usd': total})
        return total

    # =========================================================================
    # ESTADÍSTICAS
    # =========================================================================

    def compute_stats(self) -> Dict[str, Any]:
        """
        Resumen de pedidos por estado.

        Returns:
            Dict {'total', 'por_estado', 'total_usd', 'promedio_venta'}
        """
        pedidos = self.pedido_repo.get_all()
        por_estado = {e.value: 0 for e in EstadoPedido}
        por_estado.update(self.pedido_repo.count_by_estado())
        total_usd = sum(float(p.get('total_usd') or 0) for p in pedidos)
        return {
            'total': len(pedidos),
            'por_estado': por_estado,
            'total_usd': round(total_usd, 2),
            'promedio_venta': round(total_usd / len(pedidos), 2) if pedidos else 0.0,
        }
