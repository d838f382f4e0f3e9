# ==============================================================================
# SERVICIO DE REPORTES
# ==============================================================================
# Construye ReportStats a partir de pedidos con detalles.
#
# REGLA PRINCIPAL: cada pedido se atribuye a exactamente UN cliente y a lo sumo
# UN vendedor; cada item a exactamente UN rubro. Lo que no tiene referencia va
# a un grupo de respaldo para que todas las dimensiones concilien:
#   - pedido sin vendedor   → "Sin vendedor asignado"
#   - cliente inexistente   → "Sin cliente"
#   - item sin producto/rubro → "Sin rubro"
#
# Conteo de SKUs: SKUs distintos dentro de cada pedido, sumados entre pedidos.
# En el reporte de carritos el total general cuenta cada SKU una sola vez
# entre todos los carritos; los desgloses mantienen la regla por pedido.
# Valor por cliente / vendedor = Σ total_usd; valor por rubro = Σ subtotal_usd.
# ==============================================================================

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from mayorista.config import TOLERANCIA_CONCILIACION
from mayorista.errors import AggregationMismatch
from mayorista.models.entities import (
    ESTADOS_FINALIZADOS,
    RUBRO_CALZADOS,
    RUBRO_PRENDAS,
    SIN_RUBRO,
    CarritoStats,
    EstadisticasRubro,
    EstadoPedido,
    ItemPedido,
    PedidoConDetalles,
    ReportStats,
    ResumenGrupo,
    ResumenRubro,
)
from mayorista.performance_logger import profile_function

logger = logging.getLogger(__name__)

# Claves de los grupos de respaldo
CLAVE_SIN_VENDEDOR = 'sin_vendedor'
CLAVE_SIN_CLIENTE = 'sin_cliente'


def _clave_sku(item: ItemPedido) -> str:
    return item.sku or item.producto_id


def _rubro_de(item: ItemPedido) -> str:
    return item.rubro or SIN_RUBRO


# ==============================================================================
# AGREGACIÓN
# ==============================================================================

@profile_function(name="Generar reporte")
def generar_reporte(pedidos: Iterable[PedidoConDetalles]) -> ReportStats:
    """
    Agrega un conjunto de pedidos en un ReportStats.

    Args:
        pedidos: Pedidos con cliente, vendedor, items y productos resueltos

    Returns:
        ReportStats con totales y desgloses por cliente, vendedor y rubro
    """
    reporte = ReportStats()
    skus_rubro: Dict[str, int] = defaultdict(int)

    for pedido in pedidos:
        reporte.total_pedidos += 1
        reporte.total_valorizado += pedido.total_usd

        skus_pedido: Set[str] = set()
        skus_por_rubro: Dict[str, Set[str]] = defaultdict(set)
        cantidad_pedido = 0

        for item in pedido.items:
            sku = _clave_sku(item)
            rubro = _rubro_de(item)
            skus_pedido.add(sku)
            skus_por_rubro[rubro].add(sku)
            cantidad_pedido += item.cantidad

            fila_rubro = reporte.por_rubro.setdefault(rubro, ResumenRubro(nombre=rubro))
            fila_rubro.total_cantidad += item.cantidad
            fila_rubro.total_valorizado += item.subtotal_usd

        for rubro, skus in skus_por_rubro.items():
            skus_rubro[rubro] += len(skus)

        reporte.total_skus += len(skus_pedido)
        reporte.total_cantidad += cantidad_pedido

        if pedido.cliente:
            clave_cliente = pedido.cliente_id
        else:
            clave_cliente = CLAVE_SIN_CLIENTE
        if pedido.vendedor and pedido.vendedor_id:
            clave_vendedor = pedido.vendedor_id
        else:
            clave_vendedor = CLAVE_SIN_VENDEDOR

        for grupos, clave, nombre in (
            (reporte.por_cliente, clave_cliente, pedido.nombre_cliente),
            (reporte.por_vendedor, clave_vendedor, pedido.nombre_vendedor),
        ):
            fila = grupos.setdefault(clave, ResumenGrupo(nombre=nombre))
            fila.total_pedidos += 1
            fila.total_skus += len(skus_pedido)
            fila.total_cantidad += cantidad_pedido
            fila.total_valorizado += pedido.total_usd

    for rubro, cantidad in skus_rubro.items():
        reporte.por_rubro[rubro].total_skus = cantidad

    return reporte


def generar_reporte_pedidos(pedidos: Iterable[PedidoConDetalles]) -> ReportStats:
    """Reporte de pedidos finalizados (autorizados o completados)."""
    return generar_reporte(pedidos)


def generar_reporte_carritos(carritos: Iterable[PedidoConDetalles]) -> ReportStats:
    """Reporte de carritos confirmados sin autorizar (pedidos pendientes)."""
    carritos = list(carritos)
    reporte = generar_reporte(carritos)
    reporte.total_skus = len({_clave_sku(item) for carrito in carritos for item in carrito.items})
    return reporte


def verificar_conciliacion(stats: ReportStats,
                           tolerancia: float = TOLERANCIA_CONCILIACION) -> None:
    """
    Verifica que cada dimensión sume el total general.

    Raises:
        AggregationMismatch: Si alguna dimensión difiere en más de la tolerancia
    """
    for dimension, grupos in (
        ('porCliente', stats.por_cliente),
        ('porVendedor', stats.por_vendedor),
        ('porRubro', stats.por_rubro),
    ):
        if not grupos and stats.total_pedidos == 0:
            continue
        suma = sum(g.total_valorizado for g in grupos.values())
        if abs(suma - stats.total_valorizado) > tolerancia:
            raise AggregationMismatch(dimension, stats.total_valorizado, suma)


def calcular_estadisticas_por_rubro(pedido: PedidoConDetalles) -> CarritoStats:
    """
    SKUs distintos y unidades de Calzados y Prendas en un pedido.
    Los items de otros rubros o sin producto no se cuentan.
    """
    skus = {RUBRO_CALZADOS: set(), RUBRO_PRENDAS: set()}
    cantidades = {RUBRO_CALZADOS: 0, RUBRO_PRENDAS: 0}

    for item in pedido.items:
        if not item.producto or not item.sku or not item.rubro:
            continue
        rubro = item.rubro.lower()
        if rubro in skus:
            skus[rubro].add(item.sku)
            cantidades[rubro] += item.cantidad

    return CarritoStats(
        calzados=EstadisticasRubro(len(skus[RUBRO_CALZADOS]), cantidades[RUBRO_CALZADOS]),
        prendas=EstadisticasRubro(len(skus[RUBRO_PRENDAS]), cantidades[RUBRO_PRENDAS]),
    )


# ==============================================================================
# SERVICIO
# ==============================================================================

class ReportsService:
    """
    Servicio de reportes.

    Responsabilidades:
    - Cargar los pedidos de cada reporte (finalizados / carritos)
    - Generar ReportStats
    - Verificar la conciliación y registrar inconsistencias
    """

    def __init__(self, pedidos_loader=None):
        """
        Args:
            pedidos_loader: Función (estados, **filtros) -> List[PedidoConDetalles].
                            Permite inyectar dependencia para testing/migración.
        """
        self._pedidos_loader = pedidos_loader

    def set_pedidos_loader(self, loader):
        """Configura el cargador de pedidos (útil para migración)"""
        self._pedidos_loader = loader

    def _load(self, estados: List[str], **filtros) -> List[PedidoConDetalles]:
        if self._pedidos_loader:
            return self._pedidos_loader(estados=estados, **filtros)
        return []

    def pedidos_finalizados(self, **filtros) -> List[PedidoConDetalles]:
        return self._load([e.value for e in ESTADOS_FINALIZADOS], **filtros)

    def carritos_pendientes(self, **filtros) -> List[PedidoConDetalles]:
        return self._load([EstadoPedido.PENDIENTE.value], **filtros)

    def reporte_finalizados(self, **filtros) -> ReportStats:
        return generar_reporte_pedidos(self.pedidos_finalizados(**filtros))

    def reporte_carritos(self, **filtros) -> ReportStats:
        return generar_reporte_carritos(self.carritos_pendientes(**filtros))

    def conciliar(self, stats: ReportStats, titulo: str = '') -> Optional[str]:
        """
        Verifica la conciliación de un reporte.

        Returns:
            None si concilia, o el mensaje de la inconsistencia (ya registrado en el log)
        """
        try:
            verificar_conciliacion(stats)
        except AggregationMismatch as e:
            logger.error("Reporte '%s' no concilia: %s", titulo, e)
            return str(e)
        return None
