# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# schema.py   → definición única de cada tabla (Row / Insert / Update)
# entities.py → dataclasses y enums que usan servicios, reportes y vistas
# ==============================================================================

from .schema import TABLAS, Tabla
from .entities import (
    # Enumeraciones
    Rol,
    Tier,
    EstadoPedido,
    ModoReporte,

    # Catálogo
    Vendedor,
    Cliente,
    Producto,
    Curva,

    # Pedidos
    ItemPedido,
    PedidoConDetalles,

    # Estadísticas
    EstadisticasRubro,
    CarritoStats,
    ResumenGrupo,
    ResumenRubro,
    ReportStats,
)

__all__ = [
    'TABLAS', 'Tabla',
    'Rol', 'Tier', 'EstadoPedido', 'ModoReporte',
    'Vendedor', 'Cliente', 'Producto', 'Curva',
    'ItemPedido', 'PedidoConDetalles',
    'EstadisticasRubro', 'CarritoStats', 'ResumenGrupo', 'ResumenRubro', 'ReportStats',
]
