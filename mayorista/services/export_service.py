# ==============================================================================
# SERVICIO DE EXPORTACIÓN
# ==============================================================================
# Planilla CSV de pedidos: una fila por talle, una fila "TOTAL PEDIDO" al final
# de cada pedido y una fila "TOTAL GENERAL" al final del archivo.
# ==============================================================================

import csv
import io
from datetime import datetime
from typing import Iterable, List, Optional

from mayorista.models.entities import PedidoConDetalles
from mayorista.services.talles import ordenar_cantidades

COLUMNAS = [
    'Pedido ID', 'Fecha', 'Cliente', 'Vendedor', 'Estado',
    'SKU', 'Rubro', 'Talla', 'Cantidad por talla', 'Precio por SKU', 'Subtotal',
    'XFD', 'Fecha de Despacho',
]

NOMBRES_ARCHIVO = {
    'finalizados': 'Pedidos_Finalizados',
    'carritos': 'Carritos_Sin_Confirmar',
}


def formatear_fecha(valor: Optional[str]) -> str:
    """ISO → dd/mm/yyyy. Un valor que no es fecha se devuelve tal cual."""
    if not valor:
        return ''
    try:
        return datetime.fromisoformat(valor.replace('Z', '+00:00')).strftime('%d/%m/%Y')
    except ValueError:
        return valor


def _dinero(valor: float) -> str:
    return f"{valor:.2f}"


def filas_pedidos(pedidos: Iterable[PedidoConDetalles]) -> List[List[str]]:
    """
    Filas de la planilla (sin encabezado).

    Args:
        pedidos: Pedidos con detalles

    Returns:
        Lista de filas listas para csv.writer
    """
    filas: List[List[str]] = []
    total_general = 0.0

    for pedido in pedidos:
        base = [
            pedido.id[:8],
            formatear_fecha(pedido.created_at),
            pedido.cliente.nombre if pedido.cliente else 'N/A',
            pedido.vendedor.nombre if pedido.vendedor else 'N/A',
            pedido.estado,
        ]
        for item in pedido.items:
            producto = item.producto
            sku = producto.sku if producto else 'N/A'
            rubro = (producto.rubro if producto else None) or 'N/A'
            xfd = formatear_fecha(producto.xfd) if producto else ''
            despacho = formatear_fecha(producto.fecha_despacho) if producto else ''
            genero = producto.genero if producto else None

            talles = [(t, n) for t, n in ordenar_cantidades(item.talles_cantidades, genero) if n > 0]
            if not talles:
                talles = [('Todas', item.cantidad)]
            for talla, cantidad in talles:
                filas.append(base + [
                    sku, rubro, talla, str(cantidad),
                    _dinero(item.precio_unitario),
                    _dinero(item.precio_unitario * cantidad),
                    xfd, despacho,
                ])

        filas.append(base + ['', '', 'TOTAL PEDIDO', '', '', _dinero(pedido.total_usd), '', ''])
        total_general += pedido.total_usd

    filas.append(['', '', '', '', '', '', '', 'TOTAL GENERAL', '', '', _dinero(total_general), '', ''])
    return filas


def exportar_pedidos_csv(pedidos: Iterable[PedidoConDetalles]) -> str:
    """Contenido CSV completo (encabezado + filas)."""
    si = io.StringIO()
    writer = csv.writer(si)
    writer.writerow(COLUMNAS)
    writer.writerows(filas_pedidos(pedidos))
    return si.getvalue()


def nombre_archivo(tipo: str, fecha: Optional[datetime] = None) -> str:
    """Pedidos_Finalizados_2025-03-01.csv"""
    fecha = fecha or datetime.now()
    return f"{NOMBRES_ARCHIVO.get(tipo, 'Pedidos')}_{fecha.strftime('%Y-%m-%d')}.csv"
