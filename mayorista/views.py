# ==============================================================================
# VISTAS DE PRESENTACIÓN - Tarjeta de pedido y panel de reportes
# ==============================================================================
# Funciones puras: reciben datos ya agregados y devuelven HTML.
# No consultan repositorios ni recalculan estadísticas.
# Requieren un app context de Flask (usan render_template).
# ==============================================================================

from datetime import datetime
from typing import Any, Callable, Dict, List

from flask import render_template
from markupsafe import Markup

from mayorista.models.entities import (
    SIN_VENDEDOR,
    CarritoStats,
    EstadoPedido,
    ModoReporte,
    PedidoConDetalles,
    ReportStats,
)

ETIQUETAS_ESTADO = {
    EstadoPedido.PENDIENTE.value: ('Pendiente', 'warning'),
    EstadoPedido.AUTORIZADO.value: ('Autorizado', 'success'),
    EstadoPedido.RECHAZADO.value: ('Rechazado', 'danger'),
    EstadoPedido.COMPLETADO.value: ('Completado', 'info'),
}

ETIQUETAS_MODO = {
    ModoReporte.GENERAL: 'General',
    ModoReporte.POR_CLIENTE: 'Por cliente',
    ModoReporte.POR_VENDEDOR: 'Por vendedor',
    ModoReporte.POR_RUBRO: 'Por rubro',
}


# ==============================================================================
# FORMATO
# ==============================================================================

def formato_moneda(valor: float) -> str:
    """150 → '$150.00'"""
    return f"${valor:.2f}"


def formato_fecha(valor: str) -> str:
    """Timestamp ISO → dd/mm/yyyy. Un valor ilegible se muestra tal cual."""
    if not valor:
        return ''
    try:
        return datetime.fromisoformat(valor.replace('Z', '+00:00')).strftime('%d/%m/%Y')
    except ValueError:
        return valor


def id_corto(pedido_id: str) -> str:
    """Últimos 8 caracteres del id. Solo para mostrar, nunca para buscar."""
    return pedido_id[-8:]


def resumen_rubro(skus_count: int, cantidad_total: int) -> str:
    return f"{skus_count} SKUs ({cantidad_total} unidades)"


# ==============================================================================
# TARJETA DE PEDIDO / CARRITO
# ==============================================================================

def render_pedido_card(pedido: PedidoConDetalles, estadisticas: CarritoStats,
                       tipo: str = 'pedido') -> Markup:
    """
    Tarjeta de resumen de un pedido o carrito.

    Args:
        pedido: Pedido con cliente y vendedor opcionales
        estadisticas: Resumen de Calzados y Prendas del pedido
        tipo: 'pedido' o 'carrito' (cambia el prefijo del número)

    Returns:
        HTML de la tarjeta

    Raises:
        TypeError: Si no se reciben estadísticas
    """
    if estadisticas is None:
        raise TypeError("render_pedido_card requiere las estadísticas del pedido")

    etiqueta, clase = ETIQUETAS_ESTADO.get(pedido.estado, (pedido.estado, 'secondary'))
    tarjeta = {
        'titulo': pedido.nombre_cliente,
        'numero': f"{'Carrito' if tipo == 'carrito' else 'Pedido'} #{id_corto(pedido.id)}",
        'fecha': formato_fecha(pedido.created_at),
        'vendedor': f"Vendedor: {pedido.vendedor.nombre}" if pedido.vendedor else SIN_VENDEDOR,
        'estado': etiqueta,
        'estado_clase': clase,
        'total': formato_moneda(pedido.total_usd),
        'calzados': resumen_rubro(estadisticas.calzados.skus_count,
                                  estadisticas.calzados.cantidad_total),
        'prendas': resumen_rubro(estadisticas.prendas.skus_count,
                                 estadisticas.prendas.cantidad_total),
    }
    return Markup(render_template('pedidos/_card.html', tarjeta=tarjeta))


# ==============================================================================
# PANEL DE REPORTES
# ==============================================================================

def _es_carritos(titulo: str) -> bool:
    return 'carritos' in (titulo or '').lower()


def _vista_general(stats: ReportStats, titulo: str) -> Dict[str, Any]:
    return {
        'tarjetas': [
            ('Total Carritos' if _es_carritos(titulo) else 'Total Pedidos', str(stats.total_pedidos)),
            ('SKUs Únicos', str(stats.total_skus)),
            ('Cantidad Total', str(stats.total_cantidad)),
            ('Valor Total', formato_moneda(stats.total_valorizado)),
        ],
    }


def _filas_grupo(grupos, titulo: str) -> List[Dict[str, str]]:
    unidad = 'carritos' if _es_carritos(titulo) else 'pedidos'
    filas = sorted(grupos.values(), key=lambda g: g.total_valorizado, reverse=True)
    return [
        {
            'nombre': g.nombre,
            'pedidos': f"{g.total_pedidos} {unidad}",
            'skus': f"{g.total_skus} SKUs",
            'cantidad': f"{g.total_cantidad} unidades",
            'valor': formato_moneda(g.total_valorizado),
        }
        for g in filas
    ]


def _vista_por_cliente(stats: ReportStats, titulo: str) -> Dict[str, Any]:
    return {'encabezado': 'Cliente', 'filas': _filas_grupo(stats.por_cliente, titulo)}


def _vista_por_vendedor(stats: ReportStats, titulo: str) -> Dict[str, Any]:
    return {'encabezado': 'Vendedor', 'filas': _filas_grupo(stats.por_vendedor, titulo)}


def _vista_por_rubro(stats: ReportStats, titulo: str) -> Dict[str, Any]:
    filas = sorted(stats.por_rubro.values(), key=lambda r: r.total_valorizado, reverse=True)
    return {
        'encabezado': 'Rubro',
        'filas': [
            {
                'nombre': r.nombre,
                'skus': f"{r.total_skus} SKUs",
                'cantidad': f"{r.total_cantidad} unidades",
                'valor': formato_moneda(r.total_valorizado),
            }
            for r in filas
        ],
    }


# Una entrada por modo: (plantilla parcial, constructor del contexto)
VISTAS_POR_MODO: Dict[ModoReporte, tuple] = {
    ModoReporte.GENERAL: ('reportes/_general.html', _vista_general),
    ModoReporte.POR_CLIENTE: ('reportes/_grupos.html', _vista_por_cliente),
    ModoReporte.POR_VENDEDOR: ('reportes/_grupos.html', _vista_por_vendedor),
    ModoReporte.POR_RUBRO: ('reportes/_rubros.html', _vista_por_rubro),
}

_faltantes = set(ModoReporte) - set(VISTAS_POR_MODO)
if _faltantes:
    raise RuntimeError(f"Modos de reporte sin vista: {sorted(m.value for m in _faltantes)}")


def render_panel_reportes(stats: ReportStats, titulo: str, modo: ModoReporte,
                          url_modo: Callable[[ModoReporte], str], url_exportar: str) -> Markup:
    """
    Panel de reportes con selector de agrupación y enlace de exportación.

    Args:
        stats: Estadísticas ya agregadas (no se recalculan)
        titulo: Título del panel
        modo: Agrupación seleccionada
        url_modo: Función modo → URL para cambiar de agrupación
        url_exportar: URL del endpoint de exportación

    Returns:
        HTML del panel
    """
    modo = ModoReporte(modo)
    plantilla, constructor = VISTAS_POR_MODO[modo]
    contenido = render_template(plantilla, **constructor(stats, titulo))
    selector = [
        {'etiqueta': ETIQUETAS_MODO[m], 'url': url_modo(m), 'activo': m is modo}
        for m in ModoReporte
    ]
    return Markup(render_template(
        'reportes/panel.html',
        titulo=titulo,
        selector=selector,
        contenido=Markup(contenido),
        url_exportar=url_exportar,
    ))
