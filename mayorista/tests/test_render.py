import pytest

from conftest import armar_pedido
from mayorista.models.entities import (
    CarritoStats,
    EstadisticasRubro,
    ModoReporte,
    ReportStats,
    ResumenGrupo,
    ResumenRubro,
)
from mayorista.views import (
    VISTAS_POR_MODO,
    formato_moneda,
    id_corto,
    render_panel_reportes,
    render_pedido_card,
)

ACME = {'id': 'c-acme', 'nombre': 'Acme', 'tier': '1'}
ANA = {'id': 'v-ana', 'nombre': 'Ana'}

ESTADISTICAS = CarritoStats(
    calzados=EstadisticasRubro(skus_count=3, cantidad_total=12),
    prendas=EstadisticasRubro(skus_count=1, cantidad_total=4),
)


@pytest.fixture
def ctx(app):
    with app.test_request_context('/'):
        yield


def _panel(stats, modo, titulo='Pedidos Finalizados'):
    return str(render_panel_reportes(
        stats, titulo, modo,
        url_modo=lambda m: f'/reportes?modo={m.value}',
        url_exportar='/reportes/exportar',
    ))


def test_formatting_helpers():
    assert formato_moneda(150) == '$150.00'
    assert formato_moneda(12345.678) == '$12345.68'
    assert id_corto('abcdef0123456789') == '23456789'


def test_card_without_vendor(ctx):
    pedido = armar_pedido('abcdef0123456789', ACME, None, total=150.0)
    html = str(render_pedido_card(pedido, ESTADISTICAS))

    assert 'Acme' in html
    assert 'Pedido #23456789' in html
    assert '15/01/2025' in html
    assert 'Sin vendedor asignado' in html
    assert 'Pendiente' in html
    assert '$150.00' in html
    assert '3 SKUs (12 unidades)' in html
    assert '1 SKUs (4 unidades)' in html


def test_card_with_vendor_and_cart_prefix(ctx):
    pedido = armar_pedido('abcdef0123456789', ACME, ANA, total=150.0, estado='autorizado')
    html = str(render_pedido_card(pedido, ESTADISTICAS, tipo='carrito'))
    assert 'Vendedor: Ana' in html
    assert 'Sin vendedor asignado' not in html
    assert 'Carrito #23456789' in html
    assert 'badge-success' in html


def test_card_requires_statistics(ctx):
    pedido = armar_pedido('abcdef0123456789', ACME, None)
    with pytest.raises(TypeError):
        render_pedido_card(pedido, None)


def test_card_escapes_client_name(ctx):
    pedido = armar_pedido('abcdef0123456789', {'id': 'c', 'nombre': '<b>Acme</b>'}, None)
    html = str(render_pedido_card(pedido, ESTADISTICAS))
    assert '<b>Acme</b>' not in html
    assert '&lt;b&gt;Acme&lt;/b&gt;' in html


def _stats():
    return ReportStats(
        total_pedidos=10,
        total_skus=25,
        total_cantidad=500,
        total_valorizado=12345.67,
        por_cliente={
            'c1': ResumenGrupo('Acme', 6, 15, 300, 10000.0),
            'c2': ResumenGrupo('Sur', 4, 10, 200, 2345.67),
        },
        por_vendedor={'sin_vendedor': ResumenGrupo('Sin vendedor asignado', 10, 25, 500, 12345.67)},
        por_rubro={
            'Prendas': ResumenRubro('Prendas', 5, 100, 345.67),
            'Calzados': ResumenRubro('Calzados', 20, 400, 12000.0),
        },
    )


def test_general_panel_shows_totals(ctx):
    html = _panel(_stats(), ModoReporte.GENERAL)
    assert 'Pedidos Finalizados' in html
    assert 'Total Pedidos' in html
    assert '>10<' in html
    assert '>25<' in html
    assert '>500<' in html
    assert '$12345.67' in html
    assert 'Exportar a Excel' in html
    assert '/reportes/exportar' in html


def test_general_panel_ignores_breakdowns(ctx):
    stats = _stats()
    sin_desglose = ReportStats(10, 25, 500, 12345.67)
    assert _panel(stats, ModoReporte.GENERAL) == _panel(sin_desglose, ModoReporte.GENERAL)


def test_switching_modes_does_not_change_general_view(ctx):
    stats = _stats()
    antes = _panel(stats, ModoReporte.GENERAL)
    _panel(stats, ModoReporte.POR_RUBRO)
    assert _panel(stats, ModoReporte.GENERAL) == antes


def test_carritos_title_changes_first_card(ctx):
    html = _panel(_stats(), ModoReporte.GENERAL, titulo='Carritos Sin Confirmar')
    assert 'Total Carritos' in html
    assert 'Total Pedidos' not in html


def test_grouped_panels(ctx):
    html = _panel(_stats(), ModoReporte.POR_CLIENTE)
    assert html.index('Acme') < html.index('Sur')
    assert '6 pedidos' in html
    assert '15 SKUs' in html
    assert '300 unidades' in html
    assert '$10000.00' in html

    html = _panel(_stats(), ModoReporte.POR_VENDEDOR, titulo='Carritos Sin Confirmar')
    assert '10 carritos' in html
    assert 'Sin vendedor asignado' in html

    html = _panel(_stats(), ModoReporte.POR_RUBRO)
    assert html.index('Calzados') < html.index('Prendas')
    assert '400 unidades' in html


def test_empty_grouped_panel(ctx):
    html = _panel(ReportStats(), ModoReporte.POR_CLIENTE)
    assert 'No hay datos para mostrar' in html


def test_mode_selector_marks_active_mode(ctx):
    html = _panel(_stats(), ModoReporte.POR_RUBRO)
    assert 'href="/reportes?modo=porRubro" class="btn btn-activo"' in html
    assert 'href="/reportes?modo=general" class="btn"' in html


def test_every_mode_has_a_view():
    assert set(VISTAS_POR_MODO) == set(ModoReporte)
    assert ModoReporte.desde_valor('desconocido') is ModoReporte.GENERAL
