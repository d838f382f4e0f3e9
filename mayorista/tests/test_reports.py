import pytest

from conftest import armar_item, armar_pedido
from mayorista.errors import AggregationMismatch
from mayorista.models.entities import ReportStats, ResumenGrupo
from mayorista.services.reports_service import (
    CLAVE_SIN_CLIENTE,
    CLAVE_SIN_VENDEDOR,
    ReportsService,
    calcular_estadisticas_por_rubro,
    generar_reporte,
    generar_reporte_carritos,
    generar_reporte_pedidos,
    verificar_conciliacion,
)

ACME = {'id': 'c-acme', 'nombre': 'Acme', 'tier': '1'}
SUR = {'id': 'c-sur', 'nombre': 'Sur', 'tier': '3'}
ANA = {'id': 'v-ana', 'nombre': 'Ana'}

ZAP = {'id': 'p-zap', 'sku': 'ZAP-001', 'nombre': 'Zapatilla', 'precio_usd': 50.0, 'rubro': 'Calzados'}
REM = {'id': 'p-rem', 'sku': 'REM-001', 'nombre': 'Remera', 'precio_usd': 12.5, 'rubro': 'Prendas'}
GOR = {'id': 'p-gor', 'sku': 'GOR-001', 'nombre': 'Gorra', 'precio_usd': 20.0, 'rubro': 'Accesorios'}


def _pedidos():
    return [
        # Acme con vendedor: el mismo SKU en dos líneas cuenta una sola vez
        armar_pedido('pedido-1', ACME, ANA, total=310.0, estado='autorizado', items=[
            armar_item('i1', ZAP, cantidad=4, precio=50.0),
            armar_item('i2', ZAP, cantidad=1, precio=50.0),
            armar_item('i3', REM, cantidad=4, precio=15.0),
        ]),
        # Sur sin vendedor
        armar_pedido('pedido-2', SUR, None, total=100.0, estado='completado', items=[
            armar_item('i4', GOR, cantidad=5, precio=20.0),
        ]),
        # Cliente borrado y producto borrado
        armar_pedido('pedido-3', None, ANA, total=30.0, estado='autorizado', items=[
            armar_item('i5', None, cantidad=3, precio=10.0),
        ]),
    ]


def test_generar_reporte_totals():
    stats = generar_reporte(_pedidos())
    assert stats.total_pedidos == 3
    # pedido-1: ZAP + REM = 2, pedido-2: GOR = 1, pedido-3: producto borrado = 1
    assert stats.total_skus == 4
    assert stats.total_cantidad == 4 + 1 + 4 + 5 + 3
    assert stats.total_valorizado == pytest.approx(440.0)


def test_generar_reporte_groups_and_fallback_buckets():
    stats = generar_reporte(_pedidos())

    assert stats.por_cliente['c-acme'].nombre == 'Acme'
    assert stats.por_cliente['c-acme'].total_skus == 2
    assert stats.por_cliente[CLAVE_SIN_CLIENTE].nombre == 'Sin cliente'

    assert stats.por_vendedor['v-ana'].total_pedidos == 2
    assert stats.por_vendedor['v-ana'].total_valorizado == pytest.approx(340.0)
    assert stats.por_vendedor[CLAVE_SIN_VENDEDOR].nombre == 'Sin vendedor asignado'
    assert stats.por_vendedor[CLAVE_SIN_VENDEDOR].total_valorizado == pytest.approx(100.0)

    calzados = stats.por_rubro['Calzados']
    assert calzados.total_skus == 1
    assert calzados.total_cantidad == 5
    assert calzados.total_valorizado == pytest.approx(250.0)
    assert stats.por_rubro['Sin rubro'].total_valorizado == pytest.approx(30.0)


def test_every_dimension_reconciles_to_grand_total():
    stats = generar_reporte(_pedidos())
    for grupos in (stats.por_cliente, stats.por_vendedor, stats.por_rubro):
        assert sum(g.total_valorizado for g in grupos.values()) == pytest.approx(stats.total_valorizado)
    assert sum(g.total_pedidos for g in stats.por_cliente.values()) == stats.total_pedidos
    verificar_conciliacion(stats)


def test_verificar_conciliacion_raises_on_mismatch():
    stats = generar_reporte(_pedidos())
    stats.por_cliente['extra'] = ResumenGrupo(nombre='Fantasma', total_valorizado=5.0)
    with pytest.raises(AggregationMismatch) as exc:
        verificar_conciliacion(stats)
    assert exc.value.dimension == 'porCliente'


def test_empty_report():
    stats = generar_reporte([])
    assert stats.to_dict() == {
        'totalPedidos': 0, 'totalSKUs': 0, 'totalCantidad': 0, 'totalValorizado': 0.0,
        'porCliente': {}, 'porVendedor': {}, 'porRubro': {},
    }
    verificar_conciliacion(stats)


def test_report_stats_round_trip_keys():
    stats = generar_reporte(_pedidos())
    data = stats.to_dict()
    assert set(data['porCliente']['c-acme']) == {
        'nombre', 'totalPedidos', 'totalSKUs', 'totalCantidad', 'totalValorizado'
    }
    assert ReportStats.from_dict(data).por_rubro['Prendas'].total_cantidad == 4


def test_carritos_report_counts_each_sku_once_across_carts():
    carritos = [
        armar_pedido('carrito-1', ACME, ANA, total=50.0, items=[armar_item('i1', ZAP, cantidad=1, precio=50.0)]),
        armar_pedido('carrito-2', SUR, None, total=100.0, items=[armar_item('i2', ZAP, cantidad=2, precio=50.0)]),
    ]
    stats = generar_reporte_carritos(carritos)
    assert stats.total_pedidos == 2
    assert stats.total_skus == 1
    # Los desgloses siguen contando por carrito
    assert stats.por_cliente['c-acme'].total_skus == 1
    assert stats.por_cliente['c-sur'].total_skus == 1
    assert stats.por_rubro['Calzados'].total_skus == 2

    # Finalizados suma los SKUs distintos de cada pedido
    assert generar_reporte_pedidos(carritos).total_skus == 2


def test_pedidos_and_carritos_reports_share_grouping_rules():
    pedidos = _pedidos()
    finalizados = generar_reporte_pedidos(pedidos)
    carritos = generar_reporte_carritos(pedidos)
    assert finalizados.por_cliente == carritos.por_cliente
    assert finalizados.por_vendedor == carritos.por_vendedor
    assert finalizados.por_rubro == carritos.por_rubro


def test_calcular_estadisticas_por_rubro_counts_only_calzados_and_prendas():
    stats = calcular_estadisticas_por_rubro(_pedidos()[0])
    assert stats.calzados.skus_count == 1
    assert stats.calzados.cantidad_total == 5
    assert stats.prendas.skus_count == 1
    assert stats.prendas.cantidad_total == 4

    otros = calcular_estadisticas_por_rubro(_pedidos()[1])
    assert otros.to_dict() == {
        'calzados': {'skusCount': 0, 'cantidadTotal': 0},
        'prendas': {'skusCount': 0, 'cantidadTotal': 0},
    }


def test_reports_service_loads_by_estado():
    pedidos = _pedidos()
    pedidos.append(armar_pedido('pedido-4', ACME, ANA, total=99.0, estado='pendiente'))
    llamadas = []

    def loader(estados, **filtros):
        llamadas.append((tuple(estados), filtros))
        return [p for p in pedidos if p.estado in estados]

    service = ReportsService(loader)
    finalizados = service.reporte_finalizados(fecha_desde='2025-01-01')
    assert finalizados.total_pedidos == 3
    assert llamadas[0] == (('autorizado', 'completado'), {'fecha_desde': '2025-01-01'})

    carritos = service.reporte_carritos()
    assert carritos.total_pedidos == 1
    assert carritos.total_valorizado == 99.0

    assert ReportsService().reporte_finalizados().total_pedidos == 0


def test_reports_service_conciliar_logs_mismatch(caplog):
    stats = generar_reporte(_pedidos())
    service = ReportsService()
    assert service.conciliar(stats, 'Pedidos') is None

    stats.por_rubro.clear()
    with caplog.at_level('ERROR'):
        mensaje = service.conciliar(stats, 'Pedidos')
    assert 'porRubro' in mensaje
    assert 'no concilia' in caplog.text


def test_report_from_stored_orders(container, datos):
    service = container.pedido_service
    p1 = service.create_pedido(datos['acme']['id'], [
        {'producto_id': datos['remera']['id'], 'curva_id': datos['curva']['id'], 'cantidad_curvas': 3},
    ])['pedido']
    service.create_pedido(datos['sur']['id'], [
        {'producto_id': datos['zapatilla']['id'], 'talles_cantidades': {'9': 2}},
    ])
    service.change_estado(p1['id'], 'autorizado')

    finalizados = container.reports_service.reporte_finalizados()
    assert finalizados.total_pedidos == 1
    assert finalizados.total_cantidad == 12
    assert finalizados.total_valorizado == 150.0

    carritos = container.reports_service.reporte_carritos()
    assert carritos.total_pedidos == 1
    assert carritos.por_vendedor[CLAVE_SIN_VENDEDOR].total_valorizado == 100.0
    assert container.reports_service.conciliar(carritos) is None
