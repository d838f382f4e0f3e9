import pytest

from mayorista.errors import ReferenceViolation, SchemaViolation
from mayorista.services.pedido_service import calcular_linea, calcular_total


def _crear(container, datos, **kwargs):
    items = kwargs.pop('items', None) or [
        {'producto_id': datos['remera']['id'], 'curva_id': datos['curva']['id'], 'cantidad_curvas': 3},
        {'producto_id': datos['zapatilla']['id'], 'talles_cantidades': {'9': 1, '10': 1}},
    ]
    return container.pedido_service.create_pedido(datos['acme']['id'], items, **kwargs)


def test_calcular_linea_and_total():
    assert calcular_linea(12.5, {'S': 3, 'M': 6, 'L': 3}) == {'cantidad': 12, 'subtotal_usd': 150.0}
    assert calcular_total([{'subtotal_usd': 150.0}, {'subtotal_usd': 100.0}]) == 250.0
    assert calcular_total([]) == 0.0


def test_create_pedido_expands_curve_and_totals(container, datos):
    result = _crear(container, datos)
    assert result['ok'], result.get('error')

    pedido = result['pedido']
    assert pedido['estado'] == 'pendiente'
    # El vendedor sale del cliente
    assert pedido['vendedor_id'] == datos['ana']['id']

    items = container.item_repo.get_by_pedido(pedido['id'])
    por_producto = {i['producto_id']: i for i in items}
    remera = por_producto[datos['remera']['id']]
    assert remera['talles_cantidades'] == {'S': 3, 'M': 6, 'L': 3}
    assert remera['cantidad'] == 12
    assert remera['subtotal_usd'] == 150.0

    zapatilla = por_producto[datos['zapatilla']['id']]
    assert zapatilla['cantidad'] == 2
    assert zapatilla['subtotal_usd'] == 100.0

    assert pedido['total_usd'] == 250.0
    assert pedido['total_usd'] == sum(i['subtotal_usd'] for i in items)


def test_create_pedido_business_errors(container, datos):
    assert container.pedido_service.create_pedido(datos['acme']['id'], []) == {
        'ok': False, 'error': 'El carrito está vacío'
    }
    sin_cliente = container.pedido_service.create_pedido(
        'no-existe', [{'producto_id': datos['remera']['id'], 'talles_cantidades': {'S': 1}}]
    )
    assert not sin_cliente['ok']

    malo = _crear(container, datos, items=[
        {'producto_id': datos['remera']['id'], 'curva_id': datos['curva']['id'], 'cantidad_curvas': 0},
    ])
    assert not malo['ok']
    assert 'cantidad_curvas' in malo['error']

    vacio = _crear(container, datos, items=[
        {'producto_id': datos['remera']['id'], 'talles_cantidades': {'S': 0}},
    ])
    assert not vacio['ok']
    assert container.pedido_repo.count() == 0


def test_create_pedido_rolls_back_when_an_item_fails(container, datos, monkeypatch):
    original = container.item_repo.insert
    llamadas = []

    def insert_falla(payload):
        llamadas.append(payload)
        if len(llamadas) == 2:
            raise SchemaViolation('items_pedido', ['falla simulada'])
        return original(payload)

    monkeypatch.setattr(container.item_repo, 'insert', insert_falla)
    with pytest.raises(SchemaViolation):
        _crear(container, datos)

    assert container.pedido_repo.count() == 0
    assert container.item_repo.count() == 0


def test_list_pedidos_joins_details_and_filters(container, datos):
    p1 = _crear(container, datos)['pedido']
    p2 = container.pedido_service.create_pedido(
        datos['sur']['id'],
        [{'producto_id': datos['remera']['id'], 'talles_cantidades': {'M': 2}}],
    )['pedido']

    todos = container.pedido_service.list_pedidos()
    assert {p.id for p in todos} == {p1['id'], p2['id']}

    sur = container.pedido_service.list_pedidos(cliente_id=datos['sur']['id'])
    assert [p.id for p in sur] == [p2['id']]
    assert sur[0].nombre_vendedor == 'Sin vendedor asignado'
    assert sur[0].items[0].producto.sku == 'REM-001'

    acme = container.pedido_service.get_pedido(p1['id'])
    assert acme.nombre_cliente == 'Acme'
    assert acme.nombre_vendedor == 'Ana'
    assert len(acme.items) == 2

    assert container.pedido_service.list_pedidos(estados=['autorizado']) == []
    assert container.pedido_service.get_pedido('no-existe') is None


def test_change_estado_follows_transitions(container, datos):
    pedido_id = _crear(container, datos)['pedido']['id']
    service = container.pedido_service

    assert not service.change_estado(pedido_id, 'completado')['ok']
    assert not service.change_estado(pedido_id, 'enviado')['ok']

    result = service.change_estado(pedido_id, 'autorizado')
    assert result == {'ok': True, 'old_estado': 'pendiente', 'new_estado': 'autorizado'}
    assert service.change_estado(pedido_id, 'completado')['ok']
    assert not service.change_estado(pedido_id, 'pendiente')['ok']
    assert service.change_estado('no-existe', 'autorizado')['error'] == 'Pedido no encontrado'


def test_delete_pedido_cascades_items(container, datos):
    pedido_id = _crear(container, datos)['pedido']['id']
    assert container.item_repo.count() == 2
    assert container.pedido_service.delete_pedido(pedido_id)['id'] == pedido_id
    assert container.item_repo.count() == 0
    assert container.pedido_service.delete_pedido(pedido_id) is None


def test_recompute_total_fixes_drift(container, datos):
    pedido = _crear(container, datos)['pedido']
    container.pedido_repo.update(pedido['id'], {'total_usd': 1.0})
    assert container.pedido_service.recompute_total(pedido['id']) == 250.0
    assert container.pedido_repo.get_by_id(pedido['id'])['total_usd'] == 250.0


def test_compute_stats(container, datos):
    p1 = _crear(container, datos)['pedido']
    _crear(container, datos)
    container.pedido_service.change_estado(p1['id'], 'autorizado')

    stats = container.pedido_service.compute_stats()
    assert stats['total'] == 2
    assert stats['por_estado']['pendiente'] == 1
    assert stats['por_estado']['autorizado'] == 1
    assert stats['por_estado']['rechazado'] == 0
    assert stats['total_usd'] == 500.0
    assert stats['promedio_venta'] == 250.0


# ==============================================================================
# POLÍTICA DE BORRADO ENTRE TABLAS
# ==============================================================================

def test_delete_vendedor_nullifies_references(container, datos):
    pedido_id = _crear(container, datos)['pedido']['id']
    container.clientes_service.delete_vendedor(datos['ana']['id'])

    assert container.cliente_repo.get_by_id(datos['acme']['id'])['vendedor_id'] is None
    assert container.pedido_repo.get_by_id(pedido_id)['vendedor_id'] is None
    assert container.role_repo.get_by_user('u-ana')['vendedor_id'] is None
    assert container.pedido_service.get_pedido(pedido_id).nombre_vendedor == 'Sin vendedor asignado'


def test_delete_cliente_is_restricted(container, datos):
    _crear(container, datos)
    with pytest.raises(ReferenceViolation):
        container.clientes_service.delete_cliente(datos['acme']['id'])
    # Sur no tiene pedidos pero sí un usuario ligado
    with pytest.raises(ReferenceViolation):
        container.clientes_service.delete_cliente(datos['sur']['id'])

    nuevo = container.clientes_service.create_cliente({'nombre': 'Libre'})
    assert container.clientes_service.delete_cliente(nuevo['id'])['nombre'] == 'Libre'


def test_delete_producto_and_curva_are_restricted(container, datos):
    _crear(container, datos)
    with pytest.raises(ReferenceViolation):
        container.catalog_service.delete_product(datos['remera']['id'])
    with pytest.raises(ReferenceViolation):
        container.catalog_service.delete_curva(datos['curva']['id'])
    assert container.catalog_service.delete_product(datos['gorra']['id'])['sku'] == 'GOR-001'
    assert container.catalog_service.delete_curva(datos['curva_calzado']['id'])


def test_curve_sizes_are_frozen_once_ordered(container, datos):
    pedido = _crear(container, datos)['pedido']
    catalogo = container.catalog_service
    curva_id = datos['curva']['id']

    with pytest.raises(ReferenceViolation):
        catalogo.update_curva(curva_id, {'talles': {'S': 5, 'M': 5}})

    # Cada item sigue siendo cantidad_curvas × unidades de la curva
    curva = catalogo.get_curva(curva_id)
    items = [i for i in container.item_repo.get_by_pedido(pedido['id']) if i['curva_id'] == curva_id]
    assert items
    for item in items:
        assert item['cantidad'] == item['cantidad_curvas'] * sum(curva['talles'].values())

    # Renombrar, o mandar los mismos talles, sigue permitido
    renombrada = catalogo.update_curva(curva_id, {'nombre': 'Básica', 'talles': {'S': 1, 'M': 2, 'L': 1}})
    assert renombrada['nombre'] == 'Básica'

    # Una curva sin pedidos se puede redefinir
    libre = catalogo.update_curva(datos['curva_calzado']['id'], {'talles': {'9': 2}})
    assert libre['talles'] == {'9': 2}
    assert catalogo.update_curva('no-existe', {'nombre': 'X'}) is None


def test_build_lines_rejects_malformed_items(container, datos):
    lista = container.pedido_service.build_lines([
        {'producto_id': datos['zapatilla']['id'], 'talles_cantidades': [1, 2]},
    ])
    assert not lista['ok']
    assert 'talles_cantidades' in lista['error']

    assert not container.pedido_service.build_lines(['ZAP-001'])['ok']


def test_clientes_service_listings(container, datos):
    clientes = container.clientes_service.list_clientes()
    assert [(c['nombre'], c['vendedor_nombre']) for c in clientes] == [('Acme', 'Ana'), ('Sur', None)]
    assert [c['nombre'] for c in container.clientes_service.list_clientes('ac')] == ['Acme']

    vendedores = container.clientes_service.list_vendedores()
    assert vendedores[0]['clientes_count'] == 1

    assert container.clientes_service.assign_vendedor(datos['sur']['id'], datos['ana']['id'])['ok']
    assert container.clientes_service.counts() == {
        'clientes': 2, 'vendedores': 1, 'clientes_sin_vendedor': 0,
    }
    assert not container.clientes_service.assign_vendedor('no-existe', None)['ok']
