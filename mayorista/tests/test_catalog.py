import pytest

from mayorista.errors import UniqueViolation


def test_filter_products(container, datos):
    catalogo = container.catalog_service
    assert [p['sku'] for p in catalogo.filter_products()] == ['GOR-001', 'REM-001', 'ZAP-001']
    assert [p['sku'] for p in catalogo.filter_products(rubro='CALZADOS')] == ['ZAP-001']
    assert [p['sku'] for p in catalogo.filter_products(texto='dry')] == ['REM-001']
    assert [p['sku'] for p in catalogo.filter_products(tiers=['0', '1'])] == ['GOR-001', 'ZAP-001']
    assert catalogo.filter_products(game_plan=True) == []
    assert len(catalogo.filter_products(game_plan=False)) == 3


def test_visible_products_by_tier(container, datos):
    catalogo = container.catalog_service
    assert [p['sku'] for p in catalogo.visible_products('2')] == ['REM-001']
    assert len(catalogo.visible_products('0')) == 3
    assert catalogo.visible_products(None) == []
    assert len(catalogo.visible_products(None, es_admin=True)) == 3


def test_get_visible_product_returns_sizes_and_curves(container, datos):
    result = container.catalog_service.get_visible_product(datos['zapatilla']['id'], '1')
    assert result['ok']
    assert result['talles'][0] == '7'
    assert [c['nombre'] for c in result['curvas']] == ['Mens Calzados - Corta']

    denegado = container.catalog_service.get_visible_product(datos['zapatilla']['id'], '3')
    assert denegado['status'] == 403


def test_distinct_values(container, datos):
    valores = container.catalog_service.distinct_values()
    assert valores['rubro'] == ['Accesorios', 'Calzados', 'Prendas']
    assert valores['genero'] == ['Mens', 'Unisex']
    assert valores['linea'] == []


def test_bulk_create_updates_existing_skus(container, datos):
    result = container.catalog_service.bulk_create([
        {'sku': 'ZAP-001', 'precio_usd': 55.0},
        {'sku': 'MED-001', 'nombre': 'Medias', 'precio_usd': 3.0, 'rubro': 'Accesorios'},
        {'sku': 'MAL-001', 'nombre': 'Mala', 'precio_usd': -1.0},
    ])
    assert result['creados'] == 1
    assert result['actualizados'] == 1
    assert len(result['errores']) == 1
    assert result['errores'][0].startswith('Fila 3')
    assert container.catalog_service.get_by_sku('ZAP-001')['precio_usd'] == 55.0


def test_create_product_rejects_duplicate_sku(container, datos):
    with pytest.raises(UniqueViolation) as exc:
        container.catalog_service.create_product({'sku': 'REM-001', 'nombre': 'X', 'precio_usd': 1.0})
    assert 'REM-001' in str(exc.value)


def test_seed_predefined_curves_is_idempotent(container):
    catalogo = container.catalog_service
    assert catalogo.seed_predefined_curves() == 20
    assert catalogo.seed_predefined_curves() == 0
    mens = catalogo.curvas_for('mens', 'prendas')
    assert [c['nombre'] for c in mens] == ['Mens Prendas - Opción 1', 'Mens Prendas - Opción 2']


def test_clientes_by_tier_and_vendedor(container, datos):
    clientes = container.clientes_service
    assert [c['nombre'] for c in clientes.clientes_by_tier('3')] == ['Sur']
    assert [c['nombre'] for c in clientes.clientes_by_vendedor(datos['ana']['id'])] == ['Acme']
    assert clientes.assign_vendedor(datos['acme']['id'], None)['ok']
    assert clientes.clientes_by_vendedor(datos['ana']['id']) == []
