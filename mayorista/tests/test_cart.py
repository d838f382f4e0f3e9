import pytest

from mayorista.services.cart_service import CARRITO_ID


@pytest.fixture
def cart(app, container):
    with app.test_request_context('/'):
        yield container.cart_service


def test_empty_cart(cart):
    assert cart.get_cart() == {
        'items': [], 'total_unidades': 0, 'total_monto': 0, 'items_count': 0,
    }


def test_add_item_expands_curve_and_merges_lines(cart, datos):
    result = cart.add_item('u-acme', datos['remera']['id'], curva_id=datos['curva']['id'],
                           cantidad_curvas=2)
    assert result['ok']
    assert result['carrito'] == {'total_unidades': 8, 'total_monto': 100.0, 'items_count': 1}

    # Misma curva: se suman las curvas en la misma línea
    result = cart.add_item('u-acme', datos['remera']['id'], curva_id=datos['curva']['id'])
    assert result['carrito']['items_count'] == 1

    linea = cart.get_cart()['items'][0]
    assert linea['cantidad_curvas'] == 3
    assert linea['talles_cantidades'] == {'S': 3, 'M': 6, 'L': 3}
    assert linea['cantidad'] == 12
    assert linea['subtotal_usd'] == 150.0
    assert linea['sku'] == 'REM-001'


def test_add_item_with_manual_sizes(cart, datos):
    result = cart.add_item('u-acme', datos['zapatilla']['id'], talles_cantidades={'9': 1, '10': 1})
    assert result['ok']
    assert cart.get_cart()['total_monto'] == 100.0


def test_add_item_rejections(cart, datos):
    # Tier 0 solo para clientes premium
    denegado = cart.add_item('u-acme', datos['gorra']['id'], talles_cantidades={'U': 1})
    assert denegado['status'] == 403
    assert 'Tier 0' in denegado['error']

    assert cart.add_item('u-acme', 'no-existe')['status'] == 404
    assert cart.add_item('u-acme', '')['status'] == 400
    assert cart.add_item('u-acme', datos['remera']['id'], curva_id='no-existe')['status'] == 404
    assert cart.add_item('u-acme', datos['remera']['id'], curva_id=datos['curva']['id'],
                         cantidad_curvas=0)['status'] == 400
    assert cart.add_item('u-acme', datos['remera']['id'],
                         talles_cantidades={'S': 0})['error'] == 'Debe elegir al menos una unidad'
    assert cart.add_item('u-acme', datos['remera']['id'],
                         talles_cantidades={'S': -1})['status'] == 400
    lista = cart.add_item('u-acme', datos['remera']['id'], talles_cantidades=[1, 2])
    assert lista['status'] == 400
    assert 'talles_cantidades' in lista['error']
    assert cart.get_cart()['items_count'] == 0


def test_admin_sees_every_tier(cart, datos):
    assert cart.add_item('u-admin', datos['gorra']['id'], talles_cantidades={'U': 2})['ok']


def test_remove_and_clear(cart, datos):
    cart.add_item('u-acme', datos['remera']['id'], curva_id=datos['curva']['id'])
    cart.add_item('u-acme', datos['zapatilla']['id'], talles_cantidades={'9': 1})

    result = cart.remove_item(datos['remera']['id'])
    assert result['carrito']['items_count'] == 1
    assert cart.get_cart()['items'][0]['sku'] == 'ZAP-001'

    assert cart.clear_cart()['carrito']['items_count'] == 0
    assert cart.get_cart()['items'] == []


def test_confirm_creates_pending_order_and_empties_cart(cart, container, datos):
    cart.add_item('u-acme', datos['remera']['id'], curva_id=datos['curva']['id'], cantidad_curvas=3)
    cart.add_item('u-acme', datos['zapatilla']['id'], talles_cantidades={'9': 1, '10': 1})

    result = cart.confirm('u-acme')
    assert result['ok']
    assert result['total'] == 250.0
    assert cart.get_cart()['items_count'] == 0

    pedido = container.pedido_service.get_pedido(result['pedido_id'])
    assert pedido.estado == 'pendiente'
    assert pedido.cliente_id == datos['acme']['id']
    assert pedido.total_usd == 250.0


def test_confirm_errors_keep_cart(cart, datos):
    assert cart.confirm('u-acme')['status'] == 400

    cart.add_item('u-admin', datos['remera']['id'], curva_id=datos['curva']['id'])
    result = cart.confirm('u-admin')
    assert result['status'] == 403
    assert result['error'] == 'Tu usuario no tiene un cliente asignado'
    assert cart.get_cart()['items_count'] == 1


def test_cart_as_order_projection(cart, datos):
    cart.add_item('u-acme', datos['remera']['id'], curva_id=datos['curva']['id'], cantidad_curvas=3)
    pedido = cart.como_pedido('u-acme')

    assert pedido.id == CARRITO_ID
    assert pedido.nombre_cliente == 'Acme'
    assert pedido.nombre_vendedor == 'Ana'
    assert pedido.total_usd == 150.0
    assert pedido.items[0].sku == 'REM-001'
    assert pedido.items[0].rubro == 'Prendas'
