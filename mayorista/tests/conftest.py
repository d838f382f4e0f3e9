import pytest

from mayorista import create_app
from mayorista.models.entities import PedidoConDetalles


CSRF = 'test-csrf-token'


@pytest.fixture
def app(tmp_path):
    app = create_app(str(tmp_path), config={
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'ENABLE_PROFILING': False,
        'SEED_CURVAS': False,
    })
    return app


@pytest.fixture
def container(app):
    return app.extensions['mayorista']


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def login(client, user_id):
    """Simula la identidad que deja el login externo en la sesión."""
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['csrf_token'] = CSRF
    return CSRF


@pytest.fixture
def datos(container):
    """
    Datos base:
    - vendedor Ana con cliente Acme (tier 1)
    - cliente Sur (tier 3) sin vendedor
    - productos: zapatilla Calzados tier 1, remera Prendas tier 2, gorra premium tier 0
    - curva Mens Prendas {S:1, M:2, L:1}
    - usuarios: u-admin (admin), u-acme (cliente Acme), u-sur (cliente Sur), u-ana (vendedor)
    """
    ana = container.vendedor_repo.insert({'nombre': 'Ana', 'email': 'ana@example.com'})
    acme = container.cliente_repo.insert({'nombre': 'Acme', 'tier': '1', 'vendedor_id': ana['id']})
    sur = container.cliente_repo.insert({'nombre': 'Sur', 'tier': '3'})

    zapatilla = container.producto_repo.insert({
        'sku': 'ZAP-001', 'nombre': 'Zapatilla Runner', 'rubro': 'Calzados',
        'genero': 'Mens', 'precio_usd': 50.0, 'tier': '1',
        'xfd': '2025-03-01', 'fecha_despacho': '2025-04-15',
    })
    remera = container.producto_repo.insert({
        'sku': 'REM-001', 'nombre': 'Remera Dry', 'rubro': 'Prendas',
        'genero': 'Mens', 'precio_usd': 12.5, 'tier': '2',
    })
    gorra = container.producto_repo.insert({
        'sku': 'GOR-001', 'nombre': 'Gorra Premium', 'rubro': 'Accesorios',
        'genero': 'Unisex', 'precio_usd': 20.0, 'tier': '0',
    })
    curva = container.curva_repo.insert({
        'nombre': 'Mens Prendas - Básica', 'genero': 'Mens', 'rubro': 'Prendas',
        'talles': {'S': 1, 'M': 2, 'L': 1},
    })
    curva_calzado = container.curva_repo.insert({
        'nombre': 'Mens Calzados - Corta', 'genero': 'Mens', 'rubro': 'Calzados',
        'talles': {'9': 1, '8': 2, '10': 1},
    })

    container.role_repo.insert({'user_id': 'u-admin', 'role': 'admin'})
    container.role_repo.insert({'user_id': 'u-acme', 'role': 'cliente', 'cliente_id': acme['id']})
    container.role_repo.insert({'user_id': 'u-sur', 'role': 'cliente', 'cliente_id': sur['id']})
    container.role_repo.insert({'user_id': 'u-ana', 'role': 'vendedor', 'vendedor_id': ana['id']})

    return {
        'ana': ana,
        'acme': acme,
        'sur': sur,
        'zapatilla': zapatilla,
        'remera': remera,
        'gorra': gorra,
        'curva': curva,
        'curva_calzado': curva_calzado,
    }


def armar_pedido(id, cliente=None, vendedor=None, total=0.0, estado='pendiente',
                 created_at='2025-01-15T10:30:00+00:00', items=None):
    """PedidoConDetalles armado a mano para tests de reportes y vistas."""
    return PedidoConDetalles.from_dict({
        'id': id,
        'cliente_id': (cliente or {}).get('id', 'cliente-borrado'),
        'vendedor_id': (vendedor or {}).get('id'),
        'total_usd': total,
        'estado': estado,
        'created_at': created_at,
        'cliente': cliente,
        'vendedor': vendedor,
        'items': items or [],
    })


def armar_item(id, producto=None, cantidad=1, precio=10.0, talles=None, producto_id=None):
    return {
        'id': id,
        'pedido_id': 'p',
        'producto_id': producto_id or (producto or {}).get('id', 'producto-borrado'),
        'cantidad': cantidad,
        'precio_unitario': precio,
        'subtotal_usd': round(cantidad * precio, 2),
        'talles_cantidades': talles or {},
        'producto': producto,
    }
