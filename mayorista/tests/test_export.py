import csv
import io
from datetime import datetime

from conftest import armar_item, armar_pedido
from mayorista.services.export_service import (
    COLUMNAS,
    exportar_pedidos_csv,
    filas_pedidos,
    formatear_fecha,
    nombre_archivo,
)

ACME = {'id': 'c-acme', 'nombre': 'Acme', 'tier': '1'}
ANA = {'id': 'v-ana', 'nombre': 'Ana'}
ZAP = {
    'id': 'p-zap', 'sku': 'ZAP-001', 'nombre': 'Zapatilla', 'precio_usd': 50.0,
    'rubro': 'Calzados', 'genero': 'Mens', 'xfd': '2025-03-01', 'fecha_despacho': '2025-04-15',
}


def test_formatear_fecha():
    assert formatear_fecha('2025-01-15T10:30:00+00:00') == '15/01/2025'
    assert formatear_fecha('2025-03-01') == '01/03/2025'
    assert formatear_fecha(None) == ''
    assert formatear_fecha('pronto') == 'pronto'


def test_one_row_per_size_in_size_order():
    pedido = armar_pedido('abcdef0123456789', ACME, ANA, total=200.0, items=[
        armar_item('i1', ZAP, cantidad=4, precio=50.0, talles={'10': 1, '8': 2, '9': 1, '11': 0}),
    ])
    filas = filas_pedidos([pedido])

    talles = [f[7] for f in filas[:3]]
    assert talles == ['8', '9', '10']
    assert filas[0][:5] == ['abcdef01', '15/01/2025', 'Acme', 'Ana', 'pendiente']
    assert filas[0][5:] == ['ZAP-001', 'Calzados', '8', '2', '50.00', '100.00', '01/03/2025', '15/04/2025']


def test_order_and_grand_totals():
    pedidos = [
        armar_pedido('pedido-uno', ACME, ANA, total=200.0, items=[
            armar_item('i1', ZAP, cantidad=4, precio=50.0, talles={'9': 4}),
        ]),
        armar_pedido('pedido-dos', ACME, None, total=50.0, items=[
            armar_item('i2', ZAP, cantidad=1, precio=50.0, talles={'8': 1}),
        ]),
    ]
    filas = filas_pedidos(pedidos)
    assert len(filas) == 5

    total_pedido = filas[1]
    assert total_pedido[0] == 'pedido-u'
    assert total_pedido[7] == 'TOTAL PEDIDO'
    assert total_pedido[10] == '200.00'
    assert filas[3][3] == 'N/A'

    general = filas[-1]
    assert len(general) == len(COLUMNAS)
    assert general[7] == 'TOTAL GENERAL'
    assert general[10] == '250.00'


def test_missing_product_and_sizes_fall_back():
    pedido = armar_pedido('pedido-x', None, None, total=30.0, items=[
        armar_item('i1', None, cantidad=3, precio=10.0),
    ])
    fila = filas_pedidos([pedido])[0]
    assert fila[2:4] == ['N/A', 'N/A']
    assert fila[5:9] == ['N/A', 'N/A', 'Todas', '3']
    assert fila[11:] == ['', '']


def test_csv_content_has_header_and_totals():
    contenido = exportar_pedidos_csv([
        armar_pedido('pedido-uno', ACME, ANA, total=200.0, items=[
            armar_item('i1', ZAP, cantidad=4, precio=50.0, talles={'9': 4}),
        ]),
    ])
    filas = list(csv.reader(io.StringIO(contenido)))
    assert filas[0] == COLUMNAS
    assert filas[-1][7] == 'TOTAL GENERAL'


def test_empty_export_has_only_grand_total():
    filas = filas_pedidos([])
    assert len(filas) == 1
    assert filas[0][10] == '0.00'


def test_nombre_archivo():
    fecha = datetime(2025, 3, 1)
    assert nombre_archivo('finalizados', fecha) == 'Pedidos_Finalizados_2025-03-01.csv'
    assert nombre_archivo('carritos', fecha) == 'Carritos_Sin_Confirmar_2025-03-01.csv'
    assert nombre_archivo('otro', fecha) == 'Pedidos_2025-03-01.csv'
