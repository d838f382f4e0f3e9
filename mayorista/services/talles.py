# ==============================================================================
# TALLES Y CURVAS PREDEFINIDAS
# ==============================================================================
# - generar_talles(): talles disponibles según rubro y género del producto
# - ordenar_talles(): orden canónico de talles por género
# - CURVAS_PREDEFINIDAS: curvas por género × rubro × opción
# - expandir_curva(): desglose talle → unidades para N curvas
#
# Calzados usa talles numéricos US; cualquier otro rubro usa talles de ropa.
# ==============================================================================

from dataclasses import dataclass
from typing import Dict, List, Optional


# ==============================================================================
# TALLES POR GÉNERO
# ==============================================================================

_TALLES_UNISEX = [
    '4', '4.5', '5', '5.5', '6', '6.5', '7', '7.5',
    '8', '8.5', '9', '9.5', '10', '10.5', '11', '11.5', '12', '13',
]
_TALLES_NINOS = [
    '10.5', '11', '11.5', '12', '12.5', '13', '13.5', '1', '1.5', '2', '2.5', '3',
]

TALLES_CALZADO: Dict[str, List[str]] = {
    'mens': ['7', '7.5', '8', '8.5', '9', '9.5', '10', '10.5', '11', '11.5', '12', '13'],
    'womens': ['6', '6.5', '7', '7.5', '8', '8.5', '9', '9.5', '10'],
    'unisex': _TALLES_UNISEX,
    'preschool': _TALLES_NINOS,
    'youth': _TALLES_NINOS,
    'infant': ['5', '6', '7', '8', '9', '10'],
    'gradeschool': ['3.5', '4', '4.5', '5', '5.5', '6', '6.5', '7'],
}

_ROPA_ESTANDAR = ['XS', 'S', 'M', 'L', 'XL', 'XXL']
_ROPA_NINOS = ['2T', '3T', '4T', '5T', 'XS', 'S', 'M', 'L']

TALLES_ROPA: Dict[str, List[str]] = {
    'mens': ['S', 'M', 'L', 'XL', 'XXL'],
    'womens': _ROPA_ESTANDAR,
    'unisex': _ROPA_ESTANDAR,
    'preschool': _ROPA_NINOS,
    'gradeschool': _ROPA_NINOS,
    'infant': _ROPA_NINOS,
    'youth': _ROPA_NINOS,
}

# Alias en español
_ALIAS_GENERO = {'hombre': 'mens', 'mujer': 'womens'}

# Orden canónico de talles de calzado por género (incluye 14 y 15 en Mens)
ORDEN_TALLES: Dict[str, List[str]] = {
    'mens': TALLES_CALZADO['mens'] + ['14', '15'],
    'womens': TALLES_CALZADO['womens'],
    'unisex': _TALLES_UNISEX,
    'preschool': _TALLES_NINOS,
    'infant': TALLES_CALZADO['infant'],
    'gradeschool': TALLES_CALZADO['gradeschool'],
    'youth': _TALLES_NINOS,
}


def _normalizar(valor: Optional[str]) -> str:
    valor = (valor or '').strip().lower()
    return _ALIAS_GENERO.get(valor, valor)


def es_calzado(rubro: Optional[str]) -> bool:
    return _normalizar(rubro) in ('calzados', 'calzado')


def generar_talles(rubro: Optional[str], genero: Optional[str]) -> List[str]:
    """
    Talles disponibles para un producto.

    Args:
        rubro: Calzados / Prendas / Accesorios
        genero: Mens, Womens, Unisex, Preschool, ... (o Hombre / Mujer)

    Returns:
        Lista de talles; un género desconocido usa la corrida unisex
    """
    genero = _normalizar(genero)
    if es_calzado(rubro):
        return list(TALLES_CALZADO.get(genero, _TALLES_UNISEX))
    return list(TALLES_ROPA.get(genero, _ROPA_ESTANDAR))


def es_talle_valido(rubro: Optional[str], genero: Optional[str], talle: str) -> bool:
    return talle in generar_talles(rubro, genero)


def ordenar_talles(talles: List[str], genero: Optional[str]) -> List[str]:
    """
    Ordena talles según el orden del género.
    Los talles que no figuran en ese orden van al final, en su orden original.
    """
    orden = ORDEN_TALLES.get(_normalizar(genero), [])
    presentes = set(talles)
    ordenados = [t for t in orden if t in presentes]
    return ordenados + [t for t in talles if t not in orden]


def ordenar_cantidades(cantidades: Dict[str, int], genero: Optional[str]) -> List[tuple]:
    """[(talle, cantidad), ...] en orden canónico."""
    return [(t, cantidades.get(t, 0)) for t in ordenar_talles(list(cantidades), genero)]


# ==============================================================================
# CURVAS PREDEFINIDAS
# ==============================================================================

@dataclass(frozen=True)
class CurvaPredefinida:
    genero: str
    rubro: str
    opcion: int
    talles: Dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.talles.values())

    @property
    def descripcion(self) -> str:
        return f"{self.rubro} {self.genero} - Opción {self.opcion} ({self.total} unidades)"


CURVAS_PREDEFINIDAS: List[CurvaPredefinida] = [
    CurvaPredefinida('Mens', 'Calzados', 1, {
        '7': 1, '7.5': 2, '8': 3, '8.5': 3, '9': 3, '9.5': 3,
        '10': 3, '10.5': 2, '11': 2, '11.5': 1, '12': 1}),
    CurvaPredefinida('Mens', 'Calzados', 2, {
        '7': 1, '7.5': 1, '8': 2, '8.5': 2, '9': 2, '9.5': 2,
        '10': 2, '10.5': 2, '11': 1, '11.5': 1, '12': 1}),
    CurvaPredefinida('Mens', 'Prendas', 1, {'S': 2, 'M': 4, 'L': 4, 'XL': 3, 'XXL': 2}),
    CurvaPredefinida('Mens', 'Prendas', 2, {'S': 1, 'M': 3, 'L': 3, 'XL': 3, 'XXL': 2}),
    CurvaPredefinida('Womens', 'Calzados', 1, {
        '6': 1, '6.5': 2, '7': 3, '7.5': 3, '8': 3, '8.5': 3,
        '9': 3, '9.5': 2, '10': 1}),
    CurvaPredefinida('Womens', 'Calzados', 2, {
        '6': 1, '6.5': 1, '7': 2, '7.5': 2, '8': 2, '8.5': 2,
        '9': 2, '9.5': 1, '10': 1}),
    CurvaPredefinida('Womens', 'Prendas', 1, {
        'XS': 2, 'S': 3, 'M': 4, 'L': 4, 'XL': 3, 'XXL': 2}),
    CurvaPredefinida('Womens', 'Prendas', 2, {
        'XS': 1, 'S': 2, 'M': 3, 'L': 3, 'XL': 3, 'XXL': 3}),
    CurvaPredefinida('Unisex', 'Calzados', 1, {
        '4': 1, '4.5': 1, '5': 2, '5.5': 2, '6': 2, '6.5': 2,
        '7': 2, '7.5': 2, '8': 2, '8.5': 2, '9': 2, '9.5': 2,
        '10': 2, '10.5': 2, '11': 1, '11.5': 1, '12': 1}),
    CurvaPredefinida('Unisex', 'Calzados', 2, {
        '4': 1, '4.5': 1, '5': 1, '5.5': 2, '6': 2, '6.5': 2,
        '7': 2, '7.5': 2, '8': 2, '8.5': 2, '9': 2, '9.5': 2,
        '10': 2, '10.5': 1, '11': 1, '11.5': 1, '12': 1}),
    CurvaPredefinida('Unisex', 'Calzados', 3, {
        '4': 1, '4.5': 1, '5': 1, '5.5': 2, '6': 2, '6.5': 2,
        '7': 2, '7.5': 2, '8': 2, '8.5': 2, '9': 2, '9.5': 2,
        '10': 2, '10.5': 2, '11': 1, '11.5': 1, '12': 1}),
    CurvaPredefinida('Unisex', 'Prendas', 1, {
        'XS': 2, 'S': 3, 'M': 4, 'L': 4, 'XL': 3, 'XXL': 2}),
    CurvaPredefinida('Preschool', 'Calzados', 1, {
        '1': 1, '1.5': 1, '2': 1, '2.5': 1, '3': 1,
        '10.5': 2, '11': 2, '11.5': 2, '12': 2, '12.5': 2, '13': 2, '13.5': 2}),
    CurvaPredefinida('Preschool', 'Calzados', 2, {
        '1': 2, '1.5': 2, '2': 2, '2.5': 2, '3': 2,
        '10.5': 1, '11': 1, '11.5': 1, '12': 1, '12.5': 1, '13': 1, '13.5': 1}),
    CurvaPredefinida('Infant', 'Calzados', 1, {
        '5': 1, '6': 1, '7': 2, '8': 2, '9': 2, '10': 2}),
    CurvaPredefinida('Infant', 'Calzados', 2, {
        '5': 1, '6': 1, '7': 2, '8': 2, '9': 3, '10': 3}),
    CurvaPredefinida('Gradeschool', 'Calzados', 1, {
        '3.5': 2, '4': 2, '4.5': 2, '5': 2, '5.5': 2, '6': 2, '6.5': 2, '7': 2}),
    CurvaPredefinida('Gradeschool', 'Calzados', 2, {
        '3.5': 3, '4': 3, '4.5': 3, '5': 2, '5.5': 2, '6': 1, '6.5': 1, '7': 1}),
    CurvaPredefinida('Youth', 'Calzados', 1, {
        '1': 1, '1.5': 1, '2': 1, '2.5': 1, '3': 1,
        '10.5': 2, '11': 2, '11.5': 2, '12': 2, '12.5': 2, '13': 2, '13.5': 2}),
    CurvaPredefinida('Youth', 'Calzados', 2, {
        '1': 2, '1.5': 2, '2': 2, '2.5': 2, '3': 2,
        '10.5': 1, '11': 1, '11.5': 1, '12': 1, '12.5': 1, '13': 1, '13.5': 1}),
]


def curvas_para_genero(genero: str, rubro: Optional[str] = None) -> List[CurvaPredefinida]:
    """Curvas predefinidas de un género (y rubro si se indica)."""
    genero = (genero or '').lower()
    curvas = [c for c in CURVAS_PREDEFINIDAS if c.genero.lower() == genero]
    if rubro:
        curvas = [c for c in curvas if c.rubro.lower() == rubro.lower()]
    return curvas


def obtener_curva(genero: str, rubro: str, opcion: int) -> Optional[CurvaPredefinida]:
    for curva in curvas_para_genero(genero, rubro):
        if curva.opcion == opcion:
            return curva
    return None


def expandir_curva(talles: Dict[str, int], cantidad_curvas: int) -> Dict[str, int]:
    """
    Desglose por talle para N curvas.

    Args:
        talles: Unidades por talle de UNA curva
        cantidad_curvas: Número de curvas (>= 1)

    Returns:
        {talle: unidades × cantidad_curvas}

    Raises:
        ValueError: Si cantidad_curvas < 1
    """
    validar_cantidad_curvas(cantidad_curvas)
    return {talle: n * cantidad_curvas for talle, n in talles.items()}


def validar_cantidad_curvas(cantidad_curvas) -> None:
    """
    Raises:
        ValueError: Si no es un entero >= 1
    """
    if isinstance(cantidad_curvas, bool) or not isinstance(cantidad_curvas, int) \
            or cantidad_curvas < 1:
        raise ValueError("cantidad_curvas debe ser un entero >= 1")


def validar_talles_cantidades(talles_cantidades) -> Dict[str, int]:
    """
    Normaliza un desglose manual talle → unidades.

    Returns:
        Copia del desglose ({} si no vino nada)

    Raises:
        ValueError: Si no es un objeto o alguna cantidad no es un entero >= 0
    """
    if talles_cantidades is None:
        return {}
    if not isinstance(talles_cantidades, dict):
        raise ValueError("talles_cantidades debe ser un objeto talle → unidades")
    if any(isinstance(n, bool) or not isinstance(n, int) or n < 0
           for n in talles_cantidades.values()):
        raise ValueError("las cantidades por talle deben ser enteros >= 0")
    return dict(talles_cantidades)
