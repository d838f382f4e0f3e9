# ==============================================================================
# SERVICIO DE CATÁLOGO
# ==============================================================================
# Productos y curvas de talles.
# - CRUD validado por el esquema (SKU único)
# - Filtros del catálogo y valores distintos para los selectores
# - Visibilidad por tier (los admins ven todo)
# - Borrado RESTRINGIDO mientras haya items de pedido que los referencien
# ==============================================================================

import logging
from typing import Any, Dict, Iterable, List, Optional

from mayorista.errors import MayoristaError, ReferenceViolation
from mayorista.repositories.interfaces import (
    IItemPedidoRepository,
    IProductoRepository,
    ITableRepository,
)
from mayorista.services import talles as talles_util
from mayorista.services.tiers import mensaje_acceso_denegado, puede_ver_tier

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Servicio para gestión del catálogo.

    Responsabilidades:
    - CRUD de productos y curvas
    - Búsqueda y filtros
    - Control de acceso por tier
    """

    CAMPOS_DISTINTOS = ('rubro', 'linea', 'categoria', 'genero')

    def __init__(
        self,
        producto_repo: IProductoRepository,
        curva_repo: ITableRepository,
        item_repo: IItemPedidoRepository,
    ):
        self.producto_repo = producto_repo
        self.curva_repo = curva_repo
        self.item_repo = item_repo

    # =========================================================================
    # PRODUCTOS
    # =========================================================================

    def get_product(self, producto_id: str) -> Optional[Dict[str, Any]]:
        return self.producto_repo.get_by_id(producto_id)

    def get_by_sku(self, sku: str) -> Optional[Dict[str, Any]]:
        return self.producto_repo.get_by_sku((sku or '').strip())

    def create_product(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un producto.

        Raises:
            SchemaViolation: Payload inválido
            UniqueViolation: SKU repetido
        """
        producto = self.producto_repo.insert(data)
        logger.info("Producto creado: %s (%s)", producto['sku'], producto['id'])
        return producto

    def update_product(self, producto_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.producto_repo.update(producto_id, patch)

    def delete_product(self, producto_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un producto si ningún pedido lo referencia.

        Raises:
            ReferenceViolation: Hay items de pedido con este producto
        """
        if self.item_repo.find_by('producto_id', producto_id):
            raise ReferenceViolation(
                'productos', 'id', producto_id,
                'No se puede eliminar: el producto figura en pedidos existentes'
            )
        return self.producto_repo.delete(producto_id)

    def bulk_create(self, filas: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Carga masiva de productos. Los SKU que ya existen se actualizan.

        Returns:
            Dict {'ok': True, 'creados': n, 'actualizados': n, 'errores': [..]}
        """
        creados = actualizados = 0
        errores: List[str] = []
        for i, fila in enumerate(filas, start=1):
            try:
                existente = self.producto_repo.get_by_sku(fila.get('sku'))
                if existente:
                    self.producto_repo.update(existente['id'], fila)
                    actualizados += 1
                else:
                    self.producto_repo.insert(fila)
                    creados += 1
            except MayoristaError as e:
                errores.append(f"Fila {i}: {e}")
        return {'ok': True, 'creados': creados, 'actualizados': actualizados, 'errores': errores}

    def filter_products(
        self,
        tiers: Optional[List[str]] = None,
        rubro: Optional[str] = None,
        genero: Optional[str] = None,
        categoria: Optional[str] = None,
        linea: Optional[str] = None,
        game_plan: Optional[bool] = None,
        texto: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Filtra el catálogo. Todos los filtros son opcionales y se combinan con AND.

        Args:
            tiers: Tiers aceptados
            rubro, genero, categoria, linea: Coincidencia exacta sin distinguir mayúsculas
            game_plan: Solo productos con (o sin) game plan
            texto: Búsqueda en SKU y nombre

        Returns:
            Productos ordenados por SKU
        """
        def _igual(a, b):
            return (a or '').strip().lower() == (b or '').strip().lower()

        texto = (texto or '').strip().lower()
        resultado = []
        for p in self.producto_repo.get_all_ordenados():
            if tiers is not None and p.get('tier') not in tiers:
                continue
            if rubro and not _igual(p.get('rubro'), rubro):
                continue
            if genero and not _igual(p.get('genero'), genero):
                continue
            if categoria and not _igual(p.get('categoria'), categoria):
                continue
            if linea and not _igual(p.get('linea'), linea):
                continue
            if game_plan is not None and bool(p.get('game_plan')) != game_plan:
                continue
            if texto and texto not in p.get('sku', '').lower() \
                    and texto not in p.get('nombre', '').lower():
                continue
            resultado.append(p)
        return resultado

    def distinct_values(self) -> Dict[str, List[str]]:
        """Valores para los selectores de filtro: {'rubro': [...], 'linea': [...], ...}"""
        return {c: self.producto_repo.valores_distintos(c) for c in self.CAMPOS_DISTINTOS}

    # =========================================================================
    # VISIBILIDAD POR TIER
    # =========================================================================

    def can_view(self, producto: Dict[str, Any], tier_usuario: Optional[str],
                 es_admin: bool = False) -> bool:
        return es_admin or puede_ver_tier(tier_usuario, producto.get('tier'))

    def visible_products(self, tier_usuario: Optional[str], es_admin: bool = False,
                         **filtros) -> List[Dict[str, Any]]:
        """Productos del catálogo filtrados que el usuario puede ver."""
        return [p for p in self.filter_products(**filtros)
                if self.can_view(p, tier_usuario, es_admin)]

    def get_visible_product(self, producto_id: str, tier_usuario: Optional[str],
                            es_admin: bool = False) -> Dict[str, Any]:
        """
        Producto para la ficha de detalle.

        Returns:
            {'ok': True, 'producto': ..., 'talles': [...], 'curvas': [...]} o
            {'ok': False, 'error': ..., 'status': 404|403}
        """
        producto = self.get_product(producto_id)
        if not producto:
            return {'ok': False, 'error': 'Producto no encontrado', 'status': 404}
        if not self.can_view(producto, tier_usuario, es_admin):
            return {
                'ok': False,
                'error': mensaje_acceso_denegado(tier_usuario, producto.get('tier')),
                'status': 403,
            }
        return {
            'ok': True,
            'producto': producto,
            'talles': talles_util.generar_talles(producto.get('rubro'), producto.get('genero')),
            'curvas': self.curvas_for(producto.get('genero'), producto.get('rubro')),
        }

    # =========================================================================
    # CURVAS
    # =========================================================================

    def get_curva(self, curva_id: str) -> Optional[Dict[str, Any]]:
        return self.curva_repo.get_by_id(curva_id)

    def curvas_for(self, genero: Optional[str], rubro: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.curva_repo.get_by_genero(genero or '', rubro)

    def create_curva(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.curva_repo.insert(data)

    def update_curva(self, curva_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Actualiza una curva. Los talles quedan congelados mientras haya items
        de pedido armados con ella (su desglose depende de esos talles).

        Raises:
            ReferenceViolation: Cambio de talles en una curva usada en pedidos
        """
        actual = self.curva_repo.get_by_id(curva_id)
        if actual is None:
            return None
        if ('talles' in patch and patch['talles'] != actual['talles']
                and self.item_repo.find_by('curva_id', curva_id)):
            raise ReferenceViolation(
                'curvas', 'talles', curva_id,
                'No se pueden cambiar los talles: la curva figura en pedidos existentes'
            )
        return self.curva_repo.update(curva_id, patch)

    def delete_curva(self, curva_id: str) -> Optional[Dict[str, Any]]:
        """
        Raises:
            ReferenceViolation: Hay items de pedido armados con esta curva
        """
        if self.item_repo.find_by('curva_id', curva_id):
            raise ReferenceViolation(
                'curvas', 'id', curva_id,
                'No se puede eliminar: la curva figura en pedidos existentes'
            )
        return self.curva_repo.delete(curva_id)

    def seed_predefined_curves(self) -> int:
        """
        Carga las curvas predefinidas que todavía no existen (por nombre).

        Returns:
            Cantidad de curvas creadas
        """
        existentes = {c.get('nombre') for c in self.curva_repo.get_all()}
        creadas = 0
        for curva in talles_util.CURVAS_PREDEFINIDAS:
            nombre = f"{curva.genero} {curva.rubro} - Opción {curva.opcion}"
            if nombre in existentes:
                continue
            self.curva_repo.insert({
                'nombre': nombre,
                'genero': curva.genero,
                'rubro': curva.rubro,
                'talles': dict(curva.talles),
            })
            creadas += 1
        return creadas
