# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con el carrito de compras.
# El carrito se almacena en la sesión de Flask (session['carrito']) hasta que
# el cliente lo confirma; ahí se convierte en un pedido 'pendiente'.
# ==============================================================================

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import session

from mayorista.models.entities import EstadoPedido, PedidoConDetalles
from mayorista.services.auth_service import AuthService
from mayorista.services.catalog_service import CatalogService
from mayorista.services.pedido_service import PedidoService, calcular_linea
from mayorista.services.talles import (
    expandir_curva,
    validar_cantidad_curvas,
    validar_talles_cantidades,
)

CARRITO_ID = 'carrito-sesion'


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar líneas (producto + curva)
    - Validar que el usuario pueda ver el producto (tier)
    - Calcular totales
    - Confirmar el carrito como pedido

    El carrito se almacena en session['carrito'].
    """

    def __init__(
        self,
        catalog_service: CatalogService,
        pedido_service: PedidoService,
        auth_service: AuthService,
    ):
        self.catalog_service = catalog_service
        self.pedido_service = pedido_service
        self.auth_service = auth_service

    def _get_cart(self) -> List[Dict[str, Any]]:
        return session.get('carrito', [])

    def _save_cart(self, cart: List[Dict[str, Any]]) -> None:
        session['carrito'] = cart
        session.modified = True

    @staticmethod
    def _totales(cart: List[Dict[str, Any]]) -> Dict[str, Any]:
        total_unidades = sum(item.get('cantidad', 0) for item in cart)
        total_monto = sum(item.get('subtotal_usd', 0) for item in cart)
        return {
            'total_unidades': total_unidades,
            'total_monto': round(total_monto, 2),
            'items_count': len(cart),
        }

    def get_cart(self) -> Dict[str, Any]:
        """
        Obtiene el carrito con totales calculados.

        Returns:
            Dict con items, total_unidades, total_monto, items_count
        """
        cart = self._get_cart()
        return {'items': cart, **self._totales(cart)}

    def add_item(
        self,
        user_id: str,
        producto_id: str,
        curva_id: Optional[str] = None,
        cantidad_curvas: int = 1,
        talles_cantidades: Optional[Dict[str, int]] = None,
    ) -> Dict[str, Any]:
        """
        Agrega una línea al carrito.
        Si ya hay una línea con el mismo producto y curva, suma las curvas.

        Args:
            user_id: Usuario de la sesión (define el tier visible)
            producto_id: ID del producto
            curva_id: Curva elegida (opcional si se mandan talles_cantidades)
            cantidad_curvas: Veces que se pide la curva
            talles_cantidades: Desglose manual talle → unidades (sin curva)

        Returns:
            Dict con resultado (ok, error, status, carrito)
        """
        if not producto_id:
            return {'ok': False, 'error': 'ID de producto inválido', 'status': 400}

        es_admin = self.auth_service.is_admin(user_id)
        tier = self.auth_service.resolve_client_tier(user_id)
        resultado = self.catalog_service.get_visible_product(producto_id, tier, es_admin)
        if not resultado['ok']:
            return resultado
        producto = resultado['producto']

        try:
            validar_cantidad_curvas(cantidad_curvas)
            if curva_id:
                curva = self.catalog_service.get_curva(curva_id)
                if not curva:
                    return {'ok': False, 'error': 'Curva no encontrada', 'status': 404}
                base = curva.get('talles') or {}
            else:
                base = validar_talles_cantidades(talles_cantidades)
        except ValueError as e:
            return {'ok': False, 'error': str(e), 'status': 400}

        if sum(base.values()) <= 0:
            return {'ok': False, 'error': 'Debe elegir al menos una unidad', 'status': 400}

        cart = self._get_cart()
        existing = None
        if curva_id:
            for item in cart:
                if item.get('producto_id') == producto_id and item.get('curva_id') == curva_id:
                    existing = item
                    break

        precio = float(producto.get('precio_usd') or 0)
        if existing:
            existing['cantidad_curvas'] += cantidad_curvas
            existing['talles_cantidades'] = expandir_curva(base, existing['cantidad_curvas'])
            existing['precio_unitario'] = precio
            existing.update(calcular_linea(precio, existing['talles_cantidades']))
        else:
            talles = expandir_curva(base, cantidad_curvas) if curva_id else base
            cart.append({
                'producto_id': producto_id,
                'sku': producto.get('sku', ''),
                'nombre': producto.get('nombre', ''),
                'rubro': producto.get('rubro'),
                'genero': producto.get('genero'),
                'curva_id': curva_id or None,
                'cantidad_curvas': cantidad_curvas,
                'talles_cantidades': talles,
                'precio_unitario': precio,
                **calcular_linea(precio, talles),
            })

        self._save_cart(cart)
        return {
            'ok': True,
            'mensaje': 'Producto agregado al carrito',
            'carrito': self._totales(cart),
        }

    def remove_item(self, producto_id: str, curva_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Elimina líneas del carrito. Sin curva_id elimina todas las del producto.
        """
        if not producto_id:
            return {'ok': False, 'error': 'ID de producto inválido', 'status': 400}

        cart = self._get_cart()
        new_cart = []
        for item in cart:
            match = item.get('producto_id') == producto_id
            if curva_id:
                match = match and item.get('curva_id') == curva_id
            if not match:
                new_cart.append(item)

        self._save_cart(new_cart)
        return {
            'ok': True,
            'mensaje': 'Producto eliminado del carrito',
            'carrito': self._totales(new_cart),
        }

    def clear_cart(self) -> Dict[str, Any]:
        """Vacía el carrito completamente."""
        self._save_cart([])
        return {'ok': True, 'mensaje': 'Carrito vaciado', 'carrito': self._totales([])}

    def confirm(self, user_id: str) -> Dict[str, Any]:
        """
        Convierte el carrito en un pedido 'pendiente' del cliente del usuario.
        El carrito solo se vacía si el pedido se creó.

        Returns:
            Dict {'ok': True, 'pedido_id', 'total'} o {'ok': False, 'error', 'status'}
        """
        cart = self._get_cart()
        if not cart:
            return {'ok': False, 'error': 'El carrito está vacío', 'status': 400}

        cliente_id = self.auth_service.resolve_client_id(user_id)
        if not cliente_id:
            return {
                'ok': False,
                'error': 'Tu usuario no tiene un cliente asignado',
                'status': 403,
            }

        items = [
            {
                'producto_id': item['producto_id'],
                'curva_id': item.get('curva_id'),
                'cantidad_curvas': item.get('cantidad_curvas', 1),
                'talles_cantidades': item.get('talles_cantidades'),
            }
            for item in cart
        ]
        result = self.pedido_service.create_pedido(cliente_id, items)
        if not result['ok']:
            return {**result, 'status': 400}

        self._save_cart([])
        return {
            'ok': True,
            'pedido_id': result['pedido']['id'],
            'total': result['total'],
            'mensaje': 'Pedido enviado para autorización',
        }

    def como_pedido(self, user_id: str) -> PedidoConDetalles:
        """Proyección del carrito como pedido, para reutilizar la tarjeta de pedido."""
        cliente_id = self.auth_service.resolve_client_id(user_id)
        cliente = self.pedido_service.cliente_repo.get_by_id(cliente_id) if cliente_id else None
        vendedor = None
        if cliente and cliente.get('vendedor_id'):
            vendedor = self.pedido_service.vendedor_repo.get_by_id(cliente['vendedor_id'])

        cart = self._get_cart()
        items = []
        for n, item in enumerate(cart):
            producto = self.catalog_service.get_product(item['producto_id'])
            items.append({
                **item,
                'id': f"{CARRITO_ID}-{n}",
                'pedido_id': CARRITO_ID,
                'producto': producto,
            })

        return PedidoConDetalles.from_dict({
            'id': CARRITO_ID,
            'cliente_id': cliente_id or '',
            'vendedor_id': (cliente or {}).get('vendedor_id'),
            'total_usd': self._totales(cart)['total_monto'],
            'estado': EstadoPedido.PENDIENTE.value,
            'created_at': datetime.now(timezone.utc).isoformat(),
            'cliente': cliente,
            'vendedor': vendedor,
            'items': items,
        })
