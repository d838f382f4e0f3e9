# ==============================================================================
# MAYORISTA - Pedidos mayoristas de calzado e indumentaria
# ==============================================================================
# Catálogo por tier, carrito por curvas de talles, autorización de pedidos
# y reportes por cliente, vendedor y rubro.
# ==============================================================================

from mayorista.main import create_app

__all__ = ['create_app']
