# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas (controllers) solo llaman a servicios
# 4. Los servicios NO conocen el tipo de almacenamiento (JSON/MySQL)
#
# ESTRUCTURA:
# ├── tiers.py             → Visibilidad del catálogo por tier
# ├── talles.py            → Talles por rubro/género, curvas predefinidas
# ├── auth_service.py      → Roles, cliente y tier del usuario (¡protección superadmin!)
# ├── catalog_service.py   → Productos y curvas
# ├── clientes_service.py  → Clientes y vendedores
# ├── pedido_service.py    → Pedidos, estados, totales
# ├── cart_service.py      → Carrito de compras (sesión)
# ├── reports_service.py   → Agregación y conciliación de reportes
# └── export_service.py    → Planilla CSV de pedidos
# ==============================================================================

from mayorista.services.auth_service import AuthService
from mayorista.services.catalog_service import CatalogService
from mayorista.services.clientes_service import ClientesService
from mayorista.services.pedido_service import PedidoService
from mayorista.services.cart_service import CartService
from mayorista.services.reports_service import ReportsService

__all__ = [
    'AuthService',
    'CatalogService',
    'ClientesService',
    'PedidoService',
    'CartService',
    'ReportsService',
]
