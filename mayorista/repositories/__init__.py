# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Un archivo JSON por tabla. Cuando se migre a MySQL, solo hay que modificar
# esta capa; las interfaces (métodos públicos) permanecen iguales.
#
# ESTRUCTURA:
# ├── interfaces.py            → Protocolos (contratos para MySQL)
# ├── base.py                  → BaseRepository + TableRepository (esquema, FK, únicos)
# ├── vendedor_repository.py   → vendedores.json
# ├── cliente_repository.py    → clientes.json
# ├── producto_repository.py   → productos.json
# ├── curva_repository.py      → curvas.json
# ├── pedido_repository.py     → pedidos.json + items_pedido.json
# └── user_role_repository.py  → user_roles.json
# ==============================================================================

from .interfaces import (
    ITableRepository,
    IProductoRepository,
    IPedidoRepository,
    IItemPedidoRepository,
    IUserRoleRepository,
)

from .base import BaseRepository, TableRepository
from .vendedor_repository import VendedorRepository
from .cliente_repository import ClienteRepository
from .producto_repository import ProductoRepository
from .curva_repository import CurvaRepository
from .pedido_repository import PedidoRepository, ItemPedidoRepository
from .user_role_repository import UserRoleRepository

__all__ = [
    'ITableRepository',
    'IProductoRepository',
    'IPedidoRepository',
    'IItemPedidoRepository',
    'IUserRoleRepository',
    'BaseRepository',
    'TableRepository',
    'VendedorRepository',
    'ClienteRepository',
    'ProductoRepository',
    'CurvaRepository',
    'PedidoRepository',
    'ItemPedidoRepository',
    'UserRoleRepository',
]
