# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (cada app / test arma su propio contenedor sobre tmp_path)
#   - Migración gradual (cambiar repos sin tocar servicios)
#
# ═══════════════════════════════════════════════════════════════════════════════
# MIGRACIÓN A MYSQL - INSTRUCCIONES
# ═══════════════════════════════════════════════════════════════════════════════
#
# 1. Crear clases de repositorio que implementen las interfaces de
#    mayorista/repositories/interfaces.py (MySQLPedidoRepository, etc.)
# 2. Cambiar las importaciones de este archivo.
# 3. Las claves foráneas pasan a ser constraints de la base; vincular()
#    deja de ser necesario.
#
# El contenedor NO es singleton: create_app() arma uno por aplicación y lo
# guarda en app.extensions['mayorista'].
# ==============================================================================

from typing import Dict, Optional

from mayorista.repositories import (
    ClienteRepository,
    CurvaRepository,
    ItemPedidoRepository,
    PedidoRepository,
    ProductoRepository,
    TableRepository,
    UserRoleRepository,
    VendedorRepository,
)
from mayorista.services import (
    AuthService,
    CartService,
    CatalogService,
    ClientesService,
    PedidoService,
    ReportsService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Uso:
        container = AppContainer(base_path='/path/to/data')
        pedido_service = container.pedido_service
    """

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Carpeta de datos (un JSON por tabla)
        """
        self._base_path = base_path
        self._repos: Optional[Dict[str, TableRepository]] = None

        self._auth_service: Optional[AuthService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._clientes_service: Optional[ClientesService] = None
        self._pedido_service: Optional[PedidoService] = None
        self._cart_service: Optional[CartService] = None
        self._reports_service: Optional[ReportsService] = None

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    def _build_repos(self) -> Dict[str, TableRepository]:
        """Crea todos los repositorios y registra sus claves foráneas."""
        repos = {
            'vendedores': VendedorRepository(self._base_path),
            'clientes': ClienteRepository(self._base_path),
            'productos': ProductoRepository(self._base_path),
            'curvas': CurvaRepository(self._base_path),
            'pedidos': PedidoRepository(self._base_path),
            'items_pedido': ItemPedidoRepository(self._base_path),
            'user_roles': UserRoleRepository(self._base_path),
        }
        for repo in repos.values():
            for campo, destino in repo.tabla.referencias.items():
                repo.vincular(campo, repos[destino].exists)
        return repos

    @property
    def repos(self) -> Dict[str, TableRepository]:
        """Repositorios por nombre de tabla."""
        if self._repos is None:
            self._repos = self._build_repos()
        return self._repos

    @property
    def vendedor_repo(self) -> VendedorRepository:
        return self.repos['vendedores']

    @property
    def cliente_repo(self) -> ClienteRepository:
        return self.repos['clientes']

    @property
    def producto_repo(self) -> ProductoRepository:
        return self.repos['productos']

    @property
    def curva_repo(self) -> CurvaRepository:
        return self.repos['curvas']

    @property
    def pedido_repo(self) -> PedidoRepository:
        return self.repos['pedidos']

    @property
    def item_repo(self) -> ItemPedidoRepository:
        return self.repos['items_pedido']

    @property
    def role_repo(self) -> UserRoleRepository:
        return self.repos['user_roles']

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def auth_service(self) -> AuthService:
        if self._auth_service is None:
            self._auth_service = AuthService(self.role_repo, self.cliente_repo)
        return self._auth_service

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            self._catalog_service = CatalogService(
                self.producto_repo,
                self.curva_repo,
                self.item_repo
            )
        return self._catalog_service

    @property
    def clientes_service(self) -> ClientesService:
        if self._clientes_service is None:
            self._clientes_service = ClientesService(
                self.cliente_repo,
                self.vendedor_repo,
                self.pedido_repo,
                self.role_repo
            )
        return self._clientes_service

    @property
    def pedido_service(self) -> PedidoService:
        if self._pedido_service is None:
            self._pedido_service = PedidoService(
                self.pedido_repo,
                self.item_repo,
                self.producto_repo,
                self.curva_repo,
                self.cliente_repo,
                self.vendedor_repo
            )
        return self._pedido_service

    @property
    def cart_service(self) -> CartService:
        if self._cart_service is None:
            self._cart_service = CartService(
                self.catalog_service,
                self.pedido_service,
                self.auth_service
            )
        return self._cart_service

    @property
    def reports_service(self) -> ReportsService:
        """Servicio de reportes, alimentado por las consultas de pedidos."""
        if self._reports_service is None:
            self._reports_service = ReportsService(self.pedido_service.list_pedidos)
        return self._reports_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para recargar datos después de editar los JSON a mano.
        """
        self._repos = None
        self._auth_service = None
        self._catalog_service = None
        self._clientes_service = None
        self._pedido_service = None
        self._cart_service = None
        self._reports_service = None
