# ==============================================================================
# INTERFACES DE REPOSITORIOS - PREPARADO PARA MYSQL
# ==============================================================================
#
# Contratos que cumplen los repositorios JSON de este paquete. Los servicios
# dependen de estas interfaces, NO de las implementaciones concretas.
#
# MIGRACIÓN A MYSQL:
# 1. Crear nuevas clases: MySQLPedidoRepository, MySQLProductoRepository, etc.
# 2. Hacer que implementen estas interfaces
# 3. Cambiar instanciación en app_container.py
# 4. Los servicios NO requieren cambios
#
# ==============================================================================

from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, runtime_checkable


# ==============================================================================
# INTERFAZ BASE
# ==============================================================================

@runtime_checkable
class ITableRepository(Protocol):
    """
    Operaciones de una tabla del esquema.
    insert/update validan contra el esquema y las claves foráneas.
    """

    def reload(self) -> None:
        ...

    def vincular(self, campo: str, existe: Callable[[str], bool]) -> None:
        ...

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def exists(self, record_id: str) -> bool:
        ...

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        ...

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        ...

    def insert(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, record_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> int:
        ...

    def delete(self, record_id: str) -> Optional[Dict[str, Any]]:
        ...


# ==============================================================================
# INTERFACES ESPECÍFICAS POR DOMINIO
# ==============================================================================

@runtime_checkable
class IProductoRepository(ITableRepository, Protocol):

    def get_by_sku(self, sku: str) -> Optional[Dict[str, Any]]:
        ...

    def valores_distintos(self, campo: str) -> List[str]:
        ...


@runtime_checkable
class IPedidoRepository(ITableRepository, Protocol):

    def filtrar(
        self,
        cliente_id: Optional[str] = None,
        vendedor_id: Optional[str] = None,
        estados: Optional[Iterable[str]] = None,
        fecha_desde: Optional[str] = None,
        fecha_hasta: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        ...

    def count_by_estado(self) -> Dict[str, int]:
        ...


@runtime_checkable
class IItemPedidoRepository(ITableRepository, Protocol):

    def get_by_pedido(self, pedido_id: str) -> List[Dict[str, Any]]:
        ...

    def items_por_pedido(self) -> Dict[str, List[Dict[str, Any]]]:
        ...

    def delete_by_pedido(self, pedido_id: str) -> int:
        ...


@runtime_checkable
class IUserRoleRepository(ITableRepository, Protocol):
    """
    NOTA MYSQL: reemplaza la función has_superadmin() y las consultas
    de rol por user_id de la base original.
    """

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_by_role(self, role: str) -> List[Dict[str, Any]]:
        ...

    def has_role(self, role: str) -> bool:
        ...
