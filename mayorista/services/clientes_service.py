# ==============================================================================
# SERVICIO DE CLIENTES Y VENDEDORES
# ==============================================================================
# POLÍTICA DE BORRADO:
# - Vendedor: se ANULA vendedor_id en clientes y pedidos (pasan a mostrarse
#   como "Sin vendedor asignado")
# - Cliente: RESTRINGIDO mientras tenga pedidos o usuarios ligados
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from mayorista.errors import ReferenceViolation
from mayorista.repositories.interfaces import (
    IPedidoRepository,
    ITableRepository,
    IUserRoleRepository,
)

logger = logging.getLogger(__name__)


class ClientesService:
    """
    Servicio para gestión de clientes y vendedores.

    Responsabilidades:
    - CRUD de clientes y vendedores
    - Asignación de vendedor a cliente
    - Búsquedas y conteos
    - Política de borrado entre tablas
    """

    def __init__(
        self,
        cliente_repo: ITableRepository,
        vendedor_repo: ITableRepository,
        pedido_repo: IPedidoRepository,
        role_repo: IUserRoleRepository,
    ):
        self.cliente_repo = cliente_repo
        self.vendedor_repo = vendedor_repo
        self.pedido_repo = pedido_repo
        self.role_repo = role_repo

    # =========================================================================
    # CLIENTES
    # =========================================================================

    def get_cliente(self, cliente_id: str) -> Optional[Dict[str, Any]]:
        return self.cliente_repo.get_by_id(cliente_id)

    def list_clientes(self, texto: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Clientes con el nombre de su vendedor resuelto.

        Args:
            texto: Filtro por nombre (opcional)
        """
        clientes = self.cliente_repo.search(texto) if texto else self.cliente_repo.get_all_ordenados()
        vendedores = {v['id']: v for v in self.vendedor_repo.get_all()}
        return [
            {**c, 'vendedor_nombre': (vendedores.get(c.get('vendedor_id')) or {}).get('nombre')}
            for c in clientes
        ]

    def clientes_by_vendedor(self, vendedor_id: str) -> List[Dict[str, Any]]:
        return self.cliente_repo.get_by_vendedor(vendedor_id)

    def clientes_by_tier(self, tier: str) -> List[Dict[str, Any]]:
        return self.cliente_repo.get_by_tier(tier)

    def create_cliente(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Raises:
            SchemaViolation: Payload inválido
            ReferenceViolation: vendedor_id inexistente
        """
        cliente = self.cliente_repo.insert(data)
        logger.info("Cliente creado: %s", cliente['nombre'])
        return cliente

    def update_cliente(self, cliente_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.cliente_repo.update(cliente_id, patch)

    def assign_vendedor(self, cliente_id: str, vendedor_id: Optional[str]) -> Dict[str, Any]:
        """
        Asigna (o quita, con None) el vendedor de un cliente.

        Returns:
            Dict {'ok': bool, 'cliente': fila, 'error': str opcional}
        """
        if not self.cliente_repo.exists(cliente_id):
            return {'ok': False, 'error': 'Cliente no encontrado'}
        cliente = self.cliente_repo.update(cliente_id, {'vendedor_id': vendedor_id or None})
        return {'ok': True, 'cliente': cliente}

    def delete_cliente(self, cliente_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un cliente sin pedidos ni usuarios ligados.

        Raises:
            ReferenceViolation: El cliente tiene pedidos o usuarios
        """
        if self.pedido_repo.find_by('cliente_id', cliente_id):
            raise ReferenceViolation(
                'clientes', 'id', cliente_id,
                'No se puede eliminar: el cliente tiene pedidos'
            )
        if self.role_repo.find_by('cliente_id', cliente_id):
            raise ReferenceViolation(
                'clientes', 'id', cliente_id,
                'No se puede eliminar: el cliente tiene usuarios asignados'
            )
        return self.cliente_repo.delete(cliente_id)

    # =========================================================================
    # VENDEDORES
    # =========================================================================

    def get_vendedor(self, vendedor_id: str) -> Optional[Dict[str, Any]]:
        return self.vendedor_repo.get_by_id(vendedor_id)

    def list_vendedores(self) -> List[Dict[str, Any]]:
        """Vendedores con la cantidad de clientes asignados."""
        conteo: Dict[str, int] = {}
        for c in self.cliente_repo.get_all():
            if c.get('vendedor_id'):
                conteo[c['vendedor_id']] = conteo.get(c['vendedor_id'], 0) + 1
        return [
            {**v, 'clientes_count': conteo.get(v['id'], 0)}
            for v in self.vendedor_repo.get_all_ordenados()
        ]

    def create_vendedor(self, data: Dict[str, Any]) -> Dict[str, Any]:
        vendedor = self.vendedor_repo.insert(data)
        logger.info("Vendedor creado: %s", vendedor['nombre'])
        return vendedor

    def update_vendedor(self, vendedor_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.vendedor_repo.update(vendedor_id, patch)

    def delete_vendedor(self, vendedor_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un vendedor y anula sus referencias.

        Returns:
            Fila eliminada o None si no existía
        """
        if not self.vendedor_repo.exists(vendedor_id):
            return None
        clientes = self.cliente_repo.update_where('vendedor_id', vendedor_id, {'vendedor_id': None})
        pedidos = self.pedido_repo.update_where('vendedor_id', vendedor_id, {'vendedor_id': None})
        self.role_repo.update_where('vendedor_id', vendedor_id, {'vendedor_id': None})
        logger.info(
            "Vendedor %s eliminado: %d clientes y %d pedidos quedan sin vendedor",
            vendedor_id, clientes, pedidos,
        )
        return self.vendedor_repo.delete(vendedor_id)

    # =========================================================================
    # CONTEOS
    # =========================================================================

    def counts(self) -> Dict[str, int]:
        clientes = self.cliente_repo.get_all()
        return {
            'clientes': len(clientes),
            'vendedores': len(self.vendedor_repo.get_all()),
            'clientes_sin_vendedor': sum(1 for c in clientes if not c.get('vendedor_id')),
        }
