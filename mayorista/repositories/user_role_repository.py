# ==============================================================================
# REPOSITORIO DE ROLES DE USUARIO
# ==============================================================================
# Encapsula el acceso a user_roles.json
# Un usuario (identidad externa) tiene a lo sumo un rol asignado.
# ==============================================================================

from typing import Any, Dict, List, Optional

from mayorista.models.schema import USER_ROLES
from mayorista.repositories.base import TableRepository


class UserRoleRepository(TableRepository):
    """
    Repositorio de asignaciones de rol.

    Formato de datos en user_roles.json:
    {
        "9a8b...": {
            "id": "9a8b...",
            "user_id": "auth-123",
            "role": "cliente",
            "cliente_id": "a1b2...",
            "vendedor_id": null,
            "nombre": "Acme",
            "created_at": "..."
        }
    }
    """

    def __init__(self, base_path: str):
        super().__init__(base_path, USER_ROLES)

    def get_by_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by('user_id', user_id)

    def get_by_role(self, role: str) -> List[Dict[str, Any]]:
        return self.find_all_by('role', role)

    def has_role(self, role: str) -> bool:
        return self.find_by('role', role) is not None
