# ==============================================================================
# SERVICIO DE ROLES E IDENTIDAD
# ==============================================================================
# La identidad llega desde un login externo (session['user_id']). Este servicio
# resuelve, a partir del user_id, qué rol tiene y a qué cliente representa.
#
# Funciones de consulta (equivalentes a las funciones de la base):
#   resolve_client_id(user_id)   → cliente_id o None
#   resolve_client_tier(user_id) → tier del cliente o None
#   is_admin(user_id)            → True para admin y superadmin
#
# REGLA CRÍTICA - ROL "superadmin":
# Está BLINDADO y NO puede:
# - Ser quitado
# - Ser cambiado por otro rol
# - Ser asignado manualmente (solo existe el creado en la inicialización)
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from mayorista.errors import ProtectedRoleError
from mayorista.models.entities import Rol
from mayorista.repositories.interfaces import ITableRepository, IUserRoleRepository

logger = logging.getLogger(__name__)


class AuthService:
    """
    Servicio de roles.

    Responsabilidades:
    - Resolver cliente y tier de un usuario
    - Verificar privilegios de administrador
    - Asignar / quitar roles (con protección de superadmin)
    """

    PROTECTED_ROLE = Rol.SUPERADMIN.value
    ADMIN_ROLES = frozenset([Rol.ADMIN.value, Rol.SUPERADMIN.value])

    def __init__(self, role_repo: IUserRoleRepository, cliente_repo: ITableRepository):
        """
        Args:
            role_repo: Repositorio de user_roles
            cliente_repo: Repositorio de clientes (para resolver el tier)
        """
        self.role_repo = role_repo
        self.cliente_repo = cliente_repo

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_role(self, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not user_id:
            return None
        return self.role_repo.get_by_user(user_id)

    def get_role_name(self, user_id: Optional[str]) -> Optional[str]:
        row = self.get_role(user_id)
        return row.get('role') if row else None

    def is_admin(self, user_id: Optional[str]) -> bool:
        """Verifica si un usuario es admin o superadmin."""
        return self.get_role_name(user_id) in self.ADMIN_ROLES

    def is_superadmin(self, user_id: Optional[str]) -> bool:
        return self.get_role_name(user_id) == self.PROTECTED_ROLE

    def resolve_client_id(self, user_id: Optional[str]) -> Optional[str]:
        """
        Cliente que representa el usuario.

        Args:
            user_id: Identidad externa

        Returns:
            cliente_id o None si el usuario no tiene rol o no está ligado a un cliente
        """
        row = self.get_role(user_id)
        if not row:
            return None
        return row.get('cliente_id')

    def resolve_client_tier(self, user_id: Optional[str]) -> Optional[str]:
        """
        Tier del cliente del usuario.

        Returns:
            Tier ("0".."3") o None si no hay cliente resuelto
        """
        cliente_id = self.resolve_client_id(user_id)
        if not cliente_id:
            return None
        cliente = self.cliente_repo.get_by_id(cliente_id)
        if not cliente:
            logger.warning("user_id=%s apunta a cliente inexistente %s", user_id, cliente_id)
            return None
        return cliente.get('tier')

    def has_superadmin(self) -> bool:
        return self.role_repo.has_role(self.PROTECTED_ROLE)

    def get_users_with_roles(self) -> List[Dict[str, Any]]:
        """
        Lista de asignaciones con el nombre del cliente resuelto.

        Returns:
            Lista de dicts ordenada por rol y user_id
        """
        clientes = {c['id']: c for c in self.cliente_repo.get_all()}
        resultado = []
        for row in self.role_repo.get_all():
            cliente = clientes.get(row.get('cliente_id'))
            resultado.append({
                **row,
                'cliente_nombre': cliente['nombre'] if cliente else None,
                'es_protegido': row.get('role') == self.PROTECTED_ROLE,
            })
        orden = {r.value: i for i, r in enumerate(Rol)}
        resultado.sort(key=lambda r: (orden.get(r.get('role'), 99), r.get('user_id', '')))
        return resultado

    # =========================================================================
    # PROTECCIÓN - ROL SUPERADMIN
    # =========================================================================

    def is_protected_role(self, role: Optional[str]) -> bool:
        return role == self.PROTECTED_ROLE

    def verificar_no_protegido(self, row: Optional[Dict[str, Any]],
                               nuevo_role: Optional[str] = None) -> None:
        """
        Lanza ProtectedRoleError si la operación toca el rol superadmin.

        Args:
            row: Asignación actual (None si es nueva)
            nuevo_role: Rol que se quiere asignar
        """
        if row and self.is_protected_role(row.get('role')):
            raise ProtectedRoleError(
                f'El rol "{self.PROTECTED_ROLE}" está protegido y no puede ser modificado'
            )
        if self.is_protected_role(nuevo_role):
            raise ProtectedRoleError(
                f'El rol "{self.PROTECTED_ROLE}" no puede ser asignado manualmente'
            )

    # =========================================================================
    # GESTIÓN DE ROLES
    # =========================================================================

    def assign_role(
        self,
        user_id: str,
        role: str,
        cliente_id: Optional[str] = None,
        vendedor_id: Optional[str] = None,
        nombre: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Asigna (o reemplaza) el rol de un usuario.

        VALIDACIONES:
        1. El rol superadmin no se asigna ni se quita por aquí
        2. El rol 'cliente' requiere cliente_id (lo valida el esquema)
        3. Las referencias a cliente / vendedor deben existir (las valida el repositorio)

        Returns:
            Dict {'ok': bool, 'rol': fila, 'error': str opcional}

        Raises:
            SchemaViolation, ReferenceViolation
        """
        if not user_id:
            return {'ok': False, 'error': 'user_id requerido'}

        actual = self.role_repo.get_by_user(user_id)
        try:
            self.verificar_no_protegido(actual, role)
        except ProtectedRoleError as e:
            return {'ok': False, 'error': str(e)}

        datos = {
            'role': role,
            'cliente_id': cliente_id,
            'vendedor_id': vendedor_id,
            'nombre': nombre,
        }
        if actual:
            fila = self.role_repo.update(actual['id'], datos)
            logger.info("Rol de %s: %s -> %s", user_id, actual.get('role'), role)
        else:
            fila = self.role_repo.insert({'user_id': user_id, **datos})
            logger.info("Rol asignado a %s: %s", user_id, role)
        return {'ok': True, 'rol': fila}

    def remove_role(self, user_id: str) -> Dict[str, Any]:
        """Quita el rol de un usuario (nunca el de superadmin)."""
        actual = self.role_repo.get_by_user(user_id)
        if not actual:
            return {'ok': False, 'error': 'Usuario sin rol asignado'}
        if self.is_protected_role(actual.get('role')):
            return {
                'ok': False,
                'error': f'El rol "{self.PROTECTED_ROLE}" está protegido y no puede ser eliminado'
            }
        self.role_repo.delete(actual['id'])
        return {'ok': True}

    def bootstrap_superadmin(self, user_id: str, nombre: Optional[str] = None) -> Dict[str, Any]:
        """
        Crea el superadmin inicial. Solo funciona si todavía no existe ninguno.
        """
        if self.has_superadmin():
            return {'ok': False, 'error': 'Ya existe un superadmin'}
        if self.role_repo.get_by_user(user_id):
            return {'ok': False, 'error': 'El usuario ya tiene un rol asignado'}
        fila = self.role_repo.insert({
            'user_id': user_id,
            'role': self.PROTECTED_ROLE,
            'nombre': nombre,
        })
        logger.info("Superadmin inicial creado: %s", user_id)
        return {'ok': True, 'rol': fila}
