# ==============================================================================
# JERARQUÍA DE TIERS
# ==============================================================================
# Tier 0 = Premium (ve todo el catálogo)
# Tier 1 = Gold    (ve productos Tier 1, 2, 3)
# Tier 2 = Silver  (ve productos Tier 2, 3)
# Tier 3 = Bronze  (ve solo productos Tier 3)
#
# Un tier ausente o no numérico (del usuario o del producto) deniega el acceso.
# ==============================================================================

from typing import List, Optional

from mayorista.models.entities import TIER_LABELS, Tier

MENSAJE_SIN_PERMISO = "No tienes permisos para ver este producto."


def _a_numero(tier: Optional[str]) -> Optional[int]:
    if tier is None or tier == '':
        return None
    try:
        return int(str(tier).strip())
    except ValueError:
        return None


def puede_ver_tier(tier_usuario: Optional[str], tier_producto: Optional[str]) -> bool:
    """
    Verifica si un usuario puede ver un producto según su tier.

    Args:
        tier_usuario: Tier del cliente ("0".."3") o None
        tier_producto: Tier mínimo del producto

    Returns:
        True si el acceso está permitido
    """
    usuario = _a_numero(tier_usuario)
    producto = _a_numero(tier_producto)
    if usuario is None or producto is None:
        return False
    if usuario == 0:
        return True
    return producto >= usuario


def mensaje_acceso_denegado(tier_usuario: Optional[str], tier_producto: Optional[str]) -> str:
    """Mensaje para mostrar cuando puede_ver_tier() da False."""
    usuario = _a_numero(tier_usuario)
    producto = _a_numero(tier_producto)
    if usuario is None or producto is None or usuario == 0:
        return MENSAJE_SIN_PERMISO
    if producto < usuario:
        return (
            f"No tienes permisos para ver productos de Tier {producto}. "
            f"Solo puedes acceder a productos de Tier {usuario} o superior."
        )
    return MENSAJE_SIN_PERMISO


def tiers_visibles(tier_usuario: Optional[str]) -> List[str]:
    """Tiers de producto que un usuario puede ver, en orden."""
    return [t.value for t in Tier if puede_ver_tier(tier_usuario, t.value)]


def etiqueta_tier(tier: Optional[str]) -> str:
    return TIER_LABELS.get(tier or '', 'Sin tier')
