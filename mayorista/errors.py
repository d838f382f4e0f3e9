# ==============================================================================
# EXCEPCIONES DEL DOMINIO
# ==============================================================================
# - SchemaViolation: el payload no cumple el esquema de la tabla (400)
# - ReferenceViolation: clave foránea inexistente o borrado restringido (409)
# - UniqueViolation: valor único repetido, ej. SKU (409)
# - AggregationMismatch: las sumas por dimensión no concilian con el total
# - ProtectedRoleError: intento de tocar el rol superadmin (403)
#
# Las referencias opcionales ausentes (vendedor sin asignar, cliente borrado)
# NO son errores: se resuelven con etiquetas de respaldo en la presentación.
# ==============================================================================

from typing import List, Optional


class MayoristaError(Exception):
    """Base de todas las excepciones del dominio."""
    pass


class SchemaViolation(MayoristaError):
    """El payload no respeta el esquema de la tabla."""

    def __init__(self, tabla: str, errores: List[str]):
        self.tabla = tabla
        self.errores = list(errores)
        super().__init__(f"{tabla}: " + '; '.join(self.errores))


class IntegrityError(MayoristaError):
    """Violación de integridad entre tablas."""
    pass


class ReferenceViolation(IntegrityError):
    """Clave foránea que no resuelve, o borrado restringido por referencias."""

    def __init__(self, tabla: str, campo: str, valor: Optional[str], mensaje: str = ''):
        self.tabla = tabla
        self.campo = campo
        self.valor = valor
        super().__init__(mensaje or f"{tabla}.{campo}: no existe el registro '{valor}'")


class UniqueViolation(IntegrityError):
    """Valor repetido en una columna única."""

    def __init__(self, tabla: str, campo: str, valor: str):
        self.tabla = tabla
        self.campo = campo
        self.valor = valor
        super().__init__(f"{tabla}.{campo}: el valor '{valor}' ya existe")


class AggregationMismatch(MayoristaError):
    """Las sumas por dimensión del reporte no concilian con el total general."""

    def __init__(self, dimension: str, esperado: float, obtenido: float):
        self.dimension = dimension
        self.esperado = esperado
        self.obtenido = obtenido
        super().__init__(
            f"Reporte inconsistente en '{dimension}': "
            f"total {esperado:.2f} != suma {obtenido:.2f}"
        )


class ProtectedRoleError(MayoristaError):
    """Excepción lanzada cuando se intenta modificar un rol protegido."""
    pass
