# ==============================================================================
# ESQUEMA DE TABLAS - Definición única por tabla
# ==============================================================================
# Cada tabla se declara con dos modelos pydantic. De ellos salen las tres
# formas del contrato:
#
#   Row     → todas las columnas del modelo de fila (campos_row)
#   Insert  → el mismo modelo: sin default = requerido, con default = servidor
#   Update  → modelo de parche, todo opcional, sin columnas de solo lectura
#
# Cualquier violación (campo desconocido, tipo incorrecto, requerido faltante,
# valor fuera de rango o de enumeración) lanza SchemaViolation ANTES de tocar
# el almacenamiento.
#
# PREPARADO PARA MYSQL: estas definiciones se pueden traducir 1:1 a CREATE TABLE.
# ==============================================================================

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Type, get_args

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, model_validator

from mayorista.errors import SchemaViolation


# Valores válidos compartidos con models/entities.py
TierValor = Literal['0', '1', '2', '3']
RolValor = Literal['superadmin', 'admin', 'vendedor', 'cliente']
EstadoValor = Literal['pendiente', 'autorizado', 'rechazado', 'completado']

TIERS = get_args(TierValor)
ROLES = get_args(RolValor)
ROLES_CON_CLIENTE = frozenset(['cliente'])
ESTADOS_PEDIDO = get_args(EstadoValor)


def nuevo_id() -> str:
    """Identificador opaco generado por el servidor."""
    return uuid.uuid4().hex


def ahora_iso() -> str:
    """Timestamp UTC en formato ISO 8601."""
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# TIPOS COMPARTIDOS
# ==============================================================================

def _no_vacio(valor: str) -> str:
    if not valor.strip():
        raise ValueError('no puede estar vacío')
    return valor


TextoNoVacio = Annotated[str, AfterValidator(_no_vacio)]
Monto = Annotated[float, Field(ge=0)]

# Talles de una curva: al menos un talle, cada uno con 1 unidad o más
TallesCurva = Annotated[Dict[str, Annotated[int, Field(ge=1)]], Field(min_length=1)]
# Desglose de un item: cantidades por talle, cero permitido
TallesItem = Dict[str, Annotated[int, Field(ge=0)]]


class _Esquema(BaseModel):
    # strict: sin coerciones (1 no es '1', True no es 1)
    model_config = ConfigDict(strict=True, extra='forbid')


class _Fila(_Esquema):
    """Columnas que toda tabla tiene y solo el servidor asigna."""
    id: str = Field(default_factory=nuevo_id)
    created_at: str = Field(default_factory=ahora_iso)


# En los modelos de parche el default None no se valida: omitir una columna
# no nula es válido, enviarla en null no.


# ==============================================================================
# VENDEDORES Y CLIENTES
# ==============================================================================

class VendedorRow(_Fila):
    nombre: TextoNoVacio
    email: Optional[str] = None


class VendedorUpdate(_Esquema):
    nombre: TextoNoVacio = None
    email: Optional[str] = None


class ClienteRow(_Fila):
    nombre: TextoNoVacio
    tier: TierValor = '3'
    vendedor_id: Optional[str] = None


class ClienteUpdate(_Esquema):
    nombre: TextoNoVacio = None
    tier: TierValor = None
    vendedor_id: Optional[str] = None


# ==============================================================================
# CATÁLOGO
# ==============================================================================

class ProductoRow(_Fila):
    sku: TextoNoVacio
    nombre: TextoNoVacio
    categoria: Optional[str] = None
    linea: Optional[str] = None
    genero: Optional[str] = None
    rubro: Optional[str] = None
    precio_usd: Monto
    tier: Optional[TierValor] = None
    fecha_despacho: Optional[str] = None
    xfd: Optional[str] = None
    imagen_url: Optional[str] = None
    game_plan: bool = False


class ProductoUpdate(_Esquema):
    sku: TextoNoVacio = None
    nombre: TextoNoVacio = None
    categoria: Optional[str] = None
    linea: Optional[str] = None
    genero: Optional[str] = None
    rubro: Optional[str] = None
    precio_usd: Monto = None
    tier: Optional[TierValor] = None
    fecha_despacho: Optional[str] = None
    xfd: Optional[str] = None
    imagen_url: Optional[str] = None
    game_plan: bool = None


class CurvaRow(_Fila):
    nombre: TextoNoVacio
    genero: TextoNoVacio
    rubro: Optional[str] = None
    talles: TallesCurva


class CurvaUpdate(_Esquema):
    nombre: TextoNoVacio = None
    genero: TextoNoVacio = None
    rubro: Optional[str] = None
    talles: TallesCurva = None


# ==============================================================================
# PEDIDOS
# ==============================================================================

class PedidoRow(_Fila):
    cliente_id: str
    vendedor_id: Optional[str] = None
    total_usd: Monto = 0.0
    estado: EstadoValor = 'pendiente'
    updated_at: str = Field(default_factory=ahora_iso)


class PedidoUpdate(_Esquema):
    cliente_id: str = None
    vendedor_id: Optional[str] = None
    total_usd: Monto = None
    estado: EstadoValor = None


class ItemPedidoRow(_Fila):
    pedido_id: str
    producto_id: str
    curva_id: Optional[str] = None
    cantidad_curvas: Annotated[int, Field(ge=1)] = 1
    talles_cantidades: TallesItem
    cantidad: Annotated[int, Field(ge=0)]
    precio_unitario: Monto
    subtotal_usd: Monto

    @model_validator(mode='after')
    def _cantidades_cuadran(self) -> 'ItemPedidoRow':
        if self.cantidad != sum(self.talles_cantidades.values()):
            raise ValueError("'cantidad' debe ser igual a la suma de 'talles_cantidades'")
        if abs(round(self.cantidad * self.precio_unitario, 2) - self.subtotal_usd) > 0.005:
            raise ValueError("'subtotal_usd' debe ser cantidad × precio_unitario")
        return self


class ItemPedidoUpdate(_Esquema):
    pedido_id: str = None
    producto_id: str = None
    curva_id: Optional[str] = None
    cantidad_curvas: Annotated[int, Field(ge=1)] = None
    talles_cantidades: TallesItem = None
    cantidad: Annotated[int, Field(ge=0)] = None
    precio_unitario: Monto = None
    subtotal_usd: Monto = None


# ==============================================================================
# ROLES
# ==============================================================================

class UserRoleRow(_Fila):
    user_id: TextoNoVacio
    role: RolValor
    cliente_id: Optional[str] = None
    vendedor_id: Optional[str] = None
    nombre: Optional[str] = None

    @model_validator(mode='after')
    def _rol_requiere_cliente(self) -> 'UserRoleRow':
        if self.role in ROLES_CON_CLIENTE and not self.cliente_id:
            raise ValueError(f"el rol '{self.role}' requiere 'cliente_id'")
        return self


class UserRoleUpdate(_Esquema):
    user_id: TextoNoVacio = None
    role: RolValor = None
    cliente_id: Optional[str] = None
    vendedor_id: Optional[str] = None
    nombre: Optional[str] = None


# ==============================================================================
# TABLA: modelos + integridad
# ==============================================================================

def _mensajes(exc: ValidationError) -> List[str]:
    """Traduce los errores de pydantic a mensajes legibles."""
    mensajes = []
    for error in exc.errors():
        campo = '.'.join(str(parte) for parte in error['loc'])
        if error['type'] == 'missing':
            mensajes.append(f"falta el campo requerido '{campo}'")
        elif error['type'] == 'extra_forbidden':
            mensajes.append(f"campo desconocido '{campo}'")
        elif error['type'] == 'value_error' and not campo:
            # Reglas de fila completa
            mensajes.append(str(error['ctx']['error']))
        elif campo:
            mensajes.append(f"'{campo}': {error['msg']}")
        else:
            mensajes.append(error['msg'])
    return mensajes


@dataclass
class Tabla:
    """
    Definición de una tabla: modelos de fila y parche, claves foráneas y únicos.

    Attributes:
        nombre: Nombre de la tabla
        modelo: Modelo de fila (forma Row, y forma Insert por sus defaults)
        parche: Modelo de Update
        referencias: {columna: tabla_referenciada}
        unicos: Columnas con valor único
    """
    nombre: str
    modelo: Type[_Fila]
    parche: Type[_Esquema]
    referencias: Dict[str, str] = field(default_factory=dict)
    unicos: FrozenSet[str] = frozenset()

    @property
    def campos_row(self) -> List[str]:
        return list(self.modelo.model_fields)

    @property
    def campos_update(self) -> List[str]:
        return list(self.parche.model_fields)

    @property
    def tiene_updated_at(self) -> bool:
        return 'updated_at' in self.modelo.model_fields

    def _validar(self, modelo: Type[BaseModel], datos: Any) -> BaseModel:
        try:
            return modelo.model_validate(datos)
        except ValidationError as e:
            raise SchemaViolation(self.nombre, _mensajes(e)) from e

    def validar_insert(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Valida un Insert y completa los defaults del servidor.

        Args:
            payload: Datos enviados por el llamador

        Returns:
            Fila completa (forma Row) lista para persistir

        Raises:
            SchemaViolation: Si el payload no cumple el esquema
        """
        return self._validar(self.modelo, payload).model_dump()

    def validar_update(self, patch: Dict[str, Any],
                       actual: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Valida un parche parcial.

        Args:
            patch: Campos a modificar (todos opcionales)
            actual: Fila actual; si se pasa, se valida la fila resultante completa

        Returns:
            Parche limpio (incluye updated_at renovado si la tabla lo tiene)

        Raises:
            SchemaViolation: Si el parche no cumple el esquema
        """
        limpio = self._validar(self.parche, patch).model_dump(exclude_unset=True)
        if self.tiene_updated_at:
            limpio['updated_at'] = ahora_iso()

        if actual is not None:
            self._validar(self.modelo, {**actual, **limpio})
        return limpio

    def validar_row(self, fila: Dict[str, Any]) -> Dict[str, Any]:
        """Verifica que una fila leída tenga exactamente la forma Row."""
        faltantes = [c for c in self.campos_row if not isinstance(fila, dict) or c not in fila]
        if faltantes:
            raise SchemaViolation(self.nombre, [f"falta el campo '{c}'" for c in faltantes])
        self._validar(self.modelo, fila)
        return fila


# ==============================================================================
# DEFINICIÓN DE TABLAS
# ==============================================================================

VENDEDORES = Tabla('vendedores', VendedorRow, VendedorUpdate)

CLIENTES = Tabla(
    'clientes', ClienteRow, ClienteUpdate,
    referencias={'vendedor_id': 'vendedores'},
)

PRODUCTOS = Tabla('productos', ProductoRow, ProductoUpdate, unicos=frozenset(['sku']))

CURVAS = Tabla('curvas', CurvaRow, CurvaUpdate)

PEDIDOS = Tabla(
    'pedidos', PedidoRow, PedidoUpdate,
    referencias={'cliente_id': 'clientes', 'vendedor_id': 'vendedores'},
)

ITEMS_PEDIDO = Tabla(
    'items_pedido', ItemPedidoRow, ItemPedidoUpdate,
    referencias={'pedido_id': 'pedidos', 'producto_id': 'productos', 'curva_id': 'curvas'},
)

USER_ROLES = Tabla(
    'user_roles', UserRoleRow, UserRoleUpdate,
    referencias={'cliente_id': 'clientes', 'vendedor_id': 'vendedores'},
    unicos=frozenset(['user_id']),
)


# Registro de tablas por nombre
TABLAS: Dict[str, Tabla] = {
    t.nombre: t for t in (
        VENDEDORES, CLIENTES, PRODUCTOS, CURVAS, PEDIDOS, ITEMS_PEDIDO, USER_ROLES
    )
}
