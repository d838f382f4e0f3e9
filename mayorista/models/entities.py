# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio mayorista.
# Las filas persistidas se validan con models/schema.py; estas clases son la
# vista tipada que usan los servicios, el reporte y la presentación.
# ==============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from mayorista.models.schema import ESTADOS_PEDIDO, ROLES, TIERS


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class Rol(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    SUPERADMIN = "superadmin"  # Protegido, no se asigna a mano
    ADMIN = "admin"
    VENDEDOR = "vendedor"
    CLIENTE = "cliente"


class Tier(str, Enum):
    """Niveles de acceso al catálogo. Menor número = más acceso."""
    PREMIUM = "0"
    GOLD = "1"
    SILVER = "2"
    BRONZE = "3"

    @property
    def etiqueta(self) -> str:
        return TIER_LABELS[self.value]


TIER_LABELS = {
    "0": "Tier 0 - Premium",
    "1": "Tier 1 - Gold",
    "2": "Tier 2 - Silver",
    "3": "Tier 3 - Bronze",
}


class EstadoPedido(str, Enum):
    """Estados posibles de un pedido."""
    PENDIENTE = "pendiente"      # Carrito confirmado, sin autorizar
    AUTORIZADO = "autorizado"    # Aprobado por un admin
    RECHAZADO = "rechazado"      # Rechazado por un admin
    COMPLETADO = "completado"    # Despachado / cerrado


# Transiciones permitidas de estado
TRANSICIONES_ESTADO = {
    EstadoPedido.PENDIENTE: (EstadoPedido.AUTORIZADO, EstadoPedido.RECHAZADO),
    EstadoPedido.AUTORIZADO: (EstadoPedido.COMPLETADO,),
    EstadoPedido.RECHAZADO: (),
    EstadoPedido.COMPLETADO: (),
}

# Pedidos que cuentan como venta cerrada en los reportes
ESTADOS_FINALIZADOS = (EstadoPedido.AUTORIZADO, EstadoPedido.COMPLETADO)


class ModoReporte(str, Enum):
    """Dimensión de agrupación del panel de reportes."""
    GENERAL = "general"
    POR_CLIENTE = "porCliente"
    POR_VENDEDOR = "porVendedor"
    POR_RUBRO = "porRubro"

    @classmethod
    def desde_valor(cls, valor: Optional[str]) -> 'ModoReporte':
        """Convierte el valor del query string; cualquier valor desconocido es GENERAL."""
        try:
            return cls(valor)
        except ValueError:
            return cls.GENERAL


# Los enums deben coincidir con los valores que acepta el esquema
for _enum, _valores in ((Tier, TIERS), (Rol, ROLES), (EstadoPedido, ESTADOS_PEDIDO)):
    if {m.value for m in _enum} != set(_valores):
        raise RuntimeError(f"{_enum.__name__} no coincide con el esquema: {sorted(_valores)}")


# Rubros con resumen propio en la tarjeta de pedido
RUBRO_CALZADOS = 'calzados'
RUBRO_PRENDAS = 'prendas'

SIN_VENDEDOR = "Sin vendedor asignado"
SIN_CLIENTE = "Sin cliente"
SIN_RUBRO = "Sin rubro"


# ==============================================================================
# ENTIDADES DEL CATÁLOGO
# ==============================================================================

@dataclass
class Vendedor:
    id: str
    nombre: str
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Vendedor':
        return cls(id=data['id'], nombre=data.get('nombre', ''), email=data.get('email'))


@dataclass
class Cliente:
    id: str
    nombre: str
    tier: str = '3'
    vendedor_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cliente':
        return cls(
            id=data['id'],
            nombre=data.get('nombre', ''),
            tier=data.get('tier') or '3',
            vendedor_id=data.get('vendedor_id'),
        )


@dataclass
class Producto:
    """
    Producto del catálogo.

    Attributes:
        sku: Código único del producto
        rubro: Calzados / Prendas / Accesorios
        precio_usd: Precio unitario en dólares
        tier: Tier mínimo requerido para verlo (None = sin restricción definida)
    """
    id: str
    sku: str
    nombre: str
    precio_usd: float
    rubro: Optional[str] = None
    genero: Optional[str] = None
    categoria: Optional[str] = None
    linea: Optional[str] = None
    tier: Optional[str] = None
    fecha_despacho: Optional[str] = None
    xfd: Optional[str] = None
    imagen_url: Optional[str] = None
    game_plan: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Producto':
        return cls(
            id=data['id'],
            sku=data.get('sku', ''),
            nombre=data.get('nombre', ''),
            precio_usd=float(data.get('precio_usd') or 0),
            rubro=data.get('rubro'),
            genero=data.get('genero'),
            categoria=data.get('categoria'),
            linea=data.get('linea'),
            tier=data.get('tier'),
            fecha_despacho=data.get('fecha_despacho'),
            xfd=data.get('xfd'),
            imagen_url=data.get('imagen_url'),
            game_plan=bool(data.get('game_plan', False)),
        )


@dataclass
class Curva:
    """Curva de talles: plantilla talle → unidades por curva."""
    id: str
    nombre: str
    genero: str
    talles: Dict[str, int] = field(default_factory=dict)
    rubro: Optional[str] = None

    @property
    def total_unidades(self) -> int:
        return sum(self.talles.values())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Curva':
        return cls(
            id=data['id'],
            nombre=data.get('nombre', ''),
            genero=data.get('genero', ''),
            talles=dict(data.get('talles') or {}),
            rubro=data.get('rubro'),
        )


# ==============================================================================
# ENTIDADES DE PEDIDOS
# ==============================================================================

@dataclass
class ItemPedido:
    """
    Línea de un pedido con su producto resuelto (si todavía existe).

    Attributes:
        talles_cantidades: Desglose talle → unidades (ya multiplicado por cantidad_curvas)
        cantidad: Total de unidades de la línea
        subtotal_usd: cantidad × precio_unitario
    """
    id: str
    pedido_id: str
    producto_id: str
    cantidad: int
    precio_unitario: float
    subtotal_usd: float
    cantidad_curvas: int = 1
    curva_id: Optional[str] = None
    talles_cantidades: Dict[str, int] = field(default_factory=dict)
    producto: Optional[Producto] = None

    @property
    def rubro(self) -> Optional[str]:
        return self.producto.rubro if self.producto else None

    @property
    def sku(self) -> Optional[str]:
        return self.producto.sku if self.producto else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ItemPedido':
        producto = data.get('producto') or data.get('productos')
        return cls(
            id=data['id'],
            pedido_id=data.get('pedido_id', ''),
            producto_id=data.get('producto_id', ''),
            cantidad=int(data.get('cantidad') or 0),
            precio_unitario=float(data.get('precio_unitario') or 0),
            subtotal_usd=float(data.get('subtotal_usd') or 0),
            cantidad_curvas=int(data.get('cantidad_curvas') or 1),
            curva_id=data.get('curva_id'),
            talles_cantidades=dict(data.get('talles_cantidades') or {}),
            producto=Producto.from_dict(producto) if producto else None,
        )


@dataclass
class PedidoConDetalles:
    """
    Pedido con cliente, vendedor e items resueltos.

    cliente y vendedor son opcionales: una referencia ausente se muestra
    con una etiqueta de respaldo, nunca como error.
    """
    id: str
    cliente_id: str
    total_usd: float
    estado: str
    created_at: str
    vendedor_id: Optional[str] = None
    updated_at: Optional[str] = None
    cliente: Optional[Cliente] = None
    vendedor: Optional[Vendedor] = None
    items: List[ItemPedido] = field(default_factory=list)

    @property
    def nombre_cliente(self) -> str:
        return self.cliente.nombre if self.cliente else SIN_CLIENTE

    @property
    def nombre_vendedor(self) -> str:
        return self.vendedor.nombre if self.vendedor else SIN_VENDEDOR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PedidoConDetalles':
        """
        Crea instancia desde diccionario.
        Acepta las relaciones anidadas como 'cliente'/'clientes',
        'vendedor'/'vendedores' e 'items'/'items_pedido'.
        """
        cliente = data.get('cliente') or data.get('clientes')
        vendedor = data.get('vendedor') or data.get('vendedores')
        items = data.get('items') or data.get('items_pedido') or []
        return cls(
            id=data['id'],
            cliente_id=data.get('cliente_id', ''),
            total_usd=float(data.get('total_usd') or 0),
            estado=data.get('estado', EstadoPedido.PENDIENTE.value),
            created_at=data.get('created_at', ''),
            vendedor_id=data.get('vendedor_id'),
            updated_at=data.get('updated_at'),
            cliente=Cliente.from_dict(cliente) if cliente else None,
            vendedor=Vendedor.from_dict(vendedor) if vendedor else None,
            items=[ItemPedido.from_dict(i) for i in items],
        )


# ==============================================================================
# ESTADÍSTICAS - Tarjeta de pedido y reportes
# ==============================================================================

@dataclass
class EstadisticasRubro:
    skus_count: int = 0
    cantidad_total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'skusCount': self.skus_count, 'cantidadTotal': self.cantidad_total}


@dataclass
class CarritoStats:
    """Resumen por rubro que muestra la tarjeta de un pedido o carrito."""
    calzados: EstadisticasRubro = field(default_factory=EstadisticasRubro)
    prendas: EstadisticasRubro = field(default_factory=EstadisticasRubro)

    def to_dict(self) -> Dict[str, Any]:
        return {'calzados': self.calzados.to_dict(), 'prendas': self.prendas.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CarritoStats':
        def _rubro(d):
            d = d or {}
            return EstadisticasRubro(
                skus_count=int(d.get('skusCount', 0)),
                cantidad_total=int(d.get('cantidadTotal', 0)),
            )
        return cls(calzados=_rubro(data.get('calzados')), prendas=_rubro(data.get('prendas')))


@dataclass
class ResumenGrupo:
    """Fila de un reporte agrupado por cliente o por vendedor."""
    nombre: str
    total_pedidos: int = 0
    total_skus: int = 0
    total_cantidad: int = 0
    total_valorizado: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nombre': self.nombre,
            'totalPedidos': self.total_pedidos,
            'totalSKUs': self.total_skus,
            'totalCantidad': self.total_cantidad,
            'totalValorizado': round(self.total_valorizado, 2),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResumenGrupo':
        return cls(
            nombre=data.get('nombre', ''),
            total_pedidos=int(data.get('totalPedidos', 0)),
            total_skus=int(data.get('totalSKUs', 0)),
            total_cantidad=int(data.get('totalCantidad', 0)),
            total_valorizado=float(data.get('totalValorizado', 0)),
        )


@dataclass
class ResumenRubro:
    """Fila de un reporte agrupado por rubro."""
    nombre: str
    total_skus: int = 0
    total_cantidad: int = 0
    total_valorizado: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nombre': self.nombre,
            'totalSKUs': self.total_skus,
            'totalCantidad': self.total_cantidad,
            'totalValorizado': round(self.total_valorizado, 2),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResumenRubro':
        return cls(
            nombre=data.get('nombre', ''),
            total_skus=int(data.get('totalSKUs', 0)),
            total_cantidad=int(data.get('totalCantidad', 0)),
            total_valorizado=float(data.get('totalValorizado', 0)),
        )


@dataclass
class ReportStats:
    """
    Estadísticas agregadas de un conjunto de pedidos.

    Invariante: la suma de total_valorizado en por_cliente, por_vendedor
    y por_rubro es igual al total_valorizado general.
    """
    total_pedidos: int = 0
    total_skus: int = 0
    total_cantidad: int = 0
    total_valorizado: float = 0.0
    por_cliente: Dict[str, ResumenGrupo] = field(default_factory=dict)
    por_vendedor: Dict[str, ResumenGrupo] = field(default_factory=dict)
    por_rubro: Dict[str, ResumenRubro] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalPedidos': self.total_pedidos,
            'totalSKUs': self.total_skus,
            'totalCantidad': self.total_cantidad,
            'totalValorizado': round(self.total_valorizado, 2),
            'porCliente': {k: v.to_dict() for k, v in self.por_cliente.items()},
            'porVendedor': {k: v.to_dict() for k, v in self.por_vendedor.items()},
            'porRubro': {k: v.to_dict() for k, v in self.por_rubro.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReportStats':
        return cls(
            total_pedidos=int(data.get('totalPedidos', 0)),
            total_skus=int(data.get('totalSKUs', 0)),
            total_cantidad=int(data.get('totalCantidad', 0)),
            total_valorizado=float(data.get('totalValorizado', 0)),
            por_cliente={k: ResumenGrupo.from_dict(v)
                         for k, v in (data.get('porCliente') or {}).items()},
            por_vendedor={k: ResumenGrupo.from_dict(v)
                          for k, v in (data.get('porVendedor') or {}).items()},
            por_rubro={k: ResumenRubro.from_dict(v)
                       for k, v in (data.get('porRubro') or {}).items()},
        )
