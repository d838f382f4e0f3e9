import logging
import os
import uuid
from functools import wraps

from flask import (
    Blueprint,
    Flask,
    Response,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from mayorista.config import load_config
from mayorista.errors import (
    IntegrityError,
    ProtectedRoleError,
    SchemaViolation,
)
from mayorista.models.entities import EstadoPedido, ModoReporte, TIER_LABELS
from mayorista.models.schema import TABLAS

# Sistema de profiling interno
from mayorista.performance_logger import init_profiling

from mayorista.services import export_service
from mayorista.services.reports_service import calcular_estadisticas_por_rubro
from mayorista.views import render_panel_reportes, render_pedido_card

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios y Repositorios
# ═══════════════════════════════════════════════════════════════════════════
# create_app() arma un AppContainer por aplicación y lo guarda en
# app.extensions['mayorista']. Las rutas solo llaman a servicios.
# ═══════════════════════════════════════════════════════════════════════════
from mayorista.app_container import AppContainer

logger = logging.getLogger(__name__)

bp = Blueprint('main', __name__)

# Tablas que no se escriben por la API genérica: los pedidos se crean desde
# el carrito para que total_usd siempre sea la suma de los items.
TABLAS_SOLO_LECTURA = frozenset(['pedidos', 'items_pedido'])


def get_container() -> AppContainer:
    return current_app.extensions['mayorista']


def _is_api():
    return request.path.startswith('/api/')


def _current_user():
    return session.get('user_id')


# ═══════════════════════════════════════════════════════════════════════════
# DECORADORES DE ACCESO
# ═══════════════════════════════════════════════════════════════════════════
# La identidad llega en session['user_id'] desde el login externo.

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not _current_user():
            if _is_api():
                return {"ok": False, "error": "Debes iniciar sesión."}, 401
            flash("Debes iniciar sesión.", "warning")
            return redirect(url_for("main.index"))
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not get_container().auth_service.is_admin(_current_user()):
            if _is_api():
                return {"ok": False, "error": "Permiso denegado"}, 403
            flash("Permiso denegado.", "danger")
            return redirect(url_for("main.index"))
        return f(*args, **kwargs)
    return wrapper


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ('POST', 'PATCH', 'DELETE'):
            token = session.get('csrf_token')
            form_token = (
                request.form.get('csrf_token') or
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken')
            )
            if not form_token and request.is_json:
                json_data = request.get_json(silent=True)
                if isinstance(json_data, dict):
                    form_token = json_data.get('csrf_token')

            if not token or not form_token or token != form_token:
                if _is_api():
                    return {"ok": False, "error": "CSRF token inválido"}, 403
                flash('Sesión expirada. Por favor intenta de nuevo.', 'warning')
                return redirect(url_for('main.index'))
        return f(*args, **kwargs)
    return wrapper


def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# ERRORES DEL DOMINIO → HTTP
# ═══════════════════════════════════════════════════════════════════════════

def _error_response(error, status):
    if _is_api() or request.is_json:
        return {"ok": False, "error": str(error)}, status
    flash(str(error), 'danger')
    return redirect(request.referrer or url_for('main.index'))


def handle_schema_violation(error):
    return _error_response(error, 400)


def handle_protected_role(error):
    return _error_response(error, 403)


def handle_integrity_error(error):
    return _error_response(error, 409)


# ═══════════════════════════════════════════════════════════════════════════
# PROTECCIÓN DE RUTAS SENSIBLES
# ═══════════════════════════════════════════════════════════════════════════
@bp.route('/logs/<path:filename>')
def block_sensitive_routes(filename):
    """Bloquea acceso a la carpeta de logs."""
    return "Not Found", 404


# Inicio
@bp.route("/")
def index():
    container = get_container()
    user_id = _current_user()
    rol = container.auth_service.get_role(user_id)
    cliente = None
    if rol and rol.get('cliente_id'):
        cliente = container.clientes_service.get_cliente(rol['cliente_id'])

    stats = None
    if container.auth_service.is_admin(user_id):
        stats = container.pedido_service.compute_stats()

    return render_template(
        "index.html",
        user_id=user_id,
        rol=rol,
        cliente=cliente,
        tier_label=TIER_LABELS.get((cliente or {}).get('tier')),
        carrito=container.cart_service.get_cart() if user_id else None,
        stats=stats,
    )


# ═══════════════════════════════════════════════════════════════════════════
# CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@bp.route("/catalogo")
@login_required
def catalogo():
    container = get_container()
    user_id = _current_user()
    game_plan = request.args.get('game_plan')
    filtros = {
        'rubro': request.args.get('rubro') or None,
        'genero': request.args.get('genero') or None,
        'categoria': request.args.get('categoria') or None,
        'linea': request.args.get('linea') or None,
        'game_plan': (game_plan == '1') if game_plan in ('0', '1') else None,
        'texto': (request.args.get('q') or '').strip() or None,
    }
    productos = container.catalog_service.visible_products(
        container.auth_service.resolve_client_tier(user_id),
        container.auth_service.is_admin(user_id),
        **filtros
    )
    return render_template(
        "catalogo.html",
        productos=productos,
        opciones=container.catalog_service.distinct_values(),
        query=request.args,
    )


@bp.route("/catalogo/<producto_id>")
@login_required
def producto_detalle(producto_id):
    container = get_container()
    user_id = _current_user()
    result = container.catalog_service.get_visible_product(
        producto_id,
        container.auth_service.resolve_client_tier(user_id),
        container.auth_service.is_admin(user_id),
    )
    if not result['ok']:
        flash(result['error'], 'warning')
        return redirect(url_for('main.catalogo'))
    return render_template(
        "producto.html",
        producto=result['producto'],
        talles=result['talles'],
        curvas=result['curvas'],
    )


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════

@bp.route("/carrito")
@login_required
def carrito():
    cart_service = get_container().cart_service
    pedido = cart_service.como_pedido(_current_user())
    tarjeta = render_pedido_card(pedido, calcular_estadisticas_por_rubro(pedido), 'carrito')
    return render_template("carrito.html", carrito=cart_service.get_cart(), tarjeta=tarjeta)


@bp.route("/api/carrito", methods=["GET"])
@login_required
def api_carrito_ver():
    """Ver contenido actual del carrito"""
    return {"ok": True, **get_container().cart_service.get_cart()}


def _result_json(result):
    if result.get('ok'):
        return result
    status = result.pop('status', 400)
    return result, status


@bp.route("/api/carrito/agregar", methods=["POST"])
@login_required
@verify_csrf
def api_carrito_agregar():
    """
    Agregar producto al carrito (almacenado en session).
    Espera JSON con: producto_id, curva_id, cantidad_curvas
    o producto_id + talles_cantidades para pedir sin curva.
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return {"ok": False, "error": "Datos no recibidos o formato inválido"}, 400

    result = get_container().cart_service.add_item(
        _current_user(),
        data.get("producto_id"),
        curva_id=data.get("curva_id"),
        cantidad_curvas=data.get("cantidad_curvas", 1),
        talles_cantidades=data.get("talles_cantidades"),
    )
    return _result_json(result)


@bp.route("/api/carrito/eliminar", methods=["POST"])
@login_required
@verify_csrf
def api_carrito_eliminar():
    """Eliminar una línea del carrito"""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return {"ok": False, "error": "Datos no recibidos"}, 400
    result = get_container().cart_service.remove_item(
        data.get("producto_id"), data.get("curva_id")
    )
    return _result_json(result)


@bp.route("/api/carrito/limpiar", methods=["POST"])
@login_required
@verify_csrf
def api_carrito_limpiar():
    """Vaciar el carrito"""
    return get_container().cart_service.clear_cart()


@bp.route("/api/carrito/confirmar", methods=["POST"])
@login_required
@verify_csrf
def api_carrito_confirmar():
    """
    Confirmar carrito: crea un pedido 'pendiente' para el cliente del usuario.
    SIEMPRE devuelve JSON.
    """
    result = get_container().cart_service.confirm(_current_user())
    if result.get('ok'):
        result['redirect'] = url_for('main.pedidos')
    return _result_json(result)


# ═══════════════════════════════════════════════════════════════════════════
# PEDIDOS
# ═══════════════════════════════════════════════════════════════════════════

def _tarjetas(pedidos):
    return [
        (p, render_pedido_card(p, calcular_estadisticas_por_rubro(p)))
        for p in pedidos
    ]


@bp.route('/pedidos')
@login_required
def pedidos():
    container = get_container()
    user_id = _current_user()
    rol = container.auth_service.get_role(user_id)
    if not rol:
        flash("Tu usuario no tiene un rol asignado.", "warning")
        return redirect(url_for('main.index'))

    estado = request.args.get('estado') or None
    filtros = {
        'estados': [estado] if estado else None,
        'fecha_desde': request.args.get('desde') or None,
        'fecha_hasta': request.args.get('hasta') or None,
    }
    es_admin = container.auth_service.is_admin(user_id)
    if es_admin:
        filtros['cliente_id'] = request.args.get('cliente_id') or None
        filtros['vendedor_id'] = request.args.get('vendedor_id') or None
    elif rol.get('role') == 'vendedor':
        filtros['vendedor_id'] = rol.get('vendedor_id') or '-'
    else:
        filtros['cliente_id'] = rol.get('cliente_id') or '-'

    lista = container.pedido_service.list_pedidos(**filtros)
    return render_template(
        'pedidos.html',
        titulo='Pedidos',
        tarjetas=_tarjetas(lista),
        estados=[e.value for e in EstadoPedido],
        es_admin=es_admin,
        clientes=container.clientes_service.list_clientes() if es_admin else [],
        vendedores=container.clientes_service.list_vendedores() if es_admin else [],
        query=request.args,
    )


@bp.route('/autorizacion')
@login_required
@admin_required
def autorizacion():
    """Pedidos pendientes de autorización."""
    lista = get_container().pedido_service.list_pedidos(
        estados=[EstadoPedido.PENDIENTE.value]
    )
    return render_template(
        'pedidos.html',
        titulo='Autorización de pedidos',
        tarjetas=_tarjetas(lista),
        estados=[],
        es_admin=True,
        autorizacion=True,
        clientes=[],
        vendedores=[],
        query=request.args,
    )


@bp.route('/pedidos/<pedido_id>/estado', methods=['POST'])
@login_required
@admin_required
@verify_csrf
def cambiar_estado_pedido(pedido_id):
    if request.is_json:
        data = request.get_json(silent=True)
        estado = data.get('estado') if isinstance(data, dict) else None
    else:
        estado = request.form.get('estado')
    nuevo = estado.strip().lower() if isinstance(estado, str) else ''
    result = get_container().pedido_service.change_estado(pedido_id, nuevo)

    if request.is_json:
        if not result['ok']:
            status = 404 if result['error'] == 'Pedido no encontrado' else 400
            return result, status
        return result

    if result['ok']:
        flash(f"Pedido #{pedido_id[-8:]} {result['new_estado']}.", 'success')
    else:
        flash(result['error'], 'warning')
    return redirect(request.referrer or url_for('main.pedidos'))


@bp.route('/pedidos/<pedido_id>/eliminar', methods=['POST'])
@login_required
@admin_required
@verify_csrf
def eliminar_pedido(pedido_id):
    eliminado = get_container().pedido_service.delete_pedido(pedido_id)
    if request.is_json:
        if not eliminado:
            return {"ok": False, "error": "Pedido no encontrado"}, 404
        return {"ok": True}
    if eliminado:
        flash('Pedido eliminado.', 'success')
    else:
        flash('Pedido no encontrado.', 'warning')
    return redirect(request.referrer or url_for('main.pedidos'))


# ═══════════════════════════════════════════════════════════════════════════
# REPORTES
# ═══════════════════════════════════════════════════════════════════════════

TIPOS_REPORTE = {
    'finalizados': 'Reporte de Pedidos Finalizados',
    'carritos': 'Reporte de Carritos Sin Confirmar',
}


def _tipo_reporte():
    tipo = request.args.get('tipo') or 'finalizados'
    return tipo if tipo in TIPOS_REPORTE else 'finalizados'


def _filtros_reporte():
    return {
        'fecha_desde': request.args.get('desde') or None,
        'fecha_hasta': request.args.get('hasta') or None,
    }


@bp.route('/reportes')
@login_required
@admin_required
def reportes():
    reports_service = get_container().reports_service
    tipo = _tipo_reporte()
    titulo = TIPOS_REPORTE[tipo]
    modo = ModoReporte.desde_valor(request.args.get('modo'))
    filtros = _filtros_reporte()

    if tipo == 'carritos':
        stats = reports_service.reporte_carritos(**filtros)
    else:
        stats = reports_service.reporte_finalizados(**filtros)

    inconsistencia = reports_service.conciliar(stats, titulo)
    if inconsistencia:
        flash(f"Atención: {inconsistencia}", 'danger')

    panel = render_panel_reportes(
        stats,
        titulo,
        modo,
        url_modo=lambda m: url_for('main.reportes', modo=m.value, tipo=tipo, **{
            k: v for k, v in request.args.items() if k in ('desde', 'hasta')
        }),
        url_exportar=url_for('main.reportes_exportar', tipo=tipo),
    )
    return render_template('reportes.html', panel=panel, tipo=tipo, tipos=TIPOS_REPORTE,
                           query=request.args)


@bp.route('/reportes/exportar')
@login_required
@admin_required
def reportes_exportar():
    reports_service = get_container().reports_service
    tipo = _tipo_reporte()
    filtros = _filtros_reporte()
    if tipo == 'carritos':
        lista = reports_service.carritos_pendientes(**filtros)
    else:
        lista = reports_service.pedidos_finalizados(**filtros)

    contenido = export_service.exportar_pedidos_csv(lista)
    filename = export_service.nombre_archivo(tipo)
    return Response(contenido, mimetype='text/csv',
                    headers={'Content-Disposition': f'attachment;filename={filename}'})


# ═══════════════════════════════════════════════════════════════════════════
# API DE TABLAS (admin)
# ═══════════════════════════════════════════════════════════════════════════
# Lecturas directas del repositorio; escrituras a través de los servicios
# cuando la tabla tiene reglas propias (roles, borrados restringidos).

def _repo_or_404(tabla):
    if tabla not in TABLAS:
        return None
    return get_container().repos[tabla]


@bp.route('/api/<tabla>', methods=['GET'])
@login_required
@admin_required
def api_tabla_listar(tabla):
    repo = _repo_or_404(tabla)
    if repo is None:
        return {"ok": False, "error": f"Tabla desconocida: {tabla}"}, 404
    return {"ok": True, "data": repo.get_all()}


@bp.route('/api/<tabla>/<record_id>', methods=['GET'])
@login_required
@admin_required
def api_tabla_obtener(tabla, record_id):
    repo = _repo_or_404(tabla)
    if repo is None:
        return {"ok": False, "error": f"Tabla desconocida: {tabla}"}, 404
    fila = repo.get_by_id(record_id)
    if not fila:
        return {"ok": False, "error": "Registro no encontrado"}, 404
    return {"ok": True, "data": fila}


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    data = dict(data)
    data.pop('csrf_token', None)
    return data


@bp.route('/api/<tabla>', methods=['POST'])
@login_required
@admin_required
@verify_csrf
def api_tabla_insertar(tabla):
    container = get_container()
    repo = _repo_or_404(tabla)
    if repo is None:
        return {"ok": False, "error": f"Tabla desconocida: {tabla}"}, 404
    if tabla in TABLAS_SOLO_LECTURA:
        return {"ok": False, "error": "Los pedidos se crean desde el carrito"}, 405
    data = _payload()
    if data is None:
        return {"ok": False, "error": "Datos no recibidos o formato inválido"}, 400

    if tabla == 'user_roles':
        result = container.auth_service.assign_role(
            data.get('user_id'),
            data.get('role'),
            cliente_id=data.get('cliente_id'),
            vendedor_id=data.get('vendedor_id'),
            nombre=data.get('nombre'),
        )
        if not result['ok']:
            return result, 403 if 'superadmin' in result['error'] else 400
        return {"ok": True, "data": result['rol']}, 201

    return {"ok": True, "data": repo.insert(data)}, 201


@bp.route('/api/<tabla>/<record_id>', methods=['PATCH'])
@login_required
@admin_required
@verify_csrf
def api_tabla_actualizar(tabla, record_id):
    container = get_container()
    repo = _repo_or_404(tabla)
    if repo is None:
        return {"ok": False, "error": f"Tabla desconocida: {tabla}"}, 404
    if tabla in TABLAS_SOLO_LECTURA:
        return {"ok": False, "error": "Use /pedidos/<id>/estado para modificar pedidos"}, 405
    data = _payload()
    if data is None:
        return {"ok": False, "error": "Datos no recibidos o formato inválido"}, 400

    if tabla == 'user_roles':
        container.auth_service.verificar_no_protegido(repo.get_by_id(record_id), data.get('role'))

    if tabla == 'curvas':
        fila = container.catalog_service.update_curva(record_id, data)
    else:
        fila = repo.update(record_id, data)
    if fila is None:
        return {"ok": False, "error": "Registro no encontrado"}, 404
    return {"ok": True, "data": fila}


@bp.route('/api/<tabla>/<record_id>', methods=['DELETE'])
@login_required
@admin_required
@verify_csrf
def api_tabla_eliminar(tabla, record_id):
    container = get_container()
    repo = _repo_or_404(tabla)
    if repo is None:
        return {"ok": False, "error": f"Tabla desconocida: {tabla}"}, 404
    if tabla in TABLAS_SOLO_LECTURA:
        return {"ok": False, "error": "Use /pedidos/<id>/eliminar para borrar pedidos"}, 405

    if tabla == 'clientes':
        fila = container.clientes_service.delete_cliente(record_id)
    elif tabla == 'vendedores':
        fila = container.clientes_service.delete_vendedor(record_id)
    elif tabla == 'productos':
        fila = container.catalog_service.delete_product(record_id)
    elif tabla == 'curvas':
        fila = container.catalog_service.delete_curva(record_id)
    elif tabla == 'user_roles':
        container.auth_service.verificar_no_protegido(repo.get_by_id(record_id))
        fila = repo.delete(record_id)
    else:
        fila = repo.delete(record_id)

    if fila is None:
        return {"ok": False, "error": "Registro no encontrado"}, 404
    return {"ok": True, "data": fila}


# ═══════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def _configure_logging(production):
    logging.basicConfig(
        level=logging.WARNING if production else logging.INFO,
        format='[%(asctime)s] %(levelname)s %(name)s: %(message)s',
    )


def create_app(base_path=None, config=None):
    """
    Crea la aplicación Flask.

    Args:
        base_path: Carpeta de datos (reemplaza a DATA_DIR / MAYORISTA_DATA_DIR)
        config: Valores extra para app.config (útil en tests)

    Returns:
        Aplicación Flask con el contenedor en app.extensions['mayorista']
    """
    app = Flask(__name__)
    app.config.update(load_config(config))
    if base_path:
        app.config['DATA_DIR'] = base_path
    os.makedirs(app.config['DATA_DIR'], exist_ok=True)

    _configure_logging(app.config['PRODUCTION_MODE'])

    container = AppContainer(app.config['DATA_DIR'])
    app.extensions['mayorista'] = container

    # Mide rendimiento de rutas y funciones. Logs en <DATA_DIR>/logs/
    init_profiling(app)

    app.register_blueprint(bp)
    app.after_request(set_security_headers)
    app.register_error_handler(SchemaViolation, handle_schema_violation)
    app.register_error_handler(ProtectedRoleError, handle_protected_role)
    app.register_error_handler(IntegrityError, handle_integrity_error)

    @app.context_processor
    def inject_globals():
        user_id = session.get('user_id')
        return {
            'csrf_token': generate_csrf_token(),
            'current_user': user_id,
            'es_admin': container.auth_service.is_admin(user_id),
        }

    if app.config.get('SEED_CURVAS'):
        creadas = container.catalog_service.seed_predefined_curves()
        if creadas:
            logger.info("Curvas predefinidas cargadas: %d", creadas)

    superadmin = app.config.get('SUPERADMIN_USER_ID')
    if superadmin and not container.auth_service.has_superadmin():
        result = container.auth_service.bootstrap_superadmin(superadmin)
        if not result['ok']:
            logger.warning("No se pudo crear el superadmin inicial: %s", result['error'])

    return app
