# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y funciones sin afectar la experiencia del usuario.
# Guarda logs legibles en <DATA_DIR>/logs/ para análisis humano.
#
# ACTIVAR/DESACTIVAR: app.config['ENABLE_PROFILING'] (MAYORISTA_PROFILING)
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

from mayorista import config as app_config

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = app_config.ENABLE_PROFILING

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = app_config.THRESHOLD_WARNING
THRESHOLD_CRITICAL = app_config.THRESHOLD_CRITICAL

# Directorio de logs (lo fija init_profiling según DATA_DIR)
LOGS_DIR = os.path.join(app_config.DEFAULT_DATA_DIR, 'logs')

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Inicio
    'GET /': 'Ver inicio',

    # Catálogo
    'GET /catalogo': 'Ver catálogo',
    'GET /catalogo/<producto_id>': 'Ver ficha de producto',

    # Carrito
    'GET /carrito': 'Ver carrito',
    'GET /api/carrito': 'Consultar carrito',
    'POST /api/carrito/agregar': 'Agregar al carrito',
    'POST /api/carrito/eliminar': 'Eliminar del carrito',
    'POST /api/carrito/limpiar': 'Vaciar carrito',
    'POST /api/carrito/confirmar': 'Confirmar pedido',

    # Pedidos
    'GET /pedidos': 'Ver pedidos',
    'GET /autorizacion': 'Ver pedidos por autorizar',
    'POST /pedidos/<pedido_id>/estado': 'Cambiar estado pedido',
    'POST /pedidos/<pedido_id>/eliminar': 'Eliminar pedido',

    # Reportes
    'GET /reportes': 'Ver reportes',
    'GET /reportes/exportar': 'Exportar reporte CSV',

    # API de tablas
    'GET /api/<tabla>': 'Listar tabla',
    'POST /api/<tabla>': 'Insertar en tabla',
    'GET /api/<tabla>/<record_id>': 'Obtener registro',
    'PATCH /api/<tabla>/<record_id>': 'Actualizar registro',
    'DELETE /api/<tabla>/<record_id>': 'Eliminar registro',
}


def _log_files():
    return (
        os.path.join(LOGS_DIR, 'performance.log'),
        os.path.join(LOGS_DIR, 'slow_routes.log'),
        os.path.join(LOGS_DIR, 'slow_functions.log'),
    )


def configure(logs_dir=None, enabled=None, warning_ms=None, critical_ms=None):
    """
    Ajusta la configuración del profiling.

    Args:
        logs_dir: Carpeta donde escribir los .log
        enabled: Activa o desactiva el registro
        warning_ms: Umbral de advertencia
        critical_ms: Umbral crítico
    """
    global LOGS_DIR, ENABLE_PROFILING, THRESHOLD_WARNING, THRESHOLD_CRITICAL
    if logs_dir is not None:
        LOGS_DIR = logs_dir
    if enabled is not None:
        ENABLE_PROFILING = enabled
    if warning_ms is not None:
        THRESHOLD_WARNING = warning_ms
    if critical_ms is not None:
        THRESHOLD_CRITICAL = critical_ms
    if ENABLE_PROFILING:
        os.makedirs(LOGS_DIR, exist_ok=True)


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_write_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# FUNCIONES DE LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def _get_timestamp():
    """Obtiene timestamp legible"""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _write_log(filename, content):
    """Escribe contenido a un archivo de log (thread-safe)"""
    try:
        with _write_lock:
            with open(filename, 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        # El profiling nunca debe tumbar un request
        logger.warning("No se pudo escribir %s: %s", filename, e)


def _get_route_name(method, path, rule=None):
    """
    Obtiene nombre legible para una ruta.
    Intenta hacer match con ROUTE_NAMES, si no, devuelve la ruta raw.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return f"{method} {path}"


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """
    Registra el rendimiento de una ruta en performance.log

    Args:
        method: GET, POST, etc.
        path: Ruta solicitada (/api/carrito/agregar)
        rule: Regla de Flask (/pedidos/<pedido_id>/estado)
        time_ms: Tiempo en milisegundos
        user: user_id de la sesión (opcional)
    """
    if not ENABLE_PROFILING:
        return

    action_name = _get_route_name(method, path, rule)
    user_str = user or 'anónimo'

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {action_name}
Usuario: {user_str}
Ruta: {method} {path}
Tiempo: {time_ms:.0f} ms
"""
    _write_log(_log_files()[0], log_entry)


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>= umbral de advertencia) o 'CRITICAL'
    """
    if not ENABLE_PROFILING:
        return

    action_name = _get_route_name(method, path, rule)
    user_str = user or 'anónimo'
    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'
    umbral = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {action_name}
Usuario: {user_str}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {umbral} ms)
────────────────────────────────────────
"""
    _write_log(_log_files()[1], log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el sistema de profiling en una app Flask.
    Registra hooks before_request y after_request.
    """
    configure(
        logs_dir=os.path.join(app.config['DATA_DIR'], 'logs'),
        enabled=app.config.get('ENABLE_PROFILING', ENABLE_PROFILING),
        warning_ms=app.config.get('PROFILING_THRESHOLD_WARNING'),
        critical_ms=app.config.get('PROFILING_THRESHOLD_CRITICAL'),
    )
    if not ENABLE_PROFILING:
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms

        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path
        user = session.get('user_id')

        if path.startswith('/static'):
            return response

        log_route_performance(method, path, rule, elapsed, user)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Generar reporte de pedidos")
        def generar_reporte_pedidos():
            ...

    Registra:
        - Cantidad de llamadas
        - Tiempo promedio
        - Tiempo máximo
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not ENABLE_PROFILING:
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    """Registra una llamada lenta a una función"""
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""
    _write_log(_log_files()[2], log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def write_function_stats_report():
    """Escribe un reporte legible de estadísticas de funciones en slow_functions.log"""
    if not ENABLE_PROFILING:
        return

    stats = get_function_stats()
    if not stats:
        return

    sorted_stats = sorted(stats.items(), key=lambda x: x[1]['avg_time'], reverse=True)

    report = f"""
══════════════════════════════════════════════════════════════════════════════
  REPORTE DE RENDIMIENTO DE FUNCIONES
  Generado: {_get_timestamp()}
══════════════════════════════════════════════════════════════════════════════

"""
    for func_name, data in sorted_stats:
        status = ''
        if data['avg_time'] >= THRESHOLD_CRITICAL:
            status = ' CRÍTICO'
        elif data['avg_time'] >= THRESHOLD_WARNING:
            status = ' LENTO'
        elif data['max_time'] >= THRESHOLD_CRITICAL:
            status = ' PICOS ALTOS'

        report += f"""FUNCIÓN: {func_name}{status}
  Llamadas totales: {data['calls']}
  Tiempo promedio:  {data['avg_time']:.0f} ms
  Tiempo máximo:    {data['max_time']:.0f} ms

"""
    _write_log(_log_files()[2], report)


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


def get_log_summary():
    """
    Obtiene un resumen del estado actual de los logs.

    Returns:
        dict: {archivo: {exists, size_kb, lines}}
    """
    summary = {}
    for name, path in zip(('performance', 'slow_routes', 'slow_functions'), _log_files()):
        if os.path.exists(path):
            size = os.path.getsize(path) / 1024  # KB
            with open(path, 'r', encoding='utf-8') as f:
                lines = sum(1 for _ in f)
            summary[name] = {'exists': True, 'size_kb': round(size, 2), 'lines': lines}
        else:
            summary[name] = {'exists': False, 'size_kb': 0, 'lines': 0}
    return summary


__all__ = [
    'configure',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'write_function_stats_report',
    'reset_stats',
    'get_log_summary',
]
