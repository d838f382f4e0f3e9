# ==============================================================================
# CONFIGURACIÓN DE LA APLICACIÓN
# ==============================================================================
# Valores por defecto + variables de entorno.
#
# VARIABLES DE ENTORNO:
#   MAYORISTA_SECRET_KEY   → clave de sesión (OBLIGATORIA en producción)
#   MAYORISTA_DATA_DIR     → carpeta donde viven los JSON de cada tabla
#   MAYORISTA_PRODUCTION   → "1" producción, "0" desarrollo
#   MAYORISTA_PROFILING    → "1" activa el profiling de rutas y funciones
#   MAYORISTA_SUPERADMIN   → user_id del superadmin inicial (solo si no existe)
# ==============================================================================

import os
from typing import Any, Dict, Optional

BASE = os.path.dirname(os.path.abspath(__file__))

# True = sin datos de prueba ni logging verbose
PRODUCTION_MODE = os.environ.get('MAYORISTA_PRODUCTION', '1') == '1'

_DEFAULT_SECRET = "mayorista_dev_secret_key_change_in_production"

# Carpeta de datos (un archivo JSON por tabla)
DEFAULT_DATA_DIR = os.path.join(os.path.dirname(BASE), 'data')

# Profiling (ver performance_logger.py)
ENABLE_PROFILING = os.environ.get('MAYORISTA_PROFILING', '1') == '1'
THRESHOLD_WARNING = 300   # ms
THRESHOLD_CRITICAL = 700  # ms

# Tolerancia para conciliar sumas monetarias (USD)
TOLERANCIA_CONCILIACION = 0.01


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Arma el diccionario de configuración para app.config.

    Args:
        overrides: Valores que reemplazan a los del entorno (útil en tests)

    Returns:
        Dict listo para app.config.update()
    """
    secret = os.environ.get('MAYORISTA_SECRET_KEY')
    if PRODUCTION_MODE and not secret:
        print("[ADVERTENCIA] PRODUCTION_MODE activo sin MAYORISTA_SECRET_KEY definida")
        print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

    config = {
        'SECRET_KEY': secret or _DEFAULT_SECRET,
        'PRODUCTION_MODE': PRODUCTION_MODE,
        'DATA_DIR': os.environ.get('MAYORISTA_DATA_DIR') or DEFAULT_DATA_DIR,
        'ENABLE_PROFILING': ENABLE_PROFILING,
        'PROFILING_THRESHOLD_WARNING': THRESHOLD_WARNING,
        'PROFILING_THRESHOLD_CRITICAL': THRESHOLD_CRITICAL,
        'SESSION_COOKIE_HTTPONLY': True,
        'SESSION_COOKIE_SAMESITE': 'Lax',
        'SUPERADMIN_USER_ID': os.environ.get('MAYORISTA_SUPERADMIN'),
        # Carga las curvas predefinidas que falten al arrancar
        'SEED_CURVAS': True,
    }
    if overrides:
        config.update(overrides)
    return config
