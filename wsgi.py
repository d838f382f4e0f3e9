# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── mayorista/       <- Paquete Python
#       ├── __init__.py
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# La carpeta de datos sale de MAYORISTA_DATA_DIR (ver mayorista/config.py).
# ==============================================================================

from mayorista import create_app

app = create_app()

# ==============================================================================
# PUNTO DE ENTRADA
# ==============================================================================
# Variable 'app' exportada para Gunicorn:
#   gunicorn wsgi:app
#
# Para desarrollo local:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
