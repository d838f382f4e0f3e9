# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================

import json
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from mayorista.errors import ReferenceViolation, UniqueViolation
from mayorista.models.schema import Tabla


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios.
    Proporciona funcionalidad común para lectura/escritura de archivos JSON
    con manejo de concurrencia básico mediante locks.

    Al migrar a MySQL:
    - Esta clase se reemplazará por una conexión a base de datos
    - Los métodos load/save se convertirán en queries SQL
    - Los locks se reemplazarán por transacciones de BD
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Inicializa el repositorio con la ruta al archivo JSON.

        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos vacíos si no existe."""
        if not os.path.exists(self.file_path):
            os.makedirs(os.path.dirname(self.file_path) or '.', exist_ok=True)
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Retorna la estructura de datos vacía para este repositorio."""
        pass

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Returns:
            Datos parseados del JSON (vacío si el archivo está corrupto o no existe)
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON.

        Args:
            data: Datos a serializar y escribir
        """
        with self._file_lock:
            # Escribir a archivo temporal primero para atomicidad
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def reload(self) -> None:
        """Las subclases con caché la invalidan aquí."""
        pass


class TableRepository(BaseRepository):
    """
    Repositorio genérico de una tabla del esquema.
    Las filas se guardan como diccionario {id: fila} en <tabla>.json.

    Toda escritura pasa por el esquema (Insert / Update) y por la
    verificación de claves foráneas y columnas únicas antes de persistir.
    """

    def __init__(self, base_path: str, tabla: Tabla):
        """
        Args:
            base_path: Carpeta de datos
            tabla: Definición de la tabla (models/schema.py)
        """
        self.tabla = tabla
        # {columna: callable(id) -> bool} conectado por el contenedor
        self._referencias: Dict[str, Callable[[str], bool]] = {}
        super().__init__(os.path.join(base_path, f'{tabla.nombre}.json'))

    def _empty_data(self) -> Dict:
        return {}

    def vincular(self, campo: str, existe: Callable[[str], bool]) -> None:
        """
        Registra cómo verificar una clave foránea.

        Args:
            campo: Columna con la referencia (ej: 'vendedor_id')
            existe: Función que indica si el id referenciado existe
        """
        if campo not in self.tabla.referencias:
            raise ValueError(f"{self.tabla.nombre}.{campo} no es una referencia")
        self._referencias[campo] = existe

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    def get_all(self) -> List[Dict[str, Any]]:
        """Todas las filas en orden de creación."""
        data = self._read_raw()
        return list(data.values()) if isinstance(data, dict) else []

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        if record_id is None:
            return None
        return self._read_raw().get(str(record_id))

    def exists(self, record_id: str) -> bool:
        return self.get_by_id(record_id) is not None

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if r.get(field) == value]

    def count(self) -> int:
        return len(self._read_raw())

    # ------------------------------------------------------------------
    # Integridad
    # ------------------------------------------------------------------

    def _verificar_referencias(self, fila: Dict[str, Any]) -> None:
        for campo, existe in self._referencias.items():
            valor = fila.get(campo)
            if valor is not None and not existe(valor):
                raise ReferenceViolation(self.tabla.nombre, campo, valor)

    def _verificar_unicos(self, data: Dict[str, Any], fila: Dict[str, Any]) -> None:
        for campo in self.tabla.unicos:
            valor = fila.get(campo)
            if valor is None:
                continue
            for otro_id, otra in data.items():
                if otro_id != fila['id'] and otra.get(campo) == valor:
                    raise UniqueViolation(self.tabla.nombre, campo, valor)

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    def insert(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inserta una fila nueva.

        Args:
            payload: Forma Insert de la tabla

        Returns:
            Fila persistida con id y timestamps

        Raises:
            SchemaViolation, ReferenceViolation, UniqueViolation
        """
        fila = self.tabla.validar_insert(payload)
        with self._file_lock:
            data = self._read_raw()
            if fila['id'] in data:
                raise UniqueViolation(self.tabla.nombre, 'id', fila['id'])
            self._verificar_referencias(fila)
            self._verificar_unicos(data, fila)
            data[fila['id']] = fila
            self._write_raw(data)
        return fila

    def update(self, record_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Aplica un parche parcial.

        Returns:
            Fila actualizada o None si no existe
        """
        with self._file_lock:
            data = self._read_raw()
            actual = data.get(str(record_id))
            if actual is None:
                return None
            limpio = self.tabla.validar_update(patch, actual)
            nueva = {**actual, **limpio}
            self._verificar_referencias(limpio)
            self._verificar_unicos(data, nueva)
            data[str(record_id)] = nueva
            self._write_raw(data)
        return nueva

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> int:
        """
        Aplica el mismo parche a todas las filas donde field == value.

        Returns:
            Cantidad de filas actualizadas
        """
        with self._file_lock:
            data = self._read_raw()
            cambiadas = 0
            for record_id, record in data.items():
                if record.get(field) == value:
                    limpio = self.tabla.validar_update(updates, record)
                    data[record_id] = {**record, **limpio}
                    cambiadas += 1
            if cambiadas:
                self._write_raw(data)
        return cambiadas

    def delete(self, record_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina una fila.

        Returns:
            Fila eliminada o None si no existía
        """
        with self._file_lock:
            data = self._read_raw()
            removed = data.pop(str(record_id), None)
            if removed is not None:
                self._write_raw(data)
        return removed

    def delete_where(self, field: str, value: Any) -> int:
        """Elimina todas las filas donde field == value."""
        with self._file_lock:
            data = self._read_raw()
            quedan = {k: v for k, v in data.items() if v.get(field) != value}
            borradas = len(data) - len(quedan)
            if borradas:
                self._write_raw(quedan)
        return borradas
