"""Parser de snapshots de empleados para calcular nomina.

Excel (.xlsx) con encabezados:

    CLAVE | SALARIO BASE | SALARIO DIARIO | SBC | DIAS TRABAJADOS | ZONA

o JSON con una lista de objetos con las mismas llaves en snake_case.
Columnas adicionales cuyo encabezado sea una variable de nomina
(ej: HORAS EXTRA DOBLES) se pasan como variables_extra.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from motor_nomina.entrada.excel import leer_tabla_excel
from motor_nomina.entrada.normalizacion import normalizar_monto, normalizar_texto
from motor_nomina.formulas import VariableNomina
from motor_nomina.models import EmpleadoNomina, Zona


ENCABEZADOS_REQUERIDOS = ('CLAVE', 'SALARIO BASE', 'SALARIO DIARIO', 'SBC', 'DIAS TRABAJADOS')

_COLUMNAS_BASE = set(ENCABEZADOS_REQUERIDOS) | {'ZONA'}


def _empleado_desde_registro(registro: Dict[str, Any]) -> Optional[Tuple[str, EmpleadoNomina]]:
    clave = str(registro.get('CLAVE') or '').strip()
    if not clave:
        logger.warning("Empleado sin clave, se omite: {}", registro)
        return None

    montos = {}
    for columna in ENCABEZADOS_REQUERIDOS[1:]:
        monto = normalizar_monto(registro.get(columna))
        if monto is None:
            logger.warning("Empleado {}: '{}' no es numerico, se omite", clave, columna)
            return None
        montos[columna] = monto

    zona_texto = normalizar_texto(registro.get('ZONA')) or 'GENERAL'
    zona = Zona.FRONTERA if zona_texto.startswith('FRONTERA') else Zona.GENERAL

    extras = {}
    for columna, valor in registro.items():
        if columna in _COLUMNAS_BASE:
            continue
        variable = VariableNomina.buscar(columna.replace(' ', '_'))
        monto = normalizar_monto(valor)
        if variable is not None and monto is not None:
            extras[variable.value] = monto

    return clave, EmpleadoNomina(
        salario_base=montos['SALARIO BASE'],
        salario_diario=montos['SALARIO DIARIO'],
        sbc=montos['SBC'],
        dias_trabajados=montos['DIAS TRABAJADOS'],
        zona=zona,
        variables_extra=extras,
    )


def parsear_empleados(ruta: Path) -> List[Tuple[str, EmpleadoNomina]]:
    """Lee empleados desde .xlsx o .json.

    Returns:
        Lista de (clave, EmpleadoNomina) en el orden del archivo.
    """
    ruta = Path(ruta)
    logger.info("Parseando empleados: {}", ruta.name)

    if ruta.suffix.lower() == '.json':
        with open(ruta, encoding='utf-8') as f:
            datos = json.load(f)
        if not isinstance(datos, list):
            raise ValueError(f"{ruta.name}: se esperaba una lista de empleados")
        registros = [
            {normalizar_texto(llave): valor for llave, valor in item.items()}
            for item in datos
            if isinstance(item, dict)
        ]
    else:
        registros = leer_tabla_excel(ruta, ENCABEZADOS_REQUERIDOS)

    empleados = []
    claves = set()
    for registro in registros:
        empleado = _empleado_desde_registro(registro)
        if empleado is None:
            continue
        if empleado[0] in claves:
            logger.warning("Clave de empleado duplicada {}, se omite el renglon", empleado[0])
            continue
        claves.add(empleado[0])
        empleados.append(empleado)

    logger.info("Empleados: {} leidos, {} omitidos", len(empleados), len(registros) - len(empleados))
    return empleados
