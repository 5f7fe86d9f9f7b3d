"""Lectura de hojas Excel con renglon de encabezados.

Los catalogos que capturan los administradores no tienen posicion fija:
se busca el renglon de encabezados por nombre de columna y cada renglon
siguiente se regresa como dict {ENCABEZADO NORMALIZADO: valor}.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import openpyxl
from loguru import logger

from motor_nomina.entrada.normalizacion import normalizar_texto


# Renglones revisados para encontrar encabezados
MAX_FILAS_ENCABEZADO = 20


def _buscar_encabezados(ws, requeridas: Sequence[str]) -> Optional[Tuple[int, Dict[int, str]]]:
    """Regresa (numero de fila, {columna: encabezado}) o None."""
    for fila in ws.iter_rows(min_row=1, max_row=MAX_FILAS_ENCABEZADO):
        encabezados = {
            celda.column: normalizar_texto(celda.value)
            for celda in fila
            if celda.value is not None
        }
        if all(r in encabezados.values() for r in requeridas):
            return fila[0].row, encabezados
    return None


def leer_tabla_excel(
    ruta: Path, requeridas: Sequence[str], hoja: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Lee los renglones de datos de la primera hoja con los encabezados requeridos.

    Args:
        ruta: Archivo .xlsx.
        requeridas: Encabezados normalizados que deben existir.
        hoja: Nombre de hoja a usar; por defecto se recorren todas.

    Returns:
        Lista de dicts por renglon (renglones vacios omitidos).

    Raises:
        FileNotFoundError: si no existe el archivo.
        ValueError: si ninguna hoja tiene los encabezados.
    """
    ruta = Path(ruta)
    if not ruta.exists():
        raise FileNotFoundError(ruta)

    wb = openpyxl.load_workbook(str(ruta), data_only=True, read_only=False)
    try:
        nombres = [hoja] if hoja else wb.sheetnames
        for nombre in nombres:
            ws = wb[nombre]
            encontrado = _buscar_encabezados(ws, requeridas)
            if encontrado is None:
                continue

            fila_encabezado, encabezados = encontrado
            logger.debug("Encabezados en hoja '{}' fila {}", nombre, fila_encabezado)

            renglones = []
            for fila in ws.iter_rows(min_row=fila_encabezado + 1):
                datos = {
                    encabezados[celda.column]: celda.value
                    for celda in fila
                    if celda.column in encabezados
                }
                if all(v is None or str(v).strip() == '' for v in datos.values()):
                    continue
                renglones.append(datos)
            return renglones
    finally:
        wb.close()

    raise ValueError(
        f"{ruta.name}: ninguna hoja tiene los encabezados {', '.join(requeridas)}"
    )
