"""Generador de reporte Excel de una corrida de nomina.

Genera un Excel con 2 hojas:
- Recibos: una fila por percepcion/deduccion de cada empleado
- Resumen: una fila por empleado con totales, ISR y costo patronal
"""

from decimal import Decimal
from pathlib import Path
from typing import Mapping

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from motor_nomina.imss import calcular_imss_patronal
from motor_nomina.models import (
    ConfiguracionNomina,
    EmpleadoNomina,
    ResultadoNomina,
    TipoConcepto,
)
from motor_nomina.tablas import CONFIGURACION_DEFAULT


# ---------------------------------------------------------------------------
# Estilos
# ---------------------------------------------------------------------------

_FILL_HEADER = PatternFill('solid', fgColor='1F4E79')
_FILL_PERCEPCION = PatternFill('solid', fgColor='C6EFCE')   # Verde
_FILL_DEDUCCION = PatternFill('solid', fgColor='FFC7CE')    # Rojo
_FILL_TOTAL = PatternFill('solid', fgColor='D9D9D9')

_FONT_HEADER = Font(bold=True, color='FFFFFF', size=11)
_FONT_NORMAL = Font(size=10)
_FONT_TOTAL = Font(bold=True, size=10)

_BORDER_THIN = Border(
    left=Side(style='thin', color='BFBFBF'),
    right=Side(style='thin', color='BFBFBF'),
    top=Side(style='thin', color='BFBFBF'),
    bottom=Side(style='thin', color='BFBFBF'),
)

_ALIGN_CENTER = Alignment(horizontal='center', vertical='center')

_FMT_MONEY = '#,##0.00'

HEADERS_RECIBOS = ['Clave', 'Tipo', 'Concepto', 'Monto', 'Gravado', 'Exento']

HEADERS_RESUMEN = [
    'Clave', 'Percepciones', 'Deducciones', 'Neto a Pagar',
    'Base Gravable ISR', 'ISR', 'Subsidio Empleo', 'ISR Retenido',
    'IMSS Patronal', 'INFONAVIT', 'Costo Empresa',
]


def generar_reporte_nomina(
    resultados: Mapping[str, ResultadoNomina],
    empleados: Mapping[str, EmpleadoNomina],
    ruta_salida: Path,
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
):
    """Genera el Excel de recibos y resumen de costo.

    Args:
        resultados: clave de empleado → ResultadoNomina.
        empleados: clave → EmpleadoNomina (para el SBC del costo patronal).
        ruta_salida: Archivo .xlsx a escribir.
        config: Tablas usadas en el calculo.
    """
    logger.info("Generando reporte de nomina con {} empleados...", len(resultados))

    wb = Workbook()

    ws_rec = wb.active
    ws_rec.title = 'Recibos'
    _crear_hoja_recibos(ws_rec, resultados)

    ws_res = wb.create_sheet('Resumen')
    _crear_hoja_resumen(ws_res, resultados, empleados, config)

    ruta_salida = Path(ruta_salida)
    ruta_salida.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(ruta_salida))
    logger.info("Reporte guardado en: {}", ruta_salida)


def _encabezados(ws, headers):
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = _FONT_HEADER
        cell.fill = _FILL_HEADER
        cell.alignment = _ALIGN_CENTER
        cell.border = _BORDER_THIN


def _escribir_fila(ws, row_idx: int, vals, columnas_monto, font=_FONT_NORMAL):
    for col, val in enumerate(vals, 1):
        if isinstance(val, Decimal):
            val = float(val)
        cell = ws.cell(row=row_idx, column=col, value=val)
        cell.font = font
        cell.border = _BORDER_THIN
    for col in columnas_monto:
        ws.cell(row=row_idx, column=col).number_format = _FMT_MONEY


# ---------------------------------------------------------------------------
# Hoja 1: Recibos
# ---------------------------------------------------------------------------

def _crear_hoja_recibos(ws, resultados: Mapping[str, ResultadoNomina]):
    """Cada fila = una linea del recibo de un empleado."""
    _encabezados(ws, HEADERS_RECIBOS)

    row_idx = 2
    for clave, resultado in resultados.items():
        lineas = (
            [(TipoConcepto.PERCEPCION, p) for p in resultado.percepciones]
            + [(TipoConcepto.DEDUCCION, d) for d in resultado.deducciones]
        )
        for tipo, linea in lineas:
            _escribir_fila(
                ws, row_idx,
                [clave, tipo.value, linea.concepto, linea.monto, linea.gravado, linea.exento],
                columnas_monto=(4, 5, 6),
            )
            fill = _FILL_PERCEPCION if tipo == TipoConcepto.PERCEPCION else _FILL_DEDUCCION
            ws.cell(row=row_idx, column=2).fill = fill
            ws.cell(row=row_idx, column=2).alignment = _ALIGN_CENTER
            row_idx += 1

    ws.freeze_panes = 'A2'
    _autoajustar_columnas(ws)


# ---------------------------------------------------------------------------
# Hoja 2: Resumen
# ---------------------------------------------------------------------------

def _crear_hoja_resumen(
    ws,
    resultados: Mapping[str, ResultadoNomina],
    empleados: Mapping[str, EmpleadoNomina],
    config: ConfiguracionNomina,
):
    """Una fila por empleado; al final una fila de totales."""
    _encabezados(ws, HEADERS_RESUMEN)
    columnas_monto = range(2, len(HEADERS_RESUMEN) + 1)

    totales = [Decimal(0)] * (len(HEADERS_RESUMEN) - 1)
    row_idx = 1
    for row_idx, (clave, r) in enumerate(resultados.items(), 2):
        empleado = empleados.get(clave)
        if empleado is not None:
            patronal = calcular_imss_patronal(empleado.sbc, config)
            imss_patronal, infonavit = patronal.cuotas, patronal.infonavit
        else:
            logger.warning("Empleado {} sin snapshot: costo patronal en 0", clave)
            imss_patronal = infonavit = Decimal('0.00')

        montos = [
            r.total_percepciones, r.total_deducciones, r.neto_a_pagar,
            r.base_gravable_isr, r.isr, r.subsidio_empleo, r.isr_retenido,
            imss_patronal, infonavit,
            r.total_percepciones + imss_patronal + infonavit,
        ]
        totales = [t + m for t, m in zip(totales, montos)]
        _escribir_fila(ws, row_idx, [clave] + montos, columnas_monto)

    row_total = row_idx + 1
    _escribir_fila(ws, row_total, ['TOTAL'] + totales, columnas_monto, font=_FONT_TOTAL)
    for col in range(1, len(HEADERS_RESUMEN) + 1):
        ws.cell(row=row_total, column=col).fill = _FILL_TOTAL

    ws.freeze_panes = 'A2'
    _autoajustar_columnas(ws)


def _autoajustar_columnas(ws):
    """Ajusta el ancho de columnas al contenido (aproximado)."""
    for col_cells in ws.columns:
        max_length = 0
        col_letter = get_column_letter(col_cells[0].column)
        for cell in col_cells:
            if cell.value:
                length = len(str(cell.value))
                if length > max_length:
                    max_length = length
        adjusted = min(max_length + 3, 50)
        ws.column_dimensions[col_letter].width = max(adjusted, 10)
