"""Tests para el reporte Excel de nomina."""

from decimal import Decimal

import openpyxl
import pytest

from motor_nomina.models import ConceptoFormula, EmpleadoNomina, TipoConcepto
from motor_nomina.nomina import calcular_nomina_lote
from motor_nomina.reportes.reporte_nomina import (
    HEADERS_RECIBOS,
    HEADERS_RESUMEN,
    generar_reporte_nomina,
)


@pytest.fixture
def corrida():
    """Dos empleados calculados en periodicidad mensual."""
    empleados = {
        'E001': EmpleadoNomina.crear(10000, '333.33', 350, 30),
        'E002': EmpleadoNomina.crear(20000, '666.67', 500, 30),
    }
    conceptos = [
        ConceptoFormula('P001', 'Sueldo', TipoConcepto.PERCEPCION, 'SALARIO_BASE'),
        ConceptoFormula('D001', 'Fonacot', TipoConcepto.DEDUCCION, '200'),
    ]
    resultados = calcular_nomina_lote(empleados.items(), conceptos, 'mensual')
    return resultados, empleados


class TestReporteNomina:

    def test_hojas_y_encabezados(self, tmp_path, corrida):
        resultados, empleados = corrida
        ruta = tmp_path / 'salida' / 'nomina.xlsx'
        generar_reporte_nomina(resultados, empleados, ruta)

        assert ruta.exists()
        wb = openpyxl.load_workbook(str(ruta))
        assert wb.sheetnames == ['Recibos', 'Resumen']
        assert [c.value for c in wb['Recibos'][1]] == HEADERS_RECIBOS
        assert [c.value for c in wb['Resumen'][1]] == HEADERS_RESUMEN

    def test_recibos_una_fila_por_linea(self, tmp_path, corrida):
        resultados, empleados = corrida
        ruta = tmp_path / 'nomina.xlsx'
        generar_reporte_nomina(resultados, empleados, ruta)

        ws = openpyxl.load_workbook(str(ruta))['Recibos']
        esperadas = sum(len(r.percepciones) + len(r.deducciones) for r in resultados.values())
        assert ws.max_row == esperadas + 1
        assert [c.value for c in ws[2]][:4] == ['E001', 'percepcion', 'Sueldo', 10000.0]

    def test_resumen_costo_empresa(self, tmp_path, corrida):
        resultados, empleados = corrida
        ruta = tmp_path / 'nomina.xlsx'
        generar_reporte_nomina(resultados, empleados, ruta)

        ws = openpyxl.load_workbook(str(ruta))['Resumen']
        fila = {h: c.value for h, c in zip(HEADERS_RESUMEN, ws[3])}
        assert fila['Clave'] == 'E002'
        assert fila['IMSS Patronal'] == pytest.approx(110.51)
        assert fila['INFONAVIT'] == pytest.approx(25.00)
        assert fila['Costo Empresa'] == pytest.approx(20135.51)

        total = {h: c.value for h, c in zip(HEADERS_RESUMEN, ws[4])}
        assert total['Clave'] == 'TOTAL'
        assert total['Percepciones'] == pytest.approx(30000.00)
        neto = sum(r.neto_a_pagar for r in resultados.values())
        assert Decimal(str(total['Neto a Pagar'])) == neto

    def test_empleado_sin_snapshot(self, tmp_path, corrida, capturar_logs):
        resultados, _ = corrida
        ruta = tmp_path / 'nomina.xlsx'
        generar_reporte_nomina(resultados, {}, ruta)

        ws = openpyxl.load_workbook(str(ruta))['Resumen']
        fila = {h: c.value for h, c in zip(HEADERS_RESUMEN, ws[2])}
        assert fila['IMSS Patronal'] == 0
        assert len(capturar_logs) == 2
