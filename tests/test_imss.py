"""Tests para cuotas IMSS obrero y patronal."""

from dataclasses import replace
from decimal import Decimal

from motor_nomina.imss import (
    base_cuota,
    calcular_imss_patronal,
    calcular_imss_trabajador,
    desglosar_imss_trabajador,
)
from motor_nomina.models import IMSSCuota, TipoBaseIMSS
from motor_nomina.tablas import CONFIGURACION_DEFAULT


LIMITE = Decimal('339.42')   # 3 x UMA diaria 2025


def _cuota(tipo_base: TipoBaseIMSS) -> IMSSCuota:
    return IMSSCuota('Prueba', Decimal('1'), Decimal('2'), tipo_base)


class TestBaseCuota:

    def test_cuota_fija_topada(self):
        assert base_cuota(_cuota(TipoBaseIMSS.CUOTA_FIJA), Decimal('500'), LIMITE) == LIMITE
        assert base_cuota(_cuota(TipoBaseIMSS.CUOTA_FIJA), Decimal('280'), LIMITE) == Decimal('280')

    def test_excedente(self):
        cuota = _cuota(TipoBaseIMSS.EXCEDENTE_3_UMAS)
        assert base_cuota(cuota, Decimal('500'), LIMITE) == Decimal('160.58')
        assert base_cuota(cuota, Decimal('280'), LIMITE) == Decimal('0')
        assert base_cuota(cuota, LIMITE, LIMITE) == Decimal('0')

    def test_sbc_completo(self):
        assert base_cuota(_cuota(TipoBaseIMSS.SBC_COMPLETO), Decimal('500'), LIMITE) == Decimal('500')


class TestIMSSTrabajador:

    def test_sbc_bajo_sin_excedente(self):
        # 280 x (0.625% + 1.125%)
        assert calcular_imss_trabajador(280) == Decimal('4.90')

    def test_sbc_con_excedente(self):
        # 160.58 x 0.40% + 500 x 1.75% = 0.64232 + 8.75
        assert calcular_imss_trabajador(500) == Decimal('9.39')

    def test_otros_sbc(self):
        assert calcular_imss_trabajador('350') == Decimal('6.17')
        assert calcular_imss_trabajador('700') == Decimal('13.69')

    def test_sbc_cero(self):
        assert calcular_imss_trabajador(0) == Decimal('0.00')

    def test_nombre_de_cuota_no_importa(self):
        """El tipo de base decide, no el texto del concepto."""
        cuotas = [
            replace(c, concepto=f'Rama {i}')
            for i, c in enumerate(CONFIGURACION_DEFAULT.imss_cuotas)
        ]
        config = replace(CONFIGURACION_DEFAULT, imss_cuotas=cuotas)
        assert calcular_imss_trabajador(500, config) == Decimal('9.39')

    def test_sin_cuotas(self):
        config = replace(CONFIGURACION_DEFAULT, imss_cuotas=[])
        assert calcular_imss_trabajador(500, config) == Decimal('0.00')


class TestDesgloseTrabajador:

    def test_omite_ramas_sin_monto(self):
        desglose = desglosar_imss_trabajador(280)
        assert [c.concepto for c in desglose] == ['Invalidez y Vida', 'Cesantía y Vejez']
        assert [c.monto for c in desglose] == [Decimal('1.75'), Decimal('3.15')]

    def test_con_excedente(self):
        desglose = desglosar_imss_trabajador(500)
        assert len(desglose) == 3
        excedente = desglose[0]
        assert excedente.base == Decimal('160.58')
        assert excedente.monto == Decimal('0.64')

    def test_total_redondea_la_suma(self):
        """Sumar montos redondeados por rama puede diferir un centavo del total."""
        desglose = desglosar_imss_trabajador(500)
        assert sum(c.monto for c in desglose) == Decimal('9.40')
        assert calcular_imss_trabajador(500) == Decimal('9.39')


class TestIMSSPatronal:

    def test_sbc_500(self):
        r = calcular_imss_patronal(500)
        assert r.cuotas == Decimal('110.51')
        assert r.infonavit == Decimal('25.00')
        assert r.total == Decimal('135.51')

    def test_desglose_incluye_cuota_fija(self):
        r = calcular_imss_patronal(500)
        conceptos = {c.concepto: c for c in r.desglose}
        cuota_fija = conceptos['Enfermedades y Maternidad (Cuota Fija)']
        assert cuota_fija.base == LIMITE
        assert cuota_fija.monto == Decimal('69.24')
        assert len(r.desglose) == 6

    def test_tasa_infonavit_configurable(self):
        config = replace(CONFIGURACION_DEFAULT, infonavit_tasa=Decimal('0'))
        r = calcular_imss_patronal(500, config)
        assert r.infonavit == Decimal('0.00')
        assert r.total == r.cuotas
