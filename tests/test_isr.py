"""Tests para calculo de ISR y subsidio al empleo."""

from decimal import Decimal

import pytest

from motor_nomina.errores import PeriodicidadNoSoportadaError
from motor_nomina.isr import buscar_tramo, calcular_isr
from motor_nomina.models import Periodicidad, redondear
from motor_nomina.tablas import CONFIGURACION_DEFAULT


class TestCalcularISR:

    def test_mensual_subsidio_cubre_isr(self):
        r = calcular_isr(10000, 'mensual')
        assert r.isr == Decimal('238.92')
        assert r.subsidio_empleo == Decimal('474.80')
        assert r.isr_retenido == Decimal('0.00')

    def test_mensual_con_retencion(self):
        r = calcular_isr(Decimal('20000'), Periodicidad.MENSUAL)
        assert r.isr == Decimal('878.92')
        assert r.subsidio_empleo == Decimal('457.90')
        assert r.isr_retenido == Decimal('421.02')

    def test_quincenal(self):
        r = calcular_isr(5000, 'quincenal')
        assert r.isr == Decimal('119.46')
        assert r.subsidio_empleo == Decimal('237.40')
        assert r.isr_retenido == Decimal('0.00')

    def test_quincenal_alto(self):
        r = calcular_isr(40000, 'quincenal')
        assert r.isr == Decimal('2449.41')
        assert r.subsidio_empleo == Decimal('180.90')
        assert r.isr_retenido == Decimal('2268.51')

    def test_ultimo_tramo_sin_limite(self):
        r = calcular_isr(5000000, 'mensual')
        assert r.isr == Decimal('1585850.27')
        assert r.subsidio_empleo == Decimal('0.00')
        assert r.isr_retenido == Decimal('1585850.27')

    def test_base_cero(self):
        r = calcular_isr(0, 'mensual')
        assert r.isr == Decimal('0.00')
        assert r.subsidio_empleo == Decimal('475.00')
        assert r.isr_retenido == Decimal('0.00')

    def test_base_negativa_todo_cero(self):
        r = calcular_isr(-1, 'mensual')
        assert (r.isr, r.subsidio_empleo, r.isr_retenido) == (Decimal('0'),) * 3

    def test_retenido_nunca_negativo(self):
        for base in (0, 100, 1000, 5000, 9000, 15000, 50000, 200000):
            r = calcular_isr(base, 'mensual')
            assert r.isr_retenido >= 0

    def test_salidas_a_centavos(self):
        r = calcular_isr('12345.678', 'semanal')
        for valor in (r.isr, r.subsidio_empleo, r.isr_retenido):
            assert valor.as_tuple().exponent == -2

    def test_isr_monotono(self):
        bases = [Decimal(b) for b in range(0, 200000, 2500)]
        for periodicidad in Periodicidad:
            montos = [calcular_isr(b, periodicidad).isr for b in bases]
            assert montos == sorted(montos)

    def test_base_enorme(self):
        r = calcular_isr(Decimal('1e27'), 'mensual')
        assert r.isr > Decimal('3.4E+26')
        assert r.subsidio_empleo == Decimal('0.00')
        assert r.isr_retenido == r.isr
        assert r.isr.as_tuple().exponent == -2

    def test_periodicidad_desconocida(self):
        with pytest.raises(PeriodicidadNoSoportadaError) as exc:
            calcular_isr(10000, 'anual')
        assert exc.value.periodicidad == 'anual'

    def test_periodicidad_sin_tabla(self):
        from dataclasses import replace
        config = replace(CONFIGURACION_DEFAULT, isr_tablas={})
        with pytest.raises(PeriodicidadNoSoportadaError):
            calcular_isr(10000, 'mensual', config)


class TestBuscarTramo:

    def _tramos(self):
        return CONFIGURACION_DEFAULT.tabla_isr('mensual').tramos

    def test_limite_inferior_exacto(self):
        tramo = buscar_tramo(self._tramos(), Decimal('8952.50'))
        assert tramo.limite_inferior == Decimal('8952.50')

    def test_limite_superior_exacto(self):
        tramo = buscar_tramo(self._tramos(), Decimal('8952.49'))
        assert tramo.limite_inferior == Decimal('0.01')

    def test_entre_centavos_cae_en_renglon_inferior(self):
        tramo = buscar_tramo(self._tramos(), Decimal('8952.495'))
        assert tramo.limite_inferior == Decimal('0.01')

    def test_cero_cae_en_primer_renglon(self):
        assert buscar_tramo(self._tramos(), Decimal('0')) is self._tramos()[0]

    def test_negativo(self):
        assert buscar_tramo(self._tramos(), Decimal('-0.01')) is None

    def test_tabla_vacia(self):
        assert buscar_tramo([], Decimal('100')) is None

    def test_toda_base_tiene_renglon(self):
        for periodicidad in Periodicidad:
            tabla = CONFIGURACION_DEFAULT.tabla_isr(periodicidad)
            for tramo in tabla.tramos:
                for base in (tramo.limite_inferior, tramo.limite_inferior - Decimal('0.005')):
                    assert buscar_tramo(tabla.tramos, base) is not None
                    assert buscar_tramo(tabla.subsidio_tramos, base) is not None


class TestRedondear:

    def test_half_up(self):
        assert redondear('2.675') == Decimal('2.68')
        assert redondear(Decimal('-2.675')) == Decimal('-2.68')

    def test_monto_con_mas_de_28_digitos(self):
        monto = Decimal('123456789012345678901234567890.125')
        assert redondear(monto) == Decimal('123456789012345678901234567890.13')
