"""Tests para tablas por defecto y carga de tablas versionadas."""

import json
from decimal import Decimal

import pytest

from motor_nomina.errores import ConfiguracionInvalidaError
from motor_nomina.models import Periodicidad, TipoBaseIMSS
from motor_nomina.tablas import (
    CONFIGURACION_DEFAULT,
    cargar_configuracion,
    configuracion_default,
    configuracion_desde_dict,
    validar_configuracion,
)


def _datos_minimos() -> dict:
    """Configuracion JSON valida con una tarifa de dos renglones."""
    tabla = {
        'tramos': [
            {'limite_inferior': '0.01', 'limite_superior': '1000.00',
             'cuota_fija': '0', 'porcentaje_excedente': '10'},
            {'limite_inferior': '1000.01', 'limite_superior': None,
             'cuota_fija': '100', 'porcentaje_excedente': '20'},
        ],
        'subsidio_tramos': [
            {'limite_inferior': '0.01', 'limite_superior': None, 'subsidio': '50'},
        ],
    }
    return {
        'uma': {'diaria': '100', 'mensual': '3040', 'anual': '36500'},
        'salario_minimo': {'zona_general': '200', 'zona_frontera': '300'},
        'isr_tablas': {p.value: tabla for p in Periodicidad},
        'imss_cuotas': [
            {'concepto': 'Invalidez y Vida', 'porcentaje_obrero': 0.625,
             'porcentaje_patronal': 1.75, 'tipo_base': 'sbc_completo'},
        ],
        'infonavit_tasa': 5,
    }


class TestConfiguracionDefault:

    def test_valida(self):
        validar_configuracion(CONFIGURACION_DEFAULT)

    def test_todas_las_periodicidades(self):
        for periodicidad in Periodicidad:
            tabla = CONFIGURACION_DEFAULT.tabla_isr(periodicidad)
            assert tabla.periodicidad == periodicidad
            assert tabla.tramos[-1].limite_superior is None

    def test_uma_y_salario_minimo(self):
        assert CONFIGURACION_DEFAULT.uma.diaria == Decimal('113.14')
        assert CONFIGURACION_DEFAULT.limite_3_umas == Decimal('339.42')
        assert CONFIGURACION_DEFAULT.salario_minimo_zona('frontera') == Decimal('419.88')

    def test_cuotas_imss_con_tipo_base(self):
        tipos = {c.concepto: c.tipo_base for c in CONFIGURACION_DEFAULT.imss_cuotas}
        assert len(tipos) == 6
        assert TipoBaseIMSS.CUOTA_FIJA in tipos.values()
        assert TipoBaseIMSS.EXCEDENTE_3_UMAS in tipos.values()

    def test_configuracion_default_es_la_misma(self):
        assert configuracion_default() is CONFIGURACION_DEFAULT


class TestConfiguracionDesdeDict:

    def test_carga_minima(self):
        config = configuracion_desde_dict(_datos_minimos())
        assert config.uma.diaria == Decimal('100')
        assert config.infonavit_tasa == Decimal('5')
        assert config.imss_cuotas[0].porcentaje_obrero == Decimal('0.625')
        assert config.tabla_isr('mensual').tramos[1].limite_superior is None

    def test_falta_periodicidad(self):
        datos = _datos_minimos()
        del datos['isr_tablas']['semanal']
        with pytest.raises(ConfiguracionInvalidaError) as exc:
            configuracion_desde_dict(datos)
        assert any('semanal' in e for e in exc.value.errores)

    def test_hueco_entre_tramos(self):
        datos = _datos_minimos()
        datos['isr_tablas']['mensual']['tramos'][1]['limite_inferior'] = '1000.50'
        with pytest.raises(ConfiguracionInvalidaError, match='hueco'):
            configuracion_desde_dict(datos)

    def test_traslape_entre_tramos(self):
        datos = _datos_minimos()
        datos['isr_tablas']['diaria']['tramos'][1]['limite_inferior'] = '900'
        with pytest.raises(ConfiguracionInvalidaError, match='traslape'):
            configuracion_desde_dict(datos)

    def test_ultimo_tramo_acotado(self):
        datos = _datos_minimos()
        datos['isr_tablas']['quincenal']['subsidio_tramos'][0]['limite_superior'] = '5000'
        with pytest.raises(ConfiguracionInvalidaError, match='ultimo renglon'):
            configuracion_desde_dict(datos)

    def test_falta_llave(self):
        datos = _datos_minimos()
        del datos['uma']
        with pytest.raises(ConfiguracionInvalidaError, match='uma'):
            configuracion_desde_dict(datos)

    def test_tipo_base_desconocido(self):
        datos = _datos_minimos()
        datos['imss_cuotas'][0]['tipo_base'] = 'medio_sbc'
        with pytest.raises(ConfiguracionInvalidaError):
            configuracion_desde_dict(datos)

    def test_monto_no_numerico(self):
        datos = _datos_minimos()
        datos['uma']['diaria'] = 'cien'
        with pytest.raises(ConfiguracionInvalidaError, match='diaria'):
            configuracion_desde_dict(datos)


class TestCargarConfiguracion:

    def test_desde_archivo(self, tmp_path):
        ruta = tmp_path / 'tablas_2026.json'
        ruta.write_text(json.dumps(_datos_minimos()), encoding='utf-8')
        config = cargar_configuracion(ruta)
        assert config.salario_minimo.zona_frontera == Decimal('300')

    def test_json_invalido(self, tmp_path):
        ruta = tmp_path / 'tablas.json'
        ruta.write_text('{no es json', encoding='utf-8')
        with pytest.raises(ConfiguracionInvalidaError, match='JSON invalido'):
            cargar_configuracion(ruta)
