"""Tablas de ISR, subsidio al empleo e IMSS.

Contiene la configuracion por defecto Mexico 2025 y el cargador de tablas
versionadas desde JSON. Las tablas se validan completas: una periodicidad
faltante o un hueco entre tramos invalida toda la configuracion.
"""

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from motor_nomina.errores import ConfiguracionInvalidaError
from motor_nomina.models import (
    CENTAVO,
    UMA,
    ConfiguracionNomina,
    IMSSCuota,
    ISRTabla,
    ISRTramo,
    Periodicidad,
    SalarioMinimo,
    SubsidioTramo,
    TipoBaseIMSS,
)


_Fila = Tuple[Optional[str], ...]


def _d(valor: Optional[str]) -> Optional[Decimal]:
    return None if valor is None else Decimal(valor)


def _tramos(filas: Sequence[_Fila]) -> List[ISRTramo]:
    """(inferior, superior, cuota fija, % excedente) → ISRTramo."""
    return [
        ISRTramo(_d(inf), _d(sup), _d(cuota), _d(pct))
        for inf, sup, cuota, pct in filas
    ]


def _subsidios(filas: Sequence[_Fila]) -> List[SubsidioTramo]:
    """(inferior, superior, subsidio) → SubsidioTramo."""
    return [
        SubsidioTramo(_d(inf), _d(sup), _d(subsidio))
        for inf, sup, subsidio in filas
    ]


# =====================================================
# TARIFAS ISR 2025 (Anexo 8 RMF)
# =====================================================

_ISR_DIARIA = _tramos([
    ('0.01', '298.42', '0.00', '1.92'),
    ('298.43', '2532.96', '5.73', '6.40'),
    ('2532.97', '4451.20', '148.74', '10.88'),
    ('4451.21', '5174.24', '357.53', '16.00'),
    ('5174.25', '6195.06', '473.22', '17.92'),
    ('6195.07', '12494.60', '656.19', '21.36'),
    ('12494.61', '19693.12', '2001.64', '23.52'),
    ('19693.13', '37597.18', '3694.61', '30.00'),
    ('37597.19', '50130.12', '9065.86', '32.00'),
    ('50130.13', '150389.67', '13076.39', '34.00'),
    ('150389.68', None, '47164.63', '35.00'),
])

_SUBSIDIO_DIARIA = _subsidios([
    ('0.01', '51.95', '15.62'),
    ('51.96', '440.58', '15.61'),
    ('440.59', '774.38', '15.05'),
    ('774.39', '902.15', '14.27'),
    ('902.16', '2653.38', '13.88'),
    ('2653.39', '3084.23', '11.88'),
    ('3084.24', '3746.15', '9.49'),
    ('3746.16', '4470.00', '6.16'),
    ('4470.01', None, '0'),
])

_ISR_SEMANAL = _tramos([
    ('0.01', '2088.91', '0.00', '1.92'),
    ('2088.92', '17730.72', '40.11', '6.40'),
    ('17730.73', '31158.22', '1041.19', '10.88'),
    ('31158.23', '36219.66', '2502.69', '16.00'),
    ('36219.67', '43364.94', '3312.51', '17.92'),
    ('43364.95', '87461.96', '4593.31', '21.36'),
    ('87461.97', '137851.64', '14011.47', '23.52'),
    ('137851.65', '263180.25', '25862.30', '30.00'),
    ('263180.26', '350909.24', '63460.99', '32.00'),
    ('350909.25', '1052727.71', '91534.24', '34.00'),
    ('1052727.72', None, '330152.37', '35.00'),
])

_SUBSIDIO_SEMANAL = _subsidios([
    ('0.01', '363.65', '109.34'),
    ('363.66', '3084.06', '109.27'),
    ('3084.07', '5420.66', '105.35'),
    ('5420.67', '6315.05', '99.89'),
    ('6315.06', '18573.66', '97.16'),
    ('18573.67', '21589.61', '83.16'),
    ('21589.62', '26223.05', '66.43'),
    ('26223.06', '31290.00', '43.12'),
    ('31290.01', None, '0'),
])

_ISR_DECENAL = _tramos([
    ('0.01', '2984.16', '0.00', '1.92'),
    ('2984.17', '25329.60', '57.30', '6.40'),
    ('25329.61', '44512.02', '1487.41', '10.88'),
    ('44512.03', '51742.37', '3575.27', '16.00'),
    ('51742.38', '61950.63', '4732.16', '17.92'),
    ('61950.64', '124945.96', '6561.87', '21.36'),
    ('124945.97', '196931.20', '20016.39', '23.52'),
    ('196931.21', '375971.79', '36946.14', '30.00'),
    ('375971.80', '501301.20', '90658.56', '32.00'),
    ('501301.21', '1503896.73', '130763.91', '34.00'),
    ('1503896.74', None, '471646.25', '35.00'),
])

_SUBSIDIO_DECENAL = _subsidios([
    ('0.01', '519.50', '156.20'),
    ('519.51', '4405.80', '156.10'),
    ('4405.81', '7743.80', '150.50'),
    ('7743.81', '9021.50', '142.70'),
    ('9021.51', '26533.80', '138.80'),
    ('26533.81', '30842.30', '118.80'),
    ('30842.31', '37461.50', '94.90'),
    ('37461.51', '44700.00', '61.60'),
    ('44700.01', None, '0'),
])

_ISR_QUINCENAL = _tramos([
    ('0.01', '4476.25', '0.00', '1.92'),
    ('4476.26', '37992.28', '85.94', '6.40'),
    ('37992.29', '66768.04', '2230.97', '10.88'),
    ('66768.05', '77614.90', '5361.78', '16.00'),
    ('77614.91', '92926.29', '7097.27', '17.92'),
    ('92926.30', '187418.94', '9841.07', '21.36'),
    ('187418.95', '295398.00', '30024.70', '23.52'),
    ('295398.01', '563963.42', '55421.37', '30.00'),
    ('563963.43', '751951.23', '135990.99', '32.00'),
    ('751951.24', '2255853.69', '196147.08', '34.00'),
    ('2255853.70', None, '707473.92', '35.00'),
])

_SUBSIDIO_QUINCENAL = _subsidios([
    ('0.01', '779.25', '237.50'),
    ('779.26', '6608.70', '237.40'),
    ('6608.71', '11615.70', '228.95'),
    ('11615.71', '13532.25', '217.05'),
    ('13532.26', '39800.70', '211.20'),
    ('39800.71', '46263.45', '180.90'),
    ('46263.46', '56192.25', '144.45'),
    ('56192.26', '67050.00', '93.80'),
    ('67050.01', None, '0'),
])

_ISR_MENSUAL = _tramos([
    ('0.01', '8952.49', '0.00', '1.92'),
    ('8952.50', '75984.55', '171.88', '6.40'),
    ('75984.56', '133536.07', '4461.94', '10.88'),
    ('133536.08', '155229.80', '10723.55', '16.00'),
    ('155229.81', '185852.57', '14194.54', '17.92'),
    ('185852.58', '374837.88', '19682.13', '21.36'),
    ('374837.89', '590795.99', '60049.40', '23.52'),
    ('590796.00', '1127926.84', '110842.74', '30.00'),
    ('1127926.85', '1503902.46', '271981.99', '32.00'),
    ('1503902.47', '4511707.37', '392294.17', '34.00'),
    ('4511707.38', None, '1414947.85', '35.00'),
])

_SUBSIDIO_MENSUAL = _subsidios([
    ('0.01', '1558.50', '475.00'),
    ('1558.51', '13217.40', '474.80'),
    ('13217.41', '23231.40', '457.90'),
    ('23231.41', '27064.50', '434.10'),
    ('27064.51', '79601.40', '422.40'),
    ('79601.41', '92526.90', '361.80'),
    ('92526.91', '112384.50', '288.90'),
    ('112384.51', '134100.00', '187.60'),
    ('134100.01', None, '0'),
])


# Cuotas obrero-patronales IMSS (porcentajes)
_IMSS_CUOTAS_2025 = [
    IMSSCuota('Enfermedades y Maternidad (Cuota Fija)',
              Decimal('0.0'), Decimal('20.40'), TipoBaseIMSS.CUOTA_FIJA),
    IMSSCuota('Enfermedades y Maternidad (Excedente 3 UMAs)',
              Decimal('0.40'), Decimal('1.10'), TipoBaseIMSS.EXCEDENTE_3_UMAS),
    IMSSCuota('Invalidez y Vida',
              Decimal('0.625'), Decimal('1.75'), TipoBaseIMSS.SBC_COMPLETO),
    IMSSCuota('Retiro',
              Decimal('0.0'), Decimal('2.0'), TipoBaseIMSS.SBC_COMPLETO),
    IMSSCuota('Cesantía y Vejez',
              Decimal('1.125'), Decimal('3.15'), TipoBaseIMSS.SBC_COMPLETO),
    IMSSCuota('Guarderías y Prestaciones Sociales',
              Decimal('0.0'), Decimal('1.0'), TipoBaseIMSS.SBC_COMPLETO),
]


CONFIGURACION_DEFAULT = ConfiguracionNomina(
    uma=UMA(
        diaria=Decimal('113.14'),
        mensual=Decimal('3439.46'),
        anual=Decimal('41273.52'),
    ),
    salario_minimo=SalarioMinimo(
        zona_general=Decimal('278.80'),
        zona_frontera=Decimal('419.88'),
    ),
    isr_tablas={
        Periodicidad.DIARIA: ISRTabla(Periodicidad.DIARIA, _ISR_DIARIA, _SUBSIDIO_DIARIA),
        Periodicidad.SEMANAL: ISRTabla(Periodicidad.SEMANAL, _ISR_SEMANAL, _SUBSIDIO_SEMANAL),
        Periodicidad.DECENAL: ISRTabla(Periodicidad.DECENAL, _ISR_DECENAL, _SUBSIDIO_DECENAL),
        Periodicidad.QUINCENAL: ISRTabla(Periodicidad.QUINCENAL, _ISR_QUINCENAL, _SUBSIDIO_QUINCENAL),
        Periodicidad.MENSUAL: ISRTabla(Periodicidad.MENSUAL, _ISR_MENSUAL, _SUBSIDIO_MENSUAL),
    },
    imss_cuotas=_IMSS_CUOTAS_2025,
    infonavit_tasa=Decimal('5.0'),
)


def configuracion_default() -> ConfiguracionNomina:
    """Configuracion Mexico 2025."""
    return CONFIGURACION_DEFAULT


# ---------------------------------------------------------------------------
# Validacion
# ---------------------------------------------------------------------------

def _validar_renglones(nombre: str, renglones: Sequence) -> List[str]:
    """Verifica que los renglones cubran [0, inf) sin huecos ni traslapes.

    Los limites vienen a centavos: el siguiente renglon debe iniciar
    exactamente un centavo despues del limite superior anterior.
    """
    errores = []
    if not renglones:
        return [f"{nombre}: sin renglones"]

    if renglones[0].limite_inferior > CENTAVO:
        errores.append(
            f"{nombre}: el primer renglon inicia en {renglones[0].limite_inferior}"
        )

    for i, (actual, siguiente) in enumerate(zip(renglones, renglones[1:]), start=1):
        if actual.limite_superior is None:
            errores.append(f"{nombre}: renglon {i} sin limite superior no es el ultimo")
            continue
        if actual.limite_superior < actual.limite_inferior:
            errores.append(f"{nombre}: renglon {i} con limites invertidos")
        esperado = actual.limite_superior + CENTAVO
        if siguiente.limite_inferior > esperado:
            errores.append(
                f"{nombre}: hueco entre {actual.limite_superior} y {siguiente.limite_inferior}"
            )
        elif siguiente.limite_inferior < esperado:
            errores.append(
                f"{nombre}: traslape entre {actual.limite_superior} y {siguiente.limite_inferior}"
            )

    if renglones[-1].limite_superior is not None:
        errores.append(
            f"{nombre}: el ultimo renglon termina en {renglones[-1].limite_superior}"
        )
    return errores


def validar_configuracion(config: ConfiguracionNomina) -> None:
    """Valida que la configuracion sea total y consistente.

    Raises:
        ConfiguracionInvalidaError: con la lista completa de problemas.
    """
    errores = []

    for periodicidad in Periodicidad:
        tabla = config.isr_tablas.get(periodicidad)
        if tabla is None:
            errores.append(f"Falta tabla ISR {periodicidad.value}")
            continue
        errores.extend(_validar_renglones(f"ISR {periodicidad.value}", tabla.tramos))
        errores.extend(
            _validar_renglones(f"Subsidio {periodicidad.value}", tabla.subsidio_tramos)
        )

    if config.uma.diaria <= 0:
        errores.append("UMA diaria debe ser positiva")

    if errores:
        raise ConfiguracionInvalidaError(errores)


# ---------------------------------------------------------------------------
# Carga desde JSON (tablas versionadas)
# ---------------------------------------------------------------------------

def _monto(datos: Dict, llave: str) -> Decimal:
    valor = datos[llave]
    try:
        return Decimal(str(valor))
    except InvalidOperation:
        raise ValueError(f"'{llave}' no es numerico: {valor!r}") from None


def _monto_opcional(datos: Dict, llave: str) -> Optional[Decimal]:
    if datos.get(llave) is None:
        return None
    return _monto(datos, llave)


def configuracion_desde_dict(datos: Dict) -> ConfiguracionNomina:
    """Construye y valida una ConfiguracionNomina desde un dict (JSON).

    Formato (llaves snake_case):
        {"uma": {"diaria", "mensual", "anual"},
         "salario_minimo": {"zona_general", "zona_frontera"},
         "isr_tablas": {"mensual": {"tramos": [...], "subsidio_tramos": [...]}, ...},
         "imss_cuotas": [{"concepto", "porcentaje_obrero",
                          "porcentaje_patronal", "tipo_base"}],
         "infonavit_tasa": 5.0}
    """
    try:
        isr_tablas = {}
        for clave, tabla in datos['isr_tablas'].items():
            periodicidad = Periodicidad(clave)
            isr_tablas[periodicidad] = ISRTabla(
                periodicidad=periodicidad,
                tramos=[
                    ISRTramo(
                        limite_inferior=_monto(t, 'limite_inferior'),
                        limite_superior=_monto_opcional(t, 'limite_superior'),
                        cuota_fija=_monto(t, 'cuota_fija'),
                        porcentaje_excedente=_monto(t, 'porcentaje_excedente'),
                    )
                    for t in tabla['tramos']
                ],
                subsidio_tramos=[
                    SubsidioTramo(
                        limite_inferior=_monto(t, 'limite_inferior'),
                        limite_superior=_monto_opcional(t, 'limite_superior'),
                        subsidio=_monto(t, 'subsidio'),
                    )
                    for t in tabla['subsidio_tramos']
                ],
            )

        config = ConfiguracionNomina(
            uma=UMA(
                diaria=_monto(datos['uma'], 'diaria'),
                mensual=_monto(datos['uma'], 'mensual'),
                anual=_monto(datos['uma'], 'anual'),
            ),
            salario_minimo=SalarioMinimo(
                zona_general=_monto(datos['salario_minimo'], 'zona_general'),
                zona_frontera=_monto(datos['salario_minimo'], 'zona_frontera'),
            ),
            isr_tablas=isr_tablas,
            imss_cuotas=[
                IMSSCuota(
                    concepto=c['concepto'],
                    porcentaje_obrero=_monto(c, 'porcentaje_obrero'),
                    porcentaje_patronal=_monto(c, 'porcentaje_patronal'),
                    tipo_base=TipoBaseIMSS(c['tipo_base']),
                )
                for c in datos['imss_cuotas']
            ],
            infonavit_tasa=_monto(datos, 'infonavit_tasa'),
        )
    except KeyError as e:
        raise ConfiguracionInvalidaError([f"Falta la llave {e.args[0]!r}"]) from None
    except ValueError as e:
        raise ConfiguracionInvalidaError([str(e)]) from None

    validar_configuracion(config)
    return config


def cargar_configuracion(ruta: Path) -> ConfiguracionNomina:
    """Carga tablas versionadas desde un archivo JSON."""
    ruta = Path(ruta)
    logger.info("Cargando tablas de nomina: {}", ruta.name)

    with open(ruta, encoding='utf-8') as f:
        try:
            datos = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfiguracionInvalidaError([f"JSON invalido: {e}"]) from None

    config = configuracion_desde_dict(datos)
    logger.info(
        "Tablas cargadas: UMA diaria=${:,.2f}, {} cuotas IMSS",
        config.uma.diaria, len(config.imss_cuotas),
    )
    return config
