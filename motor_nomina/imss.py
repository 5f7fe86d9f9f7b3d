"""Cuotas IMSS obrero y patronal.

Cada cuota trae su tipo de base:
  - CUOTA_FIJA: se aplica sobre min(SBC, 3 UMAs diarias)
  - EXCEDENTE_3_UMAS: solo sobre la parte del SBC que excede 3 UMAs
  - SBC_COMPLETO: sobre el SBC completo
"""

from decimal import Decimal
from typing import List

from loguru import logger

from motor_nomina.models import (
    ConfiguracionNomina,
    CuotaIMSSCalculada,
    IMSSCuota,
    Numero,
    ResultadoIMSSPatronal,
    TipoBaseIMSS,
    a_decimal,
    redondear,
)
from motor_nomina.tablas import CONFIGURACION_DEFAULT


def base_cuota(cuota: IMSSCuota, sbc: Decimal, limite_3_umas: Decimal) -> Decimal:
    """Base a la que se aplica una cuota (0 si no aplica)."""
    if cuota.tipo_base == TipoBaseIMSS.EXCEDENTE_3_UMAS:
        if sbc > limite_3_umas:
            return sbc - limite_3_umas
        return Decimal(0)
    if cuota.tipo_base == TipoBaseIMSS.CUOTA_FIJA:
        return min(sbc, limite_3_umas)
    return sbc


def _aplicar_cuotas(
    sbc: Decimal, config: ConfiguracionNomina, patronal: bool,
) -> List[CuotaIMSSCalculada]:
    """Aplica obrero o patronal a cada cuota, sin redondear."""
    limite = config.limite_3_umas
    aplicadas = []
    for cuota in config.imss_cuotas:
        porcentaje = cuota.porcentaje_patronal if patronal else cuota.porcentaje_obrero
        base = base_cuota(cuota, sbc, limite)
        aplicadas.append(
            CuotaIMSSCalculada(
                concepto=cuota.concepto,
                base=base,
                monto=base * porcentaje / 100,
            )
        )
    return aplicadas


def calcular_imss_trabajador(
    sbc: Numero,
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
) -> Decimal:
    """Total de cuotas IMSS a cargo del trabajador, redondeado a centavos."""
    sbc = a_decimal(sbc)
    total = sum((c.monto for c in _aplicar_cuotas(sbc, config, patronal=False)), Decimal(0))
    logger.debug("IMSS obrero: sbc={} total={}", sbc, total)
    return redondear(total)


def desglosar_imss_trabajador(
    sbc: Numero,
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
) -> List[CuotaIMSSCalculada]:
    """Desglose por rama de las cuotas obreras con monto.

    Omite las ramas sin cuota obrera o sin base (ej: excedente con SBC
    menor a 3 UMAs). Cada monto va redondeado; el total oficial es el de
    calcular_imss_trabajador, que redondea solo la suma.
    """
    return [
        CuotaIMSSCalculada(c.concepto, redondear(c.base), redondear(c.monto))
        for c in _aplicar_cuotas(a_decimal(sbc), config, patronal=False)
        if c.monto > 0
    ]


def calcular_imss_patronal(
    sbc: Numero,
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
) -> ResultadoIMSSPatronal:
    """Costo patronal: cuotas IMSS patronales mas aportacion INFONAVIT.

    INFONAVIT = SBC x infonavit_tasa / 100 (solo patronal).
    """
    sbc = a_decimal(sbc)
    aplicadas = _aplicar_cuotas(sbc, config, patronal=True)

    cuotas = sum((c.monto for c in aplicadas), Decimal(0))
    infonavit = sbc * config.infonavit_tasa / 100

    logger.debug("IMSS patronal: sbc={} cuotas={} infonavit={}", sbc, cuotas, infonavit)

    return ResultadoIMSSPatronal(
        cuotas=redondear(cuotas),
        infonavit=redondear(infonavit),
        total=redondear(cuotas + infonavit),
        desglose=[
            CuotaIMSSCalculada(c.concepto, redondear(c.base), redondear(c.monto))
            for c in aplicadas
            if c.monto > 0
        ],
    )
