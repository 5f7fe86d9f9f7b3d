"""Calculo de ISR por salarios con subsidio al empleo.

ISR = (Base gravable - Limite inferior) x % sobre excedente + Cuota fija
ISR retenido = max(0, ISR - Subsidio al empleo)

Solo se redondea en las tres salidas; el retenido se calcula con el
ISR y el subsidio sin redondear.
"""

from decimal import Decimal
from typing import Optional, Sequence, TypeVar, Union

from loguru import logger

from motor_nomina.models import (
    CERO,
    ConfiguracionNomina,
    ISRTramo,
    Numero,
    Periodicidad,
    ResultadoISR,
    SubsidioTramo,
    a_decimal,
    redondear,
)
from motor_nomina.tablas import CONFIGURACION_DEFAULT


T = TypeVar('T', ISRTramo, SubsidioTramo)


def buscar_tramo(tramos: Sequence[T], base: Decimal) -> Optional[T]:
    """Busca el renglon que corresponde a la base.

    Las tablas vienen a centavos (0.01-8952.49, 8952.50-...). Una base
    entre dos renglones (8952.495) cae en el renglon inferior y una base
    menor al primer limite (0.00) cae en el primero, de modo que toda
    base no negativa tiene renglon. Base negativa → None.
    """
    if base < 0 or not tramos:
        return None

    elegido = tramos[0]
    for tramo in tramos:
        if tramo.contiene(base):
            return tramo
        if tramo.limite_inferior > base:
            break
        elegido = tramo
    return elegido


def calcular_isr(
    base_gravable: Numero,
    periodicidad: Union[Periodicidad, str],
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
) -> ResultadoISR:
    """Calcula ISR, subsidio al empleo e ISR retenido.

    Args:
        base_gravable: Suma de percepciones gravadas del periodo.
        periodicidad: Periodicidad de la tabla a usar.
        config: Tablas vigentes.

    Returns:
        ResultadoISR; todo en cero si la base es negativa.

    Raises:
        PeriodicidadNoSoportadaError: si no hay tabla para la periodicidad.
    """
    base = a_decimal(base_gravable)
    tabla = config.tabla_isr(periodicidad)

    tramo = buscar_tramo(tabla.tramos, base)
    if tramo is None:
        logger.debug("Base gravable {} sin tramo ISR ({})", base, tabla.periodicidad.value)
        return ResultadoISR(isr=CERO, subsidio_empleo=CERO, isr_retenido=CERO)

    excedente = max(base - tramo.limite_inferior, Decimal(0))
    isr = excedente * tramo.porcentaje_excedente / 100 + tramo.cuota_fija

    tramo_subsidio = buscar_tramo(tabla.subsidio_tramos, base)
    subsidio = tramo_subsidio.subsidio if tramo_subsidio else Decimal(0)

    isr_retenido = max(isr - subsidio, Decimal(0))

    logger.debug(
        "ISR {}: base=${:,.2f} tramo={} isr={} subsidio={} retenido={}",
        tabla.periodicidad.value, base, tramo.limite_inferior,
        isr, subsidio, isr_retenido,
    )

    return ResultadoISR(
        isr=redondear(isr),
        subsidio_empleo=redondear(subsidio),
        isr_retenido=redondear(isr_retenido),
    )
