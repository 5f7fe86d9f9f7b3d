"""Calculo de nomina completa de un empleado.

Orden del calculo:
  1. Percepciones: se evalua cada formula; si el concepto es gravable el
     monto completo suma a la base de ISR, si no, es exento.
  2. IMSS obrero sobre el SBC (siempre se incluye, aunque sea 0).
  3. ISR sobre la base gravable; solo se agrega si hay retencion.
  4. Resto de deducciones (IMSS e ISR son reservados y se ignoran).
  5. Neto = percepciones - deducciones (puede quedar negativo).
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from loguru import logger

from motor_nomina.formulas import evaluar_formula
from motor_nomina.imss import calcular_imss_trabajador
from motor_nomina.isr import calcular_isr
from motor_nomina.models import (
    CERO,
    ConceptoFormula,
    ConfiguracionNomina,
    EmpleadoNomina,
    Periodicidad,
    ResultadoCalculoConcepto,
    ResultadoNomina,
    TipoConcepto,
    redondear,
)
from motor_nomina.tablas import CONFIGURACION_DEFAULT


CONCEPTO_IMSS = 'IMSS'
CONCEPTO_ISR = 'ISR'
CONCEPTOS_RESERVADOS = (CONCEPTO_IMSS, CONCEPTO_ISR)


def _linea_exenta(concepto: str, monto: Decimal) -> ResultadoCalculoConcepto:
    return ResultadoCalculoConcepto(concepto=concepto, monto=monto, gravado=CERO, exento=monto)


def calcular_nomina(
    empleado: EmpleadoNomina,
    conceptos: Sequence[ConceptoFormula],
    periodicidad: Union[Periodicidad, str],
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
    estricto: bool = False,
) -> ResultadoNomina:
    """Calcula percepciones, deducciones, ISR y neto de un empleado.

    Args:
        empleado: Snapshot numerico del empleado.
        conceptos: Conceptos configurados (percepciones y deducciones).
        periodicidad: Periodicidad de la tabla ISR.
        config: Tablas vigentes.
        estricto: Propaga errores de formula en vez de valer 0.

    Returns:
        ResultadoNomina con montos a centavos.
    """
    percepciones: List[ResultadoCalculoConcepto] = []
    deducciones: List[ResultadoCalculoConcepto] = []
    base_gravable = Decimal(0)

    for concepto in conceptos:
        if concepto.tipo != TipoConcepto.PERCEPCION:
            continue
        monto = evaluar_formula(concepto.formula, empleado, config, estricto=estricto)
        gravado = monto if concepto.gravable_isr else CERO
        percepciones.append(
            ResultadoCalculoConcepto(
                concepto=concepto.nombre,
                monto=monto,
                gravado=gravado,
                exento=monto - gravado,
            )
        )
        base_gravable += gravado

    imss = calcular_imss_trabajador(empleado.sbc, config)
    deducciones.append(_linea_exenta(CONCEPTO_IMSS, imss))

    isr = calcular_isr(base_gravable, periodicidad, config)
    if isr.isr_retenido > 0:
        deducciones.append(_linea_exenta(CONCEPTO_ISR, isr.isr_retenido))

    for concepto in conceptos:
        if concepto.tipo != TipoConcepto.DEDUCCION:
            continue
        if concepto.nombre in CONCEPTOS_RESERVADOS:
            logger.debug("Deduccion reservada ignorada: {}", concepto.nombre)
            continue
        monto = evaluar_formula(concepto.formula, empleado, config, estricto=estricto)
        deducciones.append(_linea_exenta(concepto.nombre, monto))

    total_percepciones = sum((p.monto for p in percepciones), Decimal(0))
    total_deducciones = sum((d.monto for d in deducciones), Decimal(0))

    return ResultadoNomina(
        percepciones=percepciones,
        deducciones=deducciones,
        total_percepciones=redondear(total_percepciones),
        total_deducciones=redondear(total_deducciones),
        neto_a_pagar=redondear(total_percepciones - total_deducciones),
        base_gravable_isr=redondear(base_gravable),
        isr=isr.isr,
        subsidio_empleo=isr.subsidio_empleo,
        isr_retenido=isr.isr_retenido,
    )


def calcular_nomina_lote(
    empleados: Iterable[Tuple[str, EmpleadoNomina]],
    conceptos: Sequence[ConceptoFormula],
    periodicidad: Union[Periodicidad, str],
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
    estricto: bool = False,
) -> Dict[str, ResultadoNomina]:
    """Calcula la nomina de varios empleados (clave → resultado).

    Raises:
        ValueError: si una clave de empleado se repite.
    """
    resultados = {}
    for clave, empleado in empleados:
        if clave in resultados:
            raise ValueError(f"Clave de empleado duplicada: {clave}")
        resultados[clave] = calcular_nomina(
            empleado, conceptos, periodicidad, config, estricto=estricto,
        )

    logger.info(
        "Nomina {}: {} empleados, neto total=${:,.2f}",
        getattr(periodicidad, 'value', periodicidad), len(resultados),
        sum((r.neto_a_pagar for r in resultados.values()), Decimal(0)),
    )
    return resultados
