"""Modelos de datos del motor de nomina.

Dataclasses compartidos entre modulos: tablas de ISR/subsidio, cuotas IMSS,
configuracion de nomina, empleado, conceptos de formula y resultados.
Compatible con Python 3.9 (usa typing.List, typing.Optional).
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Dict, List, Optional, Union

from motor_nomina.errores import PeriodicidadNoSoportadaError


Numero = Union[Decimal, int, float, str]

CENTAVO = Decimal('0.01')
CERO = Decimal('0.00')


def a_decimal(valor: Numero) -> Decimal:
    """Convierte un valor numerico a Decimal.

    Los float pasan por str() para conservar el valor impreso
    (0.1 -> Decimal('0.1') y no 0.1000000000000000055...).
    """
    if isinstance(valor, Decimal):
        return valor
    if isinstance(valor, bool):
        raise TypeError(f"Valor no numerico: {valor!r}")
    return Decimal(str(valor))


def redondear(valor: Numero) -> Decimal:
    """Redondea a centavos (half-up).

    La precision se amplia al tamano del monto: quantize a centavos
    necesita adjusted() + 3 digitos.
    """
    valor = a_decimal(valor)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, valor.adjusted() + 3)
        return valor.quantize(CENTAVO, rounding=ROUND_HALF_UP)


# --- Enumeraciones ---

class Periodicidad(str, Enum):
    """Frecuencia de pago de la nomina."""
    DIARIA = 'diaria'
    SEMANAL = 'semanal'
    DECENAL = 'decenal'
    QUINCENAL = 'quincenal'
    MENSUAL = 'mensual'


class Zona(str, Enum):
    """Zona geografica del salario minimo."""
    GENERAL = 'general'
    FRONTERA = 'frontera'


class TipoConcepto(str, Enum):
    """Tipo de concepto de nomina."""
    PERCEPCION = 'percepcion'
    DEDUCCION = 'deduccion'


class TipoBaseIMSS(str, Enum):
    """Base sobre la que se aplica una cuota IMSS."""
    CUOTA_FIJA = 'cuota_fija'              # min(SBC, 3 UMAs)
    EXCEDENTE_3_UMAS = 'excedente_3_umas'  # solo lo que excede 3 UMAs
    SBC_COMPLETO = 'sbc_completo'


# --- Tablas y configuracion ---

@dataclass(frozen=True)
class UMA:
    """Unidad de Medida y Actualizacion."""
    diaria: Decimal
    mensual: Decimal
    anual: Decimal


@dataclass(frozen=True)
class SalarioMinimo:
    """Salario minimo diario por zona."""
    zona_general: Decimal
    zona_frontera: Decimal


@dataclass(frozen=True)
class ISRTramo:
    """Renglon de la tarifa de ISR."""
    limite_inferior: Decimal
    limite_superior: Optional[Decimal]  # None = sin limite
    cuota_fija: Decimal
    porcentaje_excedente: Decimal

    def contiene(self, base: Decimal) -> bool:
        return base >= self.limite_inferior and (
            self.limite_superior is None or base <= self.limite_superior
        )


@dataclass(frozen=True)
class SubsidioTramo:
    """Renglon de la tabla de subsidio al empleo."""
    limite_inferior: Decimal
    limite_superior: Optional[Decimal]
    subsidio: Decimal

    def contiene(self, base: Decimal) -> bool:
        return base >= self.limite_inferior and (
            self.limite_superior is None or base <= self.limite_superior
        )


@dataclass(frozen=True)
class ISRTabla:
    """Tarifa de ISR y subsidio para una periodicidad."""
    periodicidad: Periodicidad
    tramos: List[ISRTramo]
    subsidio_tramos: List[SubsidioTramo]


@dataclass(frozen=True)
class IMSSCuota:
    """Cuota IMSS (rama de seguro) con porcentajes obrero y patronal."""
    concepto: str
    porcentaje_obrero: Decimal
    porcentaje_patronal: Decimal
    tipo_base: TipoBaseIMSS = TipoBaseIMSS.SBC_COMPLETO


@dataclass(frozen=True)
class ConfiguracionNomina:
    """Conjunto versionado de reglas para un calculo de nomina.

    Se reemplaza completa (ej: actualizacion anual de tablas),
    nunca se modifica parcialmente.
    """
    uma: UMA
    salario_minimo: SalarioMinimo
    isr_tablas: Dict[Periodicidad, ISRTabla]
    imss_cuotas: List[IMSSCuota]
    infonavit_tasa: Decimal

    @property
    def limite_3_umas(self) -> Decimal:
        """Tope de 3 UMAs diarias usado por las cuotas IMSS."""
        return 3 * self.uma.diaria

    def tabla_isr(self, periodicidad: Union['Periodicidad', str]) -> ISRTabla:
        """Tabla ISR de la periodicidad, o PeriodicidadNoSoportadaError."""
        try:
            clave = Periodicidad(periodicidad)
        except ValueError:
            raise PeriodicidadNoSoportadaError(str(periodicidad)) from None
        tabla = self.isr_tablas.get(clave)
        if tabla is None:
            raise PeriodicidadNoSoportadaError(clave.value)
        return tabla

    def salario_minimo_zona(self, zona: Union['Zona', str]) -> Decimal:
        if Zona(zona) == Zona.FRONTERA:
            return self.salario_minimo.zona_frontera
        return self.salario_minimo.zona_general


# --- Entrada del calculo ---

@dataclass(frozen=True)
class EmpleadoNomina:
    """Snapshot numerico de un empleado para un calculo."""
    salario_base: Decimal
    salario_diario: Decimal
    sbc: Decimal                # Salario Base de Cotizacion (solo IMSS)
    dias_trabajados: Decimal
    zona: Zona = Zona.GENERAL
    # Valores para variables permitidas que no salen del snapshot
    # (ej: HORAS_EXTRA_DOBLES). Llaves en su forma canonica.
    variables_extra: Dict[str, Decimal] = field(default_factory=dict)

    @classmethod
    def crear(
        cls,
        salario_base: Numero,
        salario_diario: Numero,
        sbc: Numero,
        dias_trabajados: Numero,
        zona: Union[Zona, str] = Zona.GENERAL,
        variables_extra: Optional[Dict[str, Numero]] = None,
    ) -> 'EmpleadoNomina':
        """Construye el snapshot convirtiendo montos a Decimal."""
        return cls(
            salario_base=a_decimal(salario_base),
            salario_diario=a_decimal(salario_diario),
            sbc=a_decimal(sbc),
            dias_trabajados=a_decimal(dias_trabajados),
            zona=Zona(zona),
            variables_extra={
                nombre: a_decimal(valor)
                for nombre, valor in (variables_extra or {}).items()
            },
        )


@dataclass(frozen=True)
class ConceptoFormula:
    """Concepto de nomina definido por el administrador."""
    id: str
    nombre: str
    tipo: TipoConcepto
    formula: str
    gravable_isr: bool = True
    integra_sbc: bool = False           # Lo consume el calculo de SBC, no este motor
    limite_exento: Optional[str] = None  # Sin uso: exencion parcial pendiente


# --- Resultados ---

@dataclass(frozen=True)
class ResultadoValidacion:
    """Resultado de validar una formula."""
    valido: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ResultadoISR:
    isr: Decimal
    subsidio_empleo: Decimal
    isr_retenido: Decimal


@dataclass(frozen=True)
class ResultadoCalculoConcepto:
    """Linea de percepcion o deduccion calculada."""
    concepto: str
    monto: Decimal
    gravado: Decimal
    exento: Decimal


@dataclass(frozen=True)
class CuotaIMSSCalculada:
    """Una cuota IMSS aplicada a su base."""
    concepto: str
    base: Decimal
    monto: Decimal


@dataclass(frozen=True)
class ResultadoIMSSPatronal:
    """Costo patronal de seguridad social de un empleado."""
    cuotas: Decimal
    infonavit: Decimal
    total: Decimal
    desglose: List[CuotaIMSSCalculada] = field(default_factory=list)


@dataclass(frozen=True)
class ResultadoNomina:
    """Resultado completo del calculo de nomina de un empleado."""
    percepciones: List[ResultadoCalculoConcepto]
    deducciones: List[ResultadoCalculoConcepto]
    total_percepciones: Decimal
    total_deducciones: Decimal
    neto_a_pagar: Decimal
    base_gravable_isr: Decimal
    isr: Decimal
    subsidio_empleo: Decimal
    isr_retenido: Decimal

    def deduccion(self, concepto: str) -> Optional[ResultadoCalculoConcepto]:
        """Busca una linea de deduccion por nombre."""
        for linea in self.deducciones:
            if linea.concepto == concepto:
                return linea
        return None
