"""Excepciones del motor de nomina.

    MotorNominaError
    +-- FormulaError
    |   +-- FormulaInvalidaError     (rechazo por lista blanca)
    |   +-- FormulaEvaluacionError   (sintaxis, variable sin valor, no finito)
    +-- PeriodicidadNoSoportadaError
    +-- ConfiguracionInvalidaError

Los errores de formula solo se propagan en modo estricto; en modo normal
el concepto vale 0 y se registra una advertencia.
"""

from typing import List


class MotorNominaError(Exception):
    """Base de todos los errores del motor."""

    code: str = 'MOTOR_NOMINA_ERROR'


class FormulaError(MotorNominaError):
    code: str = 'FORMULA_ERROR'

    def __init__(self, formula: str, motivo: str):
        self.formula = formula
        self.motivo = motivo
        super().__init__(f"{motivo} (formula: {formula!r})")


class FormulaInvalidaError(FormulaError):
    """La formula usa variables, funciones o caracteres no permitidos."""

    code: str = 'FORMULA_INVALIDA'


class FormulaEvaluacionError(FormulaError):
    """La formula paso la validacion pero no produjo un numero finito."""

    code: str = 'FORMULA_EVALUACION'


class PeriodicidadNoSoportadaError(MotorNominaError):
    code: str = 'PERIODICIDAD_NO_SOPORTADA'

    def __init__(self, periodicidad: str):
        self.periodicidad = periodicidad
        super().__init__(f"Periodicidad sin tabla ISR: {periodicidad}")


class ConfiguracionInvalidaError(MotorNominaError):
    """Tablas de nomina incompletas o inconsistentes."""

    code: str = 'CONFIGURACION_INVALIDA'

    def __init__(self, errores: List[str]):
        self.errores = list(errores)
        super().__init__(
            "Configuracion de nomina invalida: " + "; ".join(self.errores)
        )
