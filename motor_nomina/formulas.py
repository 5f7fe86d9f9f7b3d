"""Evaluacion segura de formulas de conceptos de nomina.

Los administradores escriben formulas aritmeticas como
'min(SALARIO_BASE * 0.1, UMA_MENSUAL)'. Antes de evaluarlas pasan por dos
filtros independientes:

  1. Cada identificador debe ser una funcion permitida o una variable de
     nomina conocida (o presente en el contexto).
  2. La cadena completa solo puede contener digitos, espacios, operadores
     aritmeticos, parentesis, coma, %, letras y guion bajo.

La evaluacion recorre el AST de Python aceptando unicamente constantes
numericas, variables, + - * / %, signo unario y llamadas a funciones
permitidas. Todo se calcula en Decimal, sin acceso a builtins.

Una formula rechazada o que falla al evaluarse vale 0 y se registra una
advertencia, para que un concepto mal configurado no detenga la nomina
completa. Con estricto=True se levanta la excepcion.
"""

import ast
import re
from decimal import (
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from loguru import logger

from motor_nomina.errores import (
    FormulaError,
    FormulaEvaluacionError,
    FormulaInvalidaError,
)
from motor_nomina.models import (
    CERO,
    ConfiguracionNomina,
    EmpleadoNomina,
    ResultadoValidacion,
    redondear,
)
from motor_nomina.tablas import CONFIGURACION_DEFAULT


class VariableNomina(str, Enum):
    """Variables que una formula puede referenciar.

    Lista canonica unica; la busqueda ignora mayusculas/minusculas
    ('salario_base' y 'SALARIO_BASE' son la misma variable).
    """
    SALARIO_BASE = 'SALARIO_BASE'
    SALARIO_DIARIO = 'SALARIO_DIARIO'
    SALARIO_PERIODO = 'SALARIO_PERIODO'
    SALARIO_HORA = 'SALARIO_HORA'
    SBC = 'SBC'
    SDI = 'SDI'
    DIAS_TRABAJADOS = 'DIAS_TRABAJADOS'
    DIAS_PERIODO = 'DIAS_PERIODO'
    DIAS_AGUINALDO = 'DIAS_AGUINALDO'
    UMA_DIARIA = 'UMA_DIARIA'
    UMA_MENSUAL = 'UMA_MENSUAL'
    UMA_ANUAL = 'UMA_ANUAL'
    SALARIO_MINIMO = 'SALARIO_MINIMO'
    SMG_DIARIO = 'SMG_DIARIO'
    SMG_MENSUAL = 'SMG_MENSUAL'
    HORAS_EXTRA_DOBLES = 'HORAS_EXTRA_DOBLES'
    HORAS_EXTRA_TRIPLES = 'HORAS_EXTRA_TRIPLES'
    DIAS_VACACIONES = 'DIAS_VACACIONES'
    ANTIGUEDAD_ANOS = 'ANTIGUEDAD_ANOS'
    DIAS_FESTIVOS_TRABAJADOS = 'DIAS_FESTIVOS_TRABAJADOS'
    MONTO_VALES = 'MONTO_VALES'
    MONTO_FONDO_AHORRO = 'MONTO_FONDO_AHORRO'
    PORCENTAJE_PTU = 'PORCENTAJE_PTU'
    CUOTA_IMSS = 'CUOTA_IMSS'
    ISR_RETENIDO = 'ISR_RETENIDO'
    SUBSIDIO_EMPLEO = 'SUBSIDIO_EMPLEO'
    DESCUENTO_INFONAVIT = 'DESCUENTO_INFONAVIT'
    DESCUENTO_FONACOT = 'DESCUENTO_FONACOT'

    @classmethod
    def buscar(cls, nombre: str) -> Optional['VariableNomina']:
        return cls.__members__.get(nombre.upper())


FUNCIONES_PERMITIDAS = ('min', 'max', 'abs', 'round', 'ceil', 'floor')

_RE_FUNCION = re.compile(
    r'\b(' + '|'.join(FUNCIONES_PERMITIDAS) + r')\b', re.IGNORECASE,
)
_RE_IDENTIFICADOR = re.compile(r'[a-zA-Z_][a-zA-Z0-9_]*')
_RE_CARACTERES_PERMITIDOS = re.compile(r'[\d\s+\-*/().,%a-zA-Z_]+', re.ASCII)

_GLIFOS = {
    '×': '*',
    '÷': '/',
}

# Contexto decimal propio: el resultado no depende del contexto del host
_CONTEXTO = Context(
    prec=28,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


def normalizar_formula(formula: str) -> str:
    """Reemplaza glifos de operadores y pasa funciones a minusculas."""
    for glifo, operador in _GLIFOS.items():
        formula = formula.replace(glifo, operador)
    return _RE_FUNCION.sub(lambda m: m.group(1).lower(), formula)


def validar_formula(
    formula: str, variables: Optional[Mapping[str, Decimal]] = None,
) -> ResultadoValidacion:
    """Valida que una formula solo use elementos permitidos.

    Args:
        formula: Formula tal como la capturo el administrador.
        variables: Contexto de variables; sus llaves tambien se aceptan
            como identificadores.

    Returns:
        ResultadoValidacion con el primer problema encontrado.
    """
    variables = variables or {}
    normalizada = normalizar_formula(formula)

    for nombre in _RE_IDENTIFICADOR.findall(normalizada):
        if nombre.lower() in FUNCIONES_PERMITIDAS:
            continue
        if VariableNomina.buscar(nombre) is not None or nombre in variables:
            continue
        return ResultadoValidacion(
            valido=False, error=f"Variable o funcion no permitida: {nombre}",
        )

    if not _RE_CARACTERES_PERMITIDOS.fullmatch(normalizada):
        return ResultadoValidacion(
            valido=False, error="Caracteres no permitidos en la formula",
        )

    return ResultadoValidacion(valido=True)


def construir_variables(
    empleado: EmpleadoNomina,
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
) -> Dict[str, Decimal]:
    """Contexto de variables de un empleado, con llaves canonicas."""
    variables = {
        VariableNomina.SALARIO_BASE.value: empleado.salario_base,
        VariableNomina.SALARIO_DIARIO.value: empleado.salario_diario,
        VariableNomina.SBC.value: empleado.sbc,
        VariableNomina.DIAS_TRABAJADOS.value: empleado.dias_trabajados,
        VariableNomina.UMA_DIARIA.value: config.uma.diaria,
        VariableNomina.UMA_MENSUAL.value: config.uma.mensual,
        VariableNomina.UMA_ANUAL.value: config.uma.anual,
        VariableNomina.SALARIO_MINIMO.value: config.salario_minimo_zona(empleado.zona),
    }
    for nombre, valor in empleado.variables_extra.items():
        canonica = VariableNomina.buscar(nombre)
        variables[canonica.value if canonica else nombre] = valor
    return variables


# ---------------------------------------------------------------------------
# Evaluador
# ---------------------------------------------------------------------------

def _fn_round(valor: Decimal, decimales: Decimal = Decimal(0)) -> Decimal:
    if decimales != decimales.to_integral_value():
        raise ValueError("round() requiere decimales enteros")
    exponente = Decimal(1).scaleb(-int(decimales))
    return valor.quantize(exponente, rounding=ROUND_HALF_UP)


def _fn_ceil(valor: Decimal) -> Decimal:
    return valor.to_integral_value(rounding=ROUND_CEILING)


def _fn_floor(valor: Decimal) -> Decimal:
    return valor.to_integral_value(rounding=ROUND_FLOOR)


# nombre → (funcion, min args, max args; None = sin limite)
_FUNCIONES: Dict[str, tuple] = {
    'min': (lambda *args: min(args), 1, None),
    'max': (lambda *args: max(args), 1, None),
    'abs': (abs, 1, 1),
    'round': (_fn_round, 1, 2),
    'ceil': (_fn_ceil, 1, 1),
    'floor': (_fn_floor, 1, 1),
}

_OPERADORES_BINARIOS: Dict[type, Callable[[Decimal, Decimal], Decimal]] = {
    ast.Add: lambda a, b: a + b,
    ast.Sub: lambda a, b: a - b,
    ast.Mult: lambda a, b: a * b,
    ast.Div: lambda a, b: a / b,
    ast.Mod: lambda a, b: a % b,
}

_OPERADORES_UNARIOS: Dict[type, Callable[[Decimal], Decimal]] = {
    ast.UAdd: lambda a: +a,
    ast.USub: lambda a: -a,
}


class _Evaluador:
    """Recorre el AST de una expresion aceptando solo nodos aritmeticos."""

    def __init__(self, formula: str, fuente: str, variables: Mapping[str, Decimal]):
        self.formula = formula
        self.fuente = fuente
        self.variables = variables

    def _error(self, motivo: str) -> FormulaEvaluacionError:
        return FormulaEvaluacionError(self.formula, motivo)

    def evaluar(self, nodo: ast.AST) -> Decimal:
        if isinstance(nodo, ast.Expression):
            return self.evaluar(nodo.body)

        if isinstance(nodo, ast.Constant):
            if isinstance(nodo.value, bool) or not isinstance(nodo.value, (int, float)):
                raise self._error(f"Constante no numerica: {nodo.value!r}")
            # Texto literal para no pasar por float
            literal = ast.get_source_segment(self.fuente, nodo) or str(nodo.value)
            return Decimal(literal)

        if isinstance(nodo, ast.Name):
            return self._variable(nodo.id)

        if isinstance(nodo, ast.BinOp):
            operador = _OPERADORES_BINARIOS.get(type(nodo.op))
            if operador is None:
                raise self._error(f"Operador no permitido: {type(nodo.op).__name__}")
            return operador(self.evaluar(nodo.left), self.evaluar(nodo.right))

        if isinstance(nodo, ast.UnaryOp):
            operador = _OPERADORES_UNARIOS.get(type(nodo.op))
            if operador is None:
                raise self._error(f"Operador no permitido: {type(nodo.op).__name__}")
            return operador(self.evaluar(nodo.operand))

        if isinstance(nodo, ast.Call):
            return self._llamada(nodo)

        raise self._error(f"Expresion no permitida: {type(nodo).__name__}")

    def _variable(self, nombre: str) -> Decimal:
        valor = self.variables.get(nombre)
        if valor is None:
            canonica = VariableNomina.buscar(nombre)
            if canonica is not None:
                valor = self.variables.get(canonica.value)
        if valor is None:
            raise self._error(f"Variable sin valor: {nombre}")
        return valor

    def _llamada(self, nodo: ast.Call) -> Decimal:
        if not isinstance(nodo.func, ast.Name) or nodo.func.id not in _FUNCIONES:
            raise self._error("Llamada a funcion no permitida")
        if nodo.keywords:
            raise self._error("Argumentos con nombre no permitidos")

        nombre = nodo.func.id
        funcion, minimo, maximo = _FUNCIONES[nombre]
        argumentos: List[Decimal] = []
        for arg in nodo.args:
            if isinstance(arg, ast.Starred):
                raise self._error("Argumentos expandidos no permitidos")
            argumentos.append(self.evaluar(arg))

        if len(argumentos) < minimo or (maximo is not None and len(argumentos) > maximo):
            raise self._error(f"{nombre}() con {len(argumentos)} argumentos")
        return funcion(*argumentos)


def _evaluar(formula: str, variables: Mapping[str, Decimal]) -> Decimal:
    """Valida y evalua; levanta FormulaError en cualquier falla."""
    validacion = validar_formula(formula, variables)
    if not validacion.valido:
        raise FormulaInvalidaError(formula, validacion.error)

    # Los saltos de linea romperian el modo 'eval'
    fuente = ' '.join(normalizar_formula(formula).split())

    try:
        arbol = ast.parse(fuente, mode='eval')
        with localcontext(_CONTEXTO):
            resultado = _Evaluador(formula, fuente, variables).evaluar(arbol)
        if not isinstance(resultado, Decimal) or not resultado.is_finite():
            raise FormulaEvaluacionError(formula, f"Resultado no numerico: {resultado!r}")
        return redondear(resultado)
    except FormulaError:
        raise
    except SyntaxError as e:
        raise FormulaEvaluacionError(formula, f"Sintaxis invalida: {e.msg}") from None
    except (ArithmeticError, ValueError, RecursionError) as e:
        raise FormulaEvaluacionError(formula, f"Error aritmetico: {type(e).__name__}") from None


def evaluar_formula(
    formula: str,
    empleado: EmpleadoNomina,
    config: ConfiguracionNomina = CONFIGURACION_DEFAULT,
    estricto: bool = False,
) -> Decimal:
    """Evalua la formula de un concepto para un empleado.

    Args:
        formula: Formula del concepto.
        empleado: Snapshot del empleado.
        config: Tablas vigentes (UMA, salario minimo).
        estricto: Si True, levanta FormulaError en vez de regresar 0.

    Returns:
        Monto redondeado a centavos; Decimal('0.00') si la formula
        fue rechazada o no se pudo evaluar.
    """
    variables = construir_variables(empleado, config)
    try:
        return _evaluar(formula, variables)
    except FormulaInvalidaError as e:
        if estricto:
            raise
        logger.warning("Formula rechazada por seguridad: {!r} ({})", formula, e.motivo)
    except FormulaEvaluacionError as e:
        if estricto:
            raise
        logger.warning("Error evaluando formula: {!r} ({})", formula, e.motivo)
    return CERO
