"""Utilidades de normalizacion de celdas Excel y valores JSON."""

import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Optional


_VERDADEROS = {'SI', 'S', 'X', 'TRUE', 'VERDADERO', '1', 'YES', 'Y'}
_FALSOS = {'NO', 'N', 'FALSE', 'FALSO', '0', ''}


def normalizar_texto(texto) -> str:
    """Normaliza texto: quita acentos, puntos, y pasa a mayusculas.

    Ej: 'Fórmula' → 'FORMULA'
        'Días trabajados' → 'DIAS TRABAJADOS'
        'Gravable I.S.R.' → 'GRAVABLE ISR'
    """
    if texto is None:
        return ''
    nfkd = unicodedata.normalize('NFKD', str(texto))
    sin_acentos = ''.join(c for c in nfkd if not unicodedata.combining(c))
    sin_puntos = sin_acentos.replace('.', '').replace('_', ' ')
    return ' '.join(sin_puntos.upper().split())


def normalizar_monto(valor) -> Optional[Decimal]:
    """Convierte un valor de celda a Decimal.

    Maneja Decimal, int, float y string con formato de moneda ($1,234.56).
    A diferencia de los totales de reportes, un 0 es un monto valido.
    """
    if valor is None or isinstance(valor, bool):
        return None

    if isinstance(valor, Decimal):
        return valor

    if isinstance(valor, (int, float)):
        return Decimal(str(valor))

    if isinstance(valor, str):
        limpio = valor.replace('$', '').replace(',', '').strip()
        if not limpio or limpio == '-':
            return None
        try:
            monto = Decimal(limpio)
        except InvalidOperation:
            return None
        return monto if monto.is_finite() else None

    return None


def normalizar_booleano(valor, default: bool = False) -> bool:
    """Interpreta SI/NO, X, 1/0, True/False de una celda."""
    if valor is None:
        return default
    if isinstance(valor, bool):
        return valor
    if isinstance(valor, (int, float)):
        return valor != 0
    texto = normalizar_texto(valor)
    if texto in _VERDADEROS:
        return True
    if texto in _FALSOS:
        return False
    return default
