"""Parser del catalogo de conceptos de nomina.

Acepta Excel (.xlsx) con encabezados:

    ID | NOMBRE | TIPO | FORMULA | GRAVABLE ISR | INTEGRA SBC | LIMITE EXENTO

(sin importar acentos ni mayusculas; ID, INTEGRA SBC y LIMITE EXENTO son
opcionales) o JSON con una lista de objetos:

    [{"id": "P001", "nombre": "Sueldo", "tipo": "percepcion",
      "formula": "SALARIO_BASE", "gravable_isr": true}]

Los renglones con tipo desconocido o sin formula se omiten con advertencia.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from motor_nomina.entrada.excel import leer_tabla_excel
from motor_nomina.entrada.normalizacion import normalizar_booleano, normalizar_texto
from motor_nomina.models import ConceptoFormula, TipoConcepto


ENCABEZADOS_REQUERIDOS = ('NOMBRE', 'TIPO', 'FORMULA')

# Variantes aceptadas en la columna TIPO
_TIPOS = {
    'PERCEPCION': TipoConcepto.PERCEPCION,
    'PERCEPCIONES': TipoConcepto.PERCEPCION,
    'P': TipoConcepto.PERCEPCION,
    'DEDUCCION': TipoConcepto.DEDUCCION,
    'DEDUCCIONES': TipoConcepto.DEDUCCION,
    'D': TipoConcepto.DEDUCCION,
}


def _concepto_desde_registro(registro: Dict[str, Any], numero: int) -> Optional[ConceptoFormula]:
    """Convierte un registro con llaves normalizadas en ConceptoFormula."""
    nombre = str(registro.get('NOMBRE') or '').strip()
    formula = str(registro.get('FORMULA') or '').strip()
    tipo = _TIPOS.get(normalizar_texto(registro.get('TIPO')))

    if not nombre:
        logger.warning("Concepto {}: sin nombre, se omite", numero)
        return None
    if tipo is None:
        logger.warning("Concepto '{}': tipo desconocido {!r}, se omite", nombre, registro.get('TIPO'))
        return None
    if not formula:
        logger.warning("Concepto '{}': sin formula, se omite", nombre)
        return None

    limite = registro.get('LIMITE EXENTO')
    return ConceptoFormula(
        id=str(registro.get('ID') or f'C{numero:03d}').strip(),
        nombre=nombre,
        tipo=tipo,
        formula=formula,
        gravable_isr=normalizar_booleano(registro.get('GRAVABLE ISR'), default=True),
        integra_sbc=normalizar_booleano(registro.get('INTEGRA SBC'), default=False),
        limite_exento=str(limite).strip() if limite not in (None, '') else None,
    )


def _registros_json(ruta: Path) -> List[Dict[str, Any]]:
    with open(ruta, encoding='utf-8') as f:
        datos = json.load(f)
    if not isinstance(datos, list):
        raise ValueError(f"{ruta.name}: se esperaba una lista de conceptos")
    # Llaves snake_case → mismo formato que los encabezados de Excel
    return [
        {normalizar_texto(llave): valor for llave, valor in item.items()}
        for item in datos
        if isinstance(item, dict)
    ]


def parsear_conceptos(ruta: Path) -> List[ConceptoFormula]:
    """Lee el catalogo de conceptos desde .xlsx o .json.

    Returns:
        Conceptos en el orden del archivo.
    """
    ruta = Path(ruta)
    logger.info("Parseando conceptos: {}", ruta.name)

    if ruta.suffix.lower() == '.json':
        registros = _registros_json(ruta)
    else:
        registros = leer_tabla_excel(ruta, ENCABEZADOS_REQUERIDOS)

    conceptos = []
    for numero, registro in enumerate(registros, start=1):
        concepto = _concepto_desde_registro(registro, numero)
        if concepto is not None:
            conceptos.append(concepto)

    percepciones = sum(1 for c in conceptos if c.tipo == TipoConcepto.PERCEPCION)
    logger.info(
        "Conceptos: {} percepciones, {} deducciones ({} omitidos)",
        percepciones, len(conceptos) - percepciones, len(registros) - len(conceptos),
    )
    return conceptos
