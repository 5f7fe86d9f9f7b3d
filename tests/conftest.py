"""Fixtures compartidas para tests del motor de nomina."""

import sys
from pathlib import Path

import pytest
from loguru import logger

# Agregar raiz del proyecto al path
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from motor_nomina.models import EmpleadoNomina  # noqa: E402
from motor_nomina.tablas import CONFIGURACION_DEFAULT  # noqa: E402


@pytest.fixture
def configuracion():
    """Tablas Mexico 2025."""
    return CONFIGURACION_DEFAULT


@pytest.fixture
def empleado_base() -> EmpleadoNomina:
    """Empleado de $8,000 mensuales, zona general."""
    return EmpleadoNomina.crear(
        salario_base='8000',
        salario_diario='266.67',
        sbc='280',
        dias_trabajados='15',
    )


@pytest.fixture
def capturar_logs():
    """Mensajes WARNING+ emitidos por loguru durante el test."""
    mensajes = []
    sink_id = logger.add(lambda m: mensajes.append(m.record['message']), level='WARNING')
    yield mensajes
    logger.remove(sink_id)
