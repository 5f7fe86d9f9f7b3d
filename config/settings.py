"""Configuracion central del motor de nomina.

Parametros de ejecucion (nivel de log, modo estricto, periodicidad por
defecto, tablas versionadas). Todo se carga desde variables de entorno (.env).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from motor_nomina.models import ConfiguracionNomina, Periodicidad
from motor_nomina.tablas import CONFIGURACION_DEFAULT, cargar_configuracion


_VERDADEROS = {'1', 'true', 'si', 'sí', 'yes', 'on'}


def _env_bool(nombre: str, default: bool = False) -> bool:
    valor = os.getenv(nombre)
    if valor is None:
        return default
    return valor.strip().lower() in _VERDADEROS


@dataclass
class Settings:
    """Configuracion principal del motor de nomina."""

    # --- Calculo ---
    periodicidad: Periodicidad = Periodicidad.QUINCENAL
    modo_estricto: bool = False
    tablas_path: Optional[Path] = None   # JSON de tablas versionadas

    # --- Directorios ---
    proyecto_dir: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    reportes_dir: Path = field(default=None)

    # --- Logging ---
    log_level: str = 'INFO'

    def __post_init__(self):
        """Inicializa directorios derivados si no fueron proporcionados."""
        if self.reportes_dir is None:
            self.reportes_dir = self.proyecto_dir / 'data' / 'reportes'

    @classmethod
    def from_env(cls, env_path: str = None) -> 'Settings':
        """Carga configuracion desde variables de entorno (.env)."""
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        tablas = os.getenv('NOMINA_TABLAS_PATH')
        reportes = os.getenv('NOMINA_REPORTES_DIR')

        return cls(
            periodicidad=Periodicidad(os.getenv('NOMINA_PERIODICIDAD', 'quincenal').strip().lower()),
            modo_estricto=_env_bool('NOMINA_MODO_ESTRICTO'),
            tablas_path=Path(tablas) if tablas else None,
            reportes_dir=Path(reportes) if reportes else None,
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
        )

    def configuracion_nomina(self) -> ConfiguracionNomina:
        """Tablas versionadas si hay archivo configurado; si no, las de 2025."""
        if self.tablas_path is None:
            return CONFIGURACION_DEFAULT
        return cargar_configuracion(self.tablas_path)
