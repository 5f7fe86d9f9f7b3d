"""Motor de Nomina — calculo de ISR, IMSS y conceptos por formula.

Punto de entrada CLI para validar formulas, consultar la tarifa de ISR
y calcular la nomina de un grupo de empleados.

Uso:
    python main.py validar "min(SALARIO_BASE * 0.1, UMA_MENSUAL)"
    python main.py isr 10000 --periodicidad mensual
    python main.py calcular data/empleados.xlsx data/conceptos.xlsx --periodicidad quincenal
    python main.py calcular empleados.json conceptos.json --reporte data/reportes/nomina.xlsx
"""

import argparse
import sys
from decimal import Decimal
from pathlib import Path

from loguru import logger


def configurar_logger(nivel: str = 'INFO'):
    """Configura loguru con formato legible."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=nivel,
        format="<green>{time:HH:mm:ss}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
               "<level>{message}</level>",
    )


def cmd_validar(args):
    """Valida una formula contra la lista blanca."""
    from motor_nomina.formulas import validar_formula

    resultado = validar_formula(args.formula)
    if resultado.valido:
        print("VALIDA")
    else:
        print(f"RECHAZADA: {resultado.error}")
        sys.exit(1)


def cmd_isr(args):
    """Muestra ISR, subsidio y retencion para una base gravable."""
    from motor_nomina.errores import MotorNominaError
    from motor_nomina.isr import calcular_isr

    try:
        base = Decimal(args.base)
        config = args.settings.configuracion_nomina()
        resultado = calcular_isr(base, args.periodicidad, config)
    except (MotorNominaError, ArithmeticError, OSError) as e:
        logger.error("No se pudo calcular ISR para {!r}: {}", args.base, e)
        sys.exit(1)

    print(f"\n{'='*60}")
    print(f"ISR {args.periodicidad.upper()} | base gravable ${base:,.2f}")
    print(f"{'='*60}")
    print(f"  ISR causado:        ${resultado.isr:>12,.2f}")
    print(f"  Subsidio al empleo: ${resultado.subsidio_empleo:>12,.2f}")
    print(f"  {'─'*34}")
    print(f"  ISR retenido:       ${resultado.isr_retenido:>12,.2f}")


def cmd_calcular(args):
    """Calcula la nomina de los empleados de un archivo."""
    from motor_nomina.entrada.conceptos import parsear_conceptos
    from motor_nomina.entrada.empleados import parsear_empleados
    from motor_nomina.errores import MotorNominaError
    from motor_nomina.nomina import calcular_nomina_lote

    settings = args.settings
    for ruta in (Path(args.empleados), Path(args.conceptos)):
        if not ruta.exists():
            logger.error("Archivo no encontrado: {}", ruta)
            sys.exit(1)

    try:
        config = settings.configuracion_nomina()
        empleados = parsear_empleados(Path(args.empleados))
        conceptos = parsear_conceptos(Path(args.conceptos))
        resultados = calcular_nomina_lote(
            empleados, conceptos, args.periodicidad, config,
            estricto=args.estricto or settings.modo_estricto,
        )
    except (MotorNominaError, ValueError, OSError) as e:
        logger.error("No se pudo calcular la nomina: {}", e)
        sys.exit(1)

    for clave, r in resultados.items():
        _imprimir_recibo(clave, r)

    if args.reporte is not None:
        from motor_nomina.reportes.reporte_nomina import generar_reporte_nomina

        # --reporte sin ruta: directorio de reportes configurado
        ruta = Path(args.reporte) if args.reporte else (
            settings.reportes_dir / f"nomina_{args.periodicidad}.xlsx"
        )
        generar_reporte_nomina(resultados, dict(empleados), ruta, config)


def _imprimir_recibo(clave: str, r):
    print(f"\n{'='*60}")
    print(f"EMPLEADO: {clave}")
    print(f"{'='*60}")
    print("  Percepciones:")
    for p in r.percepciones:
        marca = '' if p.exento == 0 else ' (exento)'
        print(f"    {p.concepto:30s} ${p.monto:>12,.2f}{marca}")
    print("  Deducciones:")
    for d in r.deducciones:
        print(f"    {d.concepto:30s} ${d.monto:>12,.2f}")
    print(f"  {'─'*46}")
    print(f"  Base gravable ISR:             ${r.base_gravable_isr:>12,.2f}")
    print(f"  ISR / subsidio:                ${r.isr:>12,.2f} / ${r.subsidio_empleo:,.2f}")
    print(f"  Total percepciones:            ${r.total_percepciones:>12,.2f}")
    print(f"  Total deducciones:             ${r.total_deducciones:>12,.2f}")
    print(f"  NETO A PAGAR:                  ${r.neto_a_pagar:>12,.2f}")


def _argumento_tablas(parser):
    parser.add_argument('--tablas', type=Path, default=None,
                        help='JSON de tablas versionadas (sobrescribe NOMINA_TABLAS_PATH)')


def main(argv=None):
    from config.settings import Settings
    from motor_nomina.models import Periodicidad

    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error("Configuracion de entorno invalida: {}", e)
        sys.exit(1)
    periodicidades = [p.value for p in Periodicidad]

    parser = argparse.ArgumentParser(
        description='Motor de nomina Mexico: ISR, IMSS y conceptos por formula',
    )
    parser.add_argument('--log-level', default=settings.log_level,
                        help='Nivel de log (DEBUG, INFO, WARNING)')
    sub = parser.add_subparsers(dest='comando', required=True)

    p_val = sub.add_parser('validar', help='Valida una formula')
    p_val.add_argument('formula')
    p_val.set_defaults(func=cmd_validar)

    p_isr = sub.add_parser('isr', help='Calcula ISR para una base gravable')
    p_isr.add_argument('base')
    p_isr.add_argument('--periodicidad', choices=periodicidades,
                       default=settings.periodicidad.value)
    _argumento_tablas(p_isr)
    p_isr.set_defaults(func=cmd_isr)

    p_calc = sub.add_parser('calcular', help='Calcula nomina de un archivo de empleados')
    p_calc.add_argument('empleados', help='Empleados (.xlsx o .json)')
    p_calc.add_argument('conceptos', help='Catalogo de conceptos (.xlsx o .json)')
    p_calc.add_argument('--periodicidad', choices=periodicidades,
                        default=settings.periodicidad.value)
    p_calc.add_argument('--reporte', nargs='?', const='',
                        help='Ruta del Excel de salida (sin ruta: NOMINA_REPORTES_DIR)')
    p_calc.add_argument('--estricto', action='store_true',
                        help='Falla ante cualquier formula invalida')
    _argumento_tablas(p_calc)
    p_calc.set_defaults(func=cmd_calcular)

    args = parser.parse_args(argv)
    configurar_logger(args.log_level)

    if getattr(args, 'tablas', None) is not None:
        settings.tablas_path = args.tablas
    args.settings = settings

    args.func(args)


if __name__ == '__main__':
    main()
