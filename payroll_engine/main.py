"""Point d'entree CLI du moteur de paie.

Usage :
    payroll-engine calculate job.json --period 2025-03
    payroll-engine run-period jobs.json --period 2025-03
    payroll-engine net-to-gross employee.json --net 2500
    payroll-engine forecast employee.json [--years 10]
    payroll-engine anomalies [--employee ID]
    payroll-engine resolve ANOMALY_ID --resolution "..."
    payroll-engine dismiss ANOMALY_ID [--reason "..."]
"""

import argparse
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from payroll_engine import __version__
from payroll_engine.config.settings import AppConfig
from payroll_engine.core.exceptions import PayrollEngineError
from payroll_engine.core.orchestrator import PayrollOrchestrator, PayrollService
from payroll_engine.models.anomalies import PayrollAnomaly, SalaryForecast
from payroll_engine.models.employee import Employee, PayrollPeriod
from payroll_engine.models.payroll import PayrollEntry, PayrollJob
from payroll_engine.rules.net_to_gross import NetToGrossResult, calculate_net_to_gross

JOB_ADAPTER = TypeAdapter(PayrollJob)
JOBS_ADAPTER = TypeAdapter(list[PayrollJob])
EMPLOYEE_ADAPTER = TypeAdapter(Employee)
ENTRY_ADAPTER = TypeAdapter(PayrollEntry)
ANOMALIES_ADAPTER = TypeAdapter(list[PayrollAnomaly])
FORECAST_ADAPTER = TypeAdapter(SalaryForecast)
NET_TO_GROSS_ADAPTER = TypeAdapter(NetToGrossResult)


def configurer_logging(verbose: bool = False) -> None:
    """Configure le logging de l'application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)-7s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def creer_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payroll-engine",
        description="Calcul de paie allemand (Lohnsteuer, Sozialversicherung, Branchen).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Repertoire des donnees (base et journal d'audit)")
    parser.add_argument("--tax-year", type=int, default=2025,
                        help="Annee de la table de taux (defaut: 2025)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Mode verbeux (debug)")

    sub = parser.add_subparsers(dest="commande", required=True)

    p = sub.add_parser("calculate", help="Calcule une paie sans l'enregistrer")
    p.add_argument("fichier", type=Path, help="Fichier JSON d'une paie (PayrollJob)")
    p.add_argument("--period", required=True, help="Periode YYYY-MM")

    p = sub.add_parser("run-period", help="Calcule, enregistre et analyse une periode")
    p.add_argument("fichier", type=Path, help="Fichier JSON (liste de PayrollJob)")
    p.add_argument("--period", required=True, help="Periode YYYY-MM")

    p = sub.add_parser("net-to-gross", help="Brut necessaire pour un net cible")
    p.add_argument("fichier", type=Path, help="Fichier JSON du salarie")
    p.add_argument("--net", type=Decimal, required=True, help="Net mensuel cible")

    p = sub.add_parser("forecast", help="Projection de salaire")
    p.add_argument("fichier", type=Path, help="Fichier JSON du salarie")
    p.add_argument("--years", type=int, default=None)

    p = sub.add_parser("anomalies", help="Anomalies ouvertes et score de sante")
    p.add_argument("--employee", default=None)

    p = sub.add_parser("resolve", help="Marque une anomalie comme resolue")
    p.add_argument("anomaly_id")
    p.add_argument("--resolution", required=True)

    p = sub.add_parser("dismiss", help="Ecarte une anomalie")
    p.add_argument("anomaly_id")
    p.add_argument("--reason", default="")
    return parser


def _afficher(adapter: TypeAdapter, valeur) -> None:
    print(adapter.dump_json(valeur, indent=2).decode("utf-8"))


def executer(args: argparse.Namespace) -> int:
    config = AppConfig(tax_year=args.tax_year) if args.data_dir is None \
        else AppConfig(data_dir=args.data_dir, tax_year=args.tax_year)

    if args.commande == "calculate":
        job = JOB_ADAPTER.validate_json(args.fichier.read_bytes())
        orchestrateur = PayrollOrchestrator(config.rate_table(), config.compliance)
        entry = orchestrateur.compute_batch([job], PayrollPeriod.from_key(args.period))[0]
        _afficher(ENTRY_ADAPTER, entry)
        return 0

    if args.commande == "net-to-gross":
        employe = EMPLOYEE_ADAPTER.validate_json(args.fichier.read_bytes())
        _afficher(NET_TO_GROSS_ADAPTER,
                  calculate_net_to_gross(args.net, employe, config.rate_table()))
        return 0

    service = PayrollService(config)

    if args.commande == "run-period":
        jobs = JOBS_ADAPTER.validate_json(args.fichier.read_bytes())
        result = service.run_period(jobs, PayrollPeriod.from_key(args.period))
        print(json.dumps({
            "periode": result.period.key,
            "paies": [
                {"employee_id": e.employee_id, "net_final": str(e.final_net_salary)}
                for e in result.entries
            ],
            "anomalies": len(result.anomalies),
            "erreurs": result.errors,
            "score_sante": result.health_score,
        }, indent=2, ensure_ascii=False))
        return 1 if result.errors else 0

    if args.commande == "forecast":
        employe = EMPLOYEE_ADAPTER.validate_json(args.fichier.read_bytes())
        _afficher(FORECAST_ADAPTER, service.forecast(employe, args.years))
        return 0

    if args.commande == "anomalies":
        ouvertes = service.repository.open_anomalies(args.employee)
        _afficher(ANOMALIES_ADAPTER, ouvertes)
        print(f"Score de sante : {service.health_score()}/100")
        return 0

    if args.commande == "resolve":
        service.resolve_anomaly(args.anomaly_id, args.resolution)
        print(f"Anomalie {args.anomaly_id} resolue")
        return 0

    if args.commande == "dismiss":
        service.dismiss_anomaly(args.anomaly_id, args.reason)
        print(f"Anomalie {args.anomaly_id} ecartee")
        return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    """Point d'entree principal."""
    parser = creer_argument_parser()
    args = parser.parse_args(argv)

    configurer_logging(args.verbose)
    logger = logging.getLogger("payroll_engine")

    try:
        return executer(args)
    except ValidationError as e:
        logger.error("Donnees d'entree invalides : %s", e)
        return 1
    except PayrollEngineError as e:
        logger.error("Erreur de calcul : %s", e)
        return 1
    except OSError as e:
        logger.error("Fichier illisible : %s", e)
        return 1
    except Exception as e:
        logger.exception("Erreur inattendue : %s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
