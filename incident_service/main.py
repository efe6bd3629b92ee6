from __future__ import annotations

import argparse
import json
import logging
import sys

from incident_service.bootstrap import build_service, load_dotenv
from incident_service.config import Settings
from incident_service.domain.models import AiStatus, Incident
from incident_service.enrichment.errors import RequestValidationError
from incident_service.observability.logging import setup_logging

logger = logging.getLogger("incident_service")


def _print_incident(incident: Incident) -> None:
    print(json.dumps(incident.to_dict(), ensure_ascii=False, indent=2))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Incident reports with AI enrichment")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="record an incident and enrich it")
    create.add_argument("--description", required=True)
    create.add_argument("--reported-by", required=True)
    create.add_argument(
        "--wait",
        type=float,
        default=None,
        metavar="SECONDS",
        help="wait up to SECONDS for enrichment before printing (enrichment still finishes before exit)",
    )

    show = sub.add_parser("show", help="print a stored incident")
    show.add_argument("incident_id")

    sub.add_parser("stats", help="count incidents per AI status")

    reenrich = sub.add_parser("reenrich", help="run enrichment again for stored incidents")
    reenrich.add_argument(
        "--status",
        choices=[AiStatus.PENDING.value, AiStatus.FAILED.value],
        default=AiStatus.PENDING.value,
        help="which incidents to re-drive (PENDING ones left by a crash, or FAILED ones)",
    )
    reenrich.add_argument("--limit", type=int, default=None)

    return parser.parse_args(argv)


def run(args: argparse.Namespace, settings: Settings) -> int:
    service, coordinator = build_service(settings)
    with coordinator:
        if args.command == "create":
            try:
                incident = service.create_incident(
                    args.description,
                    args.reported_by,
                    wait_seconds=args.wait,
                )
            except RequestValidationError as exc:
                logger.error("incident rejected | error=%s", exc)
                return 1
            _print_incident(incident)
            return 0

        if args.command == "show":
            incident = service.get_incident(args.incident_id)
            if incident is None:
                logger.error("incident not found | id=%s", args.incident_id)
                return 1
            _print_incident(incident)
            return 0

        if args.command == "stats":
            counts = service.count_by_status()
            print(json.dumps(counts, indent=2, sort_keys=True))
            return 0

        if args.command == "reenrich":
            stats = service.reenrich(AiStatus(args.status), limit=args.limit)
            print(stats.summary())
            return 0 if stats.failed == 0 and stats.rejected == 0 else 2

    return 1


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    settings = Settings.from_env()

    setup_logging(level=settings.log_level, json_logs=settings.json_logs)

    try:
        return run(args, settings)
    except Exception as exc:  # noqa: BLE001
        logger.error("command failed | command=%s error=%s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
