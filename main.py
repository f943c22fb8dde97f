"""CLI entry point: python main.py run-cycle"""

import argparse
import json
import sys
import threading

from src.billing.exceptions import BillingError
from src.billing.service import create_billing_service
from src.logging_config import LoggingConfig, configure_logging
from src.settings import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Billing - recurring invoice billing engine"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser(
        "serve", help="Run the REST API with the monthly billing schedule"
    )
    serve.add_argument("--host", default=None, help="Bind address (default: BILLING_API_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: BILLING_API_PORT)")
    serve.add_argument(
        "--no-schedule", action="store_true",
        help="Do not arm the monthly billing trigger"
    )

    subparsers.add_parser("run-cycle", help="Charge every PENDING invoice once and exit")

    process = subparsers.add_parser("process", help="Charge a single invoice")
    process.add_argument("invoice_id", type=int, help="ID of a PENDING invoice")

    subparsers.add_parser(
        "schedule", help="Run billing on the configured day of every month until interrupted"
    )
    return parser


def cmd_serve(args, settings) -> int:
    import uvicorn

    from src.api.app import create_app

    app = create_app(settings=settings, start_recurring=not args.no_schedule)
    uvicorn.run(
        app,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        log_config=None,
    )
    return 0


def cmd_run_cycle(args, settings) -> int:
    service = create_billing_service(settings)

    print("=" * 60)
    print("BILLING RUN")
    print("=" * 60)
    report = service.run_billing_cycle()

    print(f"\n  Run:        {report.run_id}")
    print(f"  Invoices:   {report.total}")
    print(f"  Paid:       {report.succeeded}")
    print(f"  Failed:     {report.failed}")
    if report.errored:
        print(f"  Errored:    {report.errored}")
    print(f"  Success:    {report.success_rate:.1%}")
    print(f"  Duration:   {report.duration_ms:,.0f} ms")
    return 0


def cmd_process(args, settings) -> int:
    service = create_billing_service(settings)
    try:
        action = service.process_invoice(args.invoice_id)
    except BillingError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(json.dumps(action.to_dict(), indent=2))
    return 0 if action.charged else 2


def cmd_schedule(args, settings) -> int:
    service = create_billing_service(settings)
    service.start_recurring()
    print(
        f"Billing scheduled on day {settings.billing_day_of_month} of every month. "
        "Press Ctrl+C to stop."
    )
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        service.stop()
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "run-cycle": cmd_run_cycle,
    "process": cmd_process,
    "schedule": cmd_schedule,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(LoggingConfig.from_settings(settings))

    return COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
