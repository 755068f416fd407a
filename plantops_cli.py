#!/usr/bin/env python3
import sys
import json
import logging
import argparse
import signal
from datetime import datetime

from plantops import __version__
from plantops.services.logging_config import setup_main_logging
from plantops.services.config_loader import load_config
from plantops.services.record_client import RecordStoreError
from plantops import workflows
from plantops.workflows.helpers import build_repository, load_thresholds, parse_month

logger = logging.getLogger(__name__)


def _handle_termination_signal(signum, frame):
    """Handle termination signals (SIGTERM, SIGINT) and log before exiting."""
    signal_names = {
        signal.SIGTERM: "SIGTERM",
        signal.SIGINT: "SIGINT (Ctrl+C)",
    }
    if hasattr(signal, "SIGHUP"):
        signal_names[signal.SIGHUP] = "SIGHUP"
    signal_name = signal_names.get(signum, f"signal {signum}")

    logger.warning(f"{'='*70}")
    logger.warning(f"⚠️  Process received {signal_name} - Terminating gracefully")
    logger.warning(f"{'='*70}")

    # Flush logs before exit
    logging.shutdown()

    sys.exit(128 + signum)  # Standard exit code for signal termination


def _setup_arguments():
    """Configures command-line arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="plantops: compliance and ranking analytics for plant operations.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compliance report of one unit for a month (Warning level)
  ./plantops_cli.py --month 2024-03 -c "Tonasa 4" -u "Cement Mill 419"

  # Same, under OPC bounds and compared with the same month of 2023, INFO logging
  ./plantops_cli.py -m 2024-03 -c "Tonasa 4" -u "Cement Mill 419" --material OPC --compare-year 2023 -v

  # Operator leaderboards for a month, top 4 per category, DEBUG logging
  ./plantops_cli.py -m 2024-03 --ranking -vv

  # Check configuration and record store connection
  ./plantops_cli.py --check-config
"""
    )

    parser.add_argument(
        "-m", "--month",
        metavar="YYYY-MM",
        type=str,
        default=None,
        help="Month to analyse."
    )
    parser.add_argument(
        "-c", "--category",
        type=str,
        default=None,
        help="Plant category of the selection."
    )
    parser.add_argument(
        "-u", "--unit",
        type=str,
        default=None,
        help="Plant unit of the selection."
    )
    parser.add_argument(
        "--material",
        type=str.upper,
        choices=["OPC", "PCC"],
        default=None,
        help="Material context for target bounds. (Default: [basic] default_material, else general bounds)"
    )
    parser.add_argument(
        "--compare-year",
        metavar="YYYY",
        type=int,
        default=None,
        help="Compare the month with the same month of this year."
    )
    parser.add_argument(
        "--ranking",
        action="store_true",
        help="Build per-category operator leaderboards instead of the compliance report."
    )
    parser.add_argument(
        "--top",
        metavar="N",
        type=int,
        default=None,
        help="Leaderboard size per category. (Default: analytics threshold top_n)"
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Check all configuration, test connection, and exit."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",  # Use 'count' to sum up the -v flags
        default=0,
        help="Increase logging verbosity (default: WARNING, -v: INFO, -vv: DEBUG)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show the program's version number and exit"
    )

    return parser


def _register_signal_handlers():
    signal.signal(signal.SIGTERM, _handle_termination_signal)
    signal.signal(signal.SIGINT, _handle_termination_signal)
    try:
        signal.signal(signal.SIGHUP, _handle_termination_signal)
    except AttributeError:
        pass  # SIGHUP not available on Windows


def main(argv=None):
    parser = _setup_arguments()
    args = parser.parse_args(argv)

    if not args.month and not args.check_config:
        parser.print_help()
        sys.exit(0)

    # 1. Validate arguments before touching logs or network
    year = month = None
    if args.month:
        try:
            year, month = parse_month(args.month)
        except ValueError:
            parser.error(f"invalid --month '{args.month}', use YYYY-MM")
    if args.top is not None and args.top < 0:
        parser.error("--top must be >= 0")
    if not args.ranking and args.month and (not args.category or not args.unit):
        parser.error("--category and --unit are required for the compliance report")

    # 2. Setup Logging
    try:
        basic_config = load_config(section='basic')
    except (FileNotFoundError, KeyError) as e:
        basic_config = {}
        startup_error = e
    else:
        startup_error = None

    log_dir = basic_config.get('log_dir') or "logs/log"
    if args.check_config:
        log_name = f"config_{datetime.now().strftime('%Y%m%d')}"
        log_level, log_file_path = setup_main_logging(args.verbose + 1, log_name, log_dir=log_dir)
    else:
        log_name = f"{'ranking' if args.ranking else 'compliance'}_{year:04d}{month:02d}"
        log_level, log_file_path = setup_main_logging(args.verbose, log_name, log_dir=log_dir)

    _register_signal_handlers()

    logger.info(f"--- {sys.argv[0]} Starting ---")
    logger.info(f"Arguments: {vars(args)}")
    logger.info(f"Log level set to: {logging.getLevelName(log_level)}")

    if args.check_config:
        logger.info("Running configuration and connection check...")
        from plantops.services.health_check import check_configurations
        try:
            all_ok = check_configurations()
        except Exception as e:
            logger.critical(f"A fatal error occurred during config check: {e}", exc_info=True)
            sys.exit(1)
        if all_ok:
            logger.info("--- ✅ All checks passed ---")
            sys.exit(0)
        logger.error("--- ❌ One or more checks FAILED ---")
        sys.exit(1)

    if startup_error is not None:
        logger.critical(f"Failed to load [basic] config: {startup_error}. Exiting.")
        sys.exit(1)

    # 3. Build the repository
    try:
        store_config = load_config(section='record_store')
        repo = build_repository(store_config)
    except (FileNotFoundError, KeyError, ValueError) as e:
        logger.critical(f"Failed to set up the record store client: {e}. Exiting.", exc_info=True)
        sys.exit(1)

    thresholds = load_thresholds()
    material = args.material or basic_config.get('default_material') or None

    # 4. Dispatch to the workflow
    try:
        if args.ranking:
            report = workflows.run_ranking_workflow(repo, year, month, top_n=args.top, thresholds=thresholds)
        else:
            report = workflows.run_compliance_workflow(
                repo, year, month, args.category, args.unit,
                material=material,
                compare_year=args.compare_year,
                thresholds=thresholds,
            )
    except RecordStoreError as e:
        logger.critical(f"Record store unavailable: {e}", exc_info=True)
        sys.exit(1)
    except Exception as e:
        logger.critical(f"A fatal error occurred in the workflow: {e}", exc_info=True)
        sys.exit(1)
    finally:
        repo.client.close()

    json.dump(report, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    logger.info(f"--- {sys.argv[0]} Finished ---")
    return 0


if __name__ == "__main__":
    main()
