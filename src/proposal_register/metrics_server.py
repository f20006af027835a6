"""
Prometheus metrics server for the proposal register.

Starts an HTTP server exposing register metrics at /metrics. Defaults come
from PROPOSAL_REGISTER_* environment variables; flags override them.

Usage:
    python -m proposal_register.metrics_server --port 9090
"""

import argparse
import time

from proposal_register.kernel.config import RegisterConfig
from proposal_register.kernel.logging import configure_logging, get_logger
from proposal_register.kernel.metrics import start_metrics_server

logger = get_logger(__name__)


def build_parser(config: RegisterConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Proposal Register Metrics Server")
    parser.add_argument(
        "--port",
        type=int,
        default=config.metrics_port,
        help=f"Port to listen on (default: {config.metrics_port})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=config.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=f"Logging level (default: {config.log_level})",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=config.json_logs,
        help="Output logs in JSON format",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Start the Prometheus metrics server.

    The server exposes all register metrics at http://0.0.0.0:<port>/metrics
    in Prometheus text format.
    """
    args = build_parser(RegisterConfig.from_env()).parse_args(argv)

    configure_logging(json_output=args.json_logs, log_level=args.log_level)

    logger.info(
        "Starting Prometheus metrics server",
        port=args.port,
        endpoint=f"http://0.0.0.0:{args.port}/metrics",
    )
    start_metrics_server(port=args.port)
    logger.info("Metrics server started successfully")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down metrics server")


if __name__ == "__main__":
    main()
