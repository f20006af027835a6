"""
Health check HTTP server for liveness and readiness probes.

Serves probe endpoints for a proposal register deployment. Readiness only
needs the event log to be queryable; the detailed endpoint also reports
register state when a live register instance is attached.
"""

import sqlite3
from pathlib import Path
from typing import Any

from flask import Flask, Response, jsonify

from proposal_register import __version__
from proposal_register.kernel.logging import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

SERVICE_NAME = "proposal-register"

# Global state - set by initialize_health_server()
_db_path: Path | None = None
_register: Any = None  # ProposalRegister instance for detailed checks


def initialize_health_server(db_path: str | Path, register: Any = None) -> None:
    """
    Point the health server at a register database.

    Args:
        db_path: Path to SQLite database
        register: Optional ProposalRegister for detailed health checks
    """
    global _db_path, _register
    _db_path = Path(db_path)
    _register = register
    logger.info("Health server initialized", db_path=str(_db_path))


@app.after_request
def add_security_headers(response: Response) -> Response:
    """Attach restrictive security headers to every probe response"""
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
    return response


@app.route("/health/live", methods=["GET"])
def liveness() -> tuple[Response, int]:
    """
    Liveness probe - checks if the process is running.

    Returns:
        JSON response with status and 200 OK
    """
    return jsonify({"status": "alive", "service": SERVICE_NAME}), 200


@app.route("/health/ready", methods=["GET"])
def readiness() -> tuple[Response, int]:
    """
    Readiness probe - checks if the event log can be queried.

    Returns:
        JSON response with status and 200 OK if ready, 503 if not ready
    """
    if _db_path is None:
        logger.error("Readiness check failed: DB path not initialized")
        return (
            jsonify({"status": "not_ready", "reason": "database_path_not_initialized"}),
            503,
        )

    if not _db_path.exists():
        logger.error("Readiness check failed: DB file does not exist", db_path=str(_db_path))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "database_file_not_found",
                    "db_path": str(_db_path),
                }
            ),
            503,
        )

    try:
        conn = sqlite3.connect(str(_db_path), timeout=1.0)
        try:
            event_count = conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
        finally:
            conn.close()

        logger.debug("Readiness check passed", event_count=event_count)
        return (
            jsonify({"status": "ready", "database": "accessible", "event_count": event_count}),
            200,
        )

    except sqlite3.OperationalError as e:
        logger.error("Readiness check failed: DB operational error", error=str(e))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "database_operational_error",
                    "error": str(e),
                }
            ),
            503,
        )
    except Exception as e:
        logger.error("Readiness check failed: Unexpected error", error=str(e), exc_info=True)
        return (
            jsonify({"status": "not_ready", "reason": "unexpected_error", "error": str(e)}),
            503,
        )


@app.route("/health/startup", methods=["GET"])
def startup() -> tuple[Response, int]:
    """
    Startup probe - passes once a register has replayed its event log.

    Returns:
        JSON response with status and 200 OK once started, 503 before
    """
    if _register is None:
        return jsonify({"status": "starting", "reason": "register_not_loaded"}), 503

    return (
        jsonify(
            {
                "status": "started",
                "initialized": _register.is_initialized,
                "proposal_count": _register.get_proposal_count(),
            }
        ),
        200,
    )


@app.route("/health", methods=["GET"])
def detailed_health() -> tuple[Response, int]:
    """
    Detailed health check - database statistics plus register state.

    Returns:
        JSON response with detailed health information
    """
    health_data: dict[str, Any] = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": __version__,
    }

    if _db_path and _db_path.exists():
        try:
            conn = sqlite3.connect(str(_db_path), timeout=1.0)
            try:
                event_count = conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
                stream_count = conn.execute(
                    "SELECT COUNT(DISTINCT stream_id) FROM events"
                ).fetchone()[0]
                page_count = conn.execute("PRAGMA page_count").fetchone()[0]
                page_size = conn.execute("PRAGMA page_size").fetchone()[0]
            finally:
                conn.close()

            health_data["database"] = {
                "status": "healthy",
                "path": str(_db_path),
                "event_count": event_count,
                "stream_count": stream_count,
                "size_mb": round((page_count * page_size) / (1024 * 1024), 2),
            }

        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            health_data["database"] = {"status": "unhealthy", "error": str(e)}
            health_data["status"] = "degraded"
    else:
        health_data["database"] = {"status": "not_initialized"}
        health_data["status"] = "degraded"

    if _register is not None:
        try:
            now = _register.time_provider.now()
            proposals = _register.list_proposals()
            health_data["register"] = {
                "initialized": _register.is_initialized,
                "allowlisted_count": len(_register.list_allowed()),
                "proposal_count": len(proposals),
                "active_count": sum(1 for p in proposals if p.active and now < p.end_time),
                "awaiting_close_count": sum(
                    1 for p in proposals if p.active and now >= p.end_time
                ),
            }
        except Exception as e:
            logger.warning("Could not read register state", error=str(e))
            health_data["register"] = {"status": "unavailable", "error": str(e)}

    status_code = 200 if health_data["status"] == "healthy" else 503
    return jsonify(health_data), status_code


def run_health_server(port: int = 8080, debug: bool = False) -> None:
    """
    Run the health check server.

    Args:
        port: Port to listen on (default: 8080)
        debug: Enable Flask debug mode (default: False)
    """
    logger.info("Starting health check server", port=port)
    app.run(host="0.0.0.0", port=port, debug=debug)


def main() -> None:
    """Serve health probes for the configured register database"""
    from proposal_register.kernel.config import RegisterConfig
    from proposal_register.kernel.logging import configure_logging
    from proposal_register.register import ProposalRegister

    config = RegisterConfig.from_env()
    configure_logging(json_output=config.json_logs, log_level=config.log_level)
    register = ProposalRegister(config.db_path) if config.db_path.exists() else None
    initialize_health_server(config.db_path, register=register)
    run_health_server(port=config.health_port)


if __name__ == "__main__":
    main()
