#!/usr/bin/env python3
"""
MCP server exposing the error recovery engine.

Tools:
- report_error: record an error and trigger automatic recovery
- get_error / list_errors: inspect stored errors
- get_statistics: engine-wide counters
- list_active_recoveries: error ids with a recovery in flight
- attempt_recovery: run recovery for a stored error now
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from .config import validate_config
from .engine import ErrorRecoveryEngine
from .exceptions import RecoveryEngineError
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

# Set by set_engine() or created lazily on first use
engine: Optional[ErrorRecoveryEngine] = None


def set_engine(instance: ErrorRecoveryEngine) -> None:
    """Set the engine instance the MCP tools operate on."""
    global engine
    engine = instance


def get_engine() -> ErrorRecoveryEngine:
    global engine
    if engine is None:
        engine = ErrorRecoveryEngine()
    return engine


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


@asynccontextmanager
async def lifespan(app):
    """Lifecycle manager for the MCP server."""
    logger.info("Starting Self-Healing Recovery MCP Server...")
    current = get_engine()

    try:
        await current.initialize()
    except RecoveryEngineError as e:
        logger.error(f"Failed to initialize recovery engine: {e}")
        raise

    try:
        yield {"engine": current}
    finally:
        logger.info("Shutting down Self-Healing Recovery MCP Server...")
        await current.shutdown()


mcp = FastMCP("self-healing-recovery", lifespan=lifespan)


@mcp.tool()
async def report_error(
    severity: str,
    category: str,
    message: str,
    source: str,
    component: Optional[str] = None,
    plugin: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    stack: Optional[str] = None,
    user_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> str:
    """
    Report an error to the recovery engine.

    The error is stored and, when auto-recovery is enabled, the best matching
    recovery strategy starts in the background. Returns the assigned error id.
    """
    try:
        error_id = await get_engine().report_error(
            {
                "severity": severity,
                "category": category,
                "message": message,
                "source": source,
                "component": component,
                "plugin": plugin,
                "context": context or {},
                "stack": stack,
                "user_id": user_id,
                "session_id": session_id,
            }
        )
        return _dump({"errorId": error_id})

    except ValidationError as e:
        logger.error(f"Validation error: {e}")
        return f"Validation Error: {e}"

    except RecoveryEngineError as e:
        logger.error(f"Failed to report error: {e}")
        return f"Error: {e.message}"


@mcp.tool()
async def get_error(error_id: str) -> str:
    """Return a stored error by id."""
    error = get_engine().get_error(error_id)
    if error is None:
        return f"Error not found: {error_id}"
    return _dump(error.model_dump(mode="json", by_alias=True))


@mcp.tool()
async def list_errors(unresolved_only: bool = False) -> str:
    """List stored errors in report order."""
    errors = get_engine().get_all_errors()
    if unresolved_only:
        errors = [error for error in errors if not error.resolved]
    return _dump([error.model_dump(mode="json", by_alias=True) for error in errors])


@mcp.tool()
async def get_statistics() -> str:
    """Return error, recovery, health check and circuit breaker counters."""
    return _dump(get_engine().get_statistics())


@mcp.tool()
async def list_active_recoveries() -> str:
    """List error ids whose recovery is currently in flight."""
    return _dump(get_engine().get_active_recoveries())


@mcp.tool()
async def attempt_recovery(error_id: str) -> str:
    """Run recovery for a stored error and report whether it was resolved."""
    current = get_engine()
    try:
        recovered = await current.attempt_recovery(error_id)
    except RecoveryEngineError as e:
        logger.error(f"Recovery attempt failed for {error_id}: {e}")
        return f"Error: {e.message}"

    error = current.get_error(error_id)
    return _dump(
        {
            "errorId": error_id,
            "recovered": recovered,
            "resolved": bool(error and error.resolved),
            "retryCount": error.retry_count if error else 0,
        }
    )


def run():
    setup_logging()
    validate_config()
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run()
