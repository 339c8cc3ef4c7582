"""Logging utilities for swarmAgent."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


def setup_logging(level: int = logging.INFO, log_dir: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration for swarmAgent.

    Detailed records go to a timestamped file under ``log_dir``; the console
    only shows warnings and above.

    Args:
        level: Console logging level floor (default: INFO, raised to WARNING for console)
        log_dir: Directory for log files (default: ./logs)

    Returns:
        Configured logger instance
    """
    logs_dir = Path(log_dir or "logs")
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"swarm_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logger = logging.getLogger("swarmAgent")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    logger.handlers = []

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(min(level, logging.DEBUG))
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(max(level, logging.WARNING))
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("swarmAgent session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def log_node_entry(logger: logging.Logger, node_name: str, state: Dict[str, Any]) -> None:
    """Log node entry with a compact state summary."""
    execution = state.get("execution")
    agents = state.get("agents") or {}
    approvals = state.get("approvals") or {}
    logger.info(f"\n{'#'*80}")
    logger.info(f"# ENTERING NODE: {node_name}")
    logger.info(f"{'#'*80}")
    logger.info(f"  - execution: {execution.id if execution else 'N/A'}")
    logger.info(f"  - phase: {state.get('phase')}")
    logger.info(f"  - iterations: {state.get('iterations', 0)}")
    logger.info(f"  - agents: {', '.join(f'{a.role}={a.status.value}' for a in agents.values()) or 'none'}")
    logger.info(f"  - approvals: {len(approvals)}")


def log_routing_decision(logger: logging.Logger, from_node: str, decision: str, reason: str = "") -> None:
    """Log routing decision.

    Args:
        logger: Logger instance
        from_node: Source node making the decision
        decision: Routing destination
        reason: Reason for the routing decision
    """
    logger.info(f"\n{'='*80}")
    logger.info(f"Routing decision from {from_node}:")
    logger.info(f"  → Destination: {decision}")
    if reason:
        logger.info(f"  → Reason: {reason}")
    logger.info(f"{'='*80}\n")


def log_tool_call(logger: logging.Logger, tool_name: str, args: Dict[str, Any], risk: str = "") -> None:
    """Log a requested tool invocation."""
    suffix = f" (risk={risk})" if risk else ""
    logger.info(f"Tool call requested: {tool_name}{suffix}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, indent=2, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result.

    Args:
        logger: Logger instance
        tool_name: Name of the tool
        result: Tool execution result
        success: Whether the tool executed successfully
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Tool result: {tool_name} - {status}")

    result_str = str(result)
    if len(result_str) > 500:
        result_str = result_str[:500] + "... (truncated)"
    logger.debug(f"  Result: {result_str}")


def log_prompt(logger: logging.Logger, phase: str, prompt: str, max_length: int = 500) -> None:
    """Log a prompt, truncated to ``max_length`` characters."""
    text = prompt if len(prompt) <= max_length else prompt[:max_length] + "... (truncated)"
    logger.debug(f"Prompt for {phase}:\n{text}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)
