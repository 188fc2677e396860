"""Logging for ctskit.

Console output goes through loguru. Each conformance run additionally leaves
a plain-text summary, ``{prefix}.log.txt``, whose lines all start with ``##``
so it can be concatenated with other suite logs and still be grepped apart.
"""

import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

import ctskit
from ctskit.core.config import OutputConfig

CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <8}</level> | {message}"


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Replace all loguru handlers with the ctskit console (and file) sinks.

    Args:
        verbose: Show DEBUG messages on the console.
        log_file: Also write every DEBUG+ record to this file as JSON lines.
    """
    logger.remove()
    logger.add(
        sys.stdout,
        level="DEBUG" if verbose else "INFO",
        format=CONSOLE_FORMAT,
        colorize=True,
    )
    if log_file:
        logger.add(log_file, serialize=True, level="DEBUG")


def _section(title: str, entries: dict[str, str]) -> list[str]:
    lines = [f"## {title}:"] if title else []
    lines.extend(f"## {key} = {value}" for key, value in entries.items())
    lines.append("##")
    return lines


def _seconds(value) -> str:
    return f"{value:.2f}" if isinstance(value, float) else str(value)


def write_run_log(
    output_config: OutputConfig,
    params: dict,
    timing: dict,
    command_line: str,
) -> Path:
    """Write the run summary to ``output_config.log_path``.

    Args:
        output_config: Directory and prefix of the log file.
        params: Summary entries, e.g. ``{"run": ..., "n_cases": 80}``.
        timing: Named durations in seconds; floats are shown to 2 decimals.
        command_line: Command that produced the run.

    Returns:
        Path of the written file.

    Example:
        ##
        ## ctskit Version = 0.1.0
        ## Date = 2026-01-31T10:30:00
        ##
        ## Command Line Input = ctskit conformance --backend numpy
        ##
        ## Summary:
        ## run = conformance[numpy]
        ## n_cases = 80
        ##
        ## Computation Time:
        ## total time = 1.23 seconds
        ##
    """
    lines = ["##"]
    lines += _section(
        "",
        {"ctskit Version": ctskit.__version__, "Date": datetime.now().isoformat()},
    )
    lines += _section("", {"Command Line Input": command_line})
    lines += _section("Summary", params)
    lines += _section(
        "Computation Time",
        {f"{name} time": f"{_seconds(value)} seconds" for name, value in timing.items()},
    )

    output_config.ensure_outdir()
    log_path = output_config.log_path
    log_path.write_text("\n".join(lines) + "\n")
    logger.debug(f"Run log written to {log_path}")
    return log_path
