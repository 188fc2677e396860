"""ctskit command-line interface.

Typer-based CLI with three command groups:

- stats: summary statistics over a list of samples
- conformance: run the numeric conformance suite on a compute backend
- device: adb device harness (users, features, installs, instrumentation)
"""

import sys
import time
from pathlib import Path
from typing import Annotated

import typer

import ctskit
from ctskit.conformance import VECTOR_SIZES, build_case_table, run_cases
from ctskit.core import ConformanceConfig, HarnessConfig, OutputConfig, log_test_run
from ctskit.core.backend import get_compute_backend, validate_backend
from ctskit.core.results import FAILED_STATUSES
from ctskit.device import (
    AdbDevice,
    CommandParseError,
    DeviceCommandError,
    DeviceHarness,
    DeviceNotAvailableError,
)
from ctskit.stats import mean, percentile, standard_deviation, variance
from ctskit.utils import setup_logging, write_run_log
from ctskit.validation import ToleranceConfig

app = typer.Typer(
    name="ctskit",
    help="ctskit: host-side conformance toolkit.",
    add_completion=False,
)
device_app = typer.Typer(help="Drive an Android device over adb.")
app.add_typer(device_app, name="device")

# Store global options set by callback
_global_config: OutputConfig | None = None
_harness_config: HarnessConfig | None = None


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from ctskit.core import get_backend_info

        typer.echo(f"ctskit version {ctskit.__version__}")

        info = get_backend_info()
        typer.echo(f"Backend: {info['selected']}")
        typer.echo(f"GPU available: {info['gpu_available']}")
        raise typer.Exit()


@app.callback()
def main(
    outdir: Annotated[
        Path,
        typer.Option("--outdir", help="Output directory"),
    ] = Path("output"),
    prefix: Annotated[
        str,
        typer.Option("-o", "--prefix", help="Output file prefix"),
    ] = "result",
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Verbose output"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """ctskit: host-side conformance toolkit.

    ULP-tolerant kernel verification, sensor statistics and an adb device
    harness for compatibility test suites.
    """
    global _global_config
    _global_config = OutputConfig(outdir=outdir, prefix=prefix, verbose=verbose)
    setup_logging(verbose=verbose)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


@app.command("stats")
def stats_command(
    values: Annotated[list[float], typer.Argument(help="Sample values")],
    pct: Annotated[
        float,
        typer.Option("--percentile", help="Percentile to report, in [0, 1]"),
    ] = 0.95,
) -> None:
    """Print mean, variance, standard deviation and a percentile of VALUES."""
    try:
        typer.echo(f"n = {len(values)}")
        typer.echo(f"mean = {mean(values):.6g}")
        if len(values) > 1:
            typer.echo(f"variance = {variance(values):.6g}")
            typer.echo(f"std = {standard_deviation(values):.6g}")
        typer.echo(f"p{pct * 100:g} = {percentile(pct, values):.6g}")
    except ValueError as e:
        _fail(str(e))


@app.command("conformance")
def conformance_command(
    functions: Annotated[
        list[str] | None,
        typer.Option("--function", "-f", help="Function to check (repeatable; default all)"),
    ] = None,
    vector_sizes: Annotated[
        list[int] | None,
        typer.Option("--vector-size", help="Vector width to check (repeatable; default 1-4)"),
    ] = None,
    backend: Annotated[
        str | None,
        typer.Option("--backend", help="Compute backend: numpy or jax (default: auto)"),
    ] = None,
    relaxed: Annotated[
        bool | None,
        typer.Option(
            "--relaxed/--no-relaxed",
            help="Only relaxed or only normal precision (default: both)",
        ),
    ] = None,
    input_size: Annotated[
        int,
        typer.Option("--input-size", help="Elements per allocation"),
    ] = 512,
    include_extremes: Annotated[
        bool,
        typer.Option("--include-extremes", help="Seed allocations with boundary values"),
    ] = False,
    ulp_scale: Annotated[
        float,
        typer.Option("--ulp-scale", help="Multiplier applied to every ULP budget"),
    ] = 1.0,
    progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show a progress bar"),
    ] = False,
) -> None:
    """Run the numeric conformance suite.

    Checks every selected function at every vector width against a float64
    reference, within the function's ULP budget. Exits with code 1 if any
    case fails.
    """
    start_time = time.perf_counter()

    global _global_config
    if _global_config is None:
        _global_config = OutputConfig()
    command_line = " ".join(sys.argv)

    if input_size < 1:
        _fail(f"--input-size must be positive (got {input_size})")

    try:
        selected = validate_backend(backend) if backend else None
        cases = build_case_table(
            functions or None,
            vector_sizes or VECTOR_SIZES,
            (relaxed,) if relaxed is not None else (False, True),
        )
    except (KeyError, ValueError) as e:
        _fail(str(e.args[0]) if e.args else str(e))

    if selected is None:
        selected = get_compute_backend()
    if selected == "jax":
        from ctskit.core.jax_config import configure_jax, verify_jax_installation

        try:
            configure_jax()
            verify_jax_installation()
        except RuntimeError as e:
            _fail(str(e))

    config = ConformanceConfig(
        input_size=input_size,
        include_extremes=include_extremes,
        tolerances=ToleranceConfig(ulp_scale=ulp_scale),
    )
    run = run_cases(cases, backend=selected, config=config, show_progress=progress)
    log_test_run(run)

    elapsed = time.perf_counter() - start_time
    params = {
        "run": run.run_name,
        "n_cases": run.num_tests,
        "n_failed": sum(1 for r in run.results.values() if r.status in FAILED_STATUSES),
        "input_size": input_size,
        "ulp_scale": ulp_scale,
    }
    log_path = write_run_log(_global_config, params, {"total": elapsed}, command_line)
    typer.echo(f"Log written to {log_path}")

    if not run.passed():
        raise typer.Exit(code=1)


# =============================================================================
# device commands
# =============================================================================


@device_app.callback()
def device_main(
    serial: Annotated[
        str | None,
        typer.Option("--serial", "-s", help="Device serial (default: ANDROID_SERIAL)"),
    ] = None,
    adb: Annotated[
        str | None,
        typer.Option("--adb", help="adb executable (default: CTSKIT_ADB or adb)"),
    ] = None,
) -> None:
    """Drive an Android device over adb."""
    global _harness_config
    _harness_config = HarnessConfig.from_env(serial=serial, adb_path=adb)


def _harness() -> DeviceHarness:
    config = _harness_config or HarnessConfig.from_env()
    return DeviceHarness(AdbDevice.from_config(config), config)


def _run_device(action):
    try:
        return action(_harness())
    except (DeviceNotAvailableError, DeviceCommandError, CommandParseError) as e:
        _fail(str(e))


@device_app.command("users")
def users_command() -> None:
    """List users on the device."""
    for user in _run_device(lambda h: h.list_user_infos()):
        state = " running" if user.running else ""
        typer.echo(f"{user.id}\t{user.name}\tflags=0x{user.flags:x}{state}")


@device_app.command("features")
def features_command(
    required: Annotated[
        bool,
        typer.Option("--check", help="Check the features device policy tests require"),
    ] = False,
) -> None:
    """Check device support for multi-user device policy tests."""
    if required:
        supported = _run_device(lambda h: h.setup())
        typer.echo(f"Supported: {supported}")
        if not supported:
            raise typer.Exit(code=1)
        return
    for name in sorted(_run_device(lambda h: h.list_features())):
        typer.echo(name)


@device_app.command("max-users")
def max_users_command() -> None:
    """Print the maximum number of users the device supports."""
    typer.echo(_run_device(lambda h: h.get_max_number_of_users_supported()))


@device_app.command("install")
def install_command(
    apk: Annotated[Path, typer.Argument(help="APK to install")],
) -> None:
    """Install (or reinstall) an APK."""
    if not apk.is_file():
        _fail(f"APK not found: {apk}")
    _run_device(lambda h: h.install_app(apk))
    typer.echo(f"Installed {apk.name}")


@device_app.command("start-user")
def start_user_command(user_id: Annotated[int, typer.Argument(help="User id")]) -> None:
    """Start a user in the background."""
    _run_device(lambda h: h.start_user(user_id))
    typer.echo(f"Started user {user_id}")


@device_app.command("remove-user")
def remove_user_command(user_id: Annotated[int, typer.Argument(help="User id")]) -> None:
    """Remove a user."""
    if not _run_device(lambda h: h.remove_user(user_id)):
        _fail(f"Couldn't remove user {user_id}")
    typer.echo(f"Removed user {user_id}")


@device_app.command("run-tests")
def run_tests_command(
    pkg: Annotated[str, typer.Argument(help="Instrumentation test package")],
    test_class: Annotated[
        str | None,
        typer.Option("--class", "-c", help="Test class to run"),
    ] = None,
    test_method: Annotated[
        str | None,
        typer.Option("--method", "-m", help="Test method (requires --class)"),
    ] = None,
    user_id: Annotated[
        int | None,
        typer.Option("--user", help="Run as this user"),
    ] = None,
) -> None:
    """Run instrumentation tests and exit 1 unless they pass."""
    if test_method and not test_class:
        _fail("--method requires --class")
    passed = _run_device(
        lambda h: h.run_device_tests(pkg, test_class, test_method, user_id)
    )
    typer.echo("PASSED" if passed else "FAILED")
    if not passed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
