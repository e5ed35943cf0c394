from typing import Optional

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lmscope.codec import TelegramVariant, decode_scan
from lmscope.device import LMS1xx
from lmscope.transport import read_capture
from lmscope.types import (
    Command,
    EmulatedConfig,
    LiveConfig,
    LMSError,
    ScanRecord,
    SessionConfig,
    load_session_config,
)
from lmscope.util import (
    DEFAULT_HOST_ADDR,
    DEFAULT_LOGLEVEL,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    format_error_response,
    shutdown_log,
    start_log,
)


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


def session_options(f):
    """Options selecting the sensor (or capture) a command talks to."""
    options = [
        click.option(
            "--host-address",
            "-ha",
            default=DEFAULT_HOST_ADDR,
            help=f"Sensor IP address (default: {DEFAULT_HOST_ADDR})",
        ),
        click.option(
            "--port",
            "-p",
            default=DEFAULT_PORT,
            type=int,
            help=f"Sensor TCP port (default: {DEFAULT_PORT})",
        ),
        click.option(
            "--timeout",
            "-t",
            default=DEFAULT_TIMEOUT,
            type=float,
            help=f"Send/receive timeout in seconds (default: {DEFAULT_TIMEOUT})",
        ),
        click.option(
            "--record",
            "-r",
            "record_path",
            type=click.Path(dir_okay=False),
            default=None,
            help="Record every reply into this capture file",
        ),
        click.option(
            "--emulate",
            "-e",
            "capture_path",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="Replay replies from this capture file instead of a sensor",
        ),
        click.option(
            "--config",
            "-cfg",
            "config_path",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="JSON session config (overrides the options above)",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def build_config(
    host_address: str,
    port: int,
    timeout: float,
    record_path: Optional[str],
    capture_path: Optional[str],
    config_path: Optional[str],
) -> SessionConfig:
    if config_path:
        return load_session_config(config_path)
    if capture_path and record_path:
        raise click.UsageError("--record and --emulate are mutually exclusive.")
    if capture_path:
        return EmulatedConfig(capture_path=capture_path)
    try:
        return LiveConfig(
            host=host_address,
            port=port,
            receive_timeout=timeout,
            send_timeout=timeout,
            record_path=record_path,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def scan_table(records: list[ScanRecord], title: str = "Scans") -> Table:
    """Summarise scan records, one row each."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Counter", justify="right")
    table.add_column("Samples", justify="right")
    table.add_column("Start [deg]", justify="right")
    table.add_column("Step [deg]", justify="right")
    table.add_column("Status")

    for i, record in enumerate(records):
        if record.is_error:
            error = escape(str(record.error))
            table.add_row(str(i), "-", "-", "-", "-", "-", f"[red]{error}")
        else:
            table.add_row(
                str(i),
                record.command_type,
                str(record.telegram_counter),
                str(record.amount_of_data),
                f"{record.start_angle:.2f}",
                f"{record.angular_step:.4f}",
                "[green]OK",
            )
    return table


def _open_session(kwargs) -> LMS1xx:
    lms = LMS1xx(build_config(**kwargs))
    status = lms.connect()
    if not status.ok:
        lms.close()
        raise click.ClickException(
            f"Could not connect to {lms.name} ({status.value}): {lms.last_error}"
        )
    return lms


@click.group()
@tree_option
@click.option(
    "--log-to-file/--no-log-to-file",
    "-ltf/",
    default=False,
    help="Enable/disable logging to file (default: disabled)",
)
@click.option(
    "--log-to-stdout/--no-log-to-stdout",
    "-lts/",
    default=True,
    help="Enable/disable console logging (default: enabled)",
)
@click.option(
    "--log-path",
    "-lp",
    default="",
    help="Custom path for log file (default: ~/.lmscope/lmscope.log)",
)
@click.option(
    "--clear-prev-log/--no-clear-prev-log",
    "-c/",
    default=True,
    help="Clear previous log file on startup (default: enabled)",
)
@click.option(
    "--log-level",
    "-ll",
    default=DEFAULT_LOGLEVEL,
    help="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR) (default: INFO)",
)
@click.pass_context
def cli(ctx, log_to_file, log_to_stdout, log_path, clear_prev_log, log_level):
    """lmscope - SICK LMS1xx laser scanner tools.

    - Take single scans or continuous streams from a sensor

    - Record sensor replies to capture files and replay them offline

    - Inspect and plot captured scans
    """
    start_log(
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        log_path=log_path,
        clear_prev=clear_prev_log,
        log_level=log_level,
    )
    ctx.call_on_close(shutdown_log)


@cli.command()
@session_options
@click.option(
    "--single/--full-cycle",
    default=False,
    help="Fetch one scan on an already measuring sensor, or run the whole "
    + "connect/start/scan/stop/disconnect cycle (default: full cycle)",
)
def scan(single, **kwargs):
    """Take one scan and print a summary.

    With --record the replies are kept in a capture file that `lmscope replay`
    and `--emulate` can read back later.
    """
    console = Console()
    if single:
        lms = _open_session(kwargs)
        try:
            record = lms.fetch_scan()
        finally:
            lms.close()
    else:
        lms = LMS1xx(build_config(**kwargs))
        try:
            record = lms.run_full_cycle()
        finally:
            lms.close()

    console.print(scan_table([record], title=f"Scan from {lms.name}"))
    if record.is_error:
        raise click.ClickException(f"Scan failed: {record.error}")


@cli.command()
@session_options
@click.option(
    "--count",
    "-n",
    default=10,
    type=int,
    help="Number of continuous telegrams to read (default: 10)",
)
def stream(count, **kwargs):
    """Read telegrams from the continuous output stream.

    Enables continuous output, decodes COUNT telegrams and disables it again.
    Stops early at the first transport failure.
    """
    if count < 1:
        raise click.BadParameter("count must be at least 1", param_hint="--count")
    console = Console()
    lms = _open_session(kwargs)
    records = []
    try:
        enabled = lms.start_continuous()
        if not enabled.ok:
            raise click.ClickException(
                f"Could not enable continuous output: {enabled.error}"
            )
        for _ in range(count):
            record = lms.fetch_continuous_scan()
            records.append(record)
            if record.is_error and not lms.is_connected():
                break
        if lms.is_connected():
            lms.stop_continuous()
    finally:
        lms.close()

    console.print(scan_table(records, title=f"Stream from {lms.name}"))
    failed = sum(r.is_error for r in records)
    if failed:
        raise click.ClickException(f"{failed} of {len(records)} telegrams failed")


@cli.command()
@session_options
@click.argument("name")
def command(name, **kwargs):
    """Send a single command and print the reply.

    NAME: Command name, e.g. start, stop, query-status, set-access-mode
    """
    try:
        cmd = Command.from_name(name)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="NAME") from e

    lms = _open_session(kwargs)
    try:
        result = lms.send_command(cmd)
    finally:
        lms.close()

    if not result.ok:
        raise click.ClickException(
            f"'{cmd.text}' failed ({result.status.value}): {result.error}"
        )
    click.echo(result.text)


@cli.command()
@click.argument("capture", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--continuous",
    is_flag=True,
    help="Decode blocks as continuous (sSN) telegrams instead of polled (sRA)",
)
@click.option(
    "--all-blocks",
    "-a",
    is_flag=True,
    help="Also list blocks that are not scan telegrams",
)
def replay(capture, continuous, all_blocks):
    """Decode every scan telegram stored in a capture file.

    CAPTURE: Capture file written with --record
    """
    variant = TelegramVariant.CONTINUOUS if continuous else TelegramVariant.POLLED
    try:
        blocks = read_capture(capture)
    except (OSError, LMSError) as e:
        logger.error("Could not read capture {}: {}", capture, format_error_response())
        raise click.ClickException(f"Could not read {capture}: {e}") from e

    records = [decode_scan(block, variant) for block in blocks]
    scans = [r for r in records if not r.is_error]
    shown = records if all_blocks else scans
    Console().print(scan_table(shown, title=f"{capture}"))
    click.echo(f"{len(blocks)} blocks, {len(scans)} {variant.tag} scans")


@cli.command()
@click.argument("capture", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--index",
    "-i",
    default=0,
    type=int,
    help="Which scan in the capture to plot (default: first)",
)
@click.option(
    "--continuous",
    is_flag=True,
    help="Decode blocks as continuous (sSN) telegrams",
)
@click.option(
    "--save",
    "-s",
    type=click.Path(dir_okay=False),
    default=None,
    help="Save the figure to this path instead of showing it",
)
def plot(capture, index, continuous, save):
    """Polar plot of a scan from a capture file.

    CAPTURE: Capture file written with --record
    """
    import matplotlib

    if save:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    import numpy as np

    variant = TelegramVariant.CONTINUOUS if continuous else TelegramVariant.POLLED
    records = [decode_scan(block, variant) for block in read_capture(capture)]
    scans = [r for r in records if not r.is_error]
    if index < 0 or index >= len(scans):
        raise click.ClickException(
            f"{capture} holds {len(scans)} {variant.tag} scans, no scan #{index}"
        )
    record = scans[index]

    fig = plt.figure(figsize=(7, 7))
    ax = fig.add_subplot(projection="polar")
    ax.plot(np.deg2rad(record.angles()), record.distances, ".", markersize=2)
    ax.set_thetamin(record.start_angle)
    ax.set_thetamax(record.start_angle + record.angular_step * record.amount_of_data)
    ax.set_title(
        f"{record.command_type} #{record.telegram_counter}, "
        + f"{record.amount_of_data} samples [m]"
    )
    ax.grid(True)

    if save:
        fig.savefig(save, dpi=150)
        plt.close(fig)
        click.echo(f"Saved plot to {save}")
    else:
        plt.show()
