"""CLI entry point for arpsweep."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .core.config import get_config
from .core.exceptions import ArpSweepError, HostsFileError, PermissionError
from .core.utils import is_root, local_interface_info, validate_network
from .discovery.capture import ReplayCaptureHandle, open_capture
from .discovery.engine import scan
from .discovery.models import Discovery, MacAddress
from .discovery.targets import count_targets, enumerate_targets, network_for_interface
from .output.export import export_report
from .output.hosts import update_hosts_file
from .output.labels import load_labels, register_unknown
from .output.reports import ReportRow, build_rows, hosts_entries, render_report

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def print_error(message: str) -> None:
    """Print error message in red."""
    console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print success message in green."""
    console.print(f"[green]✓[/green] {escape(message)}")


def print_warning(message: str) -> None:
    """Print warning message in yellow."""
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    logging.getLogger("scapy").setLevel(logging.ERROR)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="arpsweep")
@click.option("-v", "--verbose", is_flag=True, help="Print detailed progress information")
@click.option("-f", "--fast", is_flag=True, help="Use shorter timeouts for quick-responding networks")
@click.option("-r", "--range", "network_range", metavar="CIDR", help="Scan custom IP range (e.g. 192.168.0.0/24)")
@click.option("-l", "--lookup", is_flag=True, help="Look up labels from the labels file")
@click.option("--add-hosts", is_flag=True, help="Update the hosts file with discovered hostnames")
@click.option("--dummy", is_flag=True, help="Preview hosts file updates without making changes")
@click.option("-i", "--interface", help="Network interface to scan from (default: auto-detect)")
@click.option("--labels", "labels_path", type=click.Path(dir_okay=False), help="Labels file (default: labels.txt)")
@click.option("--hosts-file", type=click.Path(dir_okay=False), help="Hosts file to update")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Also save results (JSON, or CSV by extension)")
@click.option("--replay", type=click.Path(exists=True, dir_okay=False), help="Read replies from a pcap instead of the wire")
def main(
    verbose: bool,
    fast: bool,
    network_range: str | None,
    lookup: bool,
    add_hosts: bool,
    dummy: bool,
    interface: str | None,
    labels_path: str | None,
    hosts_file: str | None,
    output: str | None,
    replay: str | None,
) -> None:
    """Scan the local network with ARP requests to discover active hosts.

    \b
    Output format:
      192.168.0.1    40:0D:10:88:92:90
    With labels (-l), hostname and label follow:
      192.168.0.1    40:0D:10:88:92:90    router.local    Router

    \b
    Label file format (labels.txt):
      MAC_ADDRESS=LABEL=HOSTNAME     (HOSTNAME is optional)
    """
    if add_hosts and not lookup:
        raise click.UsageError("--add-hosts requires --lookup")

    config = get_config()
    config.verbose = config.verbose or verbose
    config.fast_mode = config.fast_mode or fast
    if interface:
        config.interface = interface
    if labels_path:
        config.labels_path = Path(labels_path)
    if hosts_file:
        config.hosts_path = Path(hosts_file)
    _configure_logging(config.verbose)

    try:
        if replay is None and not is_root():
            raise PermissionError("ARP scan", "run with sudo")

        iface = local_interface_info(config.interface)
        logger.info("Using interface %s (%s, %s)", iface.name, iface.ip, iface.mac)

        if network_range:
            network = validate_network(network_range)
            logger.info("Using custom network range: %s", network)
        else:
            network = network_for_interface(iface.ip, iface.netmask)
            logger.info("Auto-detected network: %s", network)
        targets = enumerate_targets(network)

        labels = load_labels(config.labels_path) if lookup else None
        if lookup and not config.labels_path.exists():
            print_warning(f"Label file {config.labels_path} not found, hosts will be unlabelled")
        if labels is not None and labels.skipped:
            logger.info("Skipped %d malformed lines in %s", len(labels.skipped), config.labels_path)

        settings = config.scan_settings()
        if config.fast_mode:
            logger.info("Fast mode enabled - using shorter timeouts")
        logger.info("Sending ARP requests to %d addresses...", count_targets(network))

        if replay:
            handle = ReplayCaptureHandle.from_pcap(replay, iface.ip, iface.mac)
        else:
            handle = open_capture(iface, bpf_filter=config.capture.bpf_filter)
        with handle:
            discoveries = set(
                scan(
                    targets,
                    handle,
                    duration=settings.duration,
                    batch_size=settings.batch_size,
                    inter_batch_timeout=settings.inter_batch_timeout,
                    poll_interval=settings.poll_interval,
                    drain_reads=settings.drain_reads,
                    on_discovery=_report_host if config.verbose else None,
                )
            )
    except ArpSweepError as e:
        print_error(str(e))
        sys.exit(1)

    # Only replying hosts are registered, never the local machine.
    replied = [d.mac for d in discoveries]

    if iface.ip in network and all(d.ip != iface.ip for d in discoveries):
        discoveries.add(Discovery(ip=iface.ip, mac=MacAddress.parse(iface.mac), discovered_at=0.0))
        logger.info("Local machine: %s (MAC: %s)", iface.ip, iface.mac)

    rows = build_rows(discoveries, labels)
    for line in render_report(rows):
        click.echo(line)

    if labels is not None:
        register_unknown(config.labels_path, replied, labels)

    if output:
        print_success(f"Results saved to {export_report(rows, network, output)}")

    if add_hosts:
        _update_hosts(config.hosts_path, rows, dummy)


def _report_host(discovery: Discovery) -> None:
    logger.info("Host %s is up (MAC: %s)", discovery.ip, discovery.mac)


def _update_hosts(hosts_path: Path, rows: list[ReportRow], dummy: bool) -> None:
    entries = hosts_entries(rows)
    try:
        diff = update_hosts_file(hosts_path, entries, dry_run=dummy)
    except HostsFileError as e:
        print_error(str(e))
        sys.exit(1)

    if dummy:
        if diff.added:
            click.echo("\nEntries to be added:")
            click.echo("-" * 40)
            for line in diff.added:
                click.echo(line)
            click.echo("-" * 40)
            for line in diff.removed:
                logger.info("Would replace: %s", line)
        else:
            click.echo("\nNo changes would be made to hosts file.")
    elif diff.changed:
        print_success(f"Updated {hosts_path} with {len(diff.added)} entries")


if __name__ == "__main__":
    main()
