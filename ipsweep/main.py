import argparse
import json
import logging
import sys
import threading
import time
from datetime import datetime

from .errors import ConfigurationError, FormatError
from .log import setup_logging
from .scanner import ScanMethod, address_scan, port_scan
from .ui import ScannerUI
from .utils import parse_ports, parse_target

logger = logging.getLogger(__name__)


def _expected_total(scan_target, port_count):
    """Items the producer will generate, None for endless scans."""
    per_address = port_count or 1
    method = scan_target.method
    if method is ScanMethod.SINGLE_ADDRESS:
        return per_address
    if method is ScanMethod.MULTI_ADDRESS:
        return len(scan_target.addresses) * per_address
    if method is ScanMethod.RANGE_ADDRESS:
        return max(scan_target.block.size, 1) * per_address
    return None


def save_results(filename, target, method, results):
    data = {
        "target": target,
        "method": method.name,
        "timestamp": datetime.now().isoformat(),
        "results": [str(item) for item in results],
    }
    with open(filename, "w") as f:
        json.dump(data, f, indent=4)


def build_parser():
    parser = argparse.ArgumentParser(description="ipsweep - multithreaded IPv4 block scanner")
    parser.add_argument("-t", "--target", help="CIDR block, a-b range, single address or comma separated list")
    parser.add_argument("-m", "--method", choices=[m.value for m in ScanMethod],
                        help="Scan method (inferred from the target when omitted)")
    parser.add_argument("-p", "--ports", help="Ports to scan (e.g. 80,443,1-1000). Address-only scan when omitted")
    parser.add_argument("-c", "--threads", type=int, default=16, help="Consumer threads (Default: 16)")
    parser.add_argument("--timeout", type=int, default=300, help="Connect timeout in milliseconds (Default: 300)")
    parser.add_argument("--no-check", action="store_true", help="Report every address:port without connecting")
    parser.add_argument("--limit", type=int, help="Stop after this many accepted items")
    parser.add_argument("-o", "--output", help="Output JSON file path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    ui = ScannerUI()
    if not args.target:
        ui.display_welcome()

    try:
        target = args.target or ui.get_target()
        method = ScanMethod(args.method) if args.method else None
        scan_target = parse_target(target, method)
        logger.debug("Parsed target %r as %s", target, scan_target.method.name)
        ports = parse_ports(args.ports) if args.ports else []
        if args.ports and not ports:
            raise ConfigurationError(f"No valid ports in {args.ports!r}")

        results = []
        results_lock = threading.Lock()

        def consume(item):
            # Consumers already holding an item when the limit is hit drop it
            with results_lock:
                if args.limit and len(results) >= args.limit:
                    return
                results.append(item)
                reached = args.limit and len(results) >= args.limit
            if reached:
                scan.shutdown()

        if ports:
            scan = port_scan(scan_target, ports, consume,
                             thread_count=args.threads,
                             check_port_open=not args.no_check,
                             check_timeout=args.timeout)
        else:
            scan = address_scan(scan_target, consume, thread_count=args.threads)

        if scan_target.method in (ScanMethod.ENDLESS_INCREASE, ScanMethod.ENDLESS_DECREASE) and not args.limit:
            ui.show_message("Endless scan without --limit, press Ctrl-C to stop", style="yellow")

        ui.display_start(target, scan_target.method, scan.thread_count, len(ports))
        start_time = time.time()

        with ui.create_progress() as progress:
            task_id = progress.add_task("[cyan]Scanning...", total=_expected_total(scan_target, len(ports)))
            scan.progress_method = lambda item: progress.advance(task_id)
            scan.execute()
            try:
                scan.await_completion()
            except KeyboardInterrupt:
                ui.show_message("Scan interrupted by user, shutting down...", style="yellow")
                scan.shutdown().await_completion()

        duration = time.time() - start_time
        ui.display_results(target, duration, list(results), scan.produced_count, bool(ports))
        ui.display_telemetry(scan.quickest, scan.longest, len(scan.errors) + scan.callback_errors)

        if args.output:
            save_results(args.output, target, scan_target.method, results)
            ui.show_saved(args.output)
        return 0

    except (FormatError, ConfigurationError) as e:
        ui.console.print(f"[bold red]Error:[/bold red] {e}")
        return 2
    except KeyboardInterrupt:
        ui.console.print("\n[yellow]Scan interrupted by user.[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
