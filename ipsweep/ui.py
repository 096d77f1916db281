from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn, MofNCompleteColumn, BarColumn

console = Console()


class ScannerUI:
    def __init__(self):
        self.console = console

    def display_welcome(self):
        self.console.rule("[bold red]IPSWEEP - IPv4 Block Scanner[/bold red]")

    def get_target(self):
        return Prompt.ask("[bold blue]Enter Target (CIDR, range, address or list)[/bold blue]")

    def display_start(self, target, method, thread_count, port_count=0):
        what = f"{port_count} ports per address" if port_count else "addresses only"
        self.console.print(Panel.fit(
            f"[bold green]Starting {method.name} scan on {target}[/bold green]\n"
            f"[dim]{thread_count} threads, {what}[/dim]",
            border_style="blue"))

    def create_progress(self):
        # Endless scans have no total; the bar stays indeterminate for them
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console
        )

    def display_results(self, target, duration, results, generated, port_mode):
        """
        Displays the accepted items in a Rich table.
        """
        self.console.print("\n")

        table = Table(title=f"Scan Results for {target}", show_header=True, header_style="bold magenta")
        table.add_column("Address", style="cyan")
        if port_mode:
            table.add_column("Port", style="yellow", justify="right")

        for item in sorted(results, key=_sort_key):
            if port_mode:
                table.add_row(item.address.address, str(item.port))
            else:
                table.add_row(item.address)

        self.console.print(table)

        self.console.print(f"\n[bold]Scan completed in {duration:.2f} seconds.[/bold]")
        self.console.print(f"[bold]Accepted: {len(results)}[/bold]")
        self.console.print(f"[dim]Generated: {generated}[/dim]")

    def display_telemetry(self, quickest, longest, errors):
        if quickest is not None:
            self.console.print(f"[dim]Per-item turnaround: quickest {quickest * 1000:.1f}ms, "
                               f"longest {longest * 1000:.1f}ms[/dim]")
        if errors:
            self.console.print(f"[bold yellow]{errors} worker error(s), see log output[/bold yellow]")

    def show_message(self, msg, style="bold red"):
        self.console.print(f"[{style}]{msg}[/{style}]")

    def show_saved(self, filename):
        self.console.print(f"[dim]Results saved to {filename}[/dim]")


def _sort_key(item):
    if hasattr(item, "port"):
        return item.address.decimal, item.port
    return item.decimal, 0
