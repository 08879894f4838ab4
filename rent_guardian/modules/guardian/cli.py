"""
Rent Guardian CLI
=================
Operator control surface using Typer + Rich.

Usage:
    rent-guardian scan
    rent-guardian judge
    rent-guardian reclaim --all              # mode from dry_run_mode setting
    rent-guardian reclaim --address <ADDR> --live
    rent-guardian logs --mode REAL --action RECLAIM --limit 50
    rent-guardian whitelist add <ADDR> --note "partner account"

Safety:
    Real-mode reclamation always asks for confirmation unless --yes is given.
"""

import sys
from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from rent_guardian.config.settings import Settings
from rent_guardian.modules.guardian.core import RentGuardian
from rent_guardian.shared.models import AccountStatus, ActivityAction, ExecutionMode

app = typer.Typer(
    name="rent-guardian",
    help="Rent Guardian - Solana sponsored-account rent reclamation",
    add_completion=False,
    rich_markup_mode="rich",
)
whitelist_app = typer.Typer(help="Manage operator-protected addresses")
app.add_typer(whitelist_app, name="whitelist")

console = Console()


def get_guardian() -> RentGuardian:
    """Build the pipeline from Settings."""
    return RentGuardian()


def _fmt_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def _mode_label(dry_run: bool) -> str:
    return "[green]SIMULATION[/green]" if dry_run else "[bold red]REAL[/bold red]"


# ═══════════════════════════════════════════════════════════════════════════════
# PIPELINE
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def scan(
    sponsor: Optional[str] = typer.Option(
        None, "--sponsor", help="Sponsor address (defaults to the operator wallet)"
    ),
):
    """
    Discover accounts the sponsor paid to create.
    """
    guardian = get_guardian()
    result = guardian.scan(sponsor)

    if not result.success:
        console.print(f"[bold red]❌ Scan failed: {escape(result.error or '')}[/bold red]")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold cyan]🔍 Scan complete[/bold cyan]\n"
        f"New: {result.new_count} | Updated: {result.updated_count} | "
        f"Skipped: {result.skipped_count} | Total: {result.total_count}",
        border_style="cyan",
    ))


@app.command()
def judge():
    """
    Re-judge every non-reclaimed account and persist the results.
    """
    summary = get_guardian().judge_all()

    table = Table(title="⚖️ Judgment Summary")
    table.add_column("Status")
    table.add_column("Count", justify="right")
    table.add_row("[green]ELIGIBLE[/green]", str(summary.eligible))
    table.add_row("[yellow]PROTECTED[/yellow]", str(summary.protected))
    table.add_row("[cyan]ACTIVE[/cyan]", str(summary.active))
    table.add_row("[dim]SKIP[/dim]", str(summary.skipped))
    table.add_row("[magenta]WHITELISTED[/magenta]", str(summary.whitelisted))
    table.add_row("[bold]TOTAL[/bold]", str(summary.total))
    console.print(table)


@app.command()
def eligible():
    """
    List accounts that pass every safety check right now.
    """
    verdicts = get_guardian().get_eligible()
    if not verdicts:
        console.print("[yellow]No eligible accounts.[/yellow]")
        return

    table = Table(title=f"♻️ {len(verdicts)} Eligible Accounts")
    table.add_column("Address")
    table.add_column("Balance (SOL)", justify="right")
    table.add_column("Recoverable (SOL)", justify="right")
    table.add_column("Idle (days)", justify="right")
    for v in verdicts:
        table.add_row(v.address, f"{v.balance:.9f}", f"{v.potential_recovery:.9f}", f"{v.age_days:.0f}")
    console.print(table)
    console.print(f"Total recoverable: [bold green]{sum(v.potential_recovery for v in verdicts):.6f} SOL[/bold green]")


@app.command()
def reclaim(
    address: Optional[str] = typer.Option(None, "--address", help="Reclaim a single account"),
    all_eligible: bool = typer.Option(False, "--all", help="Reclaim every ELIGIBLE account"),
    live: Optional[bool] = typer.Option(
        None,
        "--live/--dry-run",
        help="Real transactions or simulation (default: dry_run_mode setting)",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the real-mode confirmation"),
):
    """
    Reclaim rent from eligible accounts.

    [bold red]⚠️  --live submits real transactions![/bold red]
    """
    if bool(address) == all_eligible:
        console.print("[bold red]❌ Error: Specify exactly one of --address <ADDR> or --all[/bold red]")
        raise typer.Exit(1)

    guardian = get_guardian()
    dry_run = guardian.is_dry_run_enabled() if live is None else not live

    console.print(Panel.fit(
        f"[bold yellow]♻️ Reclaim[/bold yellow]\n"
        f"Mode: {_mode_label(dry_run)}\n"
        f"Target: {address or '[bold]ALL ELIGIBLE[/bold]'}",
        border_style="yellow",
    ))

    if not dry_run and not yes:
        confirm = typer.confirm(
            "\n⚠️  REAL MODE - transactions will be submitted. Continue?",
            default=False,
        )
        if not confirm:
            console.print("[yellow]Aborted.[/yellow]")
            raise typer.Exit(0)

    if address:
        result = guardian.reclaim_one(address, dry_run=dry_run)
        if result.success:
            console.print(f"[bold green]✅ {escape(result.message)}[/bold green]")
            if result.explorer_url:
                console.print(f"   {escape(result.explorer_url)}")
        else:
            code = result.error.value if result.error else "ERROR"
            console.print(f"[bold red]❌ [{code}] {escape(result.message)}[/bold red]")
            raise typer.Exit(1)
        return

    batch = guardian.reclaim_batch(dry_run=dry_run)
    table = Table(title=f"Batch Reclaim ({batch.mode.value})")
    table.add_column("Address")
    table.add_column("Result")
    table.add_column("Amount (SOL)", justify="right")
    for r in batch.results:
        outcome = "[green]OK[/green]" if r.success else f"[red]{r.error.value if r.error else 'ERROR'}[/red]"
        table.add_row(r.address, outcome, f"{r.amount:.6f}")
    console.print(table)
    console.print(
        f"{batch.successful}/{batch.total} successful, {batch.failed} failed, "
        f"[bold green]{batch.total_reclaimed:.6f} SOL[/bold green] reclaimed"
    )


@app.command()
def stats():
    """
    Recovered and recoverable totals.
    """
    s = get_guardian().get_stats()
    console.print(Panel.fit(
        f"[bold cyan]📊 Rent Guardian[/bold cyan]\n"
        f"Total recovered: [bold green]{s.total_recovered:.6f} SOL[/bold green]\n"
        f"Potential recovery: {s.potential_recovery:.6f} SOL\n"
        f"Eligible: {s.eligible_count} | Protected: {s.protected_count} | Active: {s.active_count}",
        border_style="cyan",
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# LISTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def accounts(
    status: Optional[AccountStatus] = typer.Option(None, "--status", case_sensitive=False, help="Filter by status"),
):
    """
    List tracked accounts, most recently detected first.
    """
    rows = get_guardian().list_accounts(status)
    table = Table(title=f"Sponsored Accounts ({len(rows)})")
    table.add_column("Address")
    table.add_column("Status")
    table.add_column("Balance (SOL)", justify="right")
    table.add_column("Rent Floor (SOL)", justify="right")
    table.add_column("Last Activity")
    table.add_column("Detected")
    for a in rows:
        table.add_row(
            a.address, a.status.value, f"{a.balance:.9f}", f"{a.rent_exempt_min:.9f}",
            _fmt_time(a.last_activity), _fmt_time(a.detected_at),
        )
    console.print(table)


@app.command()
def logs(
    mode: Optional[ExecutionMode] = typer.Option(None, "--mode", case_sensitive=False),
    action: Optional[ActivityAction] = typer.Option(None, "--action", case_sensitive=False),
    limit: int = typer.Option(100, "--limit", min=1, max=1000),
):
    """
    Show the activity log, newest first.
    """
    entries = get_guardian().list_activity(limit=limit, mode=mode, action=action)
    table = Table(title=f"Activity Log ({len(entries)})")
    table.add_column("Time")
    table.add_column("Action")
    table.add_column("Mode")
    table.add_column("Account")
    table.add_column("Amount (SOL)", justify="right")
    table.add_column("Reason")
    for e in entries:
        table.add_row(
            _fmt_time(e.timestamp), e.action.value, e.mode.value, escape(e.account),
            f"{e.amount:.6f}", escape(e.reason),
        )
    console.print(table)


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def settings():
    """
    Show operator settings and the client-safe configuration.
    """
    guardian = get_guardian()
    current = guardian.get_settings()
    safe = Settings.client_safe()

    table = Table(title="Settings")
    table.add_column("Key")
    table.add_column("Value")
    table.add_row("min_age_days", str(current.min_age_days))
    table.add_row("dry_run_mode", str(current.dry_run_mode).lower())
    table.add_row("real_mode_available", str(guardian.is_real_mode_available()).lower())
    for key, value in safe.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("set")
def set_setting(
    key: str = typer.Argument(..., help="min_age_days or dry_run_mode"),
    value: str = typer.Argument(...),
):
    """
    Update an operator setting.
    """
    try:
        get_guardian().update_setting(key, value)
    except ValueError as e:
        console.print(f"[bold red]❌ {escape(str(e))}[/bold red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ {escape(key)} = {escape(value)}[/green]")


@whitelist_app.command("add")
def whitelist_add(
    address: str = typer.Argument(...),
    note: Optional[str] = typer.Option(None, "--note"),
):
    """Protect an address from reclamation."""
    get_guardian().add_to_whitelist(address, note)
    console.print(f"[green]✅ Whitelisted {escape(address)}[/green]")


@whitelist_app.command("remove")
def whitelist_remove(address: str = typer.Argument(...)):
    """Remove an address from the whitelist."""
    if get_guardian().remove_from_whitelist(address):
        console.print(f"[green]✅ Removed {escape(address)}[/green]")
    else:
        console.print(f"[yellow]{escape(address)} was not whitelisted[/yellow]")


@whitelist_app.command("list")
def whitelist_list():
    """List whitelisted addresses."""
    entries = get_guardian().list_whitelist()
    table = Table(title=f"Whitelist ({len(entries)})")
    table.add_column("Address")
    table.add_column("Note")
    table.add_column("Added")
    for e in entries:
        table.add_row(escape(e["address"]), escape(e["note"] or ""), _fmt_time(e["created_at"]))
    console.print(table)


def main():
    """Entry point for CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
