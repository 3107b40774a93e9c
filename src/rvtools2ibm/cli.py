"""Command line interface for rvtools2ibm.

Commands:
  rvtools2ibm validate    — Check an RVTools export can be parsed
  rvtools2ibm inventory   — Headline totals of the export
  rvtools2ibm assess      — Full migration assessment (VSI or ROKS)
  rvtools2ibm preflight   — Per-VM pre-flight check results
  rvtools2ibm waves       — Migration wave plan
  rvtools2ibm profiles    — VM to VPC VSI profile mapping
  rvtools2ibm cost        — Monthly/annual cost estimate
  rvtools2ibm export      — Excel, PDF, Word or MTV YAML output
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from rvtools2ibm import __version__
from rvtools2ibm.config import AppConfig
from rvtools2ibm.utils.formatters import format_currency, format_number, format_percent
from rvtools2ibm.utils.logging import set_log_level

console = Console()

MODE_CHOICE = click.Choice(["vsi", "roks"])
FORMAT_CHOICE = click.Choice(["table", "json"])
SEVERITY_STYLES = {"blocker": "red", "warning": "yellow", "info": "blue"}


def load_config(config_path: str | None, **overrides) -> AppConfig:
    """Config file (if any), then environment, then CLI overrides."""
    try:
        base = AppConfig.from_yaml(config_path) if config_path else None
        return AppConfig.from_env_and_args(base, **overrides)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        sys.exit(1)


def load_rvtools(path: str):
    """Parse an export with a progress bar; exit 1 on failure."""
    from rvtools2ibm.rvtools.parser import parse_rvtools_file, validate_file

    validation = validate_file(path)
    if not validation.valid:
        console.print(f"[red]{validation.error}[/red]")
        sys.exit(1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Reading file...", total=None)

        def on_progress(p):
            progress.update(
                task,
                description=p.message,
                completed=p.sheets_processed,
                total=p.total_sheets or None,
            )

        result = parse_rvtools_file(path, on_progress)

    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")
    if not result.success:
        for error in result.errors:
            console.print(f"[red]✗ {error}[/red]")
        sys.exit(1)
    return result.data


def _emit_json(payload, output: str | None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output:
        Path(output).write_text(text)
        console.print(f"[green]Saved to {output}[/green]")
    else:
        console.print_json(text)


def _mode_config(config_path, mode, **overrides) -> AppConfig:
    return load_config(config_path, assessment={"mode": mode}, **overrides)


@click.group()
@click.version_option(version=__version__, prog_name="rvtools2ibm")
@click.option("--log-level", default="INFO",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Logging verbosity")
def main(log_level):
    """Assess VMware environments for migration to IBM Cloud.

    Reads an RVTools export (.xlsx) and evaluates it for VPC Virtual
    Server Instances (vsi) or Red Hat OpenShift on IBM Cloud with
    OpenShift Virtualization (roks).

    Quick start:
      1. rvtools2ibm validate RVTools_export.xlsx
      2. rvtools2ibm assess RVTools_export.xlsx --mode roks
      3. rvtools2ibm export RVTools_export.xlsx --format docx -o report.docx
    """
    set_log_level(log_level)


# ═══════════════════════════════════════════════════════════════════
#  VALIDATE / INVENTORY
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.argument("file", type=click.Path())
def validate(file):
    """Check that FILE is a readable RVTools export."""
    data = load_rvtools(file)
    summary = data.summary()
    console.print(
        f"[green]✓ {data.metadata.file_name}: {summary['total_vms']} VMs, "
        f"{summary['hosts']} hosts, {summary['clusters']} clusters[/green]"
    )


@main.command()
@click.argument("file", type=click.Path())
@click.option("--format", "fmt", type=FORMAT_CHOICE, default="table")
@click.option("--output", "-o", type=click.Path(), help="Write JSON to this file")
def inventory(file, fmt, output):
    """Show headline totals of the export."""
    data = load_rvtools(file)
    summary = data.summary()

    if fmt == "json" or output:
        payload = {
            "file_name": data.metadata.file_name,
            "collection_date": data.metadata.collection_date,
            "environment": data.metadata.environment,
            "vcenter_version": data.metadata.vcenter_version,
            **summary,
        }
        _emit_json(payload, output)
        return

    table = Table(title=f"Inventory — {data.metadata.file_name}", border_style="cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("VMs", format_number(summary["total_vms"]))
    table.add_row("Powered on", format_number(summary["powered_on"]))
    table.add_row("Powered off", format_number(summary["powered_off"]))
    table.add_row("Templates", format_number(summary["templates"]))
    table.add_row("vCPUs", format_number(summary["total_vcpus"]))
    table.add_row("Memory (GiB)", format_number(round(summary["total_memory_gib"])))
    table.add_row("Provisioned (TiB)", f"{summary['total_provisioned_tib']:.2f}")
    table.add_row("In use (TiB)", f"{summary['total_in_use_tib']:.2f}")
    table.add_row("Clusters", str(summary["clusters"]))
    table.add_row("Hosts", str(summary["hosts"]))
    table.add_row("Datastores", str(summary["datastores"]))
    console.print(table)


# ═══════════════════════════════════════════════════════════════════
#  ASSESS
# ═══════════════════════════════════════════════════════════════════

def _print_assessment(report) -> None:
    scope = Table(title=f"Assessment — {report.mode.upper()}", border_style="cyan")
    scope.add_column("Metric", style="bold")
    scope.add_column("Value", justify="right")
    scope.add_row("VMs in export", str(report.total_vms))
    scope.add_row("In scope", str(len(report.in_scope)))
    scope.add_row("Excluded", str(report.excluded_count))
    scope.add_row("Readiness", f"{report.readiness_score}%")
    for status, count in report.os_status_counts.items():
        scope.add_row(f"OS {status}", str(count))
    if report.cost:
        scope.add_row("Monthly cost", format_currency(report.cost.total_monthly))
    console.print(scope)

    if report.remediation:
        rem = Table(title="Remediation", border_style="yellow")
        rem.add_column("Severity")
        rem.add_column("Issue", style="cyan")
        rem.add_column("VMs", justify="right")
        for item in report.remediation:
            style = SEVERITY_STYLES.get(item.severity, "white")
            rem.add_row(f"[{style}]{item.severity}[/{style}]", item.name, str(item.affected_count))
        console.print(rem)

    waves = Table(title="Waves", border_style="green")
    waves.add_column("Wave", style="cyan")
    waves.add_column("VMs", justify="right")
    waves.add_column("vCPUs", justify="right")
    waves.add_column("Memory (GiB)", justify="right")
    waves.add_column("Storage (GiB)", justify="right")
    for wave in report.waves:
        waves.add_row(wave.name, str(wave.vm_count), str(wave.vcpus),
                      format_number(wave.memory_gib), format_number(wave.storage_gib))
    console.print(waves)


@main.command()
@click.argument("file", type=click.Path())
@click.option("--mode", type=MODE_CHOICE, help="Migration target (default from config)")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Configuration file")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default="table")
@click.option("--output", "-o", type=click.Path(), help="Write JSON to this file")
@click.option("--fail-on-blockers", is_flag=True, default=False,
              help="Exit with status 1 when any blocker is found")
def assess(file, mode, config_path, fmt, output, fail_on_blockers):
    """Run the full migration assessment on FILE."""
    from rvtools2ibm.pipeline.assessment import assess as run_assessment

    config = _mode_config(config_path, mode)
    data = load_rvtools(file)

    with console.status("[bold green]Assessing..."):
        report = run_assessment(data, config=config)

    if fmt == "json" or output:
        _emit_json(report.to_dict(), output)
    else:
        _print_assessment(report)

    if fail_on_blockers and report.blocker_count:
        console.print(f"[red]{report.blocker_count} blocker(s) found[/red]")
        sys.exit(1)


# ═══════════════════════════════════════════════════════════════════
#  PREFLIGHT / WAVES / PROFILES
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.argument("file", type=click.Path())
@click.option("--mode", type=MODE_CHOICE)
@click.option("--config", "config_path", type=click.Path(exists=True))
@click.option("--format", "fmt", type=FORMAT_CHOICE, default="table")
def preflight(file, mode, config_path, fmt):
    """Per-VM pre-flight checks for the in-scope VMs."""
    from rvtools2ibm.pipeline.assessment import determine_scope
    from rvtools2ibm.pipeline.preflight import get_check_definition, run_preflight_checks

    config = _mode_config(config_path, mode)
    mode = config.assessment.mode
    data = load_rvtools(file)
    in_scope, _ = determine_scope(data.vms, config)
    results = run_preflight_checks(data, mode, in_scope)

    if fmt == "json":
        _emit_json([
            {
                "vm_name": r.vm_name,
                "cluster": r.cluster,
                "guest_os": r.guest_os,
                "blockers": r.blocker_count,
                "warnings": r.warning_count,
                "failed": {cid: c.message for cid, c in r.checks.items() if c.status in ("fail", "warn")},
            }
            for r in results
        ], None)
        return

    table = Table(title=f"Pre-flight checks — {mode.upper()}", border_style="cyan")
    table.add_column("VM", style="cyan", no_wrap=True)
    table.add_column("Cluster")
    table.add_column("Blockers", justify="right", style="red")
    table.add_column("Warnings", justify="right", style="yellow")
    table.add_column("Issues")
    for r in results:
        issues = [
            get_check_definition(cid).short_name
            for cid, c in r.checks.items() if c.status in ("fail", "warn")
        ]
        table.add_row(r.vm_name, r.cluster, str(r.blocker_count), str(r.warning_count), ", ".join(issues))
    console.print(table)

    passed = sum(1 for r in results if r.passed)
    console.print(f"\n[dim]{passed}/{len(results)} VMs without blockers[/dim]")


@main.command()
@click.argument("file", type=click.Path())
@click.option("--mode", type=MODE_CHOICE)
@click.option("--config", "config_path", type=click.Path(exists=True))
@click.option("--group-by", type=click.Choice(["complexity", "portGroup", "cluster"]), default="complexity")
def waves(file, mode, config_path, group_by):
    """Group the in-scope VMs into migration waves."""
    from rvtools2ibm.pipeline.assessment import determine_scope
    from rvtools2ibm.pipeline.complexity import calculate_complexity_scores
    from rvtools2ibm.pipeline.waves import build_vm_wave_data, create_complexity_waves, create_network_waves

    config = _mode_config(config_path, mode)
    mode = config.assessment.mode
    data = load_rvtools(file)
    in_scope, _ = determine_scope(data.vms, config)

    scores = calculate_complexity_scores(in_scope, data.disks, data.networks, mode)
    wave_data = build_vm_wave_data(in_scope, scores, data.disks, data.snapshots, data.tools, data.networks, mode)
    if group_by == "complexity":
        groups = create_complexity_waves(wave_data, mode)
    else:
        groups = create_network_waves(wave_data, group_by)

    table = Table(title=f"Migration waves ({group_by})", border_style="green")
    table.add_column("Wave", style="cyan")
    table.add_column("Description", style="dim")
    table.add_column("VMs", justify="right")
    table.add_column("vCPUs", justify="right")
    table.add_column("Memory (GiB)", justify="right")
    table.add_column("Storage (GiB)", justify="right")
    table.add_column("Blockers")
    for wave in groups:
        table.add_row(
            wave.name, wave.description, str(wave.vm_count), str(wave.vcpus),
            format_number(wave.memory_gib), format_number(wave.storage_gib),
            "[red]yes[/red]" if wave.has_blockers else "",
        )
    console.print(table)


def _parse_overrides(values: tuple[str, ...]) -> dict[str, str]:
    overrides = {}
    for value in values:
        vm_name, sep, profile = value.partition("=")
        if not sep or not vm_name or not profile:
            raise click.BadParameter(f"expected VM=PROFILE, got '{value}'", param_hint="--override")
        overrides[vm_name] = profile
    return overrides


@main.command()
@click.argument("file", type=click.Path())
@click.option("--config", "config_path", type=click.Path(exists=True))
@click.option("--override", "overrides", multiple=True, help="Pin a profile: VM=PROFILE")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default="table")
def profiles(file, config_path, overrides, fmt):
    """Map each in-scope VM to a VPC VSI profile."""
    from rvtools2ibm.ibmcloud.profiles import calculate_profile_totals, create_vm_profile_mappings
    from rvtools2ibm.pipeline.assessment import determine_scope

    pinned = _parse_overrides(overrides)
    config = load_config(config_path)
    data = load_rvtools(file)
    in_scope, _ = determine_scope(data.vms, config)
    mappings = create_vm_profile_mappings(in_scope, overrides=pinned)
    totals = calculate_profile_totals(mappings)

    if fmt == "json":
        _emit_json({"totals": totals, "mappings": [m.to_dict() for m in mappings]}, None)
        return

    table = Table(title="VPC VSI profile mapping", border_style="cyan")
    table.add_column("VM", style="cyan", no_wrap=True)
    table.add_column("vCPUs", justify="right")
    table.add_column("Memory (GiB)", justify="right")
    table.add_column("Profile", style="magenta")
    table.add_column("Monthly", justify="right")
    for m in mappings:
        profile = f"{m.profile.name} [dim](override)[/dim]" if m.is_overridden else m.profile.name
        table.add_row(m.vm_name, str(m.vcpus), str(m.memory_gib), profile,
                      format_currency(m.profile.monthly_rate))
    console.print(table)
    console.print(
        f"\n[bold]{totals['total_vsis']} VSIs[/bold], {totals['unique_profiles']} profiles, "
        f"{totals['total_vcpus']} vCPUs, {totals['total_memory_gib']} GiB, "
        f"{format_currency(totals['monthly_cost'])}/month"
    )


# ═══════════════════════════════════════════════════════════════════
#  COST
# ═══════════════════════════════════════════════════════════════════

@main.command()
@click.argument("file", type=click.Path())
@click.option("--mode", type=MODE_CHOICE)
@click.option("--config", "config_path", type=click.Path(exists=True))
@click.option("--region", help="IBM Cloud region, e.g. us-south")
@click.option("--discount", help="onDemand, reserved1Year or reserved3Year")
@click.option("--use-nvme/--no-nvme", default=None, help="ROKS: ODF on bare-metal NVMe")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default="table")
def cost(file, mode, config_path, region, discount, use_nvme, fmt):
    """Estimate the IBM Cloud cost of the in-scope VMs."""
    from rvtools2ibm.ibmcloud.cost import describe_estimate
    from rvtools2ibm.pipeline.assessment import assess as run_assessment

    config = _mode_config(
        config_path, mode,
        pricing={"region": region, "discount_type": discount, "use_nvme": use_nvme},
    )
    data = load_rvtools(file)

    with console.status("[bold green]Estimating..."):
        estimate = run_assessment(data, config=config).cost

    if fmt == "json":
        _emit_json(estimate.to_dict(), None)
        return

    table = Table(title=describe_estimate(estimate), border_style="cyan")
    table.add_column("Category", style="bold")
    table.add_column("Description")
    table.add_column("Qty", justify="right")
    table.add_column("Monthly", justify="right")
    table.add_column("Annual", justify="right")
    for item in estimate.line_items:
        table.add_row(item.category, item.description, f"{item.quantity:g} {item.unit}",
                      format_currency(item.monthly_cost), format_currency(item.annual_cost))
    table.add_section()
    table.add_row("Subtotal", "", "", format_currency(estimate.subtotal_monthly),
                  format_currency(estimate.subtotal_annual))
    if estimate.discount_pct:
        table.add_row(f"Discount ({format_percent(estimate.discount_pct, 0)})", "", "",
                      f"-{format_currency(estimate.discount_amount_monthly)}",
                      f"-{format_currency(estimate.discount_amount_annual)}")
    table.add_row("[bold]Total[/bold]", "", "", f"[bold]{format_currency(estimate.total_monthly)}[/bold]",
                  f"[bold]{format_currency(estimate.total_annual)}[/bold]")
    console.print(table)
    for note in estimate.notes:
        console.print(f"[dim]• {note}[/dim]")


# ═══════════════════════════════════════════════════════════════════
#  EXPORT
# ═══════════════════════════════════════════════════════════════════

def _export_mtv(data, config: AppConfig) -> bytes:
    from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator, plan_waves
    from rvtools2ibm.pipeline.assessment import assess as run_assessment

    report = run_assessment(data, mode="roks", config=config)
    in_scope = {vm.vm_name for vm in report.in_scope}
    networks = [nic for nic in data.networks if nic.vm_name in in_scope]
    generator = MTVYAMLGenerator(config.mtv)
    return generator.generate_bundle(plan_waves(report.waves), networks, data.datastores)


@main.command()
@click.argument("file", type=click.Path())
@click.option("--format", "fmt", required=True, type=click.Choice(["xlsx", "pdf", "docx", "mtv"]))
@click.option("--output", "-o", required=True, type=click.Path(), help="Output file")
@click.option("--mode", type=MODE_CHOICE)
@click.option("--config", "config_path", type=click.Path(exists=True))
def export(file, fmt, output, mode, config_path):
    """Export FILE as an Excel workbook, PDF, Word report or MTV YAML bundle."""
    config = _mode_config(config_path, mode)
    mode = config.assessment.mode
    data = load_rvtools(file)

    with console.status(f"[bold green]Generating {fmt}..."):
        if fmt == "xlsx":
            from rvtools2ibm.export.excel_report import generate_excel_report
            content = generate_excel_report(data, mode)
        elif fmt == "pdf":
            from rvtools2ibm.export.pdf_report import PDFExportOptions, generate_pdf_report
            content = generate_pdf_report(
                data, PDFExportOptions(mode=mode, client_name=config.report.client_name)
            )
        elif fmt == "docx":
            from rvtools2ibm.export.docx_report import DocxExportOptions, generate_docx_report
            from rvtools2ibm.ibmcloud.pricing import get_pricing
            content = generate_docx_report(
                data,
                DocxExportOptions.from_settings(config.report),
                get_pricing(config.pricing.pricing_file),
            )
        else:
            content = _export_mtv(data, config)

    Path(output).write_bytes(content)
    console.print(f"[green]✓ Saved {fmt} export to {output}[/green] [dim]({len(content):,} bytes)[/dim]")


if __name__ == "__main__":
    main()
