"""CLI entry point for the iLO gateway (standalone-capable).

Examples:
  # One fetch cycle, print every cached domain
  ilogateway --host 192.168.1.20 --username admin --password <PW> status

  # Current temperatures and fans (Redfish)
  ilogateway sensors

  # Fan control
  ilogateway fans set-all 40
  ilogateway fans lock 2 55
  ilogateway fans pid-low-limit 3 20
  ilogateway fans unlock

  # Background fetcher plus automation, until Ctrl-C
  ilogateway run --low 30 --med 40

  # Store credentials in config/ilo-config.json
  ilogateway configure --host 192.168.1.20 --username admin --password <PW>
"""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path

from pydantic import ValidationError
from tabulate import tabulate

from ilogateway.gateway.config import (
    AutomationThresholds,
    GatewaySettings,
    ManagementCredentials,
    file_credentials_provider,
    save_credentials,
    static_credentials_provider,
)
from ilogateway.gateway.context import GatewayContext
from ilogateway.gateway.exceptions import GatewayError
from ilogateway.gateway.models.cache import Domain
from ilogateway.gateway.status import classify_entry, describe


def _print_domain_header(ctx: GatewayContext, domain: Domain, title: str) -> bool:
    """Print a section title; return True if the domain has data."""
    entry = ctx.fetcher.get(domain)
    print(f"\n=== {title} ===")
    state = classify_entry(entry, running=True, configured=ctx.is_configured())
    if entry.data is None:
        _, message = describe(domain, state, entry.error)
        print(f"  {message}")
        return False
    if entry.error:
        print(f"  (stale: {entry.error})")
    return True


def cmd_status(ctx: GatewayContext, args: argparse.Namespace) -> None:
    """Run one fetch cycle and print the cache."""
    if not ctx.is_configured():
        print("Management controller not configured. Use 'ilogateway configure' or ILO_* variables.")
        sys.exit(1)

    ctx.fetcher.refresh()

    if _print_domain_header(ctx, Domain.IDENTITY, "System Information"):
        ident = ctx.fetcher.get_system_identity().data
        print(f"  Model:        {ident.model}")
        print(f"  Serial:       {ident.serial_number}")
        print(f"  Controller:   {ident.controller_generation} {ident.controller_firmware}")
        print(f"  System ROM:   {ident.host_firmware}")

    if _print_domain_header(ctx, Domain.POWER, "Power"):
        power = ctx.fetcher.get_power().data
        rows = [
            ["Regulation", power.power_regulation],
            ["Present", f"{power.present_power:g} W"],
            ["Average", f"{power.average_power:g} W"],
            ["Min / Max", f"{power.min_power:g} / {power.max_power:g} W"],
            ["Power cap", f"{power.power_cap:g} W"],
            ["Supply capacity", f"{power.power_supply_capacity:g} W"],
            ["Warning", f"{power.warning_type} ({power.warning_threshold:g} W for {power.warning_duration:g} min)"],
            ["Power micro", power.power_micro_version],
            ["Auto power restore", power.auto_power_restore],
        ]
        print(tabulate(rows, tablefmt="plain"))

    if _print_domain_header(ctx, Domain.PID, "PID Bank"):
        pids = ctx.fetcher.get_pid_data().data
        print(
            tabulate(
                [[p.number, "Active" if p.is_active else "-", p.set_point, p.current_reading, p.output] for p in pids],
                headers=["No.", "State", "Set point", "Reading", "Output"],
            )
        )

    if _print_domain_header(ctx, Domain.LOGS, "Recent System Log"):
        logs = ctx.fetcher.get_system_logs().data
        print(
            tabulate(
                [[r.number, r.severity.value, f"{r.date} {r.time}", r.description] for r in logs],
                headers=["#", "Severity", "When", "Description"],
            )
        )


def cmd_sensors(ctx: GatewayContext, args: argparse.Namespace) -> None:
    """Print temperature sensors and fans."""
    sensors = ctx.thermal.get_sensors()
    print("=== Temperatures ===")
    print(
        tabulate(
            [[s.name, s.context or "", s.reading, s.critical or "", s.status] for s in sensors],
            headers=["Sensor", "Context", "°C", "Critical", "Health"],
        )
    )
    fans = ctx.thermal.get_fans()
    print("\n=== Fans ===")
    print(tabulate([[f.name, f"{f.speed:g}%", f.status, f.health or ""] for f in fans], headers=["Fan", "Speed", "State", "Health"]))


def cmd_fans(ctx: GatewayContext, args: argparse.Namespace) -> None:
    """Fan control and raw fan dumps."""
    thermal = ctx.thermal
    command = args.fans_command
    if command == "info":
        print(thermal.fan_info())
    elif command == "pid-info":
        print(thermal.pid_info())
    elif command == "group-info":
        print(thermal.group_info())
    elif command == "unlock":
        thermal.unlock_fans()
        print("Fan control unlocked successfully")
    elif command == "lock":
        thermal.lock_fan(args.fan_id, args.speed)
        print(f"Fan {args.fan_id} locked at {args.speed}%")
    elif command == "set-all":
        thermal.set_all_fans(args.speed)
        print(f"All fans set to {args.speed}%")
    elif command == "pid-low-limit":
        thermal.set_pid_low_limit(args.pid_id, args.low_limit)
        print(f"PID {args.pid_id} low limit set to {args.low_limit}%")
    else:
        print("Usage: ilogateway fans {info|pid-info|group-info|unlock|lock|set-all|pid-low-limit}")


def cmd_run(ctx: GatewayContext, args: argparse.Namespace, stop_event: threading.Event | None = None) -> None:
    """Run the fetcher and the automation loop until interrupted."""
    thresholds = AutomationThresholds(low=args.low, med=args.med)
    ctx.start(thresholds=thresholds, automation=not args.no_automation)
    stop_event = stop_event or threading.Event()
    try:
        while not stop_event.wait(1.0):
            pass
    finally:
        ctx.stop()


def cmd_configure(args: argparse.Namespace) -> None:
    """Save credentials and test the SSH connection."""
    if not (args.host and args.username and args.password):
        print("configure requires --host, --username and --password", file=sys.stderr)
        sys.exit(1)
    creds = ManagementCredentials(
        host=args.host,
        username=args.username,
        password=args.password,
        ssh_port=args.ssh_port,
        https_port=args.https_port,
    )
    ctx = GatewayContext(GatewaySettings(config_file=args.config_file), static_credentials_provider(creds))
    if not args.skip_test and not ctx.channel.test_connection():
        print(f"Could not connect to {creds.host}; configuration not saved", file=sys.stderr)
        sys.exit(1)
    save_credentials(creds, args.config_file)
    print(f"Configuration for {creds.host} saved to {args.config_file}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the gateway CLI."""
    parser = argparse.ArgumentParser(
        prog="ilogateway",
        description="iLO telemetry and fan-control gateway",
    )
    parser.add_argument("--host", help="Controller IP address or hostname (default: config file / ILO_HOST)")
    parser.add_argument("--username", help="Controller username (default: config file / ILO_USERNAME)")
    parser.add_argument("--password", help="Controller password (default: config file / ILO_PASSWORD)")
    parser.add_argument("--ssh-port", type=int, default=22, help="SSH port (default: 22)")
    parser.add_argument("--https-port", type=int, default=443, help="HTTPS port (default: 443)")
    parser.add_argument(
        "--config-file",
        type=Path,
        default=GatewaySettings.model_fields["config_file"].default,
        help="Credentials file (default: config/ilo-config.json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("status", help="Run one fetch cycle and show cached data")
    subparsers.add_parser("sensors", help="Show temperatures and fans")

    fans_parser = subparsers.add_parser("fans", help="Fan control")
    fans_sub = fans_parser.add_subparsers(dest="fans_command", help="Fan commands")
    fans_sub.add_parser("info", help="Raw 'fan info' output")
    fans_sub.add_parser("pid-info", help="Raw 'fan info a' output")
    fans_sub.add_parser("group-info", help="Raw 'fan info g' output")
    fans_sub.add_parser("unlock", help="Release manual fan control")

    fans_lock = fans_sub.add_parser("lock", help="Lock one fan at a speed")
    fans_lock.add_argument("fan_id", type=int, help="Fan index")
    fans_lock.add_argument("speed", type=float, help="Speed in percent (0-100)")

    fans_set_all = fans_sub.add_parser("set-all", help="Set every fan to the same speed")
    fans_set_all.add_argument("speed", type=float, help="Speed in percent (0-100)")

    fans_pid = fans_sub.add_parser("pid-low-limit", help="Set a PID bank's low limit")
    fans_pid.add_argument("pid_id", type=int, help="PID index")
    fans_pid.add_argument("low_limit", type=float, help="Low limit in percent (0-100)")

    run_parser = subparsers.add_parser("run", help="Run the fetcher and fan automation until Ctrl-C")
    run_parser.add_argument("--low", type=float, default=30.0, help="Low threshold in °C (default: 30)")
    run_parser.add_argument("--med", type=float, default=40.0, help="Medium threshold in °C (default: 40)")
    run_parser.add_argument("--no-automation", action="store_true", help="Only run the data fetcher")

    configure_parser = subparsers.add_parser("configure", help="Save controller credentials")
    configure_parser.add_argument("--skip-test", action="store_true", help="Save without testing the connection")

    return parser


def build_context(args: argparse.Namespace) -> GatewayContext:
    """Context from CLI credentials when all three are given, else file/env."""
    settings = GatewaySettings.from_env().model_copy(update={"config_file": args.config_file})
    if args.host and args.username and args.password:
        provider = static_credentials_provider(
            ManagementCredentials(
                host=args.host,
                username=args.username,
                password=args.password,
                ssh_port=args.ssh_port,
                https_port=args.https_port,
            )
        )
    else:
        provider = file_credentials_provider(args.config_file)
    return GatewayContext(settings, provider)


def main(args: list[str] | None = None) -> None:
    """Main entry point for the gateway CLI."""
    parser = build_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        sys.exit(1)

    try:
        if parsed.command == "configure":
            cmd_configure(parsed)
            return

        ctx = build_context(parsed)
        if parsed.command == "status":
            cmd_status(ctx, parsed)
        elif parsed.command == "sensors":
            cmd_sensors(ctx, parsed)
        elif parsed.command == "fans":
            cmd_fans(ctx, parsed)
        elif parsed.command == "run":
            cmd_run(ctx, parsed)
    except (GatewayError, ValueError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
