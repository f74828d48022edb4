#!/usr/bin/env python3
"""
Radar-IP - Command-line interface.

Find which host in an IP range owns a MAC address, by logging in over
SSH and reading `ip link show` on every host.

Usage:
    # Password authentication
    radar-ip -m aa:bb:cc:dd:ee:ff -r 192.168.1.0/24 -u root -p secret

    # Private key (password is used as key passphrase)
    radar-ip -m aa:bb:cc:dd:ee:ff -r 192.168.1.0/24 -k ~/.ssh/id_ed25519

    # Device profile: range, user and key come from the profile / .env
    radar-ip -m aa:bb:cc:dd:ee:ff --profile hc --deadline 15

    # Settings from YAML
    radar-ip --yaml scan.yaml -v

Exit status: 0 and the address on stdout when found; 1 and the reason on
stderr when not; 2 for configuration errors.
"""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import DeviceProfile, ScanSettings, load_env, load_yaml_config, merge_settings
from .engine import MAX_CONCURRENT, ScanEngine
from .errors import ConfigError
from .events import ConsoleEventPrinter, EventEmitter
from .models import ScanOutcome

logger = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # paramiko logs every transport negotiation at DEBUG
    logging.getLogger('paramiko').setLevel(logging.WARNING)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='radar-ip',
        description='Scan an IP range via SSH and find which host owns a given MAC address',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  radar-ip -m aa:bb:cc:dd:ee:ff -r 192.168.1.0/24 -p secret
  radar-ip -m aa:bb:cc:dd:ee:ff -r 10.8.0.0/24 -k ~/.ssh/id_rsa -u root
  radar-ip -m aa:bb:cc:dd:ee:ff --profile ai3 --deadline 15
  radar-ip --yaml scan.yaml --json
        """
    )

    parser.add_argument(
        '-m', '--target-mac',
        dest='target_mac',
        help='Target MAC address to search for (e.g. aa:bb:cc:dd:ee:ff)'
    )
    parser.add_argument(
        '-r', '--range',
        dest='cidr',
        help='IP range in CIDR notation (e.g. 192.168.1.0/24)'
    )
    parser.add_argument(
        '-k', '--key',
        dest='key_path',
        help='Path to private key file for SSH authentication'
    )
    parser.add_argument(
        '-p', '--password',
        help='Password for SSH authentication (also used as key passphrase when --key is set)'
    )
    parser.add_argument(
        '-u', '--user',
        help='SSH username (default: root, or the profile user)'
    )
    parser.add_argument(
        '--port',
        type=int,
        help='SSH port (default: 22)'
    )
    parser.add_argument(
        '--timeout-sec',
        dest='timeout',
        type=float,
        help='Per-host SSH timeout in seconds (default: 5)'
    )
    parser.add_argument(
        '-c', '--concurrency',
        type=int,
        help=f'Maximum concurrent SSH probes (default: {MAX_CONCURRENT})'
    )
    parser.add_argument(
        '--deadline',
        type=float,
        help='Abandon the whole scan after this many seconds (default: no limit)'
    )
    parser.add_argument(
        '--profile',
        choices=[p.value for p in DeviceProfile],
        help='Device profile: default range and user, private key from environment'
    )
    parser.add_argument(
        '--yaml',
        type=Path,
        help='YAML config file'
    )
    parser.add_argument(
        '--env-file',
        dest='env_file',
        type=Path,
        help='Load environment variables from this file (default: ./.env)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Only print the result'
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        dest='no_color',
        help='Disable colored output'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the scan outcome as JSON on stdout'
    )
    parser.add_argument(
        '--json-events',
        action='store_true',
        dest='json_events',
        help='Stream events as JSON lines on stderr (for GUI integration)'
    )

    return parser


class JsonEventPrinter:
    """
    Prints events as JSON lines for GUI consumption.

    Each event is printed as a single JSON line that can be
    parsed by a process reading the stream.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr

    def handle_event(self, event):
        """Print event as JSON line."""
        output = {
            "type": event.event_type.value,
            "timestamp": event.timestamp.isoformat(),
            "data": event.data,
        }
        print(json.dumps(output, default=str), file=self.stream, flush=True)


def build_settings(args: argparse.Namespace) -> ScanSettings:
    """Merge CLI arguments, YAML file and profile into ScanSettings."""
    yaml_values = load_yaml_config(args.yaml) if args.yaml else {}

    cli_values = {
        'target_mac': args.target_mac,
        'cidr': args.cidr,
        'user': args.user,
        'port': args.port,
        'timeout': args.timeout,
        'concurrency': args.concurrency,
        'deadline': args.deadline,
        'key_path': args.key_path,
        'password': args.password,
        'profile': args.profile,
    }
    settings = merge_settings(cli_values, yaml_values)

    if not settings.target_mac:
        raise ConfigError("Target MAC address is required (-m/--target-mac)")
    if not settings.cidr:
        raise ConfigError("IP range is required (-r/--range or --profile)")
    if settings.deadline is not None and settings.deadline <= 0:
        settings.deadline = None

    return settings


def create_emitter(args: argparse.Namespace) -> EventEmitter:
    emitter = EventEmitter()
    if args.json_events:
        emitter.subscribe(JsonEventPrinter().handle_event)
    elif not args.quiet:
        printer = ConsoleEventPrinter(
            verbose=args.verbose,
            color=not args.no_color and sys.stderr.isatty(),
        )
        emitter.subscribe(printer.handle_event)
    return emitter


async def run_scan(settings: ScanSettings, engine: ScanEngine) -> ScanOutcome:
    return await engine.scan_with_deadline(settings.target_mac, settings.cidr, settings.deadline)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    load_env(args.env_file)

    try:
        settings = build_settings(args)

        # Prompt only when nothing else can authenticate
        if not (settings.key_path or settings.password or settings.profile) and sys.stdin.isatty():
            settings.password = getpass.getpass("SSH Password: ")

        config = settings.connection_config()
        engine = ScanEngine(
            config,
            max_concurrent=settings.concurrency,
            event_emitter=create_emitter(args),
            verbose=args.verbose,
        )
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    outcome = asyncio.run(run_scan(settings, engine))

    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2))
    elif outcome.success:
        print(outcome.ip_address)

    if not outcome.success:
        print(outcome.message, file=sys.stderr)
        return EXIT_FAILED

    return EXIT_FOUND


if __name__ == '__main__':
    sys.exit(main())
