"""
VaultSync Client - Main Entry Point

This is the main entry point for the VaultSync command-line client.

Author: VaultSync Project
"""

import sys
import argparse
from typing import List, Optional


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='VaultSync - Offline-first markdown vault sync client'
    )
    parser.add_argument('--config-dir', help='Directory holding config.json (default: current directory)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('reconcile', help='Compare every server file with the local cache')
    subparsers.add_parser('drain', help='Reconcile, then replay queued offline writes')
    subparsers.add_parser('status', help='Show pending, queued and conflicted counts')
    subparsers.add_parser('conflicts', help='List unresolved conflicts')

    save_parser = subparsers.add_parser('save', help='Save a file (content from --from or stdin)')
    save_parser.add_argument('path', help='Vault-relative path')
    save_parser.add_argument('--from', dest='source', help='Read content from this file instead of stdin')

    delete_parser = subparsers.add_parser('delete', help='Delete a file')
    delete_parser.add_argument('path', help='Vault-relative path')

    rename_parser = subparsers.add_parser('rename', help='Rename or move a file')
    rename_parser.add_argument('path', help='Current vault-relative path')
    rename_parser.add_argument('destination', help='New vault-relative path')

    resolve_parser = subparsers.add_parser('resolve', help='Resolve a conflict')
    resolve_parser.add_argument('path', help='Vault-relative path')
    resolve_parser.add_argument('--keep', choices=['local', 'server'], required=True,
                                help='Which version to keep')

    return parser


def main(argv: Optional[List[str]] = None):
    """
    Main entry point for VaultSync client.

    Parses command-line arguments and runs the requested command.
    """
    args = build_parser().parse_args(argv)

    from vaultsync_client.cli import run_cli_operation
    return run_cli_operation(args)


if __name__ == '__main__':
    sys.exit(main())
