"""
VaultMCP CLI: operational utilities for the tool-dispatch server.

Usage:
    python -m vaultmcp.cli generate-key [options]
    python -m vaultmcp.cli client-config [options]
    python -m vaultmcp.cli doctor [options]

Commands:
    generate-key    Generate a new API key, optionally saving it to a
                    settings file.
    client-config   Print the MCP client configuration that launches the
                    stdio bridge for this vault.
    doctor          Check the vault path, the API key and the server's
                    health endpoint with the configured key.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import requests

from vaultmcp.core.config import VaultSettings
from vaultmcp.core.security import generate_api_key, mask_key
from vaultmcp.mcp.protocol import HEALTH_PATH
from vaultmcp.service import generate_client_config


def _load_settings(config: Optional[Path]) -> VaultSettings:
    if config is not None:
        return VaultSettings.from_yaml(str(config))
    return VaultSettings.from_env()


def _check_server_health(url: str, token: str, timeout_seconds: float) -> tuple[bool, str]:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        response = requests.get(f"{url}{HEALTH_PATH}", headers=headers, timeout=timeout_seconds)
        if response.status_code == 200:
            return True, "ok"
        return False, f"http_{response.status_code}"
    except requests.RequestException as exc:
        return False, str(exc)


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_generate_key(args: argparse.Namespace) -> int:
    new_key = generate_api_key()

    if args.config is not None:
        settings = _load_settings(args.config).model_copy(update={"api_key": new_key})
        try:
            settings.save_yaml(str(args.config))
        except OSError as exc:
            print(f"Error: could not write settings file {args.config}: {exc}", file=sys.stderr)
            return 1

    if args.key_only:
        print(new_key)
        return 0

    print("\nVaultMCP API Key")
    print("=" * 50)
    print(f"New key: {new_key}")
    if args.config is not None:
        print(f"Saved to: {args.config.resolve()}")
    else:
        print("To use it, start the server with:")
        print(f"  VAULTMCP_API_KEY={new_key} python server.py")
    print()
    print("Regenerate your MCP client config afterwards (client-config).")
    print()
    return 0


def cmd_client_config(args: argparse.Namespace) -> int:
    settings = _load_settings(args.config)
    print(json.dumps(generate_client_config(settings), indent=2))
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    settings = _load_settings(args.config)
    issues: List[str] = []
    warnings: List[str] = []

    vault = Path(settings.vault_path).expanduser()
    if not vault.is_dir():
        issues.append(f"Vault path is not a directory: {vault}")
    if not settings.api_key:
        issues.append("No API key configured (VAULTMCP_API_KEY); the server rejects every request")
    if not settings.http_server_enabled:
        warnings.append("HTTP server is disabled (VAULTMCP_HTTP_ENABLED)")

    url = f"http://{settings.host}:{settings.port}"
    if ":" in settings.host:
        url = f"http://[{settings.host}]:{settings.port}"
    health_ok, health_detail = _check_server_health(url, settings.api_key, args.timeout_seconds)
    if not health_ok:
        issues.append(f"Server health check failed at {url}: {health_detail}")

    print("\nVaultMCP Doctor")
    print("=" * 50)
    print(f"Vault path: {vault}")
    print(f"Server URL: {url}")
    print(f"API key: {mask_key(settings.api_key) if settings.api_key else 'none'}")
    print(f"Templates dir: {settings.templates_dir}")
    print(f"Health/auth check: {'PASS' if health_ok else 'FAIL'} ({health_detail})")
    if args.show_settings:
        print("Effective settings:")
        print(json.dumps(settings.redacted(), indent=2, sort_keys=True))
    if issues:
        print("Critical issues:")
        for issue in issues:
            print(f"  - {issue}")
    if warnings:
        print("Warnings:")
        for warning in warnings:
            print(f"  - {warning}")
    print()
    return 1 if issues else 0


# ─────────────────────────────────────────────────────────────────────────────
# Argument parser
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultmcp.cli",
        description="VaultMCP CLI: operational utilities for the tool-dispatch server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:\n"
               "  python -m vaultmcp.cli generate-key --key-only\n"
               "  python -m vaultmcp.cli generate-key --config vaultmcp.yaml\n"
               "  python -m vaultmcp.cli client-config\n"
               "  python -m vaultmcp.cli doctor\n",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_help = "YAML settings file layered over VAULTMCP_* environment variables."

    generate = subparsers.add_parser("generate-key", help="Generate a new API key.")
    generate.add_argument("--config", type=Path, default=None, metavar="PATH", help=config_help)
    generate.add_argument(
        "--key-only",
        action="store_true",
        default=False,
        help="Print only the new key to stdout (machine-readable, no instructions).",
    )

    client = subparsers.add_parser("client-config", help="Print the MCP client configuration.")
    client.add_argument("--config", type=Path, default=None, metavar="PATH", help=config_help)

    doctor = subparsers.add_parser("doctor", help="Check settings and server health.")
    doctor.add_argument("--config", type=Path, default=None, metavar="PATH", help=config_help)
    doctor.add_argument(
        "--timeout-seconds",
        type=float,
        default=3.0,
        help="HTTP timeout for the health/auth check.",
    )
    doctor.add_argument(
        "--show-settings",
        action="store_true",
        default=False,
        help="Print the effective settings with the API key redacted.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "generate-key":
        return cmd_generate_key(args)
    if args.command == "client-config":
        return cmd_client_config(args)
    if args.command == "doctor":
        return cmd_doctor(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
