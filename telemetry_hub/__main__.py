"""
Telemetry Hub - Main Entry Point

Usage:
    python -m telemetry_hub                       # Settings from env / .env
    python -m telemetry_hub --config hub.yaml     # YAML overrides
    python -m telemetry_hub --dry-run             # Print settings and exit

Secrets are never printed.
"""

import argparse
import os
import sys

import uvicorn

from .common.exceptions import HubError
from .config import CONFIG_PATH_ENV, Settings, get_settings


def print_settings_summary(settings: Settings) -> None:
    """Print a summary of the effective settings."""
    print("\n" + "=" * 60)
    print("  TELEMETRY HUB")
    print("=" * 60)
    print(f"\n  Database: {settings.database_path}")
    print(f"  Key-value store: {settings.resolved_kv_store_path}")
    print(f"  Cleanup every: {settings.cleanup_interval_minutes} min")
    print(f"  Retention: {settings.delete_timeout_minutes} min "
          f"(batch {settings.cleanup_batch_size})")
    print(f"  Default upload interval: {settings.default_upload_interval}s")
    print(f"  Download page size: {settings.max_log_items_per_download}")
    print(f"  Log level: {settings.loglevel} ({settings.log_format})")
    for name in ("probe_api_key", "log_collector_api_key", "cli_api_key"):
        state = "set" if getattr(settings, name) else "MISSING"
        print(f"  {name}: {state}")
    print("=" * 60 + "\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Telemetry Hub API server")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=3000, help="Bind port")
    parser.add_argument("--dry-run", action="store_true", help="Print settings and exit")
    args = parser.parse_args(argv)

    if args.config:
        os.environ[CONFIG_PATH_ENV] = args.config
        get_settings.cache_clear()

    try:
        settings = get_settings()
    except HubError as e:
        print(e.message, file=sys.stderr)
        return 1

    if args.dry_run:
        print_settings_summary(settings)
        return 0

    # Logging is configured by the app lifespan from the same settings
    uvicorn.run("telemetry_hub.main:app", host=args.host, port=args.port, log_level="warning")
    return 0


if __name__ == "__main__":
    sys.exit(main())
