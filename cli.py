"""
Administrative command line.

Usage:
    python cli.py generate COUNT DAYS
    python cli.py single NAME EMAIL DAYS
    python cli.py list
    python cli.py create-admin
    python cli.py purge-sessions

Every command works on MARKET_MANAGER_DATA_DIR unless --data-dir is given.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from auth.service import AuthService
from clients.json_store_client import BaseStoreClient, JsonStoreClient, StorageError
from licensing.service import LicenseService
from licensing.types import CreateLicenseRequest, License
from main import build_auth_service, build_license_service
from settings import AppSettings
from utils.timezone import format_display_date, now_utc


@dataclass
class CliContext:
    auth: AuthService
    licenses: LicenseService
    display_timezone: str = "UTC"


def _fail(message: str) -> int:
    print(f"error: {message}", file=sys.stderr)
    return 1


def _license_status(lic: License) -> str:
    if now_utc() > lic.expires_at:
        return "expired"
    return "active" if lic.is_active else "inactive"


def _print_license(lic: License, tz_name: str) -> None:
    expires = format_display_date(lic.expires_at, tz_name)
    print(
        f"{lic.license_key}  {lic.customer_name or '-'} <{lic.customer_email or '-'}>  "
        f"expires {expires} [{_license_status(lic)}]"
    )


def cmd_generate(args: argparse.Namespace, ctx: CliContext) -> int:
    result = ctx.licenses.create_licenses(args.count, args.days)
    if not result.success:
        return _fail(result.error)
    for lic in result.licenses:
        print(lic.license_key)
    print(f"generated {len(result.licenses)} license(s) valid for {args.days} day(s)")
    return 0


def cmd_single(args: argparse.Namespace, ctx: CliContext) -> int:
    request = CreateLicenseRequest(
        customer_name=args.name,
        customer_email=args.email,
        duration_days=args.days,
    )
    result = ctx.licenses.create_license(request)
    if not result.success:
        return _fail(result.error)
    lic = result.license
    print(f"license key: {lic.license_key}")
    print(f"customer:    {lic.customer_name} <{lic.customer_email}>")
    print(f"expires:     {format_display_date(lic.expires_at, ctx.display_timezone)}")
    return 0


def cmd_list(args: argparse.Namespace, ctx: CliContext) -> int:
    result = ctx.licenses.get_all_licenses()
    if not result.success:
        return _fail(result.error)

    try:
        stats = ctx.licenses.get_license_stats()
    except StorageError as e:
        return _fail(str(e))
    print(f"total licenses: {stats.total}")
    print(f"active: {stats.active}  inactive: {stats.inactive}  expired: {stats.expired}")
    print(f"expiring soon: {stats.expiring_soon}")
    for lic in result.licenses:
        _print_license(lic, ctx.display_timezone)
    return 0


def cmd_create_admin(args: argparse.Namespace, ctx: CliContext) -> int:
    result = ctx.auth.reset_admin_account()
    if not result.success:
        return _fail(result.error)
    print(f"admin account reset: {result.user.username} (id {result.user.id})")
    print("log in with the default password and change it")
    return 0


def cmd_purge_sessions(args: argparse.Namespace, ctx: CliContext) -> int:
    try:
        purged = ctx.auth.purge_expired_sessions()
    except StorageError as e:
        return _fail(str(e))
    print(f"purged {purged} expired session(s)")
    return 0


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="market-manager",
        description="Market Manager license and account administration",
    )
    p.add_argument("--data-dir", type=Path, default=None, help="override MARKET_MANAGER_DATA_DIR")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = p.add_subparsers(dest="cmd", required=True)

    generate = sub.add_parser("generate", help="generate COUNT licenses for placeholder customers")
    generate.add_argument("count", type=_positive_int)
    generate.add_argument("days", type=_positive_int)
    generate.set_defaults(func=cmd_generate)

    single = sub.add_parser("single", help="generate one license for a named customer")
    single.add_argument("name")
    single.add_argument("email")
    single.add_argument("days", type=_positive_int)
    single.set_defaults(func=cmd_single)

    list_cmd = sub.add_parser("list", help="list every license with its status")
    list_cmd.set_defaults(func=cmd_list)

    create_admin = sub.add_parser("create-admin", help="recreate the default admin account")
    create_admin.set_defaults(func=cmd_create_admin)

    purge = sub.add_parser("purge-sessions", help="delete expired sessions")
    purge.set_defaults(func=cmd_purge_sessions)

    return p


def run(argv: list[str], store: BaseStoreClient | None = None) -> int:
    """Parse argv and run one command. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = AppSettings.from_env()
    if args.data_dir is not None:
        settings = settings.model_copy(update={"data_dir": args.data_dir})
    if store is None:
        store = JsonStoreClient(settings.data_dir)

    ctx = CliContext(
        auth=build_auth_service(settings, store),
        licenses=build_license_service(settings, store),
        display_timezone=settings.license.display_timezone,
    )
    return args.func(args, ctx)


def main() -> None:
    load_dotenv()
    raise SystemExit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
