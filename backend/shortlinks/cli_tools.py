#!/usr/bin/env python3
"""
CLI for running and maintaining the short-link service.
Usage: python -m shortlinks.cli_tools {serve,sweep,deactivate,report,list}
"""

import argparse
import sys
from typing import Optional, Sequence

from .config import get_settings
from .errors import ShortLinkError
from .logging_config import setup_logging
from .services import ResolutionService


def serve(host: str, port: int) -> int:
    import uvicorn
    
    uvicorn.run("shortlinks.main:app", host=host, port=port)
    return 0


def sweep(service: ResolutionService) -> int:
    count = service.sweep_expired()
    print(f"Deactivated {count} expired aliases.")
    return 0


def deactivate(service: ResolutionService, code: str) -> int:
    mapping = service.deactivate(code)
    print(f"Link {mapping.short_code} deactivated.")
    return 0


def report(service: ResolutionService, code: str) -> int:
    result = service.report(code)
    print(f"\nCode:          {result.short_code}")
    print(f"URL:           {result.original_url}")
    print(f"Active:        {result.is_active}")
    print(f"Created:       {result.created_at}")
    print(f"Expires:       {result.expires_at or 'Never'}")
    print(f"Total clicks:  {result.total_clicks}")
    print(f"Unique clicks: {result.unique_clicks}")
    if result.recent_clicks:
        print("\nRecent clicks:")
        for click in result.recent_clicks:
            print(f"  {click.timestamp:%Y-%m-%d %H:%M:%S}  {click.ip:<40} {click.user_agent[:40]}")
    print()
    return 0


def list_links(service: ResolutionService, active_only: bool) -> int:
    mappings = service.list_mappings(active_only=active_only)
    if not mappings:
        print("No links found.")
        return 0
    
    print(f"\n{'Code':<22} {'Clicks':<8} {'Active':<8} {'Expires':<18} URL")
    print("-" * 100)
    for m in mappings:
        expires = m.expires_at.strftime("%Y-%m-%d %H:%M") if m.expires_at else "Never"
        print(f"{m.short_code:<22} {m.click_count:<8} {str(m.is_active):<8} {expires:<18} {m.original_url[:40]}")
    print("-" * 100)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Short link service CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", "-p", type=int, default=8080)
    
    subparsers.add_parser("sweep", help="Deactivate expired aliases")
    
    deact_parser = subparsers.add_parser("deactivate", help="Soft-delete a link")
    deact_parser.add_argument("code", help="Short code or alias")
    
    report_parser = subparsers.add_parser("report", help="Show click analytics for a link")
    report_parser.add_argument("code", help="Short code or alias")
    
    list_parser = subparsers.add_parser("list", help="List all links")
    list_parser.add_argument("--active", action="store_true", help="Only active links")
    
    return parser


def main(argv: Optional[Sequence[str]] = None, service: Optional[ResolutionService] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    
    if args.command is None:
        parser.print_help()
        return 1
    
    if args.command == "serve":
        return serve(args.host, args.port)
    
    settings = get_settings()
    if service is None:
        setup_logging(settings)
        service = ResolutionService.from_settings(settings)
    
    try:
        if args.command == "sweep":
            return sweep(service)
        if args.command == "deactivate":
            return deactivate(service, args.code)
        if args.command == "report":
            return report(service, args.code)
        return list_links(service, args.active)
    except ShortLinkError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
