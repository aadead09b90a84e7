"""
Command line entry point.

Lists discovered routes, writes the OpenAPI document for a set of packages, or
serves them over HTTP.
"""

import argparse
import logging
import os
import sys

from pydantic import ValidationError

from .config import GeneratorSettings, ServerSettings
from .exceptions import TypeRouteError
from .openapi import SchemaSynthesizer
from .router import RouteRegistry


def build_registry(packages, strict: bool = False) -> RouteRegistry:
    registry = RouteRegistry(strict=strict)
    for package in packages:
        registry.discover_package(package)
    return registry


def list_routes(args) -> int:
    registry = build_registry(args.packages, strict=args.strict)
    for route in sorted(registry, key=lambda r: (r.path, r.verb.value)):
        print(f"{route.verb.value:<7} {route.path:<30} {route.qualified_name}")
    return 0


def generate(args) -> int:
    settings = GeneratorSettings.from_env(
        title=args.title,
        version=args.api_version,
        description=args.description,
        servers=args.server or None,
        output=args.output,
    )
    synthesizer = SchemaSynthesizer(settings)
    for package in args.packages:
        synthesizer.scan_package(package)

    if settings.output == "-":
        print(synthesizer.to_json())
    else:
        path = synthesizer.save()
        print(f"Wrote {path}")
    return 0


def serve(args) -> int:
    from .server import serve as run_server

    settings = ServerSettings.from_env(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        strict_routes=True if args.strict else None,
        server_impl=args.server_impl,
    )
    registry = build_registry(args.packages, strict=settings.strict_routes)
    run_server(
        registry,
        server=settings.server_impl,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Typed route discovery, dispatch and OpenAPI generation",
        prog="python -m typeroute",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: $TYPEROUTE_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    routes_parser = subparsers.add_parser("routes", help="List discovered routes")
    routes_parser.add_argument("packages", nargs="+", help="Packages to scan for handler types")
    routes_parser.add_argument("--strict", action="store_true", help="Fail on route collisions")
    routes_parser.set_defaults(func=list_routes)

    generate_parser = subparsers.add_parser("generate", help="Write the OpenAPI document")
    generate_parser.add_argument("packages", nargs="+", help="Packages to scan for routes and responses")
    generate_parser.add_argument("-o", "--output", default=None, help="Output file, or '-' for stdout")
    generate_parser.add_argument("--title", default=None, help="info.title")
    generate_parser.add_argument("--api-version", default=None, help="info.version")
    generate_parser.add_argument("--description", default=None, help="info.description")
    generate_parser.add_argument(
        "--server", action="append", default=[], help="Server URL (repeatable)"
    )
    generate_parser.set_defaults(func=generate)

    serve_parser = subparsers.add_parser("serve", help="Serve the routes over HTTP")
    serve_parser.add_argument("packages", nargs="+", help="Packages to scan for handler types")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument(
        "--server-impl", choices=["uvicorn", "hypercorn"], default=None, help="HTTP server to use"
    )
    serve_parser.add_argument("--strict", action="store_true", help="Fail on route collisions")
    serve_parser.set_defaults(func=serve)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    level = args.log_level or os.environ.get("TYPEROUTE_LOG_LEVEL") or "WARNING"
    logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    except ImportError as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 2
    except TypeRouteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
