#!/usr/bin/env python3
"""
Command Line Interface for the kdb+ datasource client
"""

import sys
import json
import logging
import argparse

from .client import KdbDataSourceClient
from .core.template_service import DashboardTemplateService


def _parse_variables(pairs):
    variables = {}
    for pair in pairs or []:
        name, sep, value = pair.partition('=')
        if not sep or not name:
            raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got '{pair}'")
        variables[name] = value.split(',') if ',' in value else value
    return variables


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="kdb+ datasource client - test a kdb+ datasource and resolve variable queries"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="kdb-datasource-client 1.0.0"
    )
    parser.add_argument(
        "--credentials",
        help="Path to credentials file",
        default="credentials.yaml"
    )
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Test the host API and the datasource health check"
    )
    parser.add_argument(
        "--resolve-variable",
        help="Resolve a variable query and print its values as JSON",
        metavar="QUERY"
    )
    parser.add_argument(
        "--timeout",
        help="Variable query timeout in milliseconds",
        default=""
    )
    parser.add_argument(
        "--var",
        action="append",
        help="Template variable value as NAME=VALUE (comma separated for multi-value)",
        metavar="NAME=VALUE"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.test_connection and args.resolve_variable is None:
        parser.print_help()
        return

    try:
        template_service = None
        if args.var:
            template_service = DashboardTemplateService(_parse_variables(args.var))
        client = KdbDataSourceClient(args.credentials, template_service=template_service)
    except Exception as e:
        print(f"❌ Error loading client: {e}")
        sys.exit(1)

    if args.test_connection:
        try:
            client.test_connection()
            print("✅ Connection to kdb+ datasource successful!")
        except Exception as e:
            print(f"❌ Error testing connection: {e}")
            sys.exit(1)

    if args.resolve_variable is not None:
        values = client.resolve_variable_query(args.resolve_variable, args.timeout)
        print(json.dumps([v.to_dict() for v in values], indent=2))


if __name__ == "__main__":
    main()
