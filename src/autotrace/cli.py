"""
autotrace.cli - Command-line interface.

Main entry point for the autotrace CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from autotrace import __version__
from autotrace.commands import config_cmd, graph_cmd, matrix_cmd, serve


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="autotrace",
        description="Traceability workspace for automotive software projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  autotrace serve                  # Start the REST server on port 5050
  autotrace graph --mode network   # Lay out the dashboard graph, print metrics
  autotrace graph -j --ticks 50    # Dump node positions after 50 ticks
  autotrace matrix --record tr-1   # Print one traceability matrix

Configuration:
  autotrace config path            # Show config file location
  autotrace config show            # View all settings

For detailed command help: autotrace <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"autotrace {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the REST server",
    )
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default: from config)")

    # graph command
    graph_parser = subparsers.add_parser(
        "graph",
        help="Generate and lay out the dashboard graph",
    )
    graph_parser.add_argument(
        "--mode",
        choices=["network", "tree"],
        help="Layout mode (default: from config)",
    )
    graph_parser.add_argument("--seed", type=int, help="Random seed for generation and layout")
    graph_parser.add_argument(
        "--ticks",
        type=int,
        help="Run exactly N ticks instead of settling",
        metavar="N",
    )
    graph_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Print the layout snapshot as JSON",
    )
    graph_parser.add_argument(
        "--html",
        type=Path,
        help="Write a static overview page",
        metavar="PATH",
    )

    # matrix command
    matrix_parser = subparsers.add_parser(
        "matrix",
        help="Print traceability matrices of the seed data",
    )
    matrix_parser.add_argument("--record", help="Record ID (default: all records)", metavar="ID")
    matrix_parser.add_argument(
        "--format",
        choices=["markdown", "csv"],
        default="markdown",
        help="Output format (default: markdown)",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View configuration",
    )
    config_sub = config_parser.add_subparsers(dest="config_action")
    show_parser = config_sub.add_parser("show", help="Show effective configuration")
    show_parser.add_argument("--key", help="Dotted key, e.g. server.port")
    show_parser.add_argument("-j", "--json", action="store_true", help="Output as JSON")
    config_sub.add_parser("path", help="Show config file location")

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install autotrace[completion]
    # Then activate: eval "$(register-python-argcomplete autotrace)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "serve":
            return serve.run(args)
        elif args.command == "graph":
            return graph_cmd.run(args)
        elif args.command == "matrix":
            return matrix_cmd.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"autotrace {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
