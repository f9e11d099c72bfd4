#!/usr/bin/env python3
"""
todoist-relay CLI: run the REST API or MCP server, or inspect Todoist from the terminal.

Usage:
    todoist-relay serve [--host <host>] [--port <port>]
    todoist-relay mcp [--transport stdio|streamable-http]
    todoist-relay check [--json]
    todoist-relay tasks [--filter <query>] [--project-id <id>] [--label <name>] [--json]

Configuration is read from the environment (and a .env file in the working
directory). TODOIST_API_KEY is required.
"""

import argparse
import sys

from dotenv import load_dotenv

from .commands import cmd_check, cmd_mcp, cmd_serve, cmd_tasks
from .config import Settings
from .errors import ConfigError
from .formatting import format_check
from .logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todoist-relay",
        description="Relay Todoist tasks, projects and labels over REST and MCP",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port to listen on (default: PORT)")

    # mcp command
    mcp_parser = subparsers.add_parser("mcp", help="Run the MCP tool server")
    mcp_parser.add_argument("--transport", choices=["stdio", "streamable-http"], default="stdio",
                            help="MCP transport (default: stdio)")

    # check command
    check_parser = subparsers.add_parser("check", help="Check Todoist connectivity")
    check_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # tasks command
    tasks_parser = subparsers.add_parser("tasks", help="List tasks and analyze due fields")
    tasks_parser.add_argument("--filter", help="Todoist filter query, e.g. 'today | overdue'")
    tasks_parser.add_argument("--project-id", help="Only tasks in this project")
    tasks_parser.add_argument("--label", help="Only tasks with this label")
    tasks_parser.add_argument("--json", action="store_true", help="Output as JSON")

    return parser


COMMANDS = {
    "serve": cmd_serve,
    "mcp": cmd_mcp,
    "check": cmd_check,
    "tasks": cmd_tasks,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in COMMANDS:
        parser.print_help()
        return 0

    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(format_check(False, str(e)), file=sys.stderr)
        return 1

    configure_logging(
        settings.log_level,
        json_output=settings.is_production,
        service=settings.server_name,
        version=settings.server_version,
    )
    return COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
