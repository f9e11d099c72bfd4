"""
CLI command handlers for todoist-relay.

Each cmd_* function handles a specific subcommand and returns an exit code.
"""

import asyncio
import json
import logging

from tabulate import tabulate

from .config import Settings
from .errors import RelayError
from .formatting import format_check, format_due, format_muted, format_priority, format_section
from .models import Task, TaskFilter, parse_input, to_jsonable
from .operations import build_operations

logger = logging.getLogger(__name__)


def cmd_serve(args, settings: Settings) -> int:
    """Run the REST API under uvicorn."""
    import uvicorn

    from .api import create_app

    port = args.port or settings.port
    logger.info(f"Starting Claude Todoist API on {args.host}:{port} ({settings.environment})")
    uvicorn.run(create_app(settings), host=args.host, port=port, log_config=None)
    return 0


def cmd_mcp(args, settings: Settings) -> int:
    """Run the MCP tool server."""
    from .mcp import create_mcp_server

    operations = build_operations(settings)
    server = create_mcp_server(operations, settings)
    logger.info(f"Starting MCP server '{settings.server_name}' over {args.transport}")
    server.run(transport=args.transport)
    return 0


def cmd_check(args, settings: Settings) -> int:
    """Check Todoist connectivity (projects + today/overdue tasks, fetched concurrently)."""
    result = asyncio.run(_with_operations(settings, lambda ops: ops.health_check()))

    if args.json:
        print(json.dumps(result, indent=2))
        return 0 if result["connected"] else 1

    if not result["connected"]:
        print(format_check(False, f"Todoist API unreachable: {result.get('error', 'unknown error')}"))
        return 1

    print(format_check(True, "Todoist API reachable"))
    rows = [
        [format_muted("Projects"), result["projects_count"]],
        [format_muted("Due/overdue tasks"), result["tasks_count"]],
        [format_muted("Response time"), f"{result['response_time_ms']}ms"],
    ]
    print(tabulate(rows, tablefmt="plain"))
    return 0


def cmd_tasks(args, settings: Settings) -> int:
    """List tasks with a due-field breakdown."""
    try:
        query = parse_input(TaskFilter, {
            "project_id": args.project_id,
            "label": args.label,
            "filter": args.filter,
        })
        tasks = asyncio.run(_with_operations(settings, lambda ops: ops.list_tasks(query)))
    except RelayError as e:
        if args.json:
            print(json.dumps(e.to_dict(), indent=2))
        else:
            print(format_check(False, e.message))
        return 1

    if args.json:
        print(json.dumps({"success": True, "data": to_jsonable(tasks), "count": len(tasks)}, indent=2))
        return 0

    print(format_section(f"Tasks ({len(tasks)})"))
    rows = []
    for task in tasks:
        if isinstance(task, Task):
            rows.append([task.id, format_priority(task.priority), task.content, format_due(task.due), ", ".join(task.labels)])
        else:
            # Unvalidated listing item
            raw = task if isinstance(task, dict) else {}
            rows.append([
                raw.get("id", "?"), "?", raw.get("content", "?"),
                format_due(raw.get("due")), format_muted("(unvalidated)"),
            ])
    if rows:
        print(tabulate(rows, headers=["ID", "Pri", "Content", "Due", "Labels"], tablefmt="simple"))

    print()
    print(format_section("Due field analysis"))
    print(tabulate(list(analyze_due_fields(tasks).items()), tablefmt="plain"))
    return 0


def analyze_due_fields(tasks: list) -> dict:
    """Count how the due field is populated across a listing."""
    items = [to_jsonable(task) for task in tasks]
    dues = [item.get("due") if isinstance(item, dict) else None for item in items]
    present = [due for due in dues if isinstance(due, dict)]
    return {
        "with due": len(present),
        "without due": len(dues) - len(present),
        "with datetime": sum(1 for due in present if due.get("datetime")),
        "with timezone": sum(1 for due in present if due.get("timezone")),
        "recurring": sum(1 for due in present if due.get("is_recurring")),
    }


async def _with_operations(settings: Settings, action):
    operations = build_operations(settings)
    try:
        return await action(operations)
    finally:
        await operations.client.aclose()
