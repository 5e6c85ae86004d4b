from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from . import db
from .api_models import Route, RouteInput
from .console import Console
from .gateway import GatewayClient, GatewayError
from .settings import settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _route_row(console: Console, route: Route) -> dict[str, Any]:
    return {
        "id": route.id,
        "name": route.name,
        "domain": route.domain,
        "target": route.target,
        "enabled": route.enabled,
        "in_sync": not console.reconciler.is_changed(route.id),
        "health": console.health.health_text(route.id),
        "detail": console.health.health_tooltip(route.id),
    }


def _status(console: Console) -> dict[str, Any]:
    diff = console.reconciler.diff()
    return {
        "has_unapplied_changes": bool(diff),
        "added": sorted(diff.added),
        "modified": sorted(diff.modified),
        "removed": sorted(diff.removed),
        "reloading": console.coordinator.in_progress,
    }


def _route_input(args: argparse.Namespace, current: Route | None = None) -> RouteInput:
    enabled = current.enabled if current else True
    if args.enable:
        enabled = True
    if args.disable:
        enabled = False
    return RouteInput(
        name=args.name if args.name is not None else (current.name if current else ""),
        domain=args.domain if args.domain is not None else (current.domain if current else ""),
        target=args.target if args.target is not None else (current.target if current else ""),
        enabled=enabled,
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Reverse-proxy route console")
    p.add_argument("--api", default=settings.api_url, help="Gateway API base URL")
    p.add_argument("--settle-delay-s", type=float, default=None, help="Wait after reload before re-reading state")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("routes", help="List desired routes with sync and health status")
    sub.add_parser("status", help="Show added/modified/removed routes not yet applied")

    for name, help_text in (("add", "Add a route"), ("update", "Update a route")):
        s = sub.add_parser(name, help=help_text)
        if name == "update":
            s.add_argument("id", type=int)
        required = name == "add"
        s.add_argument("--name", required=required)
        s.add_argument("--domain", required=required)
        s.add_argument("--target", required=required)
        mode = s.add_mutually_exclusive_group()
        mode.add_argument("--enable", action="store_true")
        mode.add_argument("--disable", action="store_true")

    s_del = sub.add_parser("delete", help="Delete a route")
    s_del.add_argument("id", type=int)

    s_tog = sub.add_parser("toggle", help="Enable/disable a route")
    s_tog.add_argument("id", type=int)

    sub.add_parser("reload", help="Apply desired routes to the proxy")
    sub.add_parser("health", help="Show per-route health")

    s_watch = sub.add_parser("watch", help="Poll health periodically and print each cycle")
    s_watch.add_argument("--cycles", type=int, default=3)
    s_watch.add_argument("--interval-s", type=float, default=settings.health_interval_s)

    s_exp = sub.add_parser("export", help="Export routes to a JSON file")
    s_exp.add_argument("path")

    s_imp = sub.add_parser("import", help="Import routes from a JSON file")
    s_imp.add_argument("path")

    s_ev = sub.add_parser("events", help="Show the local event journal")
    s_ev.add_argument("--limit", type=int, default=20)

    return p


def _health_rows(console: Console) -> list[dict[str, Any]]:
    rows = []
    for route in console.state.routes:
        rec = console.health.health_details(route.id)
        row = {
            "id": route.id,
            "domain": route.domain,
            "status": console.health.health_class(route.id),
            "text": console.health.health_text(route.id),
            "detail": console.health.health_tooltip(route.id),
        }
        if rec is not None and rec.tip:
            row["tip"] = rec.tip
        rows.append(row)
    return rows


async def _run(args: argparse.Namespace) -> int:
    watch_interval = args.interval_s if args.cmd == "watch" else None
    gateway = GatewayClient(args.api)
    async with Console(gateway, settle_delay_s=args.settle_delay_s, health_interval_s=watch_interval) as console:
        if args.cmd in {"routes", "status", "health"}:
            await console.load()
            if args.cmd == "routes":
                _print([_route_row(console, r) for r in console.state.routes])
            elif args.cmd == "status":
                _print(_status(console))
            else:
                _print(_health_rows(console))
            return 0

        if args.cmd == "add":
            _print({"message": await console.routes.create(_route_input(args))})
            return 0

        if args.cmd == "update":
            await console.routes.refresh()
            current = console.state.route(args.id)
            if current is None:
                current = await gateway.get_route(args.id)
            _print({"message": await console.routes.update(args.id, _route_input(args, current))})
            return 0

        if args.cmd == "delete":
            _print({"message": await console.routes.delete(args.id)})
            return 0

        if args.cmd == "toggle":
            _print({"message": await console.routes.toggle(args.id)})
            return 0

        if args.cmd == "reload":
            await console.load()
            outcome = await console.reload()
            _print(
                {
                    "state": outcome.state,
                    "message": outcome.message,
                    "warning": outcome.warning,
                    **_status(console),
                }
            )
            return 0 if outcome.ok else 1

        if args.cmd == "watch":
            await console.routes.refresh()
            console.health.start()
            for _ in range(max(1, args.cycles)):
                await asyncio.sleep(args.interval_s)
                _print(_health_rows(console))
            console.health.stop()
            return 0

        if args.cmd == "export":
            count = await console.export_config(args.path)
            _print({"message": f"Exported {count} routes", "path": args.path})
            return 0

        if args.cmd == "import":
            _print({"message": await console.import_config(args.path)})
            return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.cmd == "events":
        _print(db.latest_events(args.limit))
        return 0

    try:
        return asyncio.run(_run(args))
    except GatewayError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
