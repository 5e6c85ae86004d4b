"""proxyctl: operator console for a reverse-proxy configuration gateway.

Keeps a local copy of the desired routes and the proxy's applied snapshot,
shows which routes are out of sync, drives reloads and polls per-route health.

The core is asyncio-based and single-threaded; the CLI in ``proxyctl.cli`` is
a thin front end over ``proxyctl.console.Console``.
"""
