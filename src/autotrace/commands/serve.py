"""
autotrace.commands.serve - Run the REST server over a seeded workspace.
"""

import argparse
import sys

from autotrace.config import get_config


def run(args: argparse.Namespace) -> int:
    """Start the Flask server.

    The layout loop runs in a daemon thread for the lifetime of the
    server and is stopped on exit.
    """
    from autotrace.server import create_app
    from autotrace.workspace import Workspace

    config = get_config(args.config)
    if args.verbose:
        config["verbose"] = True
    server_cfg = config.get("server", {})
    host = args.host or server_cfg.get("host", "127.0.0.1")
    port = args.port or int(server_cfg.get("port", 5050))

    workspace = Workspace.from_config(config)
    workspace.layout.start()
    app = create_app(workspace)

    print(
        f"""
======================================
  autotrace Server
======================================

Projects:   {len(workspace.projects)}
Layout:     {workspace.layout.mode.value}
Server:     http://{host}:{port}

Press Ctrl+C to stop
"""
    )

    try:
        app.run(host=host, port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        workspace.close()
        if args.verbose:
            print("[server] Workspace closed.", file=sys.stderr)

    return 0
