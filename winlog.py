#!/usr/bin/env python3
"""
Unified entry point for all Win Log interfaces.

Usage:
    python winlog.py                            # Default: browser (Flask)
    python winlog.py --ui tui                   # Terminal (Textual)
    python winlog.py --ui cli show              # Console commands
    python winlog.py --ui web --port 8080       # Web on custom port
    python winlog.py --ui tui --data-dir ./data # Keep data elsewhere

Individual entry points (web.py, tui.py, cli.py) still work independently.
"""
import argparse


def main(argv=None):
    # Pre-parse just the --ui flag, pass everything else through
    parser = argparse.ArgumentParser(
        description="Win Log — track who won, in the browser, terminal or console",
        add_help=False,
    )
    parser.add_argument("--ui", choices=["web", "tui", "cli"], default="web",
                        help="Interface: web (default), tui (terminal), cli (console)")
    args, remaining = parser.parse_known_args(argv)

    if args.ui == "web":
        from web import main as run_web
        run_web(remaining)

    elif args.ui == "tui":
        from tui import main as run_tui
        run_tui(remaining)

    elif args.ui == "cli":
        from cli import main as run_cli
        run_cli(remaining)


if __name__ == "__main__":
    main()
