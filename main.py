#!/usr/bin/env python3
"""
TarPit - Mastodon Feed Archiver
===============================

Main application entry point.

Usage:
    python main.py --help                    # Show all commands
    python main.py init --db toots.sqlite    # Initialize database
    python main.py store <url-or-file>       # Store a feed
    python main.py list --count 20           # List stored toots
"""

import sys
from pathlib import Path

from rich.console import Console

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from tarpit.cli import cli

console = Console(stderr=True)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 TarPit interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Unexpected error: {e}[/bold red]")
        sys.exit(1)
