"""
Convenience entry point for running expertslots directly.

Usage: python -m expertslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
