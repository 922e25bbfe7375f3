"""
Convenience entry point for running areaslots directly.

Usage: python -m areaslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
