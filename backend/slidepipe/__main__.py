"""CLI entry point for python -m slidepipe"""
from slidepipe.cli.commands import app

if __name__ == "__main__":
    app()
