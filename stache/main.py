# stache/main.py
"""Main entry point for the stache CLI application."""

from stache.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="stache")

if __name__ == '__main__':
    entrypoint()
