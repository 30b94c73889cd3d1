"""Main entry point when executing dexpipe as a package.

This allows running the package using python -m dexpipe.
"""

from dexpipe.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
