"""Entry point for `python -m vue_ui`."""

from vue_ui.cli.commands import app

if __name__ == "__main__":
    app()
