"""Run the dialogturn CLI."""

from dialogturn.cli import app

if __name__ == "__main__":
    app()
