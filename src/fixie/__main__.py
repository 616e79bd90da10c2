"""Fixie CLI bootstrap."""

from fixie.cli import app

if __name__ == "__main__":
    app()
