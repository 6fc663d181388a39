"""
Allow ``python -m groomslots``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
