"""
WSGI / Flask CLI entry point.

Usage:
    flask --app wsgi run
    flask --app wsgi seed-demo
    gunicorn wsgi:app
"""

from app import create_app

app = create_app()
