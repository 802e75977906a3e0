"""
WSGI and Flask-Migrate / Alembic entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi seed-sample-data
    flask --app wsgi db migrate -m "description"   # STORE_BACKEND=sql
    flask --app wsgi db upgrade
"""

from app import create_app

app = create_app()
