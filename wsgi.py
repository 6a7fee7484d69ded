"""
WSGI and Flask-Migrate / Alembic entry point.

Usage:
    FLASK_APP=wsgi flask db init       # first time only (creates migrations/)
    FLASK_APP=wsgi flask db migrate -m "description"
    FLASK_APP=wsgi flask db upgrade
    FLASK_APP=wsgi flask create-admin
"""

from projecthub import create_app

app = create_app()
