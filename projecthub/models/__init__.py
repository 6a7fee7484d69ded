"""
ProjectHub
SQLAlchemy extension instance shared by all models.

Usage:
    from projecthub.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
