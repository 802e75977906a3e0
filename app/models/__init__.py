"""
College Site Registry — SQLAlchemy extension object.

Models live in ``app.models.registry``; import ``db`` from here.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
