"""
Delivery Tracker
Shared SQLAlchemy handle.

Every model module imports ``db`` from here; ``create_app`` binds it with
``db.init_app(app)`` so each application instance owns its own in-memory
store.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
