"""
Flask extension instances.

Extensions are instantiated here (without an app) and bound to the
application inside the factory function ``create_app``.
"""

import mongoengine
from flask_login import LoginManager


def init_db(app):
    """Connect MongoEngine to the MongoDB instance configured in the app."""
    mongodb_uri = app.config.get(
        "MONGODB_URI", "mongodb://localhost:27017/invoicely"
    )
    options = app.config.get("MONGODB_CONNECT_OPTIONS") or {}
    mongoengine.connect(host=mongodb_uri, **options)


login_manager = LoginManager()
