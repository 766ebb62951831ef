from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

# Extensions are created unbound and attached in create_app()

# Database
db = SQLAlchemy()

# Authentication and session users
login_manager = LoginManager()


def get_registry():
    """Return the PartRegistry built for the running application."""
    return current_app.extensions["part_registry"]
