# Overview: Shared Flask-SQLAlchemy and Flask-Migrate handles for the ticketing backend.

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Bound to the app in create_app(); models, services and the CLI import db from here
db = SQLAlchemy()

# Alembic revisions live in backend/migrations/versions
migrate = Migrate(directory="migrations")
