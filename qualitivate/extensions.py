from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate

"""
Flask Extensions - Initialized here, configured in qualitivate/__init__.py

Kept apart from the factory so models, services and blueprints can import them
without importing the application.
"""
# Database ORM
# Usage: from qualitivate.extensions import db

db = SQLAlchemy()

# JWT Authentication - access/refresh tokens carrying the caller's tenant scope
# Usage: from qualitivate.extensions import jwt

jwt = JWTManager()

# Alembic migrations (flask db upgrade)

migrate = Migrate()
