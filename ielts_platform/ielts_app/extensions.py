"""Flask extension singletons, bound to the app in ``create_app``."""

from __future__ import annotations

from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db: SQLAlchemy = SQLAlchemy()
migrate: Migrate = Migrate(directory="migrations")
jwt: JWTManager = JWTManager()
cors: CORS = CORS()
# Generation endpoints add their own, tighter limit on top of the defaults.
limiter: Limiter = Limiter(key_func=get_remote_address, headers_enabled=True)
