"""Flask extensions initialization."""

from flask_login import LoginManager
from flask_marshmallow import Marshmallow
from flask_session import Session
from flask_sqlalchemy import SQLAlchemy


# SQLAlchemy database instance
db = SQLAlchemy()

# Marshmallow serialization instance
ma = Marshmallow()

# Resolves the session cookie to a user on each request
login_manager = LoginManager()

# Server-side session store backed by `db`
server_session = Session()
