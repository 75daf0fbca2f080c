# models/__init__.py
# Import all models here so that Alembic's env.py can import this single
# module and detect every table.

from identity_api.models.user import User, Gender

__all__ = [
    "User",
    "Gender",
]
