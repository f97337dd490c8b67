"""
SQLAlchemy Models Package

Import all models here so that Base.metadata knows every table before
create_all() runs during the schema bootstrap.
"""

from skeleton_api.models.example import Example

__all__ = [
    "Example",
]
