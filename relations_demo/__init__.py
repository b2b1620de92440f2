"""One-to-one, one-to-many and many-to-many relationship demos on SQLAlchemy."""

__version__ = "0.1.0"
