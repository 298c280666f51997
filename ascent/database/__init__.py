"""SQLAlchemy schema models."""
