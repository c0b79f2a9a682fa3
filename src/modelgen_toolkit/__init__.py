"""Modelgen Toolkit: SQLAlchemy models from SQL migrations or a live database."""
