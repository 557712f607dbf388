"""
Feature modules for PB Dash.

Each feature is a self-contained module with:
- models.py - SQLAlchemy models
- schemas.py - Pydantic schemas
- repository.py - Data access
- service modules - Business logic
"""
