"""
Grant Tracker Backend Application Package

This package contains the FastAPI backend for tracking multi-year
federal grants, including:

- permissions.py: role-based authorization engine
- models/: pydantic entity schemas and the validation engine
- routers/grants.py: grant API endpoints
"""

__version__ = "1.0.0"
