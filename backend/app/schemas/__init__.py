# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Massava platform.

Request models trim strings and drop unknown fields; response models
serialize camelCase. Import schemas from their modules directly.
"""
