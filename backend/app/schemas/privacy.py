# backend/app/schemas/privacy.py
"""
Pydantic schemas for privacy and GDPR compliance.

The Art. 15 export is returned as a pre-built camelCase document and is not
modelled here.
"""

from typing import Dict

from pydantic import Field

from .base import CamelModel


class AccountDeletionResponse(CamelModel):
    """
    Response schema for GDPR Art. 17 account erasure.
    """

    success: bool = True
    message: str
    deletion_stats: Dict[str, int] = Field(description="Number of deleted records per table")
