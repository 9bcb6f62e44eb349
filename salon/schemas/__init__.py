"""
Salon Schemas.

Pydantic models for request/response validation.
"""

from salon.schemas.auth import *
