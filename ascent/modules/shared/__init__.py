"""
Shared service plumbing for Ascent feature modules.

- BaseService: logging, config access, input validation
- BaseRepository: generic async data access with pessimistic locking
- Domain exceptions
- Pure formulas shared across modules
"""

from ascent.modules.shared.base_repository import BaseRepository
from ascent.modules.shared.base_service import BaseService
from ascent.modules.shared.exceptions import (
    AscentDomainException,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from ascent.modules.shared.formulas import (
    calculate_age,
    percent_share,
    round_half_up_div,
    total_pages,
)

__all__ = [
    "BaseRepository",
    "BaseService",
    "AscentDomainException",
    "InvalidOperationError",
    "NotFoundError",
    "ValidationError",
    "calculate_age",
    "percent_share",
    "round_half_up_div",
    "total_pages",
]
