"""
Validators package.

Provides validation functions for commission configuration and user input.
"""

from commission_engine.validators.commission import (
    validate_email,
    validate_level,
    validate_percentage,
)


__all__ = [
    "validate_level",
    "validate_percentage",
    "validate_email",
]
