"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class AccountType(str, enum.Enum):
    """The three kinds of money buckets."""
    BUDGET = "budget"
    CATEGORY = "category"
    TRACKING = "tracking"

    @classmethod
    def is_valid(cls, value) -> bool:
        """Check whether value is one of the known account types."""
        if isinstance(value, cls):
            return True
        return any(value == member.value for member in cls)
