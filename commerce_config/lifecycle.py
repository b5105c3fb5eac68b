"""
Configuration set status.

A store can keep several sets for the same scope while a new tax table is
being prepared.  Only PUBLISHED sets are preferred at lookup time;
SUPERSEDED sets stay on disk so past orders can be re-explained.
"""

from enum import Enum, unique


@unique
class ConfigStatus(str, Enum):
    """Lifecycle status for a tax configuration set."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"
