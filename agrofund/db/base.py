"""
Database model registry.

Importing this module ensures all table models are registered with
SQLModel's metadata, which is required before calling ``create_all()``.
"""

from agrofund.models.campaign import Campaign  # noqa: F401
from agrofund.models.farmer import Farmer  # noqa: F401
from agrofund.models.investment import Investment  # noqa: F401
from agrofund.models.investor import Investor  # noqa: F401
from agrofund.models.project import Project  # noqa: F401
from agrofund.models.token import PersonalAccessToken  # noqa: F401
from agrofund.models.user import User  # noqa: F401
