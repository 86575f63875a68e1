"""SQLModel table models — import here so metadata is populated."""

from agrofund.models.campaign import Campaign, CampaignStatus  # noqa: F401
from agrofund.models.farmer import Farmer  # noqa: F401
from agrofund.models.investment import Investment  # noqa: F401
from agrofund.models.investor import Investor, InvestorType  # noqa: F401
from agrofund.models.project import Project  # noqa: F401
from agrofund.models.token import PersonalAccessToken  # noqa: F401
from agrofund.models.user import ProfileType, User, UserRole  # noqa: F401
