"""Portfolio enums."""

from enum import Enum


class PortfolioCategory(str, Enum):
    WEB = "web"
    DESIGN = "design"
    MARKETING = "marketing"
