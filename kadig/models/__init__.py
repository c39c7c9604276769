"""
SQLAlchemy models for the Kadig service.

This module exports all models and the Base class for easy imports:
    from kadig.models import Base, User, Portfolio, Investment, Movement
"""

from kadig.database import Base
from kadig.models.user import User
from kadig.models.profile import Profile
from kadig.models.portfolio import Portfolio
from kadig.models.investment import SOURCE_MANUAL, SOURCE_PLUGGY, Investment
from kadig.models.movement import Movement, MovementType
from kadig.models.connection import PluggyConnection
from kadig.models.history import PortfolioHistory
from kadig.models.notification import Notification

__all__ = [
    "Base",
    "User",
    "Profile",
    "Portfolio",
    "Investment",
    "SOURCE_MANUAL",
    "SOURCE_PLUGGY",
    "Movement",
    "MovementType",
    "PluggyConnection",
    "PortfolioHistory",
    "Notification",
]
