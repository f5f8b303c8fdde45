"""SQLAlchemy models package."""

from .base import Base
from .account import Account, AccountStatus

__all__ = ["Base", "Account", "AccountStatus"]
