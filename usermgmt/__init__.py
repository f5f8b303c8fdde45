"""usermgmt: token-gated user management API."""

__version__ = "1.0.0"
