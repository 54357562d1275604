"""
lampkit - WordPress LAMP installer and Windows MySQL administration tool
"""

__version__ = "0.1.0"

from .admin import MySQLAdmin
from .core import WordPressInstaller
from .errors import ProvisionError

__all__ = ["MySQLAdmin", "ProvisionError", "WordPressInstaller"]
