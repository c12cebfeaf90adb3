"""
Staff directory: employee and client user management.
"""

from .models import EmployeeUpdate, UserUpdate
from .service import DirectoryService

__all__ = ["DirectoryService", "EmployeeUpdate", "UserUpdate"]
