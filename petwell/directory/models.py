"""
Directory update payloads. Email is immutable and never accepted here.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..auth.models import JobTitle, Role


class UserUpdate(BaseModel):
    """Partial update of a client user"""
    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)


class EmployeeUpdate(UserUpdate):
    """Partial update of an employee"""
    job_title: Optional[JobTitle] = None
    role: Optional[Role] = None
