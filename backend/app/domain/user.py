"""
User administration schemas

Author: Academia
"""
from pydantic import BaseModel
from typing import Optional


ROLES = ("student", "professor", "admin")


class UserCreate(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None
    role: str = "student"


class UserUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None
