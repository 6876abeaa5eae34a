from typing import Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    """Miembro de una liga, tal como lo publica el servicio de identidad"""

    id: str = Field(..., alias="_id")
    username: str
    avatar_url: Optional[str] = None

    is_active: bool = True
    is_admin: bool = False

    class Config:
        populate_by_name = True
