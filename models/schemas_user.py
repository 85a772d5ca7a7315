from pydantic import BaseModel, ConfigDict, constr
from datetime import datetime
from typing import Literal

class UserLogin(BaseModel):
    username: constr(min_length=1)
    password: str

class UserOut(BaseModel):
    id: str
    username: str
    email: str | None = None
    role: str
    district: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserCreate(BaseModel):
    username: constr(min_length=1)
    password: constr(min_length=6)
    role: Literal["central_admin", "district_admin"]
    district: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
