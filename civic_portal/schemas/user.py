#civic_portal/schemas/user.py
from pydantic import BaseModel
from typing import Optional, Union

class UserOut(BaseModel):
    id: Union[int, str]
    full_name: str = ""
    email: Optional[str] = None
    role: str = "citizen"

    class Config:
        from_attributes = True

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
