"""
app/models/user.py

"""


from pydantic import BaseModel, Field
from app.models.base import PyObjectId, UserRole

class CurrentUser(BaseModel):
    """Identity and role of the authenticated caller"""
    id: PyObjectId
    role: UserRole = Field(default=UserRole.USER)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
