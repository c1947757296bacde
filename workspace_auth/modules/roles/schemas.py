from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from workspace_auth.config.permissions_config import ADMIN_ROLE_NAME, Permission


class PermissionResponse(BaseModel):
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class RoleBase(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = None
    permissions: List[Permission] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_is_not_reserved(cls, value: str) -> str:
        if value.strip().lower() == ADMIN_ROLE_NAME.lower():
            raise ValueError(f"'{ADMIN_ROLE_NAME}' is a reserved role name")
        return value

    def permission_names(self) -> List[str]:
        return [p.value for p in dict.fromkeys(self.permissions)]


class RoleCreate(RoleBase):
    pass


class RoleUpdate(RoleBase):
    pass


class RoleWithPermissions(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
