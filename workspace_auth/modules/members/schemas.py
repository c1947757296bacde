from pydantic import BaseModel, Field


class MemberWithRole(BaseModel):
    user_id: str
    user_name: str
    user_email: str
    role_name: str


class UpdateMemberRole(BaseModel):
    role_name: str = Field(min_length=1)
