from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

PROJECTS = "projects"
SKILLS = "skills"
ABOUT = "about"
MESSAGES = "messages"
USERS = "users"

ABOUT_PROFILE_ID = "profile"


class PayloadModel(BaseModel):
    """
    Request payloads are camelCase on the wire and snake_case in Python.

    Every field is optional at the type level; required-ness is enforced by
    the guard layer so missing and blank fields are reported the same way.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        # Only fields the caller actually sent; explicit nulls count as absent.
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


class ProjectFields(PayloadModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tech_stack: Optional[List[str]] = Field(default=None, alias="techStack")
    image_url: Optional[str] = Field(default=None, alias="imageURL")
    github_url: Optional[str] = Field(default=None, alias="githubURL")
    live_demo_url: Optional[str] = Field(default=None, alias="liveDemoURL")
    featured: Optional[bool] = None


class SkillCategoryFields(PayloadModel):
    category: Optional[str] = None
    skills: Optional[List[str]] = None


class Experience(BaseModel):
    title: str
    company: str
    period: str
    description: str


class AboutFields(PayloadModel):
    bio: Optional[str] = None
    experience: Optional[List[Experience]] = None
    profile_image_url: Optional[str] = Field(default=None, alias="profileImageURL")


class MessageFields(PayloadModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


M = TypeVar("M", bound=PayloadModel)


def coerce_payload(model_cls: Type[M], data: Union[M, Dict[str, Any], None]) -> Dict[str, Any]:
    """Turn a model or a raw dict into the camelCase payload the stores persist."""
    if data is None:
        return {}
    if isinstance(data, model_cls):
        return data.to_payload()
    try:
        model = model_cls.model_validate(data)
    except PydanticValidationError as e:
        invalid = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ValidationError(f"Invalid fields: {', '.join(invalid)}", invalid_fields=invalid)
    return model.to_payload()
