"""Pydantic models for repository records and hook inputs."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import NULL_COMMIT

COMMIT_ID_PATTERN = r"^[0-9a-f]{40}$"


class Commit(BaseModel):
    """Metadata of one commit as reported by git rev-list."""

    model_config = ConfigDict(frozen=True)

    commit: str = Field(..., pattern=COMMIT_ID_PATTERN)
    tree: str
    parents: tuple[str, ...] = ()
    author_name: str = ""
    author_email: str = ""
    author_date: str = ""
    committer_name: str = ""
    committer_email: str = ""
    committer_date: str = ""
    subject: str = ""
    body: str = ""

    @property
    def message(self) -> str:
        if not self.body:
            return self.subject
        return f"{self.subject}\n\n{self.body}"

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


class RefUpdate(BaseModel):
    """One affected reference with its old and new tips."""

    model_config = ConfigDict(frozen=True)

    ref: str = Field(..., min_length=1)
    old_commit: str = Field(..., pattern=COMMIT_ID_PATTERN)
    new_commit: str = Field(..., pattern=COMMIT_ID_PATTERN)

    @field_validator("ref")
    @classmethod
    def _ref_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("ref must not be blank")
        return stripped

    @property
    def is_creation(self) -> bool:
        return self.old_commit == NULL_COMMIT

    @property
    def is_deletion(self) -> bool:
        return self.new_commit == NULL_COMMIT

    @property
    def commit_range(self) -> tuple[str, str]:
        return self.old_commit, self.new_commit


class UserMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    name: str


class GroupRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["group"] = "group"
    name: str


Member = Annotated[Union[UserMember, GroupRef], Field(discriminator="kind")]


class Group(BaseModel):
    """A named group whose members are users or previously defined groups."""

    model_config = ConfigDict(frozen=True)

    name: str
    members: tuple[Member, ...] = ()
    source: str = ""

    @property
    def users(self) -> frozenset[str]:
        return frozenset(member.name for member in self.members if member.kind == "user")

    @property
    def subgroups(self) -> tuple[str, ...]:
        return tuple(member.name for member in self.members if member.kind == "group")


class ErrorRecord(BaseModel):
    """One formatted error contributed to the session error sink."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    message: str
    details: str | None = None
    text: str
