from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional


class Region(str, Enum):
    NORTH = "North"
    CENTER = "Center"
    SOUTH = "South"


class ParticipantDTO(BaseModel):
    id: int
    name: str
    region: Region
    age: int = Field(ge=0)

    class Config:
        frozen = True


class GroupDTO(BaseModel):
    members: List[ParticipantDTO] = Field(default_factory=list)
    region: Optional[Region] = None
    stage: Optional[str] = None

    @property
    def member_ids(self) -> List[int]:
        return [m.id for m in self.members]


class MatchingResult(BaseModel):
    success: bool
    groups_created: int = 0
    unpaired: int = 0
    unpaired_names: List[str] = Field(default_factory=list)
    unpaired_ids: List[int] = Field(default_factory=list)
    message: Optional[str] = None


class MatchingRun(BaseModel):
    groups: List[GroupDTO] = Field(default_factory=list)
    unmatched: List[ParticipantDTO] = Field(default_factory=list)
    result: MatchingResult
