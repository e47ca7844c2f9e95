from typing import List

from pydantic import BaseModel, Field


class Placement(BaseModel):
    territory: str = Field(description="Territory to place armies on")
    army_count: int = Field(ge=1, description="Number of armies to place")


class PlacementDecision(BaseModel):
    placements: List[Placement] = Field(default_factory=list, description="Placements in order")

    @property
    def total_armies(self) -> int:
        return sum(p.army_count for p in self.placements)


class AttackDecision(BaseModel):
    from_territory: str = Field(description="Territory to attack from")
    to_territory: str = Field(description="Territory to attack")


class FortifyDecision(BaseModel):
    from_territory: str = Field(description="Territory to move armies from")
    to_territory: str = Field(description="Territory to move armies to")
    army_count: int = Field(ge=1, description="Number of armies to move")


class ValidMoves(BaseModel):
    """
    Concrete moves open to the current player right now.

    Each fortify entry carries the most armies that may move between the
    pair; any smaller positive count is legal too. Ending the phase or
    the turn is always possible and is not listed.
    """
    attacks: List[AttackDecision] = Field(default_factory=list)
    fortifies: List[FortifyDecision] = Field(default_factory=list)
