from __future__ import annotations

"""Pydantic request schemas for the rewards API.

These exist only for HTTP input validation and OpenAPI docs. The mapping to
the allocation core goes through flockrewards.ledger.codec so the HTTP and CLI
adapters share a single wire format.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class ParticipantIn(BaseModel):
    ownerStake: float = Field(..., description="Stake held directly by the node/validator owner")
    delegatorStake: float = Field(..., description="Stake delegated to this participant")
    performanceScore: float = Field(..., description="Performance score; a tier's scores should sum to 1")
    sigma: float = Field(..., description="Owner retention ratio, conventionally in [0, 1]")
    label: Optional[str] = Field(default=None, description="Display name, e.g. 'Node A'")


class RewardRequest(BaseModel):
    R0: float = Field(..., description="Total reward pool for the epoch")
    gamma: float = Field(..., description="Tier-split bias, conventionally in [0, 0.5]")
    alphaTrainingTier: float = Field(..., description="Stake exponent for training nodes")
    alphaValidatorTier: float = Field(..., description="Stake exponent for validators")
    nodeTier: List[ParticipantIn] = Field(default_factory=list)
    validatorTier: List[ParticipantIn] = Field(default_factory=list)

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)
