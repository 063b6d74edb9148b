from datetime import datetime
from pydantic import BaseModel, Field


class PairingExecutionResponse(BaseModel):
    success: bool
    pairings_created: int
    message: str
    unpaired_users: int | None = None


class OrganizationFailure(BaseModel):
    organization_id: str
    message: str


class ScheduledRunResponse(BaseModel):
    processed: int
    succeeded: int
    skipped: int
    failed: int
    pairs_created: int
    failures: list[OrganizationFailure] = Field(default_factory=list)


class AlgorithmSettingsResponse(BaseModel):
    id: str
    organization_id: str
    period_length_days: int
    random_seed: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    warning: str | None = None


class UpdateAlgorithmSettingsRequest(BaseModel):
    period_length_days: int | None = None
    random_seed: int | None = None
