from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.enums import ReimbursementCategory


class OrgSettingsUpdateRequest(BaseModel):
    org_name: str | None = Field(default=None, min_length=1, max_length=120)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    timezone: str | None = None
    reimbursement_limits: dict[ReimbursementCategory, Decimal] | None = None
