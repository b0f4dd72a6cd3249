"""
Subscriber data models.
"""

from typing import Optional, Set
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubscriberProfile(BaseModel):
    """A subscriber's scan filters"""
    model_config = ConfigDict(validate_assignment=True)

    subscriber_id: str = Field(..., min_length=1)

    # Asset universe
    asset_whitelist: Set[str] = Field(default_factory=set)
    asset_blacklist: Set[str] = Field(default_factory=set)  # Always lower-cased
    use_top_assets: bool = False  # Scan the shared top-N cache instead of the whitelist

    # Venue selection (ignored while venue filtering is paused)
    venue_whitelist: Set[str] = Field(default_factory=set)
    venue_filtering_paused: bool = True

    # Thresholds
    min_profit: float = Field(default=0.0, ge=0)  # Fraction, 0.02 = 2%
    min_volume: float = Field(default=0.0, ge=0)
    target: str = "USDT"  # Settlement (quote) currency

    scan_paused: bool = False

    @field_validator("subscriber_id", mode="before")
    @classmethod
    def coerce_id(cls, v) -> str:
        # Chat ids arrive as integers from most front-ends
        return str(v)

    @field_validator("asset_blacklist")
    @classmethod
    def lowercase_blacklist(cls, v: Set[str]) -> Set[str]:
        return {asset.lower() for asset in v}

    def snapshot(self) -> "SubscriberProfile":
        """Independent copy, safe to read while the stored profile changes"""
        return self.model_copy(deep=True)


# Request/response schemas for the settings API

class ListEntry(BaseModel):
    """A single whitelist, blacklist or venue entry"""
    value: str = Field(..., min_length=1)


class ThresholdUpdate(BaseModel):
    """Threshold changes; omitted fields are left as they are"""
    min_profit_percent: Optional[float] = None  # 2 = 2%
    min_volume: Optional[int] = None
    target: Optional[str] = None


class RegistrationResponse(BaseModel):
    profile: SubscriberProfile
    created: bool


class ChangeResponse(BaseModel):
    changed: bool
    profile: SubscriberProfile


class ReplyRequest(BaseModel):
    """Free-text reply to a pending prompt"""
    text: str


class ConversationResponse(BaseModel):
    message: Optional[str] = None  # None when no prompt was pending
