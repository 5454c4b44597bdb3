"""YearReviewSummary model definition"""
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReviewModel(BaseModel):
    """Base for all review models: immutable, camelCase on the wire"""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Totals(ReviewModel):
    all: int = 0
    inbound: int = 0
    outbound: int = 0
    minutes: int = 0


class MonthBucket(ReviewModel):
    month: str = Field(description="Short month label, Jan..Dec")
    calls: int = 0


class HourBucket(ReviewModel):
    hour: int = Field(ge=0, le=23)
    calls: int = 0


class BusiestHour(ReviewModel):
    hour: int = 0
    count: int = 0


class Streak(ReviewModel):
    days: int = 0
    ended_on: Optional[str] = Field(None, description="ISO date (UTC) of the last day of the streak")


class ContactStat(ReviewModel):
    name: str
    count: int = Field(ge=1)
    total_minutes: float = Field(0.0, ge=0)


class LongestCall(ReviewModel):
    minutes: int
    contact: str


class YearReviewSummary(ReviewModel):
    """
    Aggregated call, SMS and fax history for one user and one calendar year.

    Built once per review and never mutated afterwards. A summary with
    has_data=False and an error_message is a degraded result: the history
    could not be loaded, but callers still get a well-formed record.
    """
    year: int
    has_data: bool = False
    totals: Totals = Field(default_factory=Totals)
    monthly_breakdown: Tuple[MonthBucket, ...]
    hourly_breakdown: Tuple[HourBucket, ...]
    busiest_hour: BusiestHour = Field(default_factory=BusiestHour)
    longest_streak: Streak = Field(default_factory=Streak)
    top_contacts: Tuple[ContactStat, ...] = ()
    longest_call: Optional[LongestCall] = None
    sms_received: int = 0
    fax_received: int = 0
    error_message: Optional[str] = None

    def to_json(self, **kwargs) -> str:
        """Serialize with the camelCase field names consumers expect"""
        return self.model_dump_json(by_alias=True, **kwargs)
