from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class OneTimeCode(BaseModel):
    """The single active verification code of an account."""
    account_id: str = Field(alias="_id")
    code: str
    issued_at: datetime
    expires_at: datetime

    model_config = ConfigDict(populate_by_name=True)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def matches(self, submitted: str, now: datetime) -> bool:
        return not self.is_expired(now) and submitted == self.code
