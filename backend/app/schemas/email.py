from pydantic import BaseModel, EmailStr
from typing import Literal, Optional
from datetime import datetime


class EmailPreferences(BaseModel):
    is_subscribed: bool
    email: Optional[str] = None
    frequency: Literal["daily", "weekly", "none"] = "daily"
    last_email_sent: Optional[datetime] = None


class SubscribeRequest(BaseModel):
    email: EmailStr
    frequency: Literal["daily", "weekly"] = "daily"
    language_code: Optional[str] = None


class FrequencyUpdateRequest(BaseModel):
    frequency: Literal["daily", "weekly"]


class EmailAddressUpdateRequest(BaseModel):
    email: EmailStr


class UnsubscribeTokenRequest(BaseModel):
    token: str
    unsubscribe_all: bool = False
