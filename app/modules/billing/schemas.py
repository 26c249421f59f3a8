from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PaymentIntentCreate(BaseModel):
    amount: float = Field(..., gt=0)  # dollars


class ClientSecretResponse(BaseModel):
    client_secret: Optional[str] = None


class PaymentMethodUpdate(BaseModel):
    payment_method_id: str


class SubscriptionCreate(BaseModel):
    plan_id: str = Field(..., min_length=1)  # Stripe price id


class SubscriptionCreateResponse(BaseModel):
    subscription_id: str
    client_secret: Optional[str] = None


class PaymentMethodSummary(BaseModel):
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None


class SubscriptionResponse(BaseModel):
    id: str
    user_id: str
    plan_type: str
    stripe_subscription_id: Optional[str] = None
    status: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    default_payment_method: Optional[PaymentMethodSummary] = None

    class Config:
        from_attributes = True
