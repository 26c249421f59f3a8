from fastapi import APIRouter, Depends
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.billing.schemas import (
    PaymentIntentCreate, ClientSecretResponse, PaymentMethodUpdate,
    SubscriptionCreate, SubscriptionCreateResponse, SubscriptionResponse
)
from app.modules.billing.service import BillingService
from app.core.dependencies import require_permission
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/billing", tags=["billing"])


def get_billing_service(supabase: Client = Depends(get_supabase)) -> BillingService:
    return BillingService(supabase, settings.stripe_secret_key)


@router.post("/payment-intent", response_model=ClientSecretResponse)
async def create_payment_intent(
    intent_data: PaymentIntentCreate,
    user_data: Dict = Depends(require_permission("billing:update")),
    service: BillingService = Depends(get_billing_service)
):
    return {"client_secret": service.create_payment_intent(intent_data.amount)}


@router.post("/setup-intent", response_model=ClientSecretResponse)
async def create_setup_intent(
    user_data: Dict = Depends(require_permission("billing:update")),
    service: BillingService = Depends(get_billing_service)
):
    """Client secret for Stripe Elements to collect a card"""
    return {"client_secret": service.create_setup_intent(user_data["id"])}


@router.post("/payment-method")
async def update_payment_method(
    payment_data: PaymentMethodUpdate,
    user_data: Dict = Depends(require_permission("billing:update")),
    service: BillingService = Depends(get_billing_service)
):
    service.update_payment_method(user_data["id"], payment_data.payment_method_id)
    return {"success": True}


@router.post("/subscription", response_model=SubscriptionCreateResponse, status_code=201)
async def create_subscription(
    subscription_data: SubscriptionCreate,
    user_data: Dict = Depends(require_permission("billing:update")),
    service: BillingService = Depends(get_billing_service)
):
    return service.create_subscription(user_data["id"], subscription_data.plan_id)


@router.get("/subscription", response_model=Optional[SubscriptionResponse])
async def get_subscription(
    user_data: Dict = Depends(require_permission("billing:read")),
    service: BillingService = Depends(get_billing_service)
):
    """Current user's latest subscription, or null"""
    return service.get_subscription(user_data["id"])
