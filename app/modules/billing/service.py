from supabase import Client
import stripe
from app.config import settings
from app.core.exceptions import NotFound, ValidationFailed, ProviderUnavailable
from app.modules.billing.schemas import (
    SubscriptionCreateResponse, SubscriptionResponse, PaymentMethodSummary
)
from typing import Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def get_plan_type(price_id: str, price_plan_map: Optional[Dict[str, str]] = None) -> str:
    """Plan name for a Stripe price id; configured ids first, then the id's own name"""
    if price_plan_map and price_id in price_plan_map:
        return price_plan_map[price_id]
    for plan in ("premium", "basic", "pro"):
        if plan in price_id:
            return plan
    return "basic"


def _timestamp(value: Optional[int]) -> Optional[str]:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def _period(subscription: Any, field: str) -> Optional[int]:
    """Billing period bound; newer API versions carry it on the subscription item"""
    value = getattr(subscription, field, None)
    if value:
        return value
    items = getattr(subscription, "items", None)
    data = getattr(items, "data", None) if items is not None and not callable(items) else None
    if data:
        return getattr(data[0], field, None)
    return None


class BillingService:
    def __init__(self, supabase: Client, api_key: Optional[str] = None):
        self.supabase = supabase
        self.api_key = api_key

    def _require_stripe(self):
        if not self.api_key:
            raise ProviderUnavailable("Stripe")
        stripe.api_key = self.api_key

    def _get_user(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("users")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise NotFound("User not found")
        return result.data

    def _ensure_customer(self, user: Dict[str, Any]) -> str:
        """Stripe customer id for the user, creating the customer on first use"""
        if user.get("stripe_customer_id"):
            return user["stripe_customer_id"]
        customer = stripe.Customer.create(
            email=user.get("email"),
            name=user.get("full_name") or user.get("username"),
            metadata={"user_id": str(user["id"])},
        )
        self.supabase.table("users")\
            .update({"stripe_customer_id": customer.id})\
            .eq("id", user["id"])\
            .execute()
        logger.info(f"Created Stripe customer {customer.id} for user {user['id']}")
        return customer.id

    def _get_subscription_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("subscriptions")\
            .select("*")\
            .eq("user_id", user_id)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def create_payment_intent(self, amount: float) -> Optional[str]:
        self._require_stripe()
        try:
            intent = stripe.PaymentIntent.create(amount=int(round(amount * 100)), currency="usd")
            return intent.client_secret
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {str(e)}")
            raise HTTPException(status_code=502, detail=f"Error creating payment intent: {str(e)}")

    def create_setup_intent(self, user_id: str) -> Optional[str]:
        """Setup intent for collecting a card with Stripe Elements"""
        self._require_stripe()
        user = self._get_user(user_id)
        try:
            customer_id = self._ensure_customer(user)
            setup_intent = stripe.SetupIntent.create(customer=customer_id, payment_method_types=["card"])
            return setup_intent.client_secret
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error creating setup intent for {user_id}: {str(e)}")
            raise HTTPException(status_code=502, detail=f"Error creating setup intent: {str(e)}")

    def update_payment_method(self, user_id: str, payment_method_id: str) -> bool:
        """Make the payment method the default for the customer and their subscription"""
        self._require_stripe()
        user = self._get_user(user_id)
        customer_id = user.get("stripe_customer_id")
        if not customer_id:
            raise ValidationFailed("User does not have a Stripe customer ID")
        try:
            subscription = self._get_subscription_row(user_id)
            if subscription and subscription.get("stripe_subscription_id"):
                stripe.Subscription.modify(
                    subscription["stripe_subscription_id"],
                    default_payment_method=payment_method_id,
                )
            stripe.Customer.modify(
                customer_id,
                invoice_settings={"default_payment_method": payment_method_id},
            )
            logger.info(f"Payment method updated for user {user_id}")
            return True
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error updating payment method for {user_id}: {str(e)}")
            raise HTTPException(status_code=502, detail=f"Error updating payment method: {str(e)}")

    def create_subscription(self, user_id: str, plan_id: str) -> SubscriptionCreateResponse:
        self._require_stripe()
        user = self._get_user(user_id)
        try:
            customer_id = self._ensure_customer(user)
            subscription = stripe.Subscription.create(
                customer=customer_id,
                items=[{"price": plan_id}],
                payment_behavior="default_incomplete",
                expand=["latest_invoice.payment_intent"],
            )
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error creating subscription for {user_id}: {str(e)}")
            raise HTTPException(status_code=502, detail=f"Error creating subscription: {str(e)}")

        try:
            self.supabase.table("users")\
                .update({"stripe_subscription_id": subscription.id})\
                .eq("id", user_id)\
                .execute()
            self.supabase.table("subscriptions").insert({
                "user_id": user_id,
                "plan_type": get_plan_type(plan_id, settings.get_price_plan_map()),
                "stripe_subscription_id": subscription.id,
                "status": subscription.status,
                "start_date": _timestamp(_period(subscription, "current_period_start"))
                or datetime.now(timezone.utc).isoformat(),
                "end_date": _timestamp(_period(subscription, "current_period_end")),
            }).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        logger.info(f"Subscription {subscription.id} ({plan_id}) created for user {user_id}")
        invoice = getattr(subscription, "latest_invoice", None)
        payment_intent = getattr(invoice, "payment_intent", None) if invoice else None
        return SubscriptionCreateResponse(
            subscription_id=subscription.id,
            client_secret=getattr(payment_intent, "client_secret", None) if payment_intent else None,
        )

    def get_subscription(self, user_id: str) -> Optional[SubscriptionResponse]:
        """Latest subscription, refreshed from Stripe when it can be reached"""
        try:
            row = self._get_subscription_row(user_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not row:
            return None

        subscription = SubscriptionResponse(**row)
        stripe_id = subscription.stripe_subscription_id
        if not (self.api_key and stripe_id) or stripe_id.startswith("pending_"):
            return subscription

        stripe.api_key = self.api_key
        try:
            remote = stripe.Subscription.retrieve(stripe_id, expand=["default_payment_method"])
        except stripe.error.StripeError as e:
            logger.error(f"Error fetching Stripe subscription {stripe_id}: {str(e)}")
            return subscription

        subscription.status = remote.status
        period_end = _period(remote, "current_period_end")
        if period_end:
            subscription.current_period_end = datetime.fromtimestamp(period_end, tz=timezone.utc)
        payment_method = getattr(remote, "default_payment_method", None)
        card = getattr(payment_method, "card", None) if payment_method else None
        if card:
            subscription.default_payment_method = PaymentMethodSummary(
                brand=card.brand,
                last4=card.last4,
                exp_month=card.exp_month,
                exp_year=card.exp_year,
            )
        return subscription
