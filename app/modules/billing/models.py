# Supabase table: subscriptions (plus users.stripe_customer_id / users.stripe_subscription_id)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null)
- plan_type: text (not null) - values: basic, pro, premium, enterprise
- stripe_subscription_id: text (nullable)
- status: text (not null) - Stripe subscription status (incomplete, active, past_due, canceled, ...)
- start_date: timestamp (not null)
- end_date: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Stripe is the source of truth for status and payment method; the row is the
fallback when Stripe cannot be reached.
"""
