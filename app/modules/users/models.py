# Supabase tables: users, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id)
- email: text (unique, not null) - synced from auth.users
- username: text (unique, not null)
- full_name: text (not null)
- phone: text (nullable) - used for SMS notifications
- role: text (not null, default: 'client') - values: admin, client
- plan: text (nullable) - values: basic, pro, premium
- onboarding_status: text (default: 'incomplete') - values: incomplete, complete
- onboarding_step: integer (default: 1)
- verification_status: text (default: 'pending') - values: pending, verified, rejected
- stripe_customer_id: text (nullable)
- stripe_subscription_id: text (nullable)
- is_active: boolean (not null, default: true) - false once an admin deletes the account
- deactivated_at: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Note: Authentication data (password, tokens) is stored in auth.users table
managed by Supabase Auth. Users are never hard-deleted: deletion flags the row
inactive and bans the auth.users identity.
"""
