# Supabase tables: profiles, platform_accounts, content_strategies, concierge_settings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Progress itself lives on users.onboarding_step / users.onboarding_status

"""
Expected Supabase table structure:

profiles (one per user):
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, unique, not null)
- birth_date: text (nullable)
- preferred_handles: text (nullable)
- brand_description: text (nullable)
- voice_tone: text (nullable)
- do_not_say_terms: text (nullable)
- preferred_contact_method: text (nullable)
- preferred_check_in_time: text (nullable)
- timezone: text (nullable)
- notification_preferences: jsonb (nullable)
- upload_frequency: text (nullable) - values: daily, weekly, biweekly

platform_accounts (one per user and platform):
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null)
- platform_type: text (not null) - values: OnlyFans, Instagram, TikTok, Twitter, Snapchat, Reddit
- username: text (nullable)
- needs_creation: boolean (default: false) - the agency creates the account
- created_at: timestamp (default: now())

Platform passwords are never stored.

content_strategies (one per user):
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, unique, not null)
- growth_goals: jsonb (not null, default: [])
- content_types: jsonb (not null, default: [])
- do_not_say_terms: text (nullable)
- existing_content: text (nullable)
- created_at, updated_at: timestamp

concierge_settings (one per user):
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, unique, not null)
- geographic_availability: text (nullable)
- minimum_rate: text (nullable)
- client_screening_preferences: text (nullable)
- services_offered: jsonb (nullable)
- approval_process: text (default: 'manual') - values: auto, manual
- availability_times: jsonb (nullable)
- receive_booking_alerts: boolean (default: true)
- show_only_verified_clients: boolean (default: true)
- created_at, updated_at: timestamp
"""
