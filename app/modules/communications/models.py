# Supabase tables: communication_templates, communication_history
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

communication_templates:
- id: uuid (primary key)
- name: text (not null) - internal reference name
- type: text (not null) - values: email, sms, notification
- category: text (not null) - e.g. appointment, payment, onboarding
- subject: text (nullable) - email templates only
- content: text (not null) - may contain {{placeholder}} tokens
- is_default: boolean (default: false)
- created_by: uuid (foreign key to users.id, not null)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

communication_history:
- id: uuid (primary key)
- template_id: uuid (foreign key to communication_templates.id, nullable)
- recipient_id: uuid (foreign key to users.id, not null)
- sender_id: uuid (foreign key to users.id, not null)
- type: text (not null) - email, sms, notification
- subject: text (nullable)
- content: text (not null) - rendered content as sent
- status: text (not null) - values: sent, failed
- status_message: text (nullable) - failure reason
- sent_at: timestamp (default: now())
"""
