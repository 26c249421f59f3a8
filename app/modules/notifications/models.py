# Supabase table: notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and dispatcher.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- recipient_id: uuid (foreign key to users.id, not null)
- type: text (not null) - values: appointment, content, message, billing, verification, ...
- title: text (not null)
- content: text (not null)
- link: text (nullable) - deep link into the portal
- is_read: boolean (not null, default: false)
- delivery_method: text (not null) - in-app rows only; email/SMS sends are logged in communication_history
- created_at: timestamp (default: now())
- read_at: timestamp (nullable)

Rows are created by server-side events (appointment proposals and responses,
content review, verification changes, template sends) and only mutated by
"mark read".
"""
