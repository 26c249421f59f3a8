# Supabase tables: conversations, conversation_participants, messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

conversations:
- id: uuid (primary key)
- title: text (not null)
- last_message_preview: text (nullable) - first 50 characters of the latest message
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

conversation_participants:
- id: uuid (primary key)
- conversation_id: uuid (foreign key to conversations.id, not null)
- user_id: uuid (foreign key to users.id, not null)
- joined_at: timestamp (default: now())

messages (append-only):
- id: uuid (primary key)
- conversation_id: uuid (foreign key to conversations.id, not null)
- sender_id: uuid (foreign key to users.id, not null)
- content: text (not null)
- attachments: jsonb (nullable)
- created_at: timestamp (default: now())
- read_at: timestamp (nullable)

Supabase Realtime must have the messages table in its publication for the
websocket relay in routes.py to receive inserts.
"""
