# Supabase table: appointments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- admin_id: uuid (foreign key to users.id, not null) - admin who proposed it
- client_id: uuid (foreign key to users.id, not null) - client who responds
- appointment_date: timestamp (not null)
- duration: integer (not null) - minutes
- location: text (not null)
- details: text (nullable)
- amount: varchar(50) (nullable) - e.g. "200.00"
- photo_url: text (nullable)
- status: text (not null, default: 'pending') - values: pending, approved, declined, completed, cancelled
- notification_method: text (nullable) - values: email, sms, in-app, all
- notification_sent: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Rows are never deleted; they only move between statuses (see lifecycle.py).
The schema does not constrain transitions.
"""
