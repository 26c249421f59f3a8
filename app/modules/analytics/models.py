# Supabase table: analytics
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null) - the client the report is about
- period: text (not null) - values: weekly, monthly, all-time
- period_start: timestamp (nullable)
- period_end: timestamp (nullable)
- total_appointments: integer (not null, default: 0)
- completed_appointments: integer (default: 0)
- canceled_appointments: integer (default: 0)
- engagement_rate: numeric (default: 0) - percent
- earnings_total: numeric (default: 0)
- subscriber_count: integer (default: 0)
- average_appointment_duration: integer (default: 0) - minutes
- content_uploads: integer (default: 0)
- custom_metrics: jsonb (nullable)
- report_date: timestamp (not null, default: now())
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Reports are entered by admins from the platforms' own dashboards; clients
only read their own.
"""
