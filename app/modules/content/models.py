# Supabase table: media_files
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null) - owning client
- title: text (not null)
- description: text (nullable)
- file_type: text (not null) - values: image, video, ...
- storage_path: text (not null) - object path in Supabase Storage
- thumbnail_path: text (nullable)
- status: text (not null, default: 'pending') - values: pending, approved, rejected
- upload_date: timestamp (default: now())
- scheduled_date: timestamp (nullable)
- tags: jsonb (nullable)

File bytes are uploaded by the client straight to Supabase Storage; this
service only registers and reviews the metadata.
"""
