# Tables: users, email_verifications, password_resets
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL lives in supabase/migrations

"""
Expected table structure:

users:
- id: uuid (primary key, default gen_random_uuid())
- name: varchar(100) (not null)
- email: varchar(255) (unique, not null)
- password: varchar(255) (not null) - argon2id hash, never returned to clients
- email_verified: boolean (default false)
- pending_email: varchar(255) (nullable) - requested new address until confirmed
- pending_email_token: uuid (nullable, unique)
- pending_email_expires_at: timestamptz (nullable)
- created_at: timestamptz (default now())
- updated_at: timestamptz (default now())

email_verifications:
- token: uuid (primary key)
- user_id: uuid (foreign key -> users.id, on delete cascade)
- expires_at: timestamptz (not null)

password_resets:
- token: uuid (primary key)
- user_id: uuid (foreign key -> users.id, on delete cascade)
- expires_at: timestamptz (not null)
"""
