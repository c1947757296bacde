# Table: workspaces
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# create_workspace() is a SQL function in supabase/migrations

"""
Expected table structure:

workspaces:
- id: uuid (primary key)
- name: varchar(100) (unique, not null)
- owner_user_id: uuid (foreign key to users.id, on delete set null)
- is_default: boolean - true for the first workspace a user creates
- invite_code: varchar(64) (unique, generated)
- created_at: timestamptz (default now())
- updated_at: timestamptz (default now())

Creating a workspace also creates its protected "Admin" role and binds the
owner to it, all inside create_workspace().
"""
