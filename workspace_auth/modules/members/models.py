# Table: workspace_users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected table structure:

workspace_users (membership):
- workspace_id: uuid (foreign key to workspaces.id, on delete cascade)
- user_id: uuid (foreign key to users.id, on delete cascade)
- role_id: uuid (foreign key to roles.id, on delete restrict)
- created_at: timestamptz (default now())
- primary key (workspace_id, user_id) - one membership per user and workspace
"""
