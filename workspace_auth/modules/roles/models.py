# Tables: permissions, roles, role_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# DDL and the create_role/update_role functions live in supabase/migrations

"""
Expected table structure:

permissions (seeded, immutable):
- id: uuid (primary key)
- name: varchar(64) (unique, not null) - one of the Permission catalog values
- description: text (not null)

roles:
- id: uuid (primary key)
- workspace_id: uuid (foreign key to workspaces.id, on delete cascade)
- name: varchar(100) (not null) - "Admin" is reserved for the protected role
- description: text (nullable)
- unique constraint on (workspace_id, name)

role_permissions:
- role_id: uuid (foreign key to roles.id, on delete cascade)
- permission_id: uuid (foreign key to permissions.id, on delete cascade)
- primary key (role_id, permission_id)

The Admin role never has role_permissions rows; it implicitly holds the full catalog.
"""
