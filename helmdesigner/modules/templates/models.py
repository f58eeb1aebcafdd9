# Supabase tables backing chart templates
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in repository.py

"""
Expected Supabase table structure:

templates
- id: uuid (primary key)
- user_id: uuid (owner, not null)
- name: text (not null)
- description: text (nullable)
- shared_port: integer (not null, 1-65535)
- registry_url: text (nullable)
- registry_project: text (nullable)
- registry_secret: jsonb (nullable) - {name, type, server, username, email}; never a password
- enable_nginx_gateway: boolean
- enable_redis: boolean
- visibility: text ('private' | 'public')
- readme: text (nullable)
- created_at / updated_at: timestamp

services (template_id -> templates.id, on delete cascade)
- id, template_id, name, created_at
- routes: jsonb - [{path}]
- env_vars: jsonb - [{name, description, required, defaultValue}]
- health_check_enabled: boolean
- liveness_path / readiness_path: text (nullable, default '/health' / '/ready')
- config_map_env_sources: jsonb - [{configMapName}]
- secret_env_sources: jsonb - [{secretName}]
- use_stateful_set: boolean
- is_external, image, custom_ports (jsonb [{name, port}]), replicas, use_daemon_set (external services)

config_maps / opaque_secrets (template_id -> templates.id, on delete cascade)
- id, template_id, name, created_at
- keys: jsonb - [{name, description, defaultValue}]

tls_secrets (template_id -> templates.id, on delete cascade)
- id, template_id, name, created_at
- cert / key: text (nullable) - static PEM pair reused by every version
- not_before / expires_at: timestamp (nullable) - parsed from cert on save

ingresses (template_id -> templates.id, on delete cascade)
- id, template_id, name, created_at
- mode: text ('nginx-gateway' | 'direct-services')
- rules: jsonb - [{hostname, paths: [{path, serviceName}]}]
  (legacy rows: flat [{path, serviceName}] plus default_host)
- tls: jsonb (nullable) - [{secretName, hosts}]
- default_host, tls_enabled, tls_secret_name: legacy single-TLS columns

chart_versions (template_id -> templates.id, on delete cascade; rows are never updated)
- id, template_id, created_at
- version_name: text (chart semver)
- app_version: text (nullable)
- release_notes: text (nullable)
- values: jsonb - {imageTags, envValues, configMapValues, tlsSecretValues,
  opaqueSecretValues, enableNginxGateway?, enableRedis?}

service_accounts / service_account_template_access
- Helm registry credentials and the templates each account may pull.
- RPC validate_service_account_key(p_api_key) -> [{is_valid, service_account_id, user_id}]
- RPC check_template_access(p_service_account_id, p_template_id) -> boolean
- RPC update_service_account_last_used(p_service_account_id)
"""
