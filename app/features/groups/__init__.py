"""
Groups feature module.

Team-scoped groups of users and their memberships: models, store, service
and API routes. All access decisions are delegated to the policy engine.
"""
