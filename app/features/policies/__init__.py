"""
Policy engine feature module.

Decides whether an actor may perform an action on a team-scoped resource and
computes the abilities descriptor returned to clients.
"""
