"""Memberships: the per-user read model across organizations and units."""
