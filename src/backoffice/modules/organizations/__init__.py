"""Organizations module: tenant roots and their memberships."""
