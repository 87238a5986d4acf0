"""Users module: accounts and the authenticated user's own views."""
