"""Units: schools under an organization, their members and registration approvals."""
