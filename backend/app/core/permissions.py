"""Role to permission lookup for web and mobile accounts."""

ROLE_PERMISSIONS: dict[str, list[str]] = {
    "master_admin": [
        "view_leads",
        "create_leads",
        "edit_leads",
        "delete_leads",
        "view_analytics",
        "manage_users",
        "view_settings",
        "edit_settings",
    ],
    "owner": [
        "view_leads",
        "create_leads",
        "edit_leads",
        "delete_leads",
        "view_analytics",
        "manage_users",
        "view_settings",
        "edit_settings",
    ],
    "admin": [
        "view_leads",
        "create_leads",
        "edit_leads",
        "delete_leads",
        "view_analytics",
        "manage_users",
        "view_settings",
    ],
    "manager": [
        "view_leads",
        "create_leads",
        "edit_leads",
        "delete_leads",
        "view_analytics",
        "view_settings",
    ],
    "office_manager": ["view_leads", "create_leads", "edit_leads", "view_analytics"],
    "project_manager": ["view_leads", "edit_leads"],
    "salesperson": ["view_leads", "create_leads", "edit_leads", "view_settings"],
    "sales_rep": ["view_leads", "create_leads", "edit_leads"],
    "canvasser": ["view_leads", "create_leads"],
}


def get_role_permissions(role: str | None) -> list[str]:
    """Return the permission names granted to ``role``; unknown roles get none."""
    if not role:
        return []
    return list(ROLE_PERMISSIONS.get(role, []))
