"""
Permissions and Roles Configuration
Defines the permission matrix for every module and which portal role
(admin or client) holds each permission.
"""

ADMIN_ROLE = "admin"
CLIENT_ROLE = "client"

# Bootstrap account created by app/scripts/create_admin.py; it cannot be deleted
MAIN_ADMIN_USERNAME = "admin"

# Define modules and their actions
MODULES = {
    "users": {
        "resource": "users",
        "actions": ["read", "create", "update", "delete", "verify"],
        "description": "Client and admin account management"
    },
    "profile": {
        "resource": "profile",
        "actions": ["read", "update"],
        "description": "Own profile"
    },
    "appointments": {
        "resource": "appointments",
        "actions": ["read", "propose", "respond", "cancel", "manage", "notify"],
        "description": "Appointment scheduling"
    },
    "notifications": {
        "resource": "notifications",
        "actions": ["read", "update", "send"],
        "description": "In-app, email and SMS notifications"
    },
    "messages": {
        "resource": "messages",
        "actions": ["read", "create"],
        "description": "Conversations and messages"
    },
    "communications": {
        "resource": "communications",
        "actions": ["read", "create", "update", "delete", "send"],
        "description": "Communication templates and history"
    },
    "content": {
        "resource": "content",
        "actions": ["read", "create", "review"],
        "description": "Content upload and approval"
    },
    "billing": {
        "resource": "billing",
        "actions": ["read", "update"],
        "description": "Payment methods and subscriptions"
    },
    "dashboard": {
        "resource": "dashboard",
        "actions": ["read", "statistics"],
        "description": "Dashboard counters and statistics"
    },
    "analytics": {
        "resource": "analytics",
        "actions": ["read", "manage"],
        "description": "Per-client platform analytics"
    },
    "onboarding": {
        "resource": "onboarding",
        "actions": ["read", "update"],
        "description": "Onboarding wizard progress"
    },
}

# Actions granted to clients; admins hold every action
CLIENT_ACTIONS = {
    "profile": ["read", "update"],
    "appointments": ["read", "respond", "cancel"],
    "notifications": ["read", "update"],
    "messages": ["read", "create"],
    "communications": ["read"],
    "content": ["read", "create"],
    "billing": ["read", "update"],
    "dashboard": ["read"],
    "analytics": ["read"],
    "onboarding": ["read", "update"],
}


def get_permission_matrix():
    """
    Returns a dictionary with all permissions and the permissions per role
    Format: {
        "permissions": [
            {"name": "appointments:propose", "resource": "appointments", "action": "propose", "description": "..."},
            ...
        ],
        "roles": {"admin": [...], "client": [...]}
    }
    """
    permissions = []
    admin_permissions = []
    client_permissions = []

    for module_name, module_config in MODULES.items():
        resource = module_config["resource"]
        for action in module_config["actions"]:
            permission_name = f"{resource}:{action}"
            permissions.append({
                "name": permission_name,
                "resource": resource,
                "action": action,
                "description": f"{action.capitalize()} {module_config['description'].lower()}"
            })
            admin_permissions.append(permission_name)
            if action in CLIENT_ACTIONS.get(module_name, []):
                client_permissions.append(permission_name)

    return {
        "permissions": permissions,
        "roles": {
            ADMIN_ROLE: sorted(admin_permissions),
            CLIENT_ROLE: sorted(client_permissions),
        }
    }


def get_role_permissions(role: str):
    """Permission names held by a role; unknown roles hold nothing."""
    return PERMISSION_MATRIX["roles"].get(role, [])


PERMISSION_MATRIX = get_permission_matrix()
