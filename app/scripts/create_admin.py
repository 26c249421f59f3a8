"""
Create Admin Script
Creates (or promotes) an administrator account: a Supabase Auth user plus
the matching users row with role 'admin'.

Usage:
    python app/scripts/create_admin.py admin@example.com 'password' 'Admin User'

Requires SUPABASE_SERVICE_ROLE_KEY for the auth admin API.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config import settings
from app.config.permissions_config import ADMIN_ROLE, MAIN_ADMIN_USERNAME
from app.database.supabase_client import SupabaseClient
from supabase import Client
from typing import Optional
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def find_user_row(supabase: Client, email: str) -> Optional[dict]:
    result = supabase.table("users")\
        .select("*")\
        .eq("email", email)\
        .execute()
    return result.data[0] if result.data else None


def create_admin(supabase: Client, email: str, password: str, full_name: str) -> str:
    """Returns the admin's user id"""
    existing = find_user_row(supabase, email)
    if existing:
        if existing.get("role") != ADMIN_ROLE:
            supabase.table("users")\
                .update({"role": ADMIN_ROLE, "verification_status": "verified"})\
                .eq("id", existing["id"])\
                .execute()
            logger.info(f"Promoted existing user {email} to admin")
        else:
            logger.info(f"Admin user already exists: {email}")
        return existing["id"]

    auth_response = supabase.auth.admin.create_user({
        "email": email,
        "password": password,
        "email_confirm": True,
        "user_metadata": {"full_name": full_name},
    })
    user_id = auth_response.user.id

    taken = supabase.table("users").select("id").eq("username", MAIN_ADMIN_USERNAME).execute()
    username = email.split("@")[0] if taken.data else MAIN_ADMIN_USERNAME

    supabase.table("users").insert({
        "id": user_id,
        "email": email,
        "username": username,
        "full_name": full_name,
        "role": ADMIN_ROLE,
        "plan": "enterprise",
        "onboarding_status": "complete",
        "onboarding_step": 0,
        "verification_status": "verified",
    }).execute()
    logger.info(f"Admin user created: {email} ({user_id})")
    return user_id


def main():
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)

    email = sys.argv[1]
    password = sys.argv[2]
    full_name = sys.argv[3] if len(sys.argv) > 3 else "Admin User"

    if not settings.supabase_service_role_key:
        logger.error("SUPABASE_SERVICE_ROLE_KEY is required to create auth users")
        sys.exit(1)

    try:
        create_admin(SupabaseClient.get_service_client(), email, password, full_name)
    except Exception as e:
        logger.error(f"Error creating admin: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
