# Supabase Auth
# Credentials, sessions and JWTs live in Supabase's auth.users table.
# The portal's own account data (role, onboarding, verification, Stripe ids)
# lives in the public users table documented in app/modules/users/models.py.

"""
Supabase Auth calls used by AuthService:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Resolve a JWT to its auth user
- auth.sign_out() - Logout users

Registration also inserts the matching users row with role 'client'.
Admin accounts are created with app/scripts/create_admin.py.
"""
