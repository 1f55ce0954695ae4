"""CRUD operations package.

- user.py: accounts, tokens, profiles and links
- site_settings.py: site-wide registration policy
"""

from linksite.app.db.crud.user import (
    count_admins,
    create_user,
    delete_user,
    get_user_by_email,
    get_user_by_id,
    get_user_by_username,
    issue_token,
    list_users,
    lookup_user_by_token_hash,
    replace_links,
    set_admin,
    update_profile,
)
from linksite.app.db.crud.site_settings import (
    get_site_settings,
    update_site_settings,
)

__all__ = [
    # User
    "count_admins",
    "create_user",
    "delete_user",
    "get_user_by_email",
    "get_user_by_id",
    "get_user_by_username",
    "issue_token",
    "list_users",
    "lookup_user_by_token_hash",
    "replace_links",
    "set_admin",
    "update_profile",
    # Site settings
    "get_site_settings",
    "update_site_settings",
]
