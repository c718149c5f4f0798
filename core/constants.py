"""Common constants shared across IAMPA modules."""

PRINCIPAL_KINDS = ("users", "roles", "groups")

# Error codes IAM returns when the policy ARN no longer resolves.
NOT_FOUND_CODES = frozenset({"NoSuchEntity", "NoSuchIdentity"})

ATTACH = "attach"
DETACH = "detach"

# (action, kind) -> (client method, principal parameter)
CLIENT_CALLS = {
    (ATTACH, "users"): ("attach_user_policy", "UserName"),
    (ATTACH, "roles"): ("attach_role_policy", "RoleName"),
    (ATTACH, "groups"): ("attach_group_policy", "GroupName"),
    (DETACH, "users"): ("detach_user_policy", "UserName"),
    (DETACH, "roles"): ("detach_role_policy", "RoleName"),
    (DETACH, "groups"): ("detach_group_policy", "GroupName"),
}
