"""
Folder permission resolution.

Rules are looked up on the folder itself first. A rule naming the user wins
over a rule naming the user's role. When the folder has no applicable rule,
the parents are searched from the nearest upwards. The walk stops at a
folder that opts out of inheritance, meaning one of its active rules has
``inherit_permissions`` switched off. An ancestor's rule only reaches down
when it has ``apply_to_subfolders`` set. Without any rule the role default
applies. Managers and admins always get every permission.
"""
from django.utils import timezone

PERMISSION_FIELDS = (
    'can_view',
    'can_upload',
    'can_create_subfolder',
    'can_edit',
    'can_delete',
    'can_move',
)

FULL_ACCESS = {field: True for field in PERMISSION_FIELDS}

ROLE_DEFAULT = {
    'can_view': True,
    'can_upload': True,
    'can_create_subfolder': False,
    'can_edit': False,
    'can_delete': False,
    'can_move': False,
}

SOURCE_MANAGER = 'manager'
SOURCE_FOLDER = 'folder'
SOURCE_INHERITED = 'inherited'
SOURCE_DEFAULT = 'role_default'


class EffectivePermissions:
    def __init__(self, permissions, source, folder_id=None):
        self.permissions = dict(permissions)
        self.source = source
        self.folder_id = folder_id

    def __getitem__(self, field):
        return self.permissions[field]

    def allows(self, field):
        return bool(self.permissions.get(field, False))

    def as_dict(self):
        return {
            'permissions': self.permissions,
            'source': self.source,
            'source_folder_id': self.folder_id,
        }


def _rule_permissions(rule):
    return {field: bool(getattr(rule, field)) for field in PERMISSION_FIELDS}


def _is_active(rule, now):
    return rule.expires_at is None or rule.expires_at > now


def _inherits(rules):
    return all(rule.inherit_permissions for rule in rules)


def _pick_rule(rules, user_id, role):
    user_rule = None
    role_rule = None
    for rule in rules:
        if rule.user_id is not None:
            if rule.user_id == user_id and user_rule is None:
                user_rule = rule
        elif role and rule.user_role == role and role_rule is None:
            role_rule = rule
    return user_rule or role_rule


def resolve_permissions(user_id, role, is_manager, folder_chain, rules, now=None):
    """
    Resolve a user's permissions on a folder.

    ``folder_chain`` lists folder ids from the target folder up to the root
    (empty for the root level). ``rules`` is any iterable of objects exposing
    ``folder_id``, ``user_id``, ``user_role``, ``expires_at``, the
    inheritance flags and the permission fields.
    """
    if is_manager:
        return EffectivePermissions(FULL_ACCESS, SOURCE_MANAGER)
    if not folder_chain:
        return EffectivePermissions(ROLE_DEFAULT, SOURCE_DEFAULT)

    now = now or timezone.now()
    by_folder = {}
    for rule in rules:
        if _is_active(rule, now):
            by_folder.setdefault(rule.folder_id, []).append(rule)

    target_id = folder_chain[0]
    rule = _pick_rule(by_folder.get(target_id, []), user_id, role)
    if rule is not None:
        return EffectivePermissions(_rule_permissions(rule), SOURCE_FOLDER, target_id)

    for child_id, ancestor_id in zip(folder_chain, folder_chain[1:]):
        if not _inherits(by_folder.get(child_id, [])):
            break
        inheritable = [r for r in by_folder.get(ancestor_id, []) if r.apply_to_subfolders]
        rule = _pick_rule(inheritable, user_id, role)
        if rule is not None:
            return EffectivePermissions(_rule_permissions(rule), SOURCE_INHERITED, ancestor_id)

    return EffectivePermissions(ROLE_DEFAULT, SOURCE_DEFAULT)


def get_effective_permissions(user, folder):
    """Permissions of ``user`` on ``folder`` (None for the root level)"""
    from fieldmanager.core.utils import is_manager_or_admin
    from .models import FolderPermission

    if is_manager_or_admin(user):
        return resolve_permissions(user.id, user.role, True, [], [])
    if folder is None:
        return resolve_permissions(user.id, user.role, False, [], [])

    chain = [folder.id] + folder.ancestor_ids()
    rules = FolderPermission.objects.filter(folder_id__in=chain)
    return resolve_permissions(user.id, user.role, False, chain, list(rules))


def has_folder_permission(user, folder, field):
    return get_effective_permissions(user, folder).allows(field)


def filter_visible(user, items, folder_of):
    """Items whose folder ``user`` can view; ``folder_of`` maps an item to its folder"""
    from fieldmanager.core.utils import is_manager_or_admin

    if is_manager_or_admin(user):
        return list(items)
    allowed = {}
    visible = []
    for item in items:
        folder = folder_of(item)
        key = folder.id if folder else None
        if key not in allowed:
            allowed[key] = has_folder_permission(user, folder, 'can_view')
        if allowed[key]:
            visible.append(item)
    return visible
