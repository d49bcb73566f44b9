"""Visibility policy: pure read/mutate decisions for a memory and an actor.

Read access (``can_access``) is evaluated in order:

1. admin override by the reserved admin identity: allow
2. no visibility recorded (legacy record): allow
3. public: allow
4. private: owner only
5. shared: owner or an actor listed in ``shared_with``
6. anything else: deny

Mutation (``can_mutate``) ignores visibility entirely and only asks whether
the actor owns the memory or is the overriding admin.
"""

from .enums import Visibility
from .schemas import Memory

HUMAN_OWNER_ID = "human"


def is_admin(actor: str | None, admin_override: bool, admin_actor: str = HUMAN_OWNER_ID) -> bool:
    """True when the reserved admin identity explicitly asks to bypass checks."""
    return bool(admin_override) and actor == admin_actor


def can_access(
    memory: Memory,
    actor: str | None,
    admin_override: bool = False,
    *,
    admin_actor: str = HUMAN_OWNER_ID,
) -> bool:
    """Return whether ``actor`` may read ``memory``."""
    if is_admin(actor, admin_override, admin_actor):
        return True

    meta = memory.metadata
    if not meta.visibility:
        return True

    owner = meta.resolved_owner
    match meta.visibility:
        case Visibility.PUBLIC:
            return True
        case Visibility.PRIVATE:
            return owner is not None and actor == owner
        case Visibility.SHARED:
            if owner is not None and actor == owner:
                return True
            return actor is not None and actor in meta.shared_with
        case _:
            return False


def can_mutate(
    memory: Memory,
    actor: str | None,
    admin_override: bool = False,
    *,
    admin_actor: str = HUMAN_OWNER_ID,
) -> bool:
    """Return whether ``actor`` may delete or change visibility of ``memory``.

    A memory without a resolvable owner can only be mutated by the admin.
    """
    if is_admin(actor, admin_override, admin_actor):
        return True
    owner = memory.metadata.resolved_owner
    return owner is not None and actor == owner
