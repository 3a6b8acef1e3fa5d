"""Release pipeline hooks and what the notifier does at each of them."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Hook(str, Enum):
    PRE_INIT = "pre-init"
    POST_INIT = "post-init"
    PRE_PLAN = "pre-plan"
    POST_PLAN = "post-plan"
    PRE_VERSION = "pre-version"
    POST_VERSION = "post-version"
    PRE_NOTES = "pre-notes"
    POST_NOTES = "post-notes"
    PRE_APPROVE = "pre-approve"
    POST_APPROVE = "post-approve"
    PRE_PUBLISH = "pre-publish"
    POST_PUBLISH = "post-publish"
    ON_SUCCESS = "on-success"
    ON_ERROR = "on-error"


class HookAction(Enum):
    NOTIFY_SUCCESS = "notify_success"
    NOTIFY_ERROR = "notify_error"
    IGNORE = "ignore"


# Every hook must appear here; the check below fails at import otherwise.
HOOK_ACTIONS: dict[Hook, HookAction] = {
    Hook.PRE_INIT: HookAction.IGNORE,
    Hook.POST_INIT: HookAction.IGNORE,
    Hook.PRE_PLAN: HookAction.IGNORE,
    Hook.POST_PLAN: HookAction.IGNORE,
    Hook.PRE_VERSION: HookAction.IGNORE,
    Hook.POST_VERSION: HookAction.IGNORE,
    Hook.PRE_NOTES: HookAction.IGNORE,
    Hook.POST_NOTES: HookAction.IGNORE,
    Hook.PRE_APPROVE: HookAction.IGNORE,
    Hook.POST_APPROVE: HookAction.IGNORE,
    Hook.PRE_PUBLISH: HookAction.IGNORE,
    Hook.POST_PUBLISH: HookAction.NOTIFY_SUCCESS,
    Hook.ON_SUCCESS: HookAction.NOTIFY_SUCCESS,
    Hook.ON_ERROR: HookAction.NOTIFY_ERROR,
}

_unmapped = set(Hook) - set(HOOK_ACTIONS)
if _unmapped:
    raise RuntimeError(f"Hooks without an action: {sorted(h.value for h in _unmapped)}")

# Hooks advertised to the host as handled by this notifier.
HANDLED_HOOKS: tuple[Hook, ...] = tuple(
    hook for hook, action in HOOK_ACTIONS.items() if action is not HookAction.IGNORE
)


def parse_hook(name: str) -> Optional[Hook]:
    """Return the Hook for a hook name, or None if the name is unknown."""

    try:
        return Hook(name)
    except ValueError:
        return None


def classify_hook(hook: Hook) -> HookAction:
    return HOOK_ACTIONS[hook]
