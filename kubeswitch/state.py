"""Hook state files recording the last execution of a hook."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import yaml

from kubeswitch.models import HookState, hook_state_from_dict, hook_state_to_dict

log = logging.getLogger(__name__)


def get_hook_state(hook_state_filepath):
    """Load the hook state file; ``None`` if it does not exist yet."""
    try:
        raw = Path(hook_state_filepath).read_bytes()
    except FileNotFoundError:
        # the hook has never run before
        log.debug("State file not found under path: %r", str(hook_state_filepath))
        return None

    if not raw:
        return HookState()
    try:
        return hook_state_from_dict(yaml.safe_load(raw))
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise ValueError(
            f"could not unmarshal hook state file with path '{hook_state_filepath}': {exc}"
        ) from exc


def update_hook_state(hook_name, state_file_name):
    """Record now as the last execution time of ``hook_name``, replacing the file."""
    state = HookState(hook_name=hook_name, last_execution_time=datetime.now(timezone.utc))
    with open(state_file_name, "w", encoding="utf-8") as handle:
        yaml.safe_dump(hook_state_to_dict(state), handle, sort_keys=False)