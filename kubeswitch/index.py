"""Per-store search index: a cached context-to-kubeconfig-path mapping."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import yaml

from kubeswitch.models import (
    Config,
    Index,
    IndexState,
    index_from_dict,
    index_state_from_dict,
    index_state_to_dict,
    index_to_dict,
)

_INDEX_STATE_FILE_NAME = "index.state"
_INDEX_FILE_NAME = "index"

log = logging.getLogger(__name__)


class IndexError_(Exception):
    """An index or index state file cannot be read or parsed."""


class SearchIndex:
    """Index files of one kubeconfig store inside the state directory."""

    def __init__(self, store_kind, state_directory, store_id):
        state_dir = Path(state_directory)
        if not state_dir.exists():
            state_dir.mkdir(mode=0o755)

        self.index_filepath = f"{state_directory}/switch.{store_id}.{_INDEX_FILE_NAME}"
        self.index_state_filepath = f"{state_directory}/switch.{store_id}.{_INDEX_STATE_FILE_NAME}"
        self.store_kind = store_kind
        self.content: Index | None = self._load_from_file()

    def _load_from_file(self) -> Index | None:
        try:
            raw = Path(self.index_filepath).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise IndexError_(
                f"failed to read index file from {self.index_filepath!r}. File corrupt?: {exc}"
            ) from exc

        if not raw:
            return Index()
        try:
            return index_from_dict(yaml.safe_load(raw))
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            raise IndexError_(
                f"could not unmarshal index file with path '{self.index_filepath}': {exc}"
            ) from exc

    def has_content(self) -> bool:
        return self.content is not None

    def has_kind(self, kind) -> bool:
        return self.content is not None and self.content.kind == kind

    def get_content(self) -> dict[str, str] | None:
        if self.content is None:
            return None
        return self.content.context_to_path_mapping

    def should_be_used(self, config: Config | None, store_refresh_index_after: timedelta | None) -> bool:
        """Tell whether the index is recent enough to be read instead of searching the store."""
        try:
            state = self._get_index_state()
        except IndexError_ as exc:
            raise IndexError_(f"failed to get index state: {exc}") from exc

        # without a state file it is unknown when the index was last refreshed
        if state is None or state.kind != self.store_kind:
            return False

        refresh_after = None
        if config is not None and config.refresh_index_after is not None:
            refresh_after = config.refresh_index_after
        if store_refresh_index_after is not None:
            refresh_after = store_refresh_index_after

        if refresh_after is None or state.last_update_time is None:
            return False

        return datetime.now(timezone.utc) < state.last_update_time + refresh_after

    def write_state(self, state: IndexState) -> None:
        _dump(self.index_state_filepath, index_state_to_dict(state))

    def write(self, index: Index) -> None:
        _dump(self.index_filepath, index_to_dict(index))

    def delete(self) -> None:
        """Remove the index and its state file; nothing happens if no state file exists."""
        if not os.path.exists(self.index_state_filepath):
            return
        os.remove(self.index_filepath)
        os.remove(self.index_state_filepath)

    def _get_index_state(self) -> IndexState | None:
        try:
            raw = Path(self.index_state_filepath).read_bytes()
        except FileNotFoundError:
            log.warning("SearchIndex state file not found under path: %r", self.index_state_filepath)
            return None
        except OSError as exc:
            raise IndexError_(str(exc)) from exc

        if not raw:
            return IndexState()
        try:
            return index_state_from_dict(yaml.safe_load(raw))
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            raise IndexError_(
                f"could not unmarshal index state file with path '{self.index_state_filepath}': {exc}"
            ) from exc


def _dump(path: str, data: dict) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False, allow_unicode=True)