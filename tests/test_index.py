from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from kubeswitch.index import IndexError_, SearchIndex
from kubeswitch.models import Config, Index, IndexState, StoreKind


def _index(tmp_path, store_id="default", kind=StoreKind.FILESYSTEM):
    return SearchIndex(kind, str(tmp_path), store_id)


def test_file_names_follow_store_id(tmp_path):
    idx = _index(tmp_path, "my-store")
    assert idx.index_filepath == f"{tmp_path}/switch.my-store.index"
    assert idx.index_state_filepath == f"{tmp_path}/switch.my-store.index.state"


def test_missing_state_directory_is_created(tmp_path):
    target = tmp_path / "state"
    _index(target)
    assert target.is_dir()


def test_no_index_file_means_no_content(tmp_path):
    idx = _index(tmp_path)
    assert idx.has_content() is False
    assert idx.get_content() is None
    assert idx.has_kind(StoreKind.FILESYSTEM) is False


def test_write_and_reload_round_trip(tmp_path):
    mapping = {"ctx-a": "/a/config", "ctx-b": "/b/config"}
    _index(tmp_path).write(Index(kind=StoreKind.FILESYSTEM, context_to_path_mapping=mapping))

    reloaded = _index(tmp_path)
    assert reloaded.has_content()
    assert reloaded.get_content() == mapping
    assert reloaded.has_kind(StoreKind.FILESYSTEM)
    assert not reloaded.has_kind(StoreKind.VAULT)


def test_empty_index_file_gives_empty_content(tmp_path):
    idx = _index(tmp_path)
    Path(idx.index_filepath).write_text("")
    reloaded = _index(tmp_path)
    assert reloaded.has_content()
    assert reloaded.get_content() == {}


def test_corrupt_index_file_raises(tmp_path):
    idx = _index(tmp_path)
    Path(idx.index_filepath).write_text("kind: [unclosed")
    with pytest.raises(IndexError_):
        _index(tmp_path)


def test_should_not_be_used_without_state(tmp_path):
    idx = _index(tmp_path)
    assert idx.should_be_used(Config(refresh_index_after=timedelta(hours=1)), None) is False


def test_fresh_state_with_refresh_interval_is_used(tmp_path):
    idx = _index(tmp_path)
    idx.write_state(IndexState(kind=StoreKind.FILESYSTEM, last_update_time=datetime.now(timezone.utc)))
    assert idx.should_be_used(Config(refresh_index_after=timedelta(hours=1)), None) is True


def test_outdated_state_is_not_used(tmp_path):
    idx = _index(tmp_path)
    old = datetime.now(timezone.utc) - timedelta(hours=2)
    idx.write_state(IndexState(kind=StoreKind.FILESYSTEM, last_update_time=old))
    assert idx.should_be_used(Config(refresh_index_after=timedelta(hours=1)), None) is False


def test_store_refresh_interval_overrides_global(tmp_path):
    idx = _index(tmp_path)
    old = datetime.now(timezone.utc) - timedelta(hours=2)
    idx.write_state(IndexState(kind=StoreKind.FILESYSTEM, last_update_time=old))
    config = Config(refresh_index_after=timedelta(hours=1))
    assert idx.should_be_used(config, timedelta(hours=3)) is True


def test_no_refresh_interval_means_not_used(tmp_path):
    idx = _index(tmp_path)
    idx.write_state(IndexState(kind=StoreKind.FILESYSTEM, last_update_time=datetime.now(timezone.utc)))
    assert idx.should_be_used(None, None) is False


def test_state_of_other_kind_is_not_used(tmp_path):
    idx = _index(tmp_path)
    idx.write_state(IndexState(kind=StoreKind.VAULT, last_update_time=datetime.now(timezone.utc)))
    assert idx.should_be_used(None, timedelta(hours=1)) is False


def test_corrupt_state_file_raises(tmp_path):
    idx = _index(tmp_path)
    Path(idx.index_state_filepath).write_text("kind: [unclosed")
    with pytest.raises(IndexError_, match="failed to get index state"):
        idx.should_be_used(None, timedelta(hours=1))


def test_delete_removes_both_files(tmp_path):
    idx = _index(tmp_path)
    idx.write(Index(kind=StoreKind.FILESYSTEM, context_to_path_mapping={"a": "b"}))
    idx.write_state(IndexState(kind=StoreKind.FILESYSTEM, last_update_time=datetime.now(timezone.utc)))
    idx.delete()
    assert not Path(idx.index_filepath).exists()
    assert not Path(idx.index_state_filepath).exists()


def test_delete_without_state_keeps_index(tmp_path):
    idx = _index(tmp_path)
    idx.write(Index(kind=StoreKind.FILESYSTEM, context_to_path_mapping={"a": "b"}))
    idx.delete()
    assert Path(idx.index_filepath).exists()