import pytest

from kubeswitch.index import SearchIndex
from kubeswitch.landscape import (
    get_previous_identifiers,
    is_shooted_seed,
    resolve_shoot_name,
    secret_identifier,
    seed_identifier,
    seed_kubeconfig_directory,
    shoot_identifier,
    shoot_kubeconfig_directory,
)
from kubeswitch.models import Index, StoreKind


def _index_with(tmp_path, mapping):
    state_dir = tmp_path / "state"
    SearchIndex(StoreKind.FILESYSTEM, str(state_dir), "default").write(
        Index(kind=StoreKind.FILESYSTEM.value, context_to_path_mapping=mapping)
    )
    return SearchIndex(StoreKind.FILESYSTEM, str(state_dir), "default")


def test_shoot_identifier_format():
    assert shoot_identifier("dev", "proj", "app") == "dev-shoot-proj-app"


def test_seed_identifier_format():
    assert seed_identifier("dev", "aws") == "dev-seed-aws"


def test_secret_identifier_joins_with_slash():
    assert secret_identifier("garden-proj", "app").split("/") == ["garden-proj", "app"]


def test_shoot_directory_layout():
    identifier = shoot_identifier("dev", "proj", "app")
    directory = shoot_kubeconfig_directory("/export", "dev", "aws", identifier)
    assert directory.startswith("/export/dev/shoots/")
    assert directory.endswith("/seed-aws/" + identifier)


def test_seed_directory_layout():
    identifier = seed_identifier("dev", "aws")
    directory = seed_kubeconfig_directory("/export", "dev", identifier)
    assert directory.startswith("/export/dev/shooted-seeds/")
    assert directory.endswith(identifier)


def test_resolve_shoot_name_from_owner():
    refs = [{"kind": "Shoot", "name": "app"}]
    assert resolve_shoot_name("garden-proj", refs) == "app"


def test_resolve_shoot_name_from_namespace():
    assert resolve_shoot_name("app.kubeconfig", []) == "app"


def test_resolve_shoot_name_other_owner_kind_uses_namespace():
    refs = [{"kind": "Project", "name": "other"}]
    assert resolve_shoot_name("app.kubeconfig", refs) == "app"


@pytest.mark.parametrize("refs", [None, [], [{"kind": "Seed", "name": "x"}]])
def test_resolve_shoot_name_unassociated(refs):
    assert resolve_shoot_name("garden-proj", refs) is None


def test_is_shooted_seed():
    annotations = {"shoot.gardener.cloud/use-as-seed": "true"}
    assert is_shooted_seed("garden", annotations) is True


@pytest.mark.parametrize(
    "namespace,annotations",
    [
        ("garden", None),
        ("garden", {}),
        ("garden-proj", {"shoot.gardener.cloud/use-as-seed": "true"}),
    ],
)
def test_is_not_shooted_seed(namespace, annotations):
    assert is_shooted_seed(namespace, annotations) is False


def test_previous_identifiers_without_index(tmp_path):
    search_index = SearchIndex(StoreKind.FILESYSTEM, str(tmp_path / "state"), "default")
    assert get_previous_identifiers(search_index, "dev") == (set(), set())


def test_previous_identifiers_collect_shoots_and_seeds(tmp_path):
    shoot_dir = shoot_kubeconfig_directory("/export", "dev", "aws", shoot_identifier("dev", "p", "a"))
    seed_id = seed_identifier("dev", "aws")
    seed_path = seed_kubeconfig_directory("/export", "dev", seed_id)
    search_index = _index_with(
        tmp_path,
        {"ctx-shoot": shoot_dir, "ctx-seed": seed_path, "other": "/elsewhere/config"},
    )
    shoots, seeds = get_previous_identifiers(search_index, "dev")
    assert shoots == {shoot_identifier("dev", "p", "a")}
    assert seeds == {seed_id}


def test_previous_identifiers_ignore_other_landscape(tmp_path):
    shoot_dir = shoot_kubeconfig_directory("/export", "live", "aws", shoot_identifier("live", "p", "a"))
    search_index = _index_with(tmp_path, {"ctx": shoot_dir})
    assert get_previous_identifiers(search_index, "dev") == (set(), set())