# kubeswitch

Building blocks for a tool that lets operators switch between large
numbers of Kubernetes contexts spread over many kubeconfig files. It
needs Python 3.10 or later and PyYAML.

## What is in the package

| Module | Contents |
| --- | --- |
| `kubeswitch.models` | Dataclasses `Config`, `KubeconfigStore`, `Hook`, `CacheConfig`, `StoreConfigVault`, `ConfigOld`, `KubeconfigPath`, `Index`, `IndexState`, `HookState`; enums `StoreKind` and `HookType`; `*_from_dict` / `*_to_dict` converters to and from YAML mappings; `parse_duration` and `format_duration` for durations such as `1h30m` or `250ms`. |
| `kubeswitch.config` | `load_config_from_file`, `migrate_config`, `ConfigError`. |
| `kubeswitch.migration` | `convert_configuration` from the old layout to the current one. |
| `kubeswitch.validation` | `validate_config`, returning a list of `FieldError` (with an `ErrorType`). |
| `kubeswitch.index` | `SearchIndex`, the per-store context-to-path index, and `IndexError_`. |
| `kubeswitch.state` | `get_hook_state` and `update_hook_state`. |
| `kubeswitch.cache` | The `Store` protocol, `MemoryCache`, `FileCache`, `register`, `new_cache`, `CacheError`. |
| `kubeswitch.hookstore` | `FileStore`, which writes exported kubeconfigs to a directory tree. |
| `kubeswitch.landscape` | Naming rules and index inspection for a Gardener landscape export. |
| `kubeswitch.flags` | `rewrite_args`, `parse_alias_argument`, `get_kubeconfig_path_from_flag`, `is_duplicate_path`, `get_store_from_flag_and_env`. |
| `kubeswitch.cli` | `build_parser`, `prepare_config`, `version_text`. |

## Loading and validating a configuration

```python
from kubeswitch.config import load_config_from_file
from kubeswitch.validation import validate_config

config = load_config_from_file("/home/me/.kube/switch-config.yaml")
if config is not None:
    for error in validate_config(config):
        print(error)
```

`load_config_from_file` returns `None` when the file does not exist and
an empty `Config` when the file is empty. A file without a `version`
field and without `kubeconfigStores` is treated as an old-style file: it
is written back next to itself with an `.old` suffix, converted with
`convert_configuration`, and the converted form replaces the original.
Problems reading or converting raise `ConfigError`.

`validate_config` checks the config version, the store kinds, that
`filesystem` and `vault` stores have at least one path, that stores using
an index (a `refreshIndexAfter` set globally or on the store) have a
unique kind and ID, and the hook types, paths and arguments. It does not
check the store-specific settings of Gardener or GKE stores.

## Search index

```python
from kubeswitch.index import SearchIndex
from kubeswitch.models import StoreKind

index = SearchIndex(StoreKind.FILESYSTEM, "/home/me/.kube/switch-state", "default")
if index.has_content() and index.has_kind(StoreKind.FILESYSTEM):
    for context, path in index.get_content().items():
        print(context, "->", path)
```

The state directory is created if missing. The index lives in
`switch.<store-id>.index` and its state in `switch.<store-id>.index.state`.
`should_be_used(config, store_refresh_index_after)` returns `True` only
when a state file of the same kind exists and its last update time plus
the refresh interval (the store's, else the config's) is still in the
future. `write`, `write_state` and `delete` manage the files.

## Hook state

`update_hook_state(hook_name, path)` records the current UTC time as the
hook's last execution; `get_hook_state(path)` reads it back, or returns
`None` if the file does not exist.

## Caches

```python
from kubeswitch.cache import new_cache

cached = new_cache("memory", store, None)
data = cached.get_kubeconfig_for_path("/home/me/.kube/config")
```

`store` is any object with the methods of the `Store` protocol. The
`"memory"` kind keeps kubeconfigs in memory. The `"filesystem"` kind
needs a `CacheConfig` whose `config` mapping has a `path`; cached files
are named by the MD5 hash of the kubeconfig path plus
`.<store-id>.cache`, and `FileCache.flush()` deletes this store's cached
files and returns how many were removed. Further kinds can be added with
`register(kind, factory)`.

## Gardener landscape layout

```python
from kubeswitch.landscape import shoot_identifier, shoot_kubeconfig_directory

identifier = shoot_identifier("dev", "my-project", "my-shoot")
directory = shoot_kubeconfig_directory("/exports", "dev", "aws-eu1", identifier)
```

Shoot kubeconfigs go under
`<root>/<landscape>/shoots/seed-<seed>/<landscape>-shoot-<project>-<shoot>`
and shooted seeds under
`<root>/<landscape>/shooted-seeds/<landscape>-seed-<name>`.
`get_previous_identifiers(search_index, landscape)` returns the shoot and
seed identifiers found in an existing index, and `FileStore` creates the
directories, writes kubeconfig files and removes earlier exports.

## Command-line helpers

`build_parser()` returns an `argparse` parser for a `switch` command with
the subcommands `set-context`, `list-contexts` (`ls`), `clean`,
`namespace` (`ns`), `hooks` (with `ls`), `history` (`h`),
`set-previous-context`, `set-last-context`, `alias`, `version` and
`gardener controlplane`. `rewrite_args` turns an unknown first argument
into `set-context <name>`, `-` into `set-previous-context` and `.` into
`set-last-context`. `prepare_config` loads and validates the
configuration and adds a store built from `--kubeconfig-path` and the
`KUBECONFIG` environment variable.

## What the package does not do

There is no installed command and no function that runs the subcommands:
the parser only parses. The package has no kubeconfig store that searches
the filesystem, Vault or a cloud provider, no fuzzy-selection screen, no
namespace or history handling, and no writing of the kubeconfig that a
switch selects. Exporting kubeconfigs from a Gardener cluster is limited
to the naming rules and the `FileStore` target; it does not talk to a
cluster.