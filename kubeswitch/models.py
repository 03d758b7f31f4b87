"""Configuration, index and state records together with their YAML mappings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping


class StoreKind(str, Enum):
    """Kinds of kubeconfig stores."""

    FILESYSTEM = "filesystem"
    VAULT = "vault"
    GARDENER = "gardener"
    GKE = "gke"
    AZURE = "azure"
    EKS = "eks"
    RANCHER = "rancher"


class HookType(str, Enum):
    """Kinds of hooks."""

    EXECUTABLE = "Executable"
    INLINE_COMMAND = "InlineCommand"


VALID_CONFIG_VERSIONS = ("v1alpha1",)


@dataclass
class Hook:
    name: str = ""
    type: str = ""
    path: str | None = None
    arguments: list[str] = field(default_factory=list)


@dataclass
class StoreConfigVault:
    vault_api_address: str = ""


@dataclass
class CacheConfig:
    kind: str = ""
    config: Any = None


@dataclass
class KubeconfigStore:
    id: str | None = None
    kind: str = ""
    kubeconfig_name: str | None = None
    paths: list[str] = field(default_factory=list)
    refresh_index_after: timedelta | None = None
    required: bool | None = None
    show_prefix: bool | None = None
    config: Any = None
    cache: CacheConfig | None = None


@dataclass
class Config:
    kind: str = ""
    version: str = ""
    kubeconfig_name: str | None = None
    refresh_index_after: timedelta | None = None
    show_preview: bool | None = None
    hooks: list[Hook] = field(default_factory=list)
    kubeconfig_stores: list[KubeconfigStore] = field(default_factory=list)


@dataclass
class KubeconfigPath:
    path: str = ""
    store: str = ""


@dataclass
class ConfigOld:
    kubeconfig_name: str = ""
    kubeconfig_rediscovery_interval: timedelta | None = None
    vault_api_address: str = ""
    hooks: list[Hook] = field(default_factory=list)
    kubeconfig_paths: list[KubeconfigPath] = field(default_factory=list)


@dataclass
class Index:
    kind: str = ""
    context_to_path_mapping: dict[str, str] = field(default_factory=dict)


@dataclass
class IndexState:
    kind: str = ""
    last_update_time: datetime | None = None


@dataclass
class HookState:
    hook_name: str = ""
    last_execution_time: datetime | None = None


# --- durations -----------------------------------------------------------

_UNIT_NANOS = {
    "ns": Decimal(1),
    "us": Decimal(1_000),
    "µs": Decimal(1_000),
    "μs": Decimal(1_000),
    "ms": Decimal(1_000_000),
    "s": Decimal(1_000_000_000),
    "m": Decimal(60_000_000_000),
    "h": Decimal(3_600_000_000_000),
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text):
    """Parse a duration such as ``1h30m`` or ``250ms`` into a timedelta."""
    if not isinstance(text, str):
        raise ValueError(f"invalid duration {text!r}")
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")
    total = Decimal(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        try:
            total += Decimal(match.group(1)) * _UNIT_NANOS[match.group(2)]
        except InvalidOperation as exc:
            raise ValueError(f"invalid duration {text!r}") from exc
        pos = match.end()
    return sign * timedelta(microseconds=float(total / 1000))


def _fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(seconds):
    """Render a duration (timedelta or seconds) in the ``1h2m3s`` notation."""
    if isinstance(seconds, timedelta):
        micros = seconds // timedelta(microseconds=1)
    else:
        micros = round(seconds * 1_000_000)
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros == 0:
        return "0s"
    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_fraction(micros, 1_000)}ms"
    hours, rem = divmod(micros, 3_600_000_000)
    minutes, rem = divmod(rem, 60_000_000)
    out = f"{_fraction(rem, 1_000_000)}s"
    if hours or minutes:
        out = f"{minutes}m{out}"
    if hours:
        out = f"{hours}h{out}"
    return sign + out


# --- timestamps ----------------------------------------------------------

def _parse_time(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = re.sub(r"\.(\d+)", lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"invalid timestamp {value!r}") from exc
    else:
        raise ValueError(f"invalid timestamp {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _format_time(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + "Z"


# --- field helpers -------------------------------------------------------

def _mapping(data: Any, what: str) -> Mapping:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _scalar_str(value: Any, key: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ValueError(f"field {key!r} must be a scalar, got {type(value).__name__}")


def _str(data: Mapping, key: str) -> str:
    value = data.get(key)
    return "" if value is None else _scalar_str(value, key)


def _opt_str(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    return None if value is None else _scalar_str(value, key)


def _str_list(data: Mapping, key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a list")
    return [_scalar_str(item, key) for item in value]


def _opt_bool(data: Mapping, key: str) -> bool | None:
    value = data.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise ValueError(f"field {key!r} must be a boolean")


def _opt_duration(data: Mapping, key: str) -> timedelta | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return timedelta(microseconds=value / 1000)
    return parse_duration(value)


def _list_of(data: Mapping, key: str, convert) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be a list")
    return [convert(item) for item in value]


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _compact(data: dict) -> dict:
    return {key: value for key, value in data.items() if value is not None and value != []}


# --- hooks ---------------------------------------------------------------

def _hook_from_dict(data: Any) -> Hook:
    data = _mapping(data, "hook")
    return Hook(
        name=_str(data, "name"),
        type=_str(data, "type"),
        path=_opt_str(data, "path"),
        arguments=_str_list(data, "arguments"),
    )


def _hook_to_dict(hook: Hook) -> dict:
    return {
        "name": hook.name,
        "type": _plain(hook.type),
        **_compact({"path": hook.path, "arguments": list(hook.arguments)}),
    }


# --- stores --------------------------------------------------------------

def _store_config_from_raw(kind: str, raw: Any) -> Any:
    if kind == StoreKind.VAULT and isinstance(raw, Mapping) and "vaultAPIAddress" in raw:
        return StoreConfigVault(vault_api_address=_str(raw, "vaultAPIAddress"))
    return raw


def _store_config_to_raw(value: Any) -> Any:
    if isinstance(value, StoreConfigVault):
        return {"vaultAPIAddress": value.vault_api_address}
    return value


def _store_from_dict(data: Any) -> KubeconfigStore:
    data = _mapping(data, "kubeconfig store")
    kind = _str(data, "kind")
    cache_raw = data.get("cache")
    cache = None
    if cache_raw is not None:
        cache_map = _mapping(cache_raw, "cache")
        cache = CacheConfig(kind=_str(cache_map, "kind"), config=cache_map.get("config"))
    return KubeconfigStore(
        id=_opt_str(data, "id"),
        kind=kind,
        kubeconfig_name=_opt_str(data, "kubeconfigName"),
        paths=_str_list(data, "paths"),
        refresh_index_after=_opt_duration(data, "refreshIndexAfter"),
        required=_opt_bool(data, "required"),
        show_prefix=_opt_bool(data, "showPrefix"),
        config=_store_config_from_raw(kind, data.get("config")),
        cache=cache,
    )


def _store_to_dict(store: KubeconfigStore) -> dict:
    cache = None
    if store.cache is not None:
        cache = _compact({"kind": _plain(store.cache.kind), "config": store.cache.config})
    refresh = None
    if store.refresh_index_after is not None:
        refresh = format_duration(store.refresh_index_after)
    return _compact(
        {
            "id": store.id,
            "kind": _plain(store.kind),
            "kubeconfigName": store.kubeconfig_name,
            "paths": list(store.paths),
            "refreshIndexAfter": refresh,
            "required": store.required,
            "showPrefix": store.show_prefix,
            "config": _store_config_to_raw(store.config),
            "cache": cache,
        }
    )


# --- configuration -------------------------------------------------------

def config_from_dict(data):
    """Build a Config from its YAML mapping."""
    data = _mapping(data, "config")
    return Config(
        kind=_str(data, "kind"),
        version=_str(data, "version"),
        kubeconfig_name=_opt_str(data, "kubeconfigName"),
        refresh_index_after=_opt_duration(data, "refreshIndexAfter"),
        show_preview=_opt_bool(data, "showPreview"),
        hooks=_list_of(data, "hooks", _hook_from_dict),
        kubeconfig_stores=_list_of(data, "kubeconfigStores", _store_from_dict),
    )


def config_to_dict(config):
    """Render a Config as a YAML-ready mapping."""
    refresh = None
    if config.refresh_index_after is not None:
        refresh = format_duration(config.refresh_index_after)
    return {
        "kind": config.kind,
        "version": config.version,
        **_compact(
            {
                "kubeconfigName": config.kubeconfig_name,
                "refreshIndexAfter": refresh,
                "showPreview": config.show_preview,
                "hooks": [_hook_to_dict(hook) for hook in config.hooks],
                "kubeconfigStores": [_store_to_dict(store) for store in config.kubeconfig_stores],
            }
        ),
    }


def _kubeconfig_path_from_dict(data: Any) -> KubeconfigPath:
    data = _mapping(data, "kubeconfig path")
    return KubeconfigPath(path=_str(data, "path"), store=_str(data, "store"))


def config_old_from_dict(data):
    """Build a ConfigOld from its YAML mapping."""
    data = _mapping(data, "config")
    return ConfigOld(
        kubeconfig_name=_str(data, "kubeconfigName"),
        kubeconfig_rediscovery_interval=_opt_duration(data, "kubeconfigRediscoveryInterval"),
        vault_api_address=_str(data, "vaultAPIAddress"),
        hooks=_list_of(data, "hooks", _hook_from_dict),
        kubeconfig_paths=_list_of(data, "kubeconfigPaths", _kubeconfig_path_from_dict),
    )


def config_old_to_dict(config):
    """Render a ConfigOld as a YAML-ready mapping."""
    interval = None
    if config.kubeconfig_rediscovery_interval is not None:
        interval = format_duration(config.kubeconfig_rediscovery_interval)
    return _compact(
        {
            "kubeconfigName": config.kubeconfig_name or None,
            "kubeconfigRediscoveryInterval": interval,
            "vaultAPIAddress": config.vault_api_address or None,
            "hooks": [_hook_to_dict(hook) for hook in config.hooks],
            "kubeconfigPaths": [
                {"path": item.path, "store": _plain(item.store)} for item in config.kubeconfig_paths
            ],
        }
    )


# --- index and state -----------------------------------------------------

def index_from_dict(data):
    """Build an Index from its YAML mapping."""
    data = _mapping(data, "index")
    mapping = _mapping(data.get("contextToPathMapping"), "contextToPathMapping")
    return Index(
        kind=_str(data, "kind"),
        context_to_path_mapping={
            _scalar_str(key, "context"): _scalar_str(value, "path") for key, value in mapping.items()
        },
    )


def index_to_dict(index):
    """Render an Index as a YAML-ready mapping."""
    return {
        "kind": _plain(index.kind),
        "contextToPathMapping": dict(index.context_to_path_mapping),
    }


def index_state_from_dict(data):
    """Build an IndexState from its YAML mapping."""
    data = _mapping(data, "index state")
    return IndexState(kind=_str(data, "kind"), last_update_time=_parse_time(data.get("lastUpdateTime")))


def index_state_to_dict(state):
    """Render an IndexState as a YAML-ready mapping."""
    return {"kind": _plain(state.kind), "lastUpdateTime": _format_time(state.last_update_time)}


def hook_state_from_dict(data):
    """Build a HookState from its YAML mapping."""
    data = _mapping(data, "hook state")
    return HookState(
        hook_name=_str(data, "hookName"),
        last_execution_time=_parse_time(data.get("lastExecutionTime")),
    )


def hook_state_to_dict(state):
    """Render a HookState as a YAML-ready mapping."""
    return {"hookName": state.hook_name, "lastExecutionTime": _format_time(state.last_execution_time)}