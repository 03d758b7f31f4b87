"""Validation of the switch configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from kubeswitch.models import VALID_CONFIG_VERSIONS, Config, Hook, HookType, StoreKind


class ErrorType(str, Enum):
    """Category of a validation error."""

    INVALID = "FieldValueInvalid"
    REQUIRED = "FieldValueRequired"
    FORBIDDEN = "FieldValueForbidden"


_DESCRIPTIONS = {
    ErrorType.INVALID: "Invalid value",
    ErrorType.REQUIRED: "Required value",
    ErrorType.FORBIDDEN: "Forbidden",
}


@dataclass(frozen=True)
class FieldError:
    """A problem found at one field of the configuration."""

    type: ErrorType
    field: str
    bad_value: Any
    detail: str

    def __str__(self) -> str:
        body = _DESCRIPTIONS[self.type]
        if self.type is ErrorType.INVALID:
            value = f'"{self.bad_value}"' if isinstance(self.bad_value, str) else repr(self.bad_value)
            body = f"{body}: {value}"
        if self.detail:
            body = f"{body}: {self.detail}"
        return f"{self.field}: {body}"


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _is_member(value: Any, enum_cls: type[Enum]) -> bool:
    return any(value == member for member in enum_cls)


def _listing(enum_cls: type[Enum]) -> str:
    return "[" + " ".join(f'"{member.value}"' for member in sorted(enum_cls, key=lambda m: m.value)) + "]"


def validate_config(config: Config) -> list[FieldError]:
    """Return every problem found in ``config``; an empty list means it is valid."""
    errors: list[FieldError] = []
    seen: set[str] = set()
    uses_index = config.refresh_index_after is not None

    if config.version not in VALID_CONFIG_VERSIONS:
        versions = "[" + " ".join(f'"{v}"' for v in VALID_CONFIG_VERSIONS) + "]"
        errors.append(
            FieldError(
                ErrorType.INVALID,
                "version",
                config.version,
                f'Config version "{config.version}" is unknown. Valid versions are {versions}',
            )
        )

    for position, store in enumerate(config.kubeconfig_stores):
        store_id = store.id if store.id is not None else ""
        store_uses_index = uses_index or store.refresh_index_after is not None
        base = f"kubeconfigStores[{position}]"
        kind = _plain(store.kind)

        if not _is_member(kind, StoreKind):
            errors.append(
                FieldError(
                    ErrorType.INVALID,
                    f"{base}.kind",
                    kind,
                    f'kind "{kind}" of kubeconfig store is unknown. Valid kinds are {_listing(StoreKind)}',
                )
            )

        if not store.paths and kind in (StoreKind.FILESYSTEM, StoreKind.VAULT):
            errors.append(
                FieldError(
                    ErrorType.INVALID,
                    f"{base}.paths",
                    "",
                    "Must provide at least one path for the kubeconfig store.",
                )
            )

        # an index file name is derived from kind and ID, so they must be unique
        key = f"{kind}:{store_id}"
        if store_uses_index and key in seen:
            errors.append(
                FieldError(
                    ErrorType.INVALID,
                    f"{base}.id",
                    store_id,
                    f'there are multiple kubeconfig stores with the same Kind "{kind}" configured. '
                    "In the switch configuration file, please set a unique ID for the kubeconfig store",
                )
            )
        seen.add(key)

    if config.hooks:
        errors.extend(_validate_hooks("hooks", config.hooks))

    return errors


def _validate_hooks(path: str, hooks: list[Hook]) -> list[FieldError]:
    errors: list[FieldError] = []
    for position, hook in enumerate(hooks):
        base = f"{path}[{position}]"
        if not _is_member(hook.type, HookType):
            errors.append(
                FieldError(
                    ErrorType.INVALID,
                    f"{base}.type",
                    _plain(hook.type),
                    f"Unknown hook type. Valid hook types are {_listing(HookType)}",
                )
            )
        if hook.type == HookType.EXECUTABLE and hook.path is None:
            errors.append(
                FieldError(
                    ErrorType.REQUIRED,
                    f"{base}.path",
                    None,
                    "Path to the hook executable has to be provided",
                )
            )
        if hook.type == HookType.INLINE_COMMAND and not hook.arguments:
            errors.append(
                FieldError(
                    ErrorType.REQUIRED,
                    f"{base}.arguments",
                    None,
                    "arguments have to be provided for a hook with an inline command",
                )
            )
    return errors