"""Command-line argument handling: default subcommands, kubeconfig paths and the env store."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping

from kubeswitch.models import Config, KubeconfigStore

DEFAULT_KUBECONFIG_PATH = "$HOME/.kube/config"
ENV_AND_FLAG_STORE_ID = "env-and-flag"
_KUBECONFIG_SEPARATOR = ":"

_SET_CONTEXT = "set-context"
_SET_PREVIOUS_CONTEXT = "set-previous-context"
_SET_LAST_CONTEXT = "set-last-context"

# flags whose value is given as the following argument when written without "="
_VALUE_FLAGS = frozenset(
    {
        "--store",
        "--kubeconfig-name",
        "--vault-api-address",
        "--config-path",
        "--kubeconfig-path",
        "--state-directory",
        "--hook-name",
    }
)

_ENV_VAR = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def _expand_env(text: str, environ: Mapping[str, str]) -> str:
    """Replace ``$VAR`` and ``${VAR}``; unset variables become empty."""
    return _ENV_VAR.sub(lambda m: environ.get(m.group(1) or m.group(2), ""), text)


def _first_positional(argv: list[str]) -> str | None:
    tokens = iter(argv)
    for token in tokens:
        if token.startswith("-") and token != "-":
            if "=" not in token and token in _VALUE_FLAGS:
                next(tokens, None)
            continue
        return token
    return None


def rewrite_args(argv, known_commands):
    """Route arguments that name no subcommand to the matching default subcommand.

    An unknown first argument is taken as a context name, ``-`` selects the
    previous context and ``.`` the last one.
    """
    args = list(argv)
    if not args:
        return args

    if args[0] == "-":
        return [_SET_PREVIOUS_CONTEXT, *args]
    if args[0] == ".":
        return [_SET_LAST_CONTEXT, *args]

    command = _first_positional(args)
    if command is not None and command not in set(known_commands):
        return [_SET_CONTEXT, *args]
    return args


def parse_alias_argument(argument):
    """Split ``ALIAS=CONTEXT_NAME`` into ``(alias, context_name)``."""
    parts = argument.split("=") if isinstance(argument, str) else []
    if len(parts) != 2:
        raise ValueError("please provide the alias in the form ALIAS=CONTEXT_NAME")
    return parts[0], parts[1]


def _kubeconfig_path_from_flag(kubeconfig_path: str, environ: Mapping[str, str]) -> str:
    if not kubeconfig_path:
        return ""
    path = kubeconfig_path.replace("~", "$HOME")
    if path == DEFAULT_KUBECONFIG_PATH:
        expanded = _expand_env(DEFAULT_KUBECONFIG_PATH, environ)
        # a kubeconfig at the default location is optional
        return expanded if os.path.exists(expanded) else ""
    return _expand_env(path, environ)


def get_kubeconfig_path_from_flag(kubeconfig_path):
    """Resolve the ``--kubeconfig-path`` value; ``""`` if unset or a missing default file."""
    return _kubeconfig_path_from_flag(kubeconfig_path, os.environ)


def is_duplicate_path(stores, new_path):
    """Tell whether ``new_path`` is already one of the paths of the configured stores."""
    return any(path == new_path for store in stores for path in store.paths)


def get_store_from_flag_and_env(config, kubeconfig_path, storage_backend, kubeconfig_name, environ=None):
    """Build the extra store made of the ``--kubeconfig-path`` flag and ``KUBECONFIG``.

    Returns ``None`` when neither contributes a path.
    """
    env: Mapping[str, str] = os.environ if environ is None else environ
    stores: Iterable[KubeconfigStore] = config.kubeconfig_stores if isinstance(config, Config) else []
    stores = list(stores)
    paths: list[str] = []

    from_flag = _kubeconfig_path_from_flag(kubeconfig_path, env)
    if from_flag:
        paths.append(from_flag)

    for path in env.get("KUBECONFIG", "").split(_KUBECONFIG_SEPARATOR):
        if path and not path.endswith(".tmp") and not is_duplicate_path(stores, path):
            home = env.get("HOME", "")
            if path.startswith("~") and home:
                path = home + path[1:]
            paths.append(_expand_env(path, env))

    if not paths:
        return None

    return KubeconfigStore(
        id=ENV_AND_FLAG_STORE_ID,
        kind=storage_backend,
        kubeconfig_name=kubeconfig_name,
        paths=paths,
        show_prefix=False,
    )