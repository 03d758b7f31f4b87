"""Command-line interface: the argument parser and configuration preparation."""

from __future__ import annotations

import argparse
import os
import platform
import re
import sys
from collections.abc import Mapping

from kubeswitch.config import ConfigError, load_config_from_file
from kubeswitch.flags import DEFAULT_KUBECONFIG_PATH, get_store_from_flag_and_env
from kubeswitch.models import Config
from kubeswitch.validation import validate_config

DEFAULT_KUBECONFIG_NAME = "config"
DEFAULT_STORE = "filesystem"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_ENV_VAR = re.compile(r"\$(?:\{([^}]*)\}|([A-Za-z_][A-Za-z0-9_]*))")


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def _add_bool(parser: argparse.ArgumentParser, flag: str, default: bool, help_text: str) -> None:
    parser.add_argument(
        flag,
        nargs="?",
        const=True,
        default=default,
        type=_parse_bool,
        metavar="BOOL",
        help=help_text,
    )


def _default_config_path() -> str:
    return os.path.expandvars("$HOME/.kube/switch-config.yaml")


def _default_state_directory() -> str:
    return os.path.expandvars("$HOME/.kube/switch-state")


def _add_state_directory(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument("--state-directory", default=_default_state_directory(), help=help_text)


def _add_config_path(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config-path",
        default=_default_config_path(),
        help="path on the local filesystem to the configuration file.",
    )


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    _add_bool(parser, "--debug", False, "show debug logs")
    _add_bool(parser, "--no-index", False, "stores do not read from index files. The index is refreshed.")
    parser.add_argument(
        "--kubeconfig-path",
        default=DEFAULT_KUBECONFIG_PATH,
        help="path to be recursively searched for kubeconfigs. Can be a file or a directory "
        "on the local filesystem or a path in Vault.",
    )
    _add_state_directory(parser, "path to the local directory used for storing internal state.")


def _add_context_flags(parser: argparse.ArgumentParser) -> None:
    _add_common_flags(parser)
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE,
        help='the backing store to be searched for kubeconfig files. Can be either "filesystem" or "vault"',
    )
    parser.add_argument(
        "--kubeconfig-name",
        default=DEFAULT_KUBECONFIG_NAME,
        help="only shows kubeconfig files with this name. Accepts wildcard arguments '*' and '?'. "
        "Defaults to 'config'.",
    )
    parser.add_argument(
        "--vault-api-address",
        default="",
        help='the API address of the Vault store. Overrides the default "vaultAPIAddress" field in '
        'the SwitchConfig. This flag is overridden by the environment variable "VAULT_ADDR".',
    )
    _add_config_path(parser)
    _add_bool(
        parser,
        "--show-preview",
        True,
        "show preview of the selected kubeconfig. Possibly makes sense to disable when using vault "
        "as the kubeconfig store to prevent excessive requests against the API.",
    )


def build_parser():
    """Build the parser for the ``switch`` command and all its subcommands.

    The canonical subcommand name is stored as ``subcommand`` (``None`` for the root).
    """
    parser = argparse.ArgumentParser(prog="switch", description="The kubectx for operators.")
    _add_context_flags(parser)
    parser.set_defaults(subcommand=None)
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    set_context = commands.add_parser(
        "set-context",
        help="Switch to context name provided as first argument",
        description="Switch to context name provided as first argument. KubeContext name has to "
        "exist in any of the found Kubeconfig files.",
    )
    set_context.add_argument("context", help="name of the context to switch to")
    _add_context_flags(set_context)
    set_context.set_defaults(subcommand="set-context")

    list_contexts = commands.add_parser(
        "list-contexts", aliases=["ls"], help="List all available contexts without fuzzy search"
    )
    _add_context_flags(list_contexts)
    list_contexts.set_defaults(subcommand="list-contexts")

    clean = commands.add_parser(
        "clean",
        help="Cleans all temporary and cached kubeconfig files",
        description="Cleans the temporary kubeconfig files created in the directory "
        "$HOME/.kube/switch_tmp and flushes every cache",
    )
    clean.set_defaults(subcommand="clean")

    namespace = commands.add_parser(
        "namespace",
        aliases=["ns"],
        help="Change the current namespace",
        description="Search namespaces in the current cluster and change to it.",
    )
    namespace.add_argument("namespace", nargs="?", default=None, help="namespace to switch to")
    _add_common_flags(namespace)
    namespace.set_defaults(subcommand="namespace")

    hooks = commands.add_parser("hooks", help="Run configured hooks")
    _add_config_path(hooks)
    _add_state_directory(hooks, "path to the state directory.")
    hooks.add_argument("--hook-name", default="", help="the name of the hook that should be run.")
    _add_bool(
        hooks,
        "--run-immediately",
        True,
        "run hooks right away. Do not respect the hooks execution configuration.",
    )
    hooks.set_defaults(subcommand="hooks", hooks_command=None)
    hooks_commands = hooks.add_subparsers(dest="hooks_command", metavar="COMMAND")
    hooks_ls = hooks_commands.add_parser("ls", help="List configured hooks")
    _add_config_path(hooks_ls)
    _add_state_directory(hooks_ls, "path to the state directory.")

    history = commands.add_parser(
        "history",
        aliases=["h"],
        help="Switch to any previous tuple {context,namespace} from the history",
        description="Lists the context history with the ability to switch to a previous context.",
    )
    _add_context_flags(history)
    history.set_defaults(subcommand="history")

    previous = commands.add_parser(
        "set-previous-context", help="Switch to the previous context from the history"
    )
    previous.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    _add_context_flags(previous)
    previous.set_defaults(subcommand="set-previous-context")

    last = commands.add_parser("set-last-context", help="Switch to the last used context from the history")
    last.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    _add_context_flags(last)
    last.set_defaults(subcommand="set-last-context")

    # "alias ALIAS=CONTEXT", "alias ls" and "alias rm NAME" share one positional list
    alias = commands.add_parser(
        "alias",
        help="Create an alias for a context. Use ALIAS=CONTEXT_NAME",
        description="Create an alias with ALIAS=CONTEXT_NAME, list aliases with 'ls' "
        "or remove one with 'rm ALIAS'.",
    )
    alias.add_argument("alias_args", nargs="*", metavar="ARG")
    _add_context_flags(alias)
    alias.set_defaults(subcommand="alias")

    version = commands.add_parser(
        "version", help="show Switch Version info", description="show the Switch version information"
    )
    version.set_defaults(subcommand="version")

    gardener = commands.add_parser(
        "gardener",
        help="gardener specific commands",
        description="Commands that can only be used if a Gardener store is configured.",
    )
    gardener.set_defaults(subcommand="gardener", gardener_command=None)
    gardener_commands = gardener.add_subparsers(dest="gardener_command", metavar="COMMAND")
    controlplane = gardener_commands.add_parser("controlplane", help="Switch to the Shoot's controlplane")
    _add_common_flags(controlplane)
    _add_config_path(controlplane)

    return parser


def _expand(text: str, environ: Mapping[str, str]) -> str:
    home = environ.get("HOME", "")
    if text.startswith("~") and home:
        text = home + text[1:]
    return _ENV_VAR.sub(lambda m: environ.get(m.group(1) or m.group(2), ""), text)


def _aggregate(errors: list) -> str:
    messages = [str(error) for error in errors]
    if len(messages) == 1:
        return messages[0]
    return "[" + ", ".join(messages) + "]"


def prepare_config(config_path, kubeconfig_path, kubeconfig_name, storage_backend, environ=None):
    """Load and validate the configuration and add the store from flag and environment.

    Returns ``(config, kubeconfig_name)`` where the name is the effective default
    kubeconfig file name.
    """
    env: Mapping[str, str] = os.environ if environ is None else environ

    try:
        config = load_config_from_file(_expand(str(config_path), env))
    except (ConfigError, OSError) as exc:
        raise ConfigError(f"failed to read switch config file: {exc}") from exc

    if config is not None:
        errors = validate_config(config)
        if errors:
            raise ConfigError(f"the switch configuration file contains errors: {_aggregate(errors)}")
    else:
        config = Config()

    if kubeconfig_name == DEFAULT_KUBECONFIG_NAME and config.kubeconfig_name:
        kubeconfig_name = config.kubeconfig_name

    extra_store = get_store_from_flag_and_env(config, kubeconfig_path, storage_backend, kubeconfig_name, env)
    if extra_store is not None:
        config.kubeconfig_stores.append(extra_store)

    if not config.kubeconfig_stores:
        raise ConfigError(
            "you need to point kubeswitch to a kubeconfig file. This can be done by setting the "
            "environment variable KUBECONFIG, setting the flag --kubeconfig-path, having a default "
            "kubeconfig file at ~/.kube/config or providing a switch configuration file"
        )
    return config, kubeconfig_name


def version_text(version, build_date):
    """Return the text printed by the ``version`` subcommand."""
    return (
        "Switch:\n"
        f"\t\tversion     : {version}\n"
        f"\t\tbuild date  : {build_date}\n"
        f"\t\tpython      : {platform.python_version()}\n"
        f"\t\timplementation : {platform.python_implementation()}\n"
        f"\t\tplatform    : {sys.platform}/{platform.machine()}\n"
    )