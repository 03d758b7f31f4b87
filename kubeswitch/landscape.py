"""Naming rules and index inspection for the Gardener landscape sync hook."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence

_GARDEN_NAMESPACE = "garden"
_ANNOTATION_SHOOT_USE_AS_SEED = "shoot.gardener.cloud/use-as-seed"
_KUBECONFIG_NAMESPACE_MARKER = ".kubeconfig"


def get_previous_identifiers(search_index, landscape):
    """Return the shoot and shooted-seed identifiers recorded in ``search_index``."""
    shoot_identifiers: set[str] = set()
    seed_identifiers: set[str] = set()

    if not search_index.has_content():
        return shoot_identifiers, seed_identifiers

    for kubeconfig_filepath in (search_index.get_content() or {}).values():
        parent_directory = os.path.dirname(kubeconfig_filepath)
        name = os.path.basename(kubeconfig_filepath)
        # directories are created with a uniform prefix
        if f"{landscape}-shoot-" in kubeconfig_filepath:
            shoot_identifiers.add(name)
        # shooted seeds always live in a sub-directory "shooted-seeds"
        if "shooted-seeds" in parent_directory and f"{landscape}-seed-" in name:
            seed_identifiers.add(name)
    return shoot_identifiers, seed_identifiers


def resolve_shoot_name(namespace, owner_references):
    """Find the Shoot a kubeconfig secret belongs to; ``None`` if it belongs to none.

    ``owner_references`` is a sequence of mappings with ``kind`` and ``name`` keys.
    """
    references: Sequence[Mapping] = owner_references or []
    if not references or references[0].get("kind") != "Shoot":
        if _KUBECONFIG_NAMESPACE_MARKER not in namespace:
            return None
        return namespace.split(_KUBECONFIG_NAMESPACE_MARKER)[0]
    return references[0].get("name")


def is_shooted_seed(namespace, annotations):
    """Tell whether a Shoot is used as a seed."""
    if namespace == _GARDEN_NAMESPACE and annotations is not None:
        return _ANNOTATION_SHOOT_USE_AS_SEED in annotations
    return False


def secret_identifier(namespace, shoot_name):
    return f"{namespace}/{shoot_name}"


def shoot_identifier(landscape, project, shoot):
    """``<landscape>-shoot-<project>-<shoot>``"""
    return f"{landscape}-shoot-{project}-{shoot}"


def shoot_kubeconfig_directory(root_directory, landscape, seed_name, identifier):
    """``<root>/<landscape>/shoots/seed-<seed>/<identifier>``"""
    return f"{root_directory}/{landscape}/shoots/seed-{seed_name}/{identifier}"


def seed_identifier(landscape, shoot):
    """``<landscape>-seed-<shoot>``"""
    return f"{landscape}-seed-{shoot}"


def seed_kubeconfig_directory(root_directory, landscape, identifier):
    """``<root>/<landscape>/shooted-seeds/<identifier>``"""
    return f"{root_directory}/{landscape}/shooted-seeds/{identifier}"