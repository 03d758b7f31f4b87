"""Conversion of the legacy configuration layout into the current one."""

from __future__ import annotations

from kubeswitch.models import Config, ConfigOld, KubeconfigStore, StoreConfigVault, StoreKind


def convert_configuration(old: ConfigOld) -> Config:
    """Convert a legacy configuration into the current format."""
    config = Config(
        kind="SwitchConfig",
        version="v1alpha1",
        refresh_index_after=old.kubeconfig_rediscovery_interval,
        hooks=list(old.hooks),
    )
    if old.kubeconfig_name:
        config.kubeconfig_name = old.kubeconfig_name

    filesystem_store = KubeconfigStore(id="default", kind=StoreKind.FILESYSTEM)
    vault_store = KubeconfigStore(id="default", kind=StoreKind.VAULT)
    if old.vault_api_address:
        vault_store.config = StoreConfigVault(vault_api_address=old.vault_api_address)

    for entry in old.kubeconfig_paths:
        if entry.store == StoreKind.FILESYSTEM:
            filesystem_store.paths.append(entry.path)
        elif entry.store == StoreKind.VAULT:
            vault_store.paths.append(entry.path)

    config.kubeconfig_stores = [store for store in (filesystem_store, vault_store) if store.paths]
    return config