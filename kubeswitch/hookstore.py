"""Filesystem target for kubeconfigs exported by the landscape sync hook."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from kubeswitch.models import StoreKind


class FileStore:
    """Writes exported kubeconfigs as files below a landscape directory."""

    def get_kind(self):
        return StoreKind.FILESYSTEM

    def create_landscape_directory(self, landscape_directory):
        """Create the landscape root directory; an existing one is left as it is."""
        try:
            os.mkdir(landscape_directory, 0o700)
        except FileExistsError:
            pass
        except OSError as exc:
            raise OSError(
                exc.errno,
                f"failed to create filesystem directory for kubeconfigs {str(landscape_directory)!r}: {exc}",
            ) from exc

    def write_kubeconfig_file(self, directory, kubeconfig_name, kubeconfig):
        """Write ``kubeconfig`` to ``<directory>/<kubeconfig_name>`` and return that path."""
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise OSError(
                exc.errno, f"failed to create directory {str(directory)!r}: {exc}"
            ) from exc

        if isinstance(kubeconfig, str):
            kubeconfig = kubeconfig.encode("utf-8")
        target = Path(f"{directory}/{kubeconfig_name}")
        target.write_bytes(kubeconfig)
        return target

    def clean_existing_kubeconfigs(self, directory):
        """Remove ``directory`` and everything below it; a missing path is not an error."""
        path = Path(directory)
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)