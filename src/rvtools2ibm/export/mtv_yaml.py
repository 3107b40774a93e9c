"""Migration Toolkit for Virtualization (MTV / Forklift) manifests.

Generates NetworkMap, StorageMap and one Plan per migration wave, and
bundles them into a zip archive ready for ``oc apply -f``.
"""

from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Protocol

import yaml

from rvtools2ibm.config import MTVExportOptions
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import VDatastoreInfo, VNetworkInfo

logger = get_logger(__name__)

API_VERSION = "forklift.konveyor.io/v1beta1"
MANAGED_BY_LABEL = {"app.kubernetes.io/managed-by": "rvtools-analyzer"}
PREVIEW_VM_COUNT = 3
_WAVE_PREFIX = re.compile(r"Wave \d+: ")


class VMRef(Protocol):
    vm_name: str
    uuid: Optional[str]


class Wave(Protocol):
    name: str
    vms: list


def sanitize_name(name: str) -> str:
    """Kubernetes resource name: lowercase alphanumerics and '-', at most 63 chars."""
    name = re.sub(r"[^a-z0-9-]", "-", name.lower())
    name = re.sub(r"-+", "-", name).strip("-")
    return name[:63]


@dataclass
class PlanWave:
    name: str
    vms: list


def plan_waves(waves: Iterable[Wave]) -> list[PlanWave]:
    """Non-empty waves named for their Plan: "Wave 1: Pilot" -> "pilot"."""
    return [
        PlanWave(name=_WAVE_PREFIX.sub("", wave.name, count=1).lower(), vms=list(wave.vms))
        for wave in waves
        if wave.vms
    ]


def _document(obj: dict) -> str:
    return "---\n" + yaml.safe_dump(obj, default_flow_style=False, sort_keys=False)


class MTVYAMLGenerator:
    def __init__(self, options: Optional[MTVExportOptions] = None):
        self.options = options or MTVExportOptions()

    # ── helpers ─────────────────────────────────────────────────

    def _metadata(self, name: str) -> dict:
        return {
            "name": name,
            "namespace": self.options.namespace,
            "labels": dict(MANAGED_BY_LABEL),
        }

    def _providers(self) -> dict:
        ns = self.options.namespace
        return {
            "source": {"name": self.options.source_provider_name, "namespace": ns},
            "destination": {"name": self.options.destination_provider_name, "namespace": ns},
        }

    @staticmethod
    def _vm_reference(vm: VMRef) -> dict:
        ref = {"name": vm.vm_name}
        if vm.uuid:
            ref["id"] = vm.uuid
        return ref

    @staticmethod
    def _network_entry(nic: "VNetworkInfo") -> dict:
        return {
            "source": {
                "name": nic.network_name,
                "type": "dvportgroup" if "dvs" in (nic.switch_name or "") else "network",
            },
            # Pod networking by default; multus entries are edited in by hand
            "destination": {"type": "pod"},
        }

    def _storage_entry(self, datastore: "VDatastoreInfo") -> dict:
        return {
            "source": {"name": datastore.name},
            "destination": {
                "storageClass": self.options.default_storage_class,
                "accessMode": "ReadWriteOnce",
                "volumeMode": "Filesystem",
            },
        }

    # ── manifests ───────────────────────────────────────────────

    def generate_plan(self, wave_name: str, vms: Iterable[VMRef]) -> str:
        opts = self.options
        plan = {
            "apiVersion": API_VERSION,
            "kind": "Plan",
            "metadata": self._metadata(sanitize_name(wave_name)),
            "spec": {
                "warm": opts.warm,
                "targetNamespace": opts.target_namespace,
                "provider": self._providers(),
                "map": {
                    "network": {"name": opts.network_map_name, "namespace": opts.namespace},
                    "storage": {"name": opts.storage_map_name, "namespace": opts.namespace},
                },
                "vms": [self._vm_reference(vm) for vm in vms],
                "preserveStaticIPs": opts.preserve_static_ips,
            },
        }
        return _document(plan)

    def generate_network_map(self, networks: Iterable["VNetworkInfo"]) -> str:
        unique: dict[str, "VNetworkInfo"] = {}
        for nic in networks:
            unique.setdefault(nic.network_name, nic)

        network_map = {
            "apiVersion": API_VERSION,
            "kind": "NetworkMap",
            "metadata": self._metadata(self.options.network_map_name),
            "spec": {
                "map": [self._network_entry(nic) for nic in unique.values()],
                "provider": self._providers(),
            },
        }
        return _document(network_map)

    def generate_storage_map(self, datastores: Iterable["VDatastoreInfo"]) -> str:
        unique: dict[str, "VDatastoreInfo"] = {}
        for ds in datastores:
            unique.setdefault(ds.name, ds)

        storage_map = {
            "apiVersion": API_VERSION,
            "kind": "StorageMap",
            "metadata": self._metadata(self.options.storage_map_name),
            "spec": {
                "map": [self._storage_entry(ds) for ds in unique.values()],
                "provider": self._providers(),
            },
        }
        return _document(storage_map)

    def generate_bundle(
        self,
        waves: list[Wave],
        networks: Iterable["VNetworkInfo"],
        datastores: Iterable["VDatastoreInfo"],
    ) -> bytes:
        """Zip archive of every manifest plus an all-resources.yaml concatenation."""
        files: list[tuple[str, str]] = [
            ("network-map.yaml", self.generate_network_map(networks)),
            ("storage-map.yaml", self.generate_storage_map(datastores)),
        ]
        for index, wave in enumerate(waves, 1):
            files.append((
                f"plan-wave-{index}-{sanitize_name(wave.name)}.yaml",
                self.generate_plan(wave.name, wave.vms),
            ))
        combined = "\n".join(f"# {name}\n{content}" for name, content in files)
        files.append(("all-resources.yaml", combined))

        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, content in files:
                zf.writestr(name, content)

        logger.info(f"MTV bundle: {len(waves)} plan(s), {len(files)} files")
        return buf.getvalue()

    def generate_preview(self, vms: list[VMRef]) -> str:
        return self.generate_plan("preview", vms[:PREVIEW_VM_COUNT])
