"""Data models for mesh node configuration."""

from meshnetcfg.models.addressing import AddressPlan
from meshnetcfg.models.artifacts import BackupRecord, GeneratedArtifacts
from meshnetcfg.models.node import InterfaceAssignment, NodeIdentity
from meshnetcfg.models.plan import (
    BUILTIN_PLANS,
    BridgeSpec,
    NetworkPlan,
    NodeIdPolicy,
    VlanRole,
    VlanSpec,
)

__all__ = [
    "AddressPlan",
    "BUILTIN_PLANS",
    "BackupRecord",
    "BridgeSpec",
    "GeneratedArtifacts",
    "InterfaceAssignment",
    "NetworkPlan",
    "NodeIdPolicy",
    "NodeIdentity",
    "VlanRole",
    "VlanSpec",
]
