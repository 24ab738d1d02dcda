"""Proxmox VE full-mesh network and OpenFabric configuration generator."""

__version__ = "0.1.0"
