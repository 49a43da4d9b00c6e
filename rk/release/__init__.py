"""Commit-driven release automation.

Pure pieces (classification, version arithmetic, notes, floating refs) are
plain functions; ``ReleaseOrchestrator`` sequences them with the gateways.
"""

from rk.release.config import LoadedConfig, ReleaseConfig, load_config, resolve_config_path
from rk.release.errors import ReleaseError
from rk.release.model import BumpLevel, Phase, ReleaseDecision, RunOutcome, Version
from rk.release.orchestrator import ReleaseOrchestrator

__all__ = [
    "BumpLevel",
    "LoadedConfig",
    "Phase",
    "ReleaseConfig",
    "ReleaseDecision",
    "ReleaseError",
    "ReleaseOrchestrator",
    "RunOutcome",
    "Version",
    "load_config",
    "resolve_config_path",
]
