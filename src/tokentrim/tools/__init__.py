"""Built-in tool profiles.

Provides profiles for:
- mypy: JSON lines with text fallback (streaming)
- ruff, eslint: JSON documents (structured)
- tsc, git-status, git-log, kubectl-pods, kubectl-services, docker-ps,
  docker-images: line templates (pattern)
- pytest, cargo-test, git-diff: phase tables (phased)
- go-test: test2json events (streaming)
- docker-logs, kubectl-logs: plain logs

Also provides one generic profile per strategy for unknown tools.
"""

from tokentrim.tools.base import GroupMode, InputStream, RendererKind, ToolProfile, ToolRegistry
from tokentrim.tools.cargo_tool import cargo_test_profile
from tokentrim.tools.container_tool import (
    docker_images_profile,
    docker_logs_profile,
    docker_ps_profile,
    kubectl_logs_profile,
    kubectl_pods_profile,
    kubectl_services_profile,
)
from tokentrim.tools.eslint_tool import eslint_profile
from tokentrim.tools.generic import generic_profiles
from tokentrim.tools.git_tool import git_diff_profile, git_log_profile, git_status_profile
from tokentrim.tools.go_test_tool import go_test_profile
from tokentrim.tools.mypy_tool import mypy_profile
from tokentrim.tools.pytest_tool import pytest_profile
from tokentrim.tools.ruff_tool import ruff_profile
from tokentrim.tools.tsc_tool import tsc_profile


def default_registry() -> ToolRegistry:
    """Build a fresh registry holding every built-in profile."""
    registry = ToolRegistry()
    for build in (
        mypy_profile,
        ruff_profile,
        eslint_profile,
        tsc_profile,
        pytest_profile,
        cargo_test_profile,
        go_test_profile,
        git_status_profile,
        git_log_profile,
        git_diff_profile,
        kubectl_pods_profile,
        kubectl_services_profile,
        docker_ps_profile,
        docker_images_profile,
        docker_logs_profile,
        kubectl_logs_profile,
    ):
        registry.register(build())
    for profile in generic_profiles():
        registry.register(profile, generic=True)
    return registry


__all__ = [
    "GroupMode",
    "InputStream",
    "RendererKind",
    "ToolProfile",
    "ToolRegistry",
    "default_registry",
]
