"""Container and orchestration profiles.

- kubectl-pods: ``kubectl get pods`` table rows labelled by pod status
- docker-ps, docker-images, kubectl-services: table rows condensed to one
  line per entity; failing containers are errors and dangling images
  (``<none>:<none>``) warnings
- docker-logs / kubectl-logs: plain log lines, deduplicated on render
"""

from __future__ import annotations

from tokentrim.extractors import PatternTemplate
from tokentrim.models import RecordKind, Strategy
from tokentrim.tools.base import InputStream, RendererKind, ToolProfile

# NAME READY STATUS RESTARTS AGE, with an optional leading NAMESPACE column
_POD_ROW = r"^(?:\S+\s+)?(?P<message>\S+)\s+\d+/\d+\s+(?P<code>{status})\s+\d+.*$"

KUBECTL_PODS_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(RecordKind.INFO, _POD_ROW.format(status="Running|Completed|Succeeded")),
    PatternTemplate.compile(
        RecordKind.ERROR,
        _POD_ROW.format(status=r"CrashLoopBackOff|Error|ImagePullBackOff|ErrImagePull|OOMKilled|Init:\S+"),
    ),
    PatternTemplate.compile(RecordKind.WARNING, _POD_ROW.format(status=r"\S+")),
)


# docker ps: CONTAINER ID  IMAGE  COMMAND  CREATED  STATUS  PORTS  NAMES
# Columns are separated by two or more spaces; STATUS and PORTS may contain single spaces.


def _container_row(status: str) -> str:
    return (
        r'^(?P<id>[0-9a-f]{12,64})\s+(?P<image>\S+)\s+"[^"]*"\s+(?P<created>.+? ago)\s{2,}'
        r"(?P<status>(?:" + status + r")(?: \S+)*)\s{2,}(?:(?P<ports>\S+(?: \S+)*)\s{2,})?(?P<name>\S+)$"
    )


_CONTAINER = "{name} {image} {status} {ports}"

DOCKER_PS_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(RecordKind.SUMMARY, r"^CONTAINER ID\s+IMAGE\s+COMMAND\b.*$"),
    PatternTemplate.compile(
        RecordKind.ERROR,
        _container_row(r"Exited \([1-9]\d*\)|Restarting|Dead|Up(?: \S+)* \(unhealthy\)"),
        message_format=_CONTAINER,
    ),
    PatternTemplate.compile(RecordKind.INFO, _container_row(r"Up|Exited \(0\)"), message_format=_CONTAINER),
    PatternTemplate.compile(RecordKind.WARNING, _container_row(r"\S+"), message_format=_CONTAINER),
)

# docker images: REPOSITORY  TAG  IMAGE ID  CREATED  SIZE
_IMAGE_ROW = (
    r"^(?P<repo>{repo})\s+(?P<tag>{tag})\s+(?P<id>(?:sha256:)?[0-9a-f]{{12,64}})\s+"
    r"(?P<created>.+? ago|N/A)\s+(?P<size>[\d.]+\s?[kMGT]?B)$"
)

DOCKER_IMAGES_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(RecordKind.SUMMARY, r"^REPOSITORY\s+TAG\s+IMAGE ID\b.*$"),
    PatternTemplate.compile(
        RecordKind.WARNING,
        _IMAGE_ROW.format(repo="<none>", tag="<none>"),
        code="dangling",
        message_format="{id} {size} {created}",
    ),
    PatternTemplate.compile(
        RecordKind.INFO,
        _IMAGE_ROW.format(repo=r"\S+", tag=r"\S+"),
        message_format="{repo}:{tag} {size} {created}",
    ),
)

# kubectl get services: [NAMESPACE] NAME  TYPE  CLUSTER-IP  EXTERNAL-IP  PORT(S)  AGE
_SERVICE_ROW = (
    r"^(?:(?P<namespace>\S+)\s+)?(?P<name>\S+)\s+"
    r"(?P<type>ClusterIP|NodePort|LoadBalancer|ExternalName)\s+(?P<ip>\S+)\s+"
    r"(?P<external>{external})\s+(?P<ports>\S+)\s+(?P<age>\S+)$"
)

KUBECTL_SERVICES_TEMPLATES: tuple[PatternTemplate, ...] = (
    PatternTemplate.compile(RecordKind.SUMMARY, r"^(?:NAMESPACE\s+)?NAME\s+TYPE\s+CLUSTER-IP\b.*$"),
    PatternTemplate.compile(RecordKind.SUMMARY, r"^No resources found\b.*$"),
    PatternTemplate.compile(
        RecordKind.WARNING,
        _SERVICE_ROW.format(external="<pending>"),
        message_format="{namespace} {name} {type} {ip} {external} {ports}",
    ),
    PatternTemplate.compile(
        RecordKind.INFO,
        _SERVICE_ROW.format(external="<none>"),
        message_format="{namespace} {name} {type} {ip} {ports}",
    ),
    PatternTemplate.compile(
        RecordKind.INFO,
        _SERVICE_ROW.format(external=r"\S+"),
        message_format="{namespace} {name} {type} {ip} {external} {ports}",
    ),
)


def kubectl_pods_profile() -> ToolProfile:
    """Build the kubectl get pods profile."""
    return ToolProfile(
        tool_id="kubectl-pods",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.BY_CODE,
        templates=KUBECTL_PODS_TEMPLATES,
    )


def docker_logs_profile() -> ToolProfile:
    """Build the docker logs profile (containers log to both streams)."""
    return ToolProfile(
        tool_id="docker-logs",
        strategy=Strategy.PLAIN,
        renderer=RendererKind.DEDUPED,
        stream=InputStream.COMBINED,
        aliases=("docker-compose-logs",),
    )


def kubectl_logs_profile() -> ToolProfile:
    """Build the kubectl logs profile."""
    return ToolProfile(
        tool_id="kubectl-logs",
        strategy=Strategy.PLAIN,
        renderer=RendererKind.DEDUPED,
        stream=InputStream.COMBINED,
    )


def docker_ps_profile() -> ToolProfile:
    """Build the docker ps profile."""
    return ToolProfile(
        tool_id="docker-ps",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.ENTITY,
        templates=DOCKER_PS_TEMPLATES,
    )


def docker_images_profile() -> ToolProfile:
    """Build the docker images profile."""
    return ToolProfile(
        tool_id="docker-images",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.ENTITY,
        templates=DOCKER_IMAGES_TEMPLATES,
    )


def kubectl_services_profile() -> ToolProfile:
    """Build the kubectl get services profile."""
    return ToolProfile(
        tool_id="kubectl-services",
        strategy=Strategy.PATTERN,
        renderer=RendererKind.ENTITY,
        templates=KUBECTL_SERVICES_TEMPLATES,
        aliases=("kubectl-svc",),
    )
