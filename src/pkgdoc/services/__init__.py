"""Hosting-service adapters and the static dispatch table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pkgdoc.services.base import Service
from pkgdoc.services.bitbucket import BitbucketService
from pkgdoc.services.github import GithubService
from pkgdoc.services.gitorious import GitoriousService
from pkgdoc.services.google import GoogleCodeService
from pkgdoc.services.launchpad import LaunchpadService
from pkgdoc.services.proxy import ProxyService
from pkgdoc.services.standard import StandardService

if TYPE_CHECKING:
    from pkgdoc.config import ServiceSettings
    from pkgdoc.protocols import DocumentationBuilder, FetcherProtocol

# Dispatch order. The first service whose prefix matches decides.
SERVICE_TYPES: tuple[type[Service], ...] = (
    GithubService,
    GoogleCodeService,
    BitbucketService,
    LaunchpadService,
    GitoriousService,
)


def build_services(
    fetcher: FetcherProtocol,
    builder: DocumentationBuilder,
    settings: ServiceSettings,
) -> list[Service]:
    return [service_type(fetcher, builder, settings) for service_type in SERVICE_TYPES]


__all__ = [
    "SERVICE_TYPES",
    "Service",
    "BitbucketService",
    "GithubService",
    "GitoriousService",
    "GoogleCodeService",
    "LaunchpadService",
    "ProxyService",
    "StandardService",
    "build_services",
]
