"""Summary: Scan orchestration across configured mail providers.

Importance: Fans out to every provider with credentials and aggregates their invites.
Alternatives: Let callers invoke each provider adapter directly.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Sequence

from invitescout.models import InviteEvent, ProviderCredentials
from invitescout.providers import PROVIDER_ORDER, InviteProvider

logger = logging.getLogger(__name__)


class InviteScanner:
    """Summary: Runs provider scans in a fixed order and concatenates results.

    Importance: A provider without credentials contributes nothing and raises nothing.
    Alternatives: Require credentials for every configured provider.
    """

    def __init__(
        self,
        providers: Sequence[InviteProvider],
        concurrent: bool = False,
        provider_timeout: float | None = None,
    ) -> None:
        """Summary: Initialize the scanner with provider adapters.

        Importance: Orders providers canonically regardless of configuration order.
        Alternatives: Scan providers in the order they were configured.
        """

        self._providers = sorted(providers, key=_provider_rank)
        self._concurrent = concurrent
        self._provider_timeout = provider_timeout

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self._providers]

    def scan_all(self, credentials: ProviderCredentials, mark_seen: bool = True) -> list[InviteEvent]:
        """Summary: Scan every provider that has a credential.

        Importance: Produces one flat invite list preserving per-provider order.
        Alternatives: Return a mapping of provider name to invites.
        """

        active: list[tuple[InviteProvider, str]] = []
        for provider in self._providers:
            credential = credentials.for_provider(provider.name)
            if credential:
                active.append((provider, credential))
            else:
                logger.info("Skipping %s scan; no credential supplied.", provider.name)
        if self._concurrent and len(active) > 1:
            return self._scan_concurrently(active, mark_seen)

        invites: list[InviteEvent] = []
        for provider, credential in active:
            logger.info("Scanning %s.", provider.name)
            try:
                invites.extend(provider.scan(credential, mark_seen=mark_seen))
            except Exception:
                logger.exception("%s scan failed; ignoring its results.", provider.name)
        return invites

    def _scan_concurrently(
        self, active: list[tuple[InviteProvider, str]], mark_seen: bool
    ) -> list[InviteEvent]:
        """Summary: Scan providers on worker threads and gather results in order.

        Importance: All providers share one deadline, so a stalled provider cannot hold back the rest.
        Alternatives: Use asyncio with an async HTTP client.
        """

        executor = ThreadPoolExecutor(max_workers=len(active), thread_name_prefix="invitescout-scan")
        try:
            futures: list[tuple[InviteProvider, Future[list[InviteEvent]]]] = [
                (provider, executor.submit(provider.scan, credential, mark_seen=mark_seen))
                for provider, credential in active
            ]
            done, _ = wait([future for _, future in futures], timeout=self._provider_timeout)
            invites: list[InviteEvent] = []
            for provider, future in futures:
                if future not in done:
                    logger.warning(
                        "%s scan exceeded %ss; ignoring its results.",
                        provider.name,
                        self._provider_timeout,
                    )
                    continue
                try:
                    invites.extend(future.result())
                except Exception:
                    logger.exception("%s scan failed; ignoring its results.", provider.name)
            return invites
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def _provider_rank(provider: InviteProvider) -> int:
    if provider.name in PROVIDER_ORDER:
        return PROVIDER_ORDER.index(provider.name)
    return len(PROVIDER_ORDER)
