from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

INTERSTITIAL_EVERY = 3


class AdService(Protocol):
    def request_rewarded_ad(self, kind: str) -> bool: ...

    def request_interstitial(self) -> bool: ...


class StandaloneAdService:
    """No ad network attached: every rewarded request is granted."""

    def request_rewarded_ad(self, kind: str) -> bool:
        logger.debug("Standalone mode, granting rewarded '%s' without an ad.", kind)
        return True

    def request_interstitial(self) -> bool:
        return True


class DenyingAdService:
    def request_rewarded_ad(self, kind: str) -> bool:
        return False

    def request_interstitial(self) -> bool:
        return False


def safe_rewarded(service: AdService, kind: str) -> bool:
    try:
        return bool(service.request_rewarded_ad(kind))
    except Exception:
        logger.exception("Rewarded ad '%s' failed.", kind)
        return False


def safe_interstitial(service: AdService) -> bool:
    try:
        return bool(service.request_interstitial())
    except Exception:
        logger.exception("Interstitial ad failed.")
        return False
