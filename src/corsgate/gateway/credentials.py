"""
Host-specific credential injection for proxied requests.
"""

from __future__ import annotations

from typing import Callable, List, NamedTuple, Optional, Tuple

import structlog
from multidict import CIMultiDict

from corsgate.config.config import CredentialsConfig

from .urls import parse_target, target_origin

logger = structlog.get_logger(__name__)

HostPredicate = Callable[[str], bool]


def host_contains(fragment: str) -> HostPredicate:
    """Predicate matching hosts that contain ``fragment``."""
    fragment = fragment.lower()

    def _match(host: str) -> bool:
        return fragment in host.lower()

    _match.__name__ = f"host_contains({fragment!r})"
    return _match


class CredentialRule(NamedTuple):
    """One row of the ordered credential table."""

    matches: HostPredicate
    header: str
    value: str


# Built-in rules, in priority order: host fragment, header, secret field name.
BUILTIN_RULES: Tuple[Tuple[str, str, str], ...] = (
    ("api.riotgames.com", "X-Riot-Token", "riot_api_token"),
    ("whatismymmr.com", "User-Agent", "wimmmr_user_agent"),
)


def build_rules(config: CredentialsConfig) -> List[CredentialRule]:
    """Turn configured secrets into the ordered rule table.

    Built-in rules whose secret is unset are left out.
    """
    rules: List[CredentialRule] = []
    for fragment, header, field in BUILTIN_RULES:
        secret = getattr(config, field)
        if secret is None:
            continue
        rules.append(CredentialRule(host_contains(fragment), header, secret.get_secret_value()))

    for extra in config.extra_rules:
        rules.append(CredentialRule(host_contains(extra.host), extra.header, extra.value.get_secret_value()))
    return rules


class CredentialInjector:
    """Rewrites outgoing proxy headers for the target host."""

    def __init__(self, rules: List[CredentialRule]):
        self.rules = list(rules)

    @classmethod
    def from_config(cls, config: CredentialsConfig) -> "CredentialInjector":
        return cls(build_rules(config))

    def match(self, host: str) -> Optional[CredentialRule]:
        """Return the first rule matching ``host``."""
        for rule in self.rules:
            if rule.matches(host):
                return rule
        return None

    def apply(self, url: str, headers: CIMultiDict) -> CIMultiDict:
        """Return a copy of ``headers`` ready to be sent to ``url``.

        Origin is always rewritten to the target's own origin. At most one
        credential rule is applied.
        """
        out = CIMultiDict(headers)
        out["Origin"] = target_origin(url)

        host = parse_target(url).host or ""
        rule = self.match(host)
        if rule is not None:
            out[rule.header] = rule.value
            logger.debug("Credential header injected", host=host, header=rule.header)
        return out
