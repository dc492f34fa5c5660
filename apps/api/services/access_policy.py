"""Route access policy evaluated by the access gate middleware.

The public page and public API sets are plain data on ``AccessPolicy`` so the
policy can be evaluated against arbitrary paths without a running app.
Patterns are literal paths where ``(.*)`` matches any suffix, e.g.
``/sign-in(.*)`` covers ``/sign-in`` and ``/sign-in/factor-one``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Pattern, Tuple

WILDCARD = "(.*)"

# Static assets are skipped by extension; "js" must not swallow ".json".
STATIC_FILE_PATTERN = re.compile(
    r"\.(?:html?|css|js(?!on)|jpe?g|webp|png|gif|svg|ttf|woff2?|ico|csv|docx?|xlsx?|zip|webmanifest)$",
    re.IGNORECASE,
)
FRAMEWORK_INTERNAL_PREFIXES = ("/_next", "/static", "/docs", "/redoc", "/openapi.json", "/health")


def _compile(pattern: str) -> Pattern[str]:
    parts = [re.escape(piece) for piece in pattern.split(WILDCARD)]
    body = ".*".join(parts)
    if body.endswith("/") and body != "/":
        body = body[:-1]
    if body == "/":
        return re.compile(r"^/$")
    return re.compile(rf"^{body}/?$")


class RouteMatcher:
    def __init__(self, patterns: Iterable[str]):
        self.patterns = tuple(patterns)
        self._compiled = tuple(_compile(pattern) for pattern in self.patterns)

    def __call__(self, path: str) -> bool:
        return any(regex.match(path) for regex in self._compiled)


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    location: Optional[str] = None
    reason: str = "allowed"

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(allowed=True)

    @classmethod
    def redirect(cls, location: str, reason: str) -> "GateDecision":
        return cls(allowed=False, location=location, reason=reason)


@dataclass(frozen=True)
class AccessPolicy:
    public_pages: Tuple[str, ...] = ("/", "/home", "/sign-in(.*)", "/sign-up(.*)")
    public_api: Tuple[str, ...] = ("/api/video",)
    landing_path: str = "/home"
    sign_in_path: str = "/sign-in"
    api_prefixes: Tuple[str, ...] = ("/api", "/trpc")
    _page_matcher: RouteMatcher = field(init=False, repr=False, compare=False)
    _api_matcher: RouteMatcher = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_page_matcher", RouteMatcher(self.public_pages))
        object.__setattr__(self, "_api_matcher", RouteMatcher(self.public_api))

    def is_api_path(self, path: str) -> bool:
        return any(path == prefix or path.startswith(prefix + "/") for prefix in self.api_prefixes)

    def is_public_page(self, path: str) -> bool:
        return self._page_matcher(path)

    def is_public_api(self, path: str) -> bool:
        return self._api_matcher(path)

    def is_exempt(self, path: str) -> bool:
        """Static files and framework internals bypass the gate; API paths never do."""
        if self.is_api_path(path):
            return False
        if any(path == prefix or path.startswith(prefix + "/") for prefix in FRAMEWORK_INTERNAL_PREFIXES):
            return True
        return bool(STATIC_FILE_PATTERN.search(path))

    def evaluate(self, path: str, principal_id: Optional[str]) -> GateDecision:
        public_page = self.is_public_page(path)

        if principal_id:
            if public_page and path != self.landing_path:
                return GateDecision.redirect(self.landing_path, "authenticated_on_public_page")
            return GateDecision.allow()

        public_api = self.is_public_api(path)
        if not public_page and not public_api:
            return GateDecision.redirect(self.sign_in_path, "authentication_required")
        if self.is_api_path(path) and not public_api:
            return GateDecision.redirect(self.sign_in_path, "authentication_required")
        return GateDecision.allow()


DEFAULT_ACCESS_POLICY = AccessPolicy()
