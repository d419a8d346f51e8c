"""Deciding how a denied Opencast call is bounced for the current request"""
import enum
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class BounceKind(str, enum.Enum):
    REDIRECT = "redirect"
    THROW_ACCESS_DENIED = "throw_access_denied"
    CLOSE_WINDOW = "close_window"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True)
class BounceAction:
    kind: BounceKind
    url: Optional[str] = None

    @classmethod
    def redirect(cls, url: str) -> "BounceAction":
        return cls(BounceKind.REDIRECT, url)

    @classmethod
    def throw_access_denied(cls) -> "BounceAction":
        return cls(BounceKind.THROW_ACCESS_DENIED)

    @classmethod
    def close_window(cls) -> "BounceAction":
        return cls(BounceKind.CLOSE_WINDOW)

    @classmethod
    def pass_through(cls) -> "BounceAction":
        return cls(BounceKind.PASS_THROUGH)


@dataclass
class BounceContext:
    """What the current request looks like, captured once per request"""
    referer: str = ""
    target: str = ""
    wwwroot: str = ""
    is_ajax: bool = False
    is_cli: bool = False
    is_web: bool = True
    is_site_admin: bool = False
    home_url: Optional[str] = None

    @property
    def is_interactive(self) -> bool:
        return self.is_web and not self.is_cli

    @property
    def local_referer(self) -> str:
        """The referer when it points into this site, empty otherwise"""
        return self.referer if is_local_url(self.referer, self.wwwroot) else ""

    @property
    def referer_path(self) -> str:
        return url_path(self.local_referer)

    @property
    def target_path(self) -> str:
        return url_path(self.target)

    @property
    def wwwroot_path(self) -> str:
        return url_path(self.wwwroot)


@dataclass
class PageContext:
    """Per-request state shared by every maintenance controller of that request"""
    bounce: Optional[BounceContext] = None
    notified: bool = False


def url_path(url: Optional[str]) -> str:
    if not url:
        return ""
    return (urlparse(url).path or "").rstrip("/")


def is_local_url(url: Optional[str], wwwroot: str) -> bool:
    """Relative urls and urls on the scheme and host of `wwwroot` are local"""
    if not url:
        return False
    parsed = urlparse(url)
    if not parsed.scheme and not parsed.netloc:
        return True
    root = urlparse(wwwroot or "")
    return (parsed.scheme.lower(), parsed.netloc.lower()) == (root.scheme.lower(), root.netloc.lower())


def is_path_blocked(path: str, blocked: Iterable[str]) -> bool:
    """Case-sensitive substring match of `path` against the blocklist, empty path never matches"""
    if not path:
        return False
    return any(entry in path for entry in blocked)


class BounceStrategy:
    """
    Classifies a request against the root allowlist and the plugin blocklist.

    Both lists hold paths relative to the site root and are prefixed with the
    wwwroot path of the context being resolved.
    """

    ADMIN_CRON = "admin_cron"

    def __init__(self, root_paths: Iterable[str], blocked_paths: Dict[str, str]):
        self.root_paths = [p.rstrip("/") for p in root_paths]
        self.blocked_paths = {name: p.rstrip("/") for name, p in blocked_paths.items()}

        # a redirect always lands on an allowlisted referer, so none of them may be blocked
        for root in self.root_paths:
            if root and is_path_blocked(root, self.blocked_paths.values()):
                raise ValueError(f"Root path '{root}' is also blocked")

    def allowlist(self, wwwroot_path: str) -> List[str]:
        return [wwwroot_path + p for p in self.root_paths]

    def blocklist(self, wwwroot_path: str) -> Dict[str, str]:
        return {name: wwwroot_path + p for name, p in self.blocked_paths.items()}

    def is_blocked(self, path: str, wwwroot_path: str = "") -> bool:
        return is_path_blocked(path, self.blocklist(wwwroot_path).values())

    def resolve(self, context: BounceContext) -> BounceAction:
        if not context.is_interactive:
            return BounceAction.throw_access_denied()

        wwwroot_path = context.wwwroot_path
        allowlist = self.allowlist(wwwroot_path)
        blocklist = self.blocklist(wwwroot_path)

        from_path = context.referer_path
        target_path = context.target_path

        # admins are never stopped, except on the cron entry point
        admin_cron = blocklist.get(self.ADMIN_CRON)
        if context.is_site_admin and not (admin_cron and admin_cron in target_path):
            return BounceAction.pass_through()

        from_blocked = is_path_blocked(from_path, blocklist.values())
        target_blocked = is_path_blocked(target_path, blocklist.values())

        # traffic that never touches the plugin, or leaves it towards the root pages
        if (not from_blocked and not target_blocked) or (target_path in allowlist and from_blocked):
            return BounceAction.pass_through()

        if context.is_ajax or "ajax" in target_path:
            return BounceAction.throw_access_denied()

        referer = context.local_referer
        if referer and from_path in allowlist and target_blocked:
            return BounceAction.redirect(referer)

        home_path = url_path(context.home_url)
        home_is_safe = home_path != wwwroot_path and not is_path_blocked(home_path, blocklist.values())
        if is_local_url(context.home_url, context.wwwroot) and home_is_safe:
            return BounceAction.redirect(context.home_url)

        logger.info(f"No safe redirect target for {target_path}, closing window")
        return BounceAction.close_window()
