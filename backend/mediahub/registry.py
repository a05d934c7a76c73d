# mediahub/registry.py
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from urllib.parse import quote

from .config import PROVIDER_ENV
from .models import Platform


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    platform: Platform
    host: Optional[str]
    api_key: Optional[str]
    path_builder: Callable[[str], str]
    mapping: str
    http_method: str = "GET"
    requires_form_body: bool = False

    @property
    def configured(self):
        return bool(self.host and self.api_key)

    def endpoint(self, url):
        return f"https://{self.host}{self.path_builder(url)}"

    def __repr__(self):
        # keep credentials out of logs
        return f"ProviderConfig(name={self.name!r}, platform={self.platform.value!r}, configured={self.configured})"


def _q(url):
    return quote(url, safe="")


# platform -> (provider name, path builder, mapping rule, method, form body)
_PROVIDER_SHAPES = {
    Platform.YOUTUBE: ("youtube-rapidapi", lambda u: f"/ajax/download.php?format=mp4&add_info=1&url={_q(u)}", "youtube", "GET", False),
    Platform.TIKTOK: ("tiktok-rapidapi", lambda u: f"/analysis?url={_q(u)}&hd=1", "tiktok", "GET", False),
    Platform.PINTEREST: ("pinterest-rapidapi", lambda u: f"/pinterest?url={_q(u)}", "pinterest", "GET", False),
    Platform.SPOTIFY: ("spotify-rapidapi", lambda u: f"/download?link={_q(u)}", "spotify", "GET", False),
    Platform.TERABOX: ("terabox-rapidapi", lambda u: f"/api?url={_q(u)}", "terabox", "GET", False),
    Platform.INSTAGRAM: ("general-rapidapi", lambda u: "/all", "general", "POST", True),
    Platform.FACEBOOK: ("general-rapidapi", lambda u: "/all", "general", "POST", True),
    Platform.TWITTER: ("general-rapidapi", lambda u: "/all", "general", "POST", True),
    Platform.DAILYMOTION: ("general-rapidapi", lambda u: "/all", "general", "POST", True),
}


class ProviderRegistry:
    """Read-only mapping of platform -> specialized providers in priority order."""

    def __init__(self, providers: Dict[Platform, List[ProviderConfig]]):
        self._providers = {p: tuple(cfgs) for p, cfgs in providers.items()}

    def resolvers_for(self, platform):
        if platform is Platform.UNSUPPORTED:
            return []
        # credentials are checked here, not at registration
        return [cfg for cfg in self._providers.get(platform, ()) if cfg.configured]

    def all_providers(self):
        return [cfg for cfgs in self._providers.values() for cfg in cfgs]

    def supports_fallback(self, platform):
        return platform is not Platform.UNSUPPORTED


def build_registry(env=None):
    env = os.environ if env is None else env
    providers = {}
    for platform, (name, builder, mapping, method, form) in _PROVIDER_SHAPES.items():
        host_var, key_var = PROVIDER_ENV[platform.value]
        providers[platform] = [
            ProviderConfig(
                name=name,
                platform=platform,
                host=(env.get(host_var) or "").strip() or None,
                api_key=(env.get(key_var) or "").strip() or None,
                path_builder=builder,
                mapping=mapping,
                http_method=method,
                requires_form_body=form,
            )
        ]
    return ProviderRegistry(providers)
