# mediahub/platforms/provider.py
import logging
import requests

from ..config import PROVIDER_TIMEOUT
from ..models import Resolved, SoftFailure, HardFailure
from ..normalizer import normalize

logger = logging.getLogger(__name__)

# upstream messages meaning "this kind of content is never supported here"
HARD_FAILURE_SIGNALS = (
    "content type not supported",
    "content type is not supported",
    "unsupported content",
    "media type not supported",
    "this type of post is not supported",
)


def _upstream_message(data):
    if not isinstance(data, dict):
        return ""
    parts = []
    for key in ("message", "msg", "error", "detail"):
        value = data.get(key)
        if isinstance(value, str):
            parts.append(value)
    return " ".join(parts)


class SpecializedProvider:
    """Calls one third-party API for one platform and classifies the outcome."""

    def __init__(self, config, session=None, timeout=PROVIDER_TIMEOUT):
        self.config = config
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def name(self):
        return self.config.name

    def _request(self, url):
        cfg = self.config
        headers = {
            "x-rapidapi-key": cfg.api_key,
            "x-rapidapi-host": cfg.host,
        }
        kwargs = {"headers": headers, "timeout": self.timeout}
        if cfg.requires_form_body:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            kwargs["data"] = {"url": url}
        return self.session.request(cfg.http_method, cfg.endpoint(url), **kwargs)

    def resolve(self, url):
        """Return Resolved, SoftFailure or HardFailure. Never raises."""
        cfg = self.config
        if not cfg.configured:
            return SoftFailure(f"{cfg.name} is not configured")
        try:
            r = self._request(url)
        except requests.Timeout:
            return SoftFailure(f"{cfg.name} timed out after {self.timeout}s")
        except requests.RequestException as e:
            return SoftFailure(f"{cfg.name} request failed: {e.__class__.__name__}")

        try:
            data = r.json()
        except ValueError:
            data = None

        message = _upstream_message(data).lower()
        if any(signal in message for signal in HARD_FAILURE_SIGNALS):
            return HardFailure(_upstream_message(data))

        if not r.ok:
            return SoftFailure(f"{cfg.name} answered HTTP {r.status_code}")
        if not isinstance(data, dict):
            return SoftFailure(f"{cfg.name} returned a non-JSON body")

        return Resolved(normalize(cfg.platform, data, mapping=cfg.mapping))
