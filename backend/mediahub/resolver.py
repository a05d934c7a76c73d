# mediahub/resolver.py
import logging

import requests

from .classifier import validate_url, classify
from .errors import (
    CollectionNotSupported, UnsupportedPlatform, ProviderHardFailure, ResolutionFailed, ExtractorError,
)
from .models import Platform, Resolved, HardFailure
from .normalizer import normalize
from .platforms.provider import SpecializedProvider
from .utils import resolve_short_url

logger = logging.getLogger(__name__)


class Resolver:
    """Turns a URL into MediaInfo: specialized providers in order, then yt-dlp."""

    def __init__(self, registry, extractor, session=None, provider_factory=SpecializedProvider,
                 expand_url=resolve_short_url):
        self.registry = registry
        self.extractor = extractor
        # one pooled session for every provider call
        self.session = session or requests.Session()
        self.provider_factory = provider_factory
        self.expand_url = expand_url

    def prepare(self, url):
        """Validate and classify *url*; return ``(url, platform)`` or raise."""
        url = validate_url(url)
        url = self.expand_url(url)
        platform, collection = classify(url)
        if collection.is_collection:
            raise CollectionNotSupported(collection.platform_hint)
        if platform is Platform.UNSUPPORTED:
            raise UnsupportedPlatform("This link isn't from a supported platform.")
        return url, platform

    def providers_for(self, platform):
        return [self.provider_factory(cfg, session=self.session) for cfg in self.registry.resolvers_for(platform)]

    def resolve(self, url):
        url, platform = self.prepare(url)
        return self.resolve_platform(url, platform)

    def resolve_platform(self, url, platform):
        causes = []
        info = self.resolve_specialized(url, platform, causes)
        if info is not None:
            return info

        if not self.registry.supports_fallback(platform):
            raise ResolutionFailed(causes=causes)

        logger.info(f"No specialized provider resolved {platform.value}, falling back to yt-dlp")
        try:
            data = self.extractor.probe(url)
        except ExtractorError as e:
            causes.append(f"yt-dlp: {e} {e.stderr}".strip())
        else:
            info = normalize(platform, data, mapping="ytdlp")
            if info.formats:
                return info
            causes.append("yt-dlp: no usable formats")

        logger.error(f"Resolution failed for {platform.value} url={url}: " + " | ".join(causes))
        raise ResolutionFailed(causes=causes)

    def resolve_specialized(self, url, platform, causes=None):
        """Try each configured provider in order; None when none produced formats.

        A hard failure stops the chain and raises ProviderHardFailure.
        """
        causes = causes if causes is not None else []
        providers = self.providers_for(platform)
        if not providers:
            causes.append(f"{platform.value}: no specialized provider configured")
        for provider in providers:
            outcome = provider.resolve(url)
            if isinstance(outcome, Resolved):
                if outcome.info.formats:
                    logger.info(f"{provider.name} resolved {platform.value} media '{outcome.info.title}'")
                    return outcome.info
                causes.append(f"{provider.name}: no playable formats")
                continue
            if isinstance(outcome, HardFailure):
                logger.warning(f"{provider.name} rejected content as unsupported: {outcome.reason}")
                raise ProviderHardFailure("This type of content isn't supported for download.")
            logger.warning(f"{provider.name} soft failure: {outcome.reason}")
            causes.append(f"{provider.name}: {outcome.reason}")
        return None
