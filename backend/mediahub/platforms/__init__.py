# mediahub/platforms/__init__.py
from .provider import SpecializedProvider
from .extractor import YtDlpExtractor, ExtractionStream

__all__ = ["SpecializedProvider", "YtDlpExtractor", "ExtractionStream"]
