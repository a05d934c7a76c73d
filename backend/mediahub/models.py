# mediahub/models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Platform(str, Enum):
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    TIKTOK = "tiktok"
    FACEBOOK = "facebook"
    PINTEREST = "pinterest"
    SPOTIFY = "spotify"
    DAILYMOTION = "dailymotion"
    TERABOX = "terabox"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class CollectionCheck:
    is_collection: bool = False
    platform_hint: Optional[str] = None


@dataclass(frozen=True)
class FormatDescriptor:
    kind: str  # "video" | "audio"
    resolutions: Optional[List[str]] = None
    bitrates: Optional[List[str]] = None

    def to_dict(self):
        # "format" is the key the web client reads
        body = {"kind": self.kind, "format": "mp4" if self.kind == "video" else "mp3"}
        if self.resolutions is not None:
            body["resolutions"] = list(self.resolutions)
        if self.bitrates is not None:
            body["bitrates"] = list(self.bitrates)
        return body


@dataclass
class MediaInfo:
    title: str
    thumbnail_url: str
    platform: Platform
    formats: List[FormatDescriptor] = field(default_factory=list)
    primary_download_url: Optional[str] = None
    audio_download_url: Optional[str] = None

    def direct_url_for(self, fmt):
        if fmt == "mp3":
            return self.audio_download_url or None
        return self.primary_download_url or None

    def to_dict(self):
        return {
            "title": self.title,
            "thumbnail": self.thumbnail_url,
            "platform": self.platform.value,
            "formats": [f.to_dict() for f in self.formats],
        }


# ------------ resolution outcomes ------------
@dataclass(frozen=True)
class Resolved:
    info: MediaInfo


@dataclass(frozen=True)
class SoftFailure:
    reason: str


@dataclass(frozen=True)
class HardFailure:
    reason: str


@dataclass(frozen=True)
class Redirect:
    location: str


@dataclass(frozen=True)
class StreamConstraints:
    fmt: str  # "mp4" | "mp3"
    max_height: Optional[int] = None
    audio_bitrate: Optional[int] = None

