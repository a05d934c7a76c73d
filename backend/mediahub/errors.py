# mediahub/errors.py
"""Error taxonomy shared by the resolution and delivery pipeline.

Every error a client can see derives from :class:`MediaHubError`, which
carries the wire ``code`` and the HTTP status used by the route error
handler. Provider-level detail stays on the exception object for
logging and is never rendered.
"""


class MediaHubError(Exception):
    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message, hint=None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_dict(self):
        body = {"code": self.code, "message": self.message}
        if self.hint:
            body["hint"] = self.hint
        return body


class InvalidRequest(MediaHubError):
    code = "INVALID_REQUEST"
    status = 400


class InvalidUrl(MediaHubError):
    code = "INVALID_URL"
    status = 400


class UnsupportedPlatform(MediaHubError):
    code = "UNSUPPORTED_PLATFORM"
    status = 400


class CollectionNotSupported(MediaHubError):
    code = "COLLECTION_NOT_SUPPORTED"
    status = 400

    def __init__(self, platform_name=None):
        name = platform_name or "This platform"
        super().__init__(
            f"{name} playlists, albums and boards are not supported.",
            hint="Paste a link to a single video, track or pin instead.",
        )
        self.platform_name = platform_name


class ProviderHardFailure(MediaHubError):
    """The upstream provider reported this content type as unsupported."""

    code = "UNSUPPORTED_CONTENT"
    status = 422


class ResolutionFailed(MediaHubError):
    code = "RESOLUTION_FAILED"
    status = 502

    def __init__(self, message="We couldn't fetch this media. Please try again later.", causes=None):
        super().__init__(message)
        self.causes = list(causes or [])


class DeliveryFailed(MediaHubError):
    code = "DELIVERY_FAILED"
    status = 502


class ExtractorError(Exception):
    """Raised by the extraction adapter when the subprocess fails."""

    def __init__(self, message, returncode=None, stderr=""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
