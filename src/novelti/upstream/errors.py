class NoveltiError(Exception):
    """Base class for request-level resolution failures."""

    retryable: bool = False


class UpstreamUnavailable(NoveltiError):
    """The upstream call failed: transport error, timeout, or non-2xx status."""

    retryable = True

    def __init__(self, message: str, *, url: str = "", status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class MalformedUpstreamResponse(NoveltiError):
    """The upstream payload does not parse or lacks its required shape."""

    def __init__(self, message: str, *, url: str = ""):
        super().__init__(message)
        self.url = url


class NoResultsFound(NoveltiError):
    """Upstream answered well-formed, with nothing matching the query."""

    def __init__(self, message: str, *, cache_key: str = ""):
        super().__init__(message)
        self.cache_key = cache_key


class ThumbnailNotFound(NoveltiError, KeyError):
    """No thumbnail is recorded for the requested book."""

    def __init__(self, book_id: str):
        super().__init__(f"no thumbnail found for book ID: {book_id}")
        self.book_id = book_id

    def __str__(self) -> str:
        return str(self.args[0])
