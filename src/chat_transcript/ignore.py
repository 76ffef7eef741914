"""Classification of context files that must never be attached to a chat."""

import fnmatch
from urllib.parse import unquote, urlparse

# Secrets and credentials that should never be sent as context
DEFAULT_IGNORE_PATTERNS = (
    ".env",
    ".env.*",
    "*.pem",
    "*.key",
    "id_rsa*",
    "**/.git/**",
)


def uri_path(uri: str) -> str:
    """Return the decoded path component of a URI (or the input if it has none)."""
    parsed = urlparse(uri)
    if parsed.scheme and parsed.path:
        return unquote(parsed.path)
    return unquote(uri)


class IgnorePolicy:
    """Glob-based ignore rules for context file URIs.

    A pattern without a slash matches the file's basename; a pattern with a
    slash matches the full path.
    """

    def __init__(self, patterns: list[str] | tuple[str, ...] | None = None):
        self.patterns = tuple(DEFAULT_IGNORE_PATTERNS if patterns is None else patterns)

    @classmethod
    def from_ignore_file_text(cls, text: str) -> "IgnorePolicy":
        """Build a policy from the body of an ignore file.

        Blank lines and ``#`` comments are skipped.
        """
        patterns = []
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            patterns.append(line)
        return cls(patterns)

    def is_ignored(self, uri: str) -> bool:
        path = uri_path(uri)
        basename = path.rsplit("/", 1)[-1]
        for pattern in self.patterns:
            if "/" in pattern:
                if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(path, "*/" + pattern.lstrip("/")):
                    return True
            elif fnmatch.fnmatch(basename, pattern):
                return True
        return False


_default_policy = IgnorePolicy()


def is_ignored_file(uri: str) -> bool:
    """Check a URI against the default ignore policy."""
    return _default_policy.is_ignored(uri)
