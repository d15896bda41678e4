"""Session token state held by a TechnitiumClient."""

from technitium_cli.models import TOKEN_SOURCES, SessionTokenSnapshot


class SessionState:
    """Current bearer token plus the reason it is held.

    The token attribute is the only mutable state a client shares between
    concurrent calls. Assignments are plain attribute writes: last writer wins.
    """

    def __init__(self, token=None, source="unknown"):
        self._token = None
        self._source = "unknown"
        self.set_token(token, source)

    def set_token(self, token, source="explicit"):
        """Overwrite the token and its provenance. ``None``/"" means logged out."""
        if source not in TOKEN_SOURCES:
            raise ValueError(f"Unknown token source {source!r}. Valid: {', '.join(TOKEN_SOURCES)}")
        self._token = token or None
        self._source = source

    def snapshot(self) -> SessionTokenSnapshot:
        return SessionTokenSnapshot(token=self._token, source=self._source)

    @property
    def token(self):
        return self._token
