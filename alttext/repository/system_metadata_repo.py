"""System metadata repository: schema_version and the provider API key (settings store)."""

from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy.orm import Session

from alttext.models.entities import SystemMetadata as SystemMetadataEntity


class SystemMetadataRepository:
    """
    Access to system_metadata key/value rows. Acts as the settings store for the
    provider API key; the value is stored as entered, with no validation beyond presence.
    """

    SCHEMA_VERSION_KEY = "schema_version"
    API_KEY_KEY = "gemini_api_key"

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session_scope(self, write: bool = False) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            if write:
                session.commit()
        finally:
            session.close()

    def get_value(self, key: str) -> str | None:
        """Return the value for key, or None if missing."""
        with self._session_scope() as session:
            row = session.get(SystemMetadataEntity, key)
            return row.value if row is not None else None

    def set_value(self, key: str, value: str) -> None:
        """Set key to value (upsert)."""
        with self._session_scope(write=True) as session:
            row = session.get(SystemMetadataEntity, key)
            if row is not None:
                row.value = value
            else:
                session.add(SystemMetadataEntity(key=key, value=value))

    def delete_value(self, key: str) -> None:
        """Remove key if present."""
        with self._session_scope(write=True) as session:
            row = session.get(SystemMetadataEntity, key)
            if row is not None:
                session.delete(row)

    def get_schema_version(self) -> str | None:
        """Return the schema_version value, or None if missing."""
        return self.get_value(self.SCHEMA_VERSION_KEY)

    def get_api_key(self) -> str | None:
        """Return the stored provider API key, or None when unset or blank."""
        raw = self.get_value(self.API_KEY_KEY)
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    def set_api_key(self, api_key: str) -> None:
        """Store the provider API key. A blank value clears it."""
        if not api_key.strip():
            self.delete_value(self.API_KEY_KEY)
            return
        self.set_value(self.API_KEY_KEY, api_key.strip())
