"""
models.py - Vault entries and the vault document

Field names on the JSON side are camelCase so vault files stay readable
by other clients of the .pmvault format.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .errors import MalformedBlobError

VAULT_VERSION = "1.0.0"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(previous: datetime) -> datetime:
    """Current time, nudged forward so it is strictly after `previous`."""
    now = utcnow()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


_MISSING = object()


def _text(data: Dict[str, Any], key: str, default: Any = _MISSING) -> str:
    """String field of a JSON object; TypeError for anything else."""
    value = data[key] if default is _MISSING else data.get(key, default)
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass
class PasswordEntry:
    """One stored website credential"""
    website: str
    username: str
    password: str
    notes: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = self.created_at

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "website": self.website,
            "username": self.username,
            "password": self.password,
            "notes": self.notes,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PasswordEntry":
        return cls(
            id=_text(data, "id"),
            website=_text(data, "website", ""),
            username=_text(data, "username", ""),
            password=_text(data, "password", ""),
            notes=_text(data, "notes", ""),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data.get("updatedAt", data["createdAt"])),
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on website, username and notes."""
        query = query.lower()
        return (
            query in self.website.lower()
            or query in self.username.lower()
            or query in self.notes.lower()
        )


@dataclass
class EntryUpdate:
    """
    Fields of an entry that may be changed.

    None leaves the field as it is. The id and creation time of an entry
    can never be updated.
    """
    website: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    notes: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.website, self.username, self.password, self.notes)
        )

    def apply(self, entry: PasswordEntry) -> None:
        if self.website is not None:
            entry.website = self.website
        if self.username is not None:
            entry.username = self.username
        if self.password is not None:
            entry.password = self.password
        if self.notes is not None:
            entry.notes = self.notes
        entry.updated_at = next_timestamp(entry.updated_at)


@dataclass
class VaultData:
    """The whole vault: every entry plus metadata"""
    master_password_hash: str
    entries: List[PasswordEntry] = field(default_factory=list)
    version: str = VAULT_VERSION
    last_modified: datetime = field(default_factory=utcnow)

    def touch(self) -> None:
        self.last_modified = next_timestamp(self.last_modified)

    def find(self, entry_id: str) -> Optional[PasswordEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "version": self.version,
            "lastModified": format_timestamp(self.last_modified),
            "masterPasswordHash": self.master_password_hash,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultData":
        """
        Build a vault from its decrypted JSON document.

        Raises:
            MalformedBlobError: If the document is not a vault
        """
        try:
            return cls(
                entries=[PasswordEntry.from_dict(e) for e in data["entries"]],
                version=data.get("version", VAULT_VERSION),
                last_modified=parse_timestamp(data["lastModified"]),
                master_password_hash=data["masterPasswordHash"],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedBlobError("Decrypted payload is not a valid vault") from e
