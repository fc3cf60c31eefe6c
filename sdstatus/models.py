"""Data model for sdstatus scans.

Targets go in, results come out.  Every type here is frozen once built:
probes create one :class:`ScanResult` per :class:`ScanTarget` and nothing
downstream mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator


class MetadataDecodeError(ValueError):
    """Raised when a status document does not have the expected shape."""


@dataclass(frozen=True)
class ScanTarget:
    """One service to probe.  *title* is a human label, *address* a host."""

    title: str
    address: str

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("ScanTarget.address must not be empty")


@dataclass(frozen=True)
class Metadata:
    """Decoded ``/metadata`` document of a reachable instance."""

    version: str
    fingerprint: str
    supported_languages: tuple[str, ...] = ()
    server_os: str | None = None
    v3_source_url: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> Metadata:
        """Structurally decode a JSON payload.

        Only the shape is checked: ``sd_version`` and ``gpg_fpr`` must be
        strings and ``supported_languages``, when present, a list of strings.
        Unknown keys are ignored.
        """
        if not isinstance(payload, dict):
            raise MetadataDecodeError(
                f"expected a JSON object, got {type(payload).__name__}"
            )
        version = payload.get("sd_version")
        fingerprint = payload.get("gpg_fpr")
        if not isinstance(version, str):
            raise MetadataDecodeError("missing or non-string 'sd_version'")
        if not isinstance(fingerprint, str):
            raise MetadataDecodeError("missing or non-string 'gpg_fpr'")

        languages = payload.get("supported_languages")
        if languages is None:
            languages = []
        if not isinstance(languages, list) or not all(
            isinstance(lang, str) for lang in languages
        ):
            raise MetadataDecodeError("'supported_languages' must be a list of strings")

        return cls(
            version=version,
            fingerprint=fingerprint,
            supported_languages=tuple(languages),
            server_os=_optional_str(payload, "server_os"),
            v3_source_url=_optional_str(payload, "v3_source_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sd_version": self.version,
            "gpg_fpr": self.fingerprint,
            "supported_languages": list(self.supported_languages),
            "server_os": self.server_os,
            "v3_source_url": self.v3_source_url,
        }


@dataclass(frozen=True)
class ScanResult:
    """Outcome of probing one target.

    ``available`` is True iff ``error`` is None and ``metadata`` is set.
    Use :meth:`success` / :meth:`failure` rather than the raw constructor.
    """

    title: str
    url: str
    available: bool
    error: str | None = None
    metadata: Metadata | None = None

    def __post_init__(self) -> None:
        if self.available and (self.error is not None or self.metadata is None):
            raise ValueError("an available result needs metadata and no error")
        if not self.available and (not self.error or self.metadata is not None):
            raise ValueError("an unavailable result needs an error and no metadata")

    @classmethod
    def success(cls, title: str, url: str, metadata: Metadata) -> ScanResult:
        return cls(title=title, url=url, available=True, metadata=metadata)

    @classmethod
    def failure(cls, title: str, url: str, error: str) -> ScanResult:
        return cls(title=title, url=url, available=False, error=error or "unknown error")

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "available": self.available,
            "error": self.error,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanResult:
        """Rebuild a result from the JSON shape produced by :meth:`to_dict`."""
        if not isinstance(data, dict):
            raise ValueError(
                f"expected a JSON object for a scan result, got {type(data).__name__}"
            )
        metadata = data.get("metadata")
        return cls(
            title=data.get("title", ""),
            url=data.get("url", ""),
            available=bool(data.get("available")),
            error=data.get("error"),
            metadata=Metadata.from_payload(metadata) if metadata else None,
        )


class ScanBatch:
    """All results of one scan invocation.  Read-only once built."""

    def __init__(self, results: Iterable[ScanResult] = ()) -> None:
        self._results: tuple[ScanResult, ...] = tuple(results)

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[ScanResult]:
        return iter(self._results)

    def __repr__(self) -> str:
        return f"ScanBatch({len(self._results)} results)"

    @property
    def results(self) -> tuple[ScanResult, ...]:
        return self._results

    def sorted(self) -> list[ScanResult]:
        """Results ordered by title, then URL, independent of arrival order."""
        return sorted(
            self._results,
            key=lambda r: (r.title, r.url, not r.available, r.error or ""),
        )

    @property
    def available_count(self) -> int:
        return sum(1 for r in self._results if r.available)


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None
