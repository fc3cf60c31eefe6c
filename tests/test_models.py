"""Tests for the scan data model: decoding, invariants, JSON shape."""

from __future__ import annotations

import pytest

from sdstatus.models import Metadata, MetadataDecodeError, ScanBatch, ScanResult, ScanTarget


class TestScanTarget:
    def test_empty_address_rejected(self):
        with pytest.raises(ValueError):
            ScanTarget(title="x", address="")

    def test_targets_are_hashable_and_frozen(self):
        target = ScanTarget(title="A", address="a.test")
        assert target in {ScanTarget(title="A", address="a.test")}
        with pytest.raises(AttributeError):
            target.address = "b.test"


class TestMetadataDecode:
    def test_full_payload(self, sample_metadata):
        md = Metadata.from_payload(sample_metadata)
        assert md.version == "0.6"
        assert md.fingerprint == "ABC123"
        assert md.supported_languages == ("en_US", "de_DE")
        assert md.server_os == "20.04"

    def test_languages_optional(self):
        md = Metadata.from_payload({"sd_version": "0.6", "gpg_fpr": "ABC123"})
        assert md.supported_languages == ()
        assert md.server_os is None

    def test_unknown_keys_ignored(self):
        md = Metadata.from_payload({"sd_version": "1", "gpg_fpr": "F", "extra": 5})
        assert md.version == "1"

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            "0.6",
            {"gpg_fpr": "ABC123"},
            {"sd_version": 6, "gpg_fpr": "ABC123"},
            {"sd_version": "0.6"},
            {"sd_version": "0.6", "gpg_fpr": "F", "supported_languages": "en"},
            {"sd_version": "0.6", "gpg_fpr": "F", "supported_languages": [1]},
        ],
    )
    def test_bad_shapes_rejected(self, payload):
        with pytest.raises(MetadataDecodeError):
            Metadata.from_payload(payload)


class TestScanResult:
    def test_success_invariant(self, sample_metadata):
        md = Metadata.from_payload(sample_metadata)
        result = ScanResult.success("A", "http://a.test/metadata", md)
        assert result.available is True
        assert result.error is None
        assert result.metadata is md

    def test_failure_invariant(self):
        result = ScanResult.failure("B", "http://b.test/metadata", "refused")
        assert result.available is False
        assert result.error == "refused"
        assert result.metadata is None

    def test_failure_never_has_empty_error(self):
        result = ScanResult.failure("B", "http://b.test/metadata", "")
        assert result.error

    def test_inconsistent_construction_rejected(self):
        with pytest.raises(ValueError):
            ScanResult(title="A", url="u", available=True)
        with pytest.raises(ValueError):
            ScanResult(title="A", url="u", available=False)

    def test_dict_round_trip(self, sample_metadata):
        md = Metadata.from_payload(sample_metadata)
        for result in (
            ScanResult.success("A", "http://a.test/metadata", md),
            ScanResult.failure("B", "http://b.test/metadata", "refused"),
        ):
            assert ScanResult.from_dict(result.to_dict()) == result

    def test_json_shape(self):
        data = ScanResult.failure("B", "http://b.test/metadata", "refused").to_dict()
        assert data == {
            "title": "B",
            "url": "http://b.test/metadata",
            "available": False,
            "error": "refused",
            "metadata": None,
        }


class TestScanBatch:
    def test_sorted_by_title(self):
        batch = ScanBatch([
            ScanResult.failure("c", "http://c/metadata", "x"),
            ScanResult.failure("a", "http://a/metadata", "x"),
            ScanResult.failure("b", "http://b/metadata", "x"),
        ])
        assert [r.title for r in batch.sorted()] == ["a", "b", "c"]
        assert len(batch) == 3

    def test_available_count(self, sample_metadata):
        md = Metadata.from_payload(sample_metadata)
        batch = ScanBatch([
            ScanResult.success("a", "u", md),
            ScanResult.failure("b", "u", "x"),
        ])
        assert batch.available_count == 1


class TestDecodeEdgeCases:
    @pytest.mark.parametrize("languages", ["", {}, 0, False])
    def test_falsy_wrong_language_types_rejected(self, languages):
        with pytest.raises(MetadataDecodeError):
            Metadata.from_payload(
                {"sd_version": "0.6", "gpg_fpr": "F", "supported_languages": languages}
            )

    def test_null_languages_is_empty(self):
        md = Metadata.from_payload(
            {"sd_version": "0.6", "gpg_fpr": "F", "supported_languages": None}
        )
        assert md.supported_languages == ()

    def test_from_dict_rejects_non_object(self):
        with pytest.raises(ValueError):
            ScanResult.from_dict(1)
