"""Tests for pipeline result values."""

from zdravniki.results import Failure, FailureKind, Ok


class TestFailureKind:
    """Tests for failure categories."""

    def test_not_found_maps_to_404(self):
        """Unknown file ids should answer 404."""
        assert FailureKind.NOT_FOUND.status_code == 404

    def test_other_kinds_map_to_500(self):
        """Every other failure is a server-side error."""
        for kind in FailureKind:
            if kind is not FailureKind.NOT_FOUND:
                assert kind.status_code == 500


class TestOk:
    """Tests for the success value."""

    def test_is_not_error(self):
        result = Ok([1, 2])
        assert result.is_error is False
        assert result.value == [1, 2]


class TestFailure:
    """Tests for the failure value."""

    def test_is_error(self):
        failure = Failure(FailureKind.FETCH, "boom")
        assert failure.is_error is True
        assert failure.status_code == 500
        assert failure.details == {}
        assert failure.meta == {}

    def test_with_meta_returns_copy(self):
        """with_meta should not mutate the original failure."""
        failure = Failure(FailureKind.TIMESTAMP, "Failed to fetch timestamps", {"cause": "both"})
        enriched = failure.with_meta(executionTimeMs=12.5, timestamps={})

        assert enriched.meta == {"executionTimeMs": 12.5, "timestamps": {}}
        assert enriched.details == {"cause": "both"}
        assert failure.meta == {}

    def test_with_meta_merges_existing(self):
        failure = Failure(FailureKind.FETCH, "x", meta={"a": 1}).with_meta(b=2)
        assert failure.meta == {"a": 1, "b": 2}

    def test_to_dict_flattens_details(self):
        """Details should sit next to kind and message."""
        failure = Failure(
            FailureKind.NOT_FOUND,
            "File not found",
            {"fileId": "nope"},
            {"executionTimeMs": 1.0},
        )

        assert failure.to_dict() == {
            "kind": "not_found",
            "message": "File not found",
            "fileId": "nope",
            "meta": {"executionTimeMs": 1.0},
        }
