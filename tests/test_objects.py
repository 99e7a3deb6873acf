import pytest

from snapvcs.errors import NotFound
from snapvcs.hashing import blob_hash, commit_id


class TestBlobHash:
    def test_sha1_hex(self):
        assert blob_hash(b"hello") == "aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d"

    def test_deterministic(self):
        assert blob_hash(b"same bytes") == blob_hash(b"same bytes")

    def test_distinct_content(self):
        corpus = [b"", b"a", b"b", b"a\n", b"ab", b"ba", bytes(range(256))]
        assert len({blob_hash(data) for data in corpus}) == len(corpus)


class TestCommitId:
    ARGS = ("message", 1700000000.5, ("p" * 40,), {"a.txt": "h" * 40})

    def test_same_inputs_same_id(self):
        assert commit_id(*self.ARGS) == commit_id(*self.ARGS)

    def test_int_and_float_timestamp_agree(self):
        assert commit_id("m", 0, (), {}) == commit_id("m", 0.0, (), {})

    def test_file_table_order_is_irrelevant(self):
        files_a = {"a": "1", "b": "2"}
        files_b = {"b": "2", "a": "1"}
        assert commit_id("m", 1.0, (), files_a) == commit_id("m", 1.0, (), files_b)

    @pytest.mark.parametrize(
        "changed",
        [
            ("other message", 1700000000.5, ("p" * 40,), {"a.txt": "h" * 40}),
            ("message", 1700000001.5, ("p" * 40,), {"a.txt": "h" * 40}),
            ("message", 1700000000.5, ("q" * 40,), {"a.txt": "h" * 40}),
            ("message", 1700000000.5, ("p" * 40, "q" * 40), {"a.txt": "h" * 40}),
            ("message", 1700000000.5, ("p" * 40,), {"b.txt": "h" * 40}),
            ("message", 1700000000.5, ("p" * 40,), {"a.txt": "g" * 40}),
        ],
        ids=["message", "timestamp", "parent", "parents", "path", "blob"],
    )
    def test_any_field_changes_id(self, changed):
        assert commit_id(*changed) != commit_id(*self.ARGS)


class TestObjectStore:
    def test_store_and_get(self, components):
        objects = components.objects
        hash_ = objects.store(b"content")
        assert hash_ == blob_hash(b"content")
        assert objects.get(hash_) == b"content"
        assert objects.has(hash_)

    def test_put_is_idempotent(self, components):
        objects = components.objects
        first = objects.store(b"twice")
        second = objects.store(b"twice")
        assert first == second
        objects.remove(first)
        assert not objects.has(first)

    def test_get_missing(self, components):
        with pytest.raises(NotFound):
            components.objects.get("0" * 40)

    def test_remove_missing_is_ignored(self, components):
        components.objects.remove("0" * 40)
        assert not components.objects.has("0" * 40)
