import asyncio
import json

from notebook_chat.cache import DocumentCache, composite_key
from notebook_chat.security import ConfidentialityCodec
from notebook_chat.storage import MemoryBlobStore

from tests.conftest import reload_cache


async def test_put_writes_primary_and_aliases(cache):
    await cache.put("report.pdf_120", {"report.pdf"}, "quarterly numbers")

    assert cache.get("report.pdf_120") == "quarterly numbers"
    assert cache.get("report.pdf") == "quarterly numbers"
    assert cache.get("missing.pdf") is None


async def test_folder_alias_and_composite_resolve_to_same_text(cache):
    key = composite_key("Research/paper.txt", 42)
    await cache.put(key, {"Research/paper.txt"}, "abstract")

    assert cache.get("Research/paper.txt") == cache.get(key) == "abstract"


async def test_persist_then_load_round_trips(store, cache):
    await cache.put("a.txt_3", {"a.txt"}, "abc")
    await cache.put("Folder/b.txt_4", {"Folder/b.txt"}, "bcde ünïcödé")

    fresh = await reload_cache(store)

    assert fresh.snapshot() == cache.snapshot()


async def test_store_never_receives_plaintext(store, cache):
    await cache.put("secret.txt_20", {"secret.txt"}, "top secret contents")

    raw = await store.get_item("processedDocuments")
    assert "top secret contents" not in raw
    stored = json.loads(raw)
    assert set(stored) == {"secret.txt_20", "secret.txt"}
    assert all(v.startswith("enc:") for v in stored.values())


async def test_clear_single_name_removes_alias_group(store, cache):
    await cache.put("notes.txt_11", {"notes.txt"}, "hello world")
    await cache.put("other.txt_2", {"other.txt"}, "hi")

    await cache.clear("notes.txt")

    assert cache.get("notes.txt") is None
    assert cache.get("notes.txt_11") is None
    assert cache.get("other.txt") == "hi"
    fresh = await reload_cache(store)
    assert "notes.txt_11" not in fresh
    assert fresh.get("other.txt") == "hi"


async def test_clear_all_then_reload_is_empty(store, cache):
    await cache.put("a_1", {"a"}, "x")
    await cache.put("b_1", {"b"}, "y")

    await cache.clear()

    for name in ("a", "a_1", "b", "b_1"):
        assert cache.get(name) is None
    fresh = await reload_cache(store)
    assert len(fresh) == 0


async def test_alias_groups_are_rebuilt_after_restart(store, cache):
    await cache.put("a.txt_5", {"a.txt"}, "alpha")

    fresh = await reload_cache(store)
    await fresh.clear("a.txt")

    assert fresh.get("a.txt_5") is None


async def test_folder_bare_alias_rejoins_group_after_restart(store, cache):
    await cache.put("notes/a.txt_5", {"notes/a.txt", "a.txt"}, "alpha")

    fresh = await reload_cache(store)
    await fresh.clear("a.txt")

    assert fresh.get("notes/a.txt_5") is None
    assert fresh.get("notes/a.txt") is None


async def test_replacing_alias_does_not_drop_previous_composite(cache):
    await cache.put("a.txt_5", {"a.txt"}, "old")
    await cache.put("a.txt_7", {"a.txt"}, "new")

    await cache.clear("a.txt")

    assert cache.get("a.txt_7") is None
    assert cache.get("a.txt_5") == "old"


async def test_legacy_and_undecryptable_values_load_as_plaintext():
    store = MemoryBlobStore()
    await store.set_item(
        "processedDocuments",
        json.dumps({"old.txt": "untagged legacy", "tagged.txt": "plain:tagged legacy", "bad.txt": "enc:not-base64!"}),
    )
    cache = DocumentCache(store, ConfidentialityCodec(store))
    await cache.load()

    assert cache.get("old.txt") == "untagged legacy"
    assert cache.get("tagged.txt") == "tagged legacy"
    assert cache.get("bad.txt") == "not-base64!"


async def test_corrupt_store_starts_empty():
    store = MemoryBlobStore()
    await store.set_item("processedDocuments", "{not json")
    cache = DocumentCache(store, ConfidentialityCodec(store))
    await cache.load()

    assert len(cache) == 0


async def test_quota_exceeded_wipes_store_and_retries_once():
    store = MemoryBlobStore(max_bytes=600)
    await store.set_item("junk", "x" * 400)
    cache = DocumentCache(store, ConfidentialityCodec(store))
    await cache.load()

    await cache.put("notes.txt_11", {"notes.txt"}, "hello world")

    assert await store.get_item("junk") is None
    fresh = await reload_cache(store)
    assert fresh.get("notes.txt") == "hello world"


async def test_persist_failure_keeps_in_memory_cache():
    store = MemoryBlobStore(max_bytes=150)
    cache = DocumentCache(store, ConfidentialityCodec(store))
    await cache.load()

    await cache.put("notes.txt_11", {"notes.txt"}, "hello world")

    assert cache.get("notes.txt") == "hello world"
    assert await store.get_item("processedDocuments") is None


async def test_concurrent_puts_are_all_persisted(store, cache):
    await asyncio.gather(
        *(cache.put(f"f{i}.txt_{i}", {f"f{i}.txt"}, f"text {i}") for i in range(10))
    )

    fresh = await reload_cache(store)
    assert {fresh.get(f"f{i}.txt") for i in range(10)} == {f"text {i}" for i in range(10)}
