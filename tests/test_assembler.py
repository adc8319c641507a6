import pytest

from notebook_chat.context import (
    MISSING_CONTENT_PLACEHOLDER,
    NO_DOCUMENT_CONTEXT,
    SourceRegistry,
    find_citations,
)
from notebook_chat.exception import InvalidSourceError
from notebook_chat.models import FileSource, FolderSource, LinkSource, TextSource
from notebook_chat.prompts.prompt_library import CONTEXT_HEADER, INDEX_HEADER, NO_CONTEXT_MESSAGE


def _txt(name: str, body: bytes) -> FileSource:
    return FileSource(name=name, media_type="text/plain", data=body)


async def test_context_follows_source_order(cache):
    file_b = _txt("B.txt", b"bravo")
    folder_c = FolderSource(name="C", files=[_txt("c1.txt", b"c-one"), _txt("c2.txt", b"c-two")])
    sources = [TextSource(name="A", content="alpha notes"), file_b, folder_c]

    await cache.put("B.txt_5", {"B.txt"}, "bravo")
    await cache.put("C/c1.txt_5", {"C/c1.txt"}, "c-one")
    await cache.put("C/c2.txt_5", {"C/c2.txt"}, "c-two")

    ctx = SourceRegistry(cache).assemble_context(sources)

    assert ctx.has_documents
    assert ctx.document_index == ("A", "B.txt", "C/c1.txt", "C/c2.txt")
    assert ctx.context_block == (
        CONTEXT_HEADER
        + "Document [A]:\nalpha notes\n\n"
        + "Document [B.txt]:\nbravo\n\n"
        + "Document [C/c1.txt]:\nc-one\n\n"
        + "Document [C/c2.txt]:\nc-two\n\n"
        + INDEX_HEADER
        + "1. [A]\n2. [B.txt]\n3. [C/c1.txt]\n4. [C/c2.txt]\n"
    )


async def test_no_documents_yields_sentinel(cache):
    ctx = SourceRegistry(cache).assemble_context([TextSource(name="empty", content="   ")])

    assert ctx is NO_DOCUMENT_CONTEXT
    assert ctx.context_block == NO_CONTEXT_MESSAGE
    assert ctx.document_index == ()
    assert SourceRegistry(cache).assemble_context([]) is NO_DOCUMENT_CONTEXT


async def test_only_empty_documents_yield_sentinel(dispatcher, cache):
    empty = _txt("empty.txt", b"")
    await dispatcher.extract(empty)
    assert cache.get("empty.txt_0") == ""

    registry = SourceRegistry(cache)

    assert registry.assemble_context([empty]) is NO_DOCUMENT_CONTEXT
    assert registry.assemble_context([empty, TextSource(name="blank", content="\n")]) is NO_DOCUMENT_CONTEXT

    mixed = registry.assemble_context([empty, TextSource(name="memo", content="real text")])
    assert mixed.has_documents
    assert mixed.document_index == ("empty.txt", "memo")


async def test_unextracted_file_gets_placeholder(cache):
    ctx = SourceRegistry(cache).assemble_context([_txt("later.txt", b"not yet")])

    assert f"Document [later.txt]:\n{MISSING_CONTENT_PLACEHOLDER}\n\n" in ctx.context_block
    assert ctx.document_index == ("later.txt",)


async def test_lookup_falls_back_to_name_when_size_changed(cache):
    await cache.put("doc.txt_3", {"doc.txt"}, "old")

    ctx = SourceRegistry(cache).assemble_context([_txt("doc.txt", b"longer body")])

    assert "Document [doc.txt]:\nold\n\n" in ctx.context_block


async def test_link_source_is_a_placeholder_document(cache):
    ctx = SourceRegistry(cache).assemble_context([LinkSource(name="Docs site", url="https://example.org")])

    assert "Document [Docs site]:\nContent from Docs site\n\n" in ctx.context_block


async def test_find_unprocessed_is_read_only(cache):
    await cache.put("seen.txt_4", {"seen.txt"}, "seen")
    sources = [
        _txt("seen.txt", b"seen"),
        _txt("new.txt", b"fresh"),
        FolderSource(name="dir", files=[_txt("seen.txt", b"seen")]),
        TextSource(name="pasted", content="text"),
    ]
    before = cache.snapshot()

    pending = SourceRegistry(cache).find_unprocessed(sources)

    assert [p.name for p in pending] == ["new.txt", "dir/seen.txt"]
    assert cache.snapshot() == before


async def test_duplicate_names_are_rejected(cache):
    registry = SourceRegistry(cache)
    with pytest.raises(InvalidSourceError):
        registry.assemble_context([TextSource(name="x", content="1"), _txt("x", b"2")])
    with pytest.raises(InvalidSourceError):
        SourceRegistry.validate([FolderSource(name="docs", files=[]), TextSource(name="docs", content="y")])


def test_names_with_folder_separator_are_rejected():
    with pytest.raises(InvalidSourceError):
        TextSource(name="a/b", content="x")
    with pytest.raises(InvalidSourceError):
        FolderSource(name="dir", files=[_txt("same.txt", b"1"), _txt("same.txt", b"2")])


def test_find_citations_keeps_indexed_names_in_order():
    index = ("A", "B.txt", "C/c1.txt")
    response = "See [C/c1.txt] and [A]. Also [A] again, and [unknown] or [1]."

    assert find_citations(response, index) == ["C/c1.txt", "A"]
