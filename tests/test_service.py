import pytest

from notebook_chat.exception import LLMClientError, PreconditionError
from notebook_chat.llm import ChatClient, ChatMessage
from notebook_chat.models import FileSource, FolderSource, TextSource
from notebook_chat.prompts.prompt_library import NO_CONTEXT_MESSAGE
from notebook_chat.service import NotebookService
from notebook_chat.storage import MemoryBlobStore
from notebook_chat.utils.config_loader import AppSettings, CacheSettings

from tests.conftest import FakeOCR


class FakeChatClient(ChatClient):
    def __init__(self, reply: str = "answer", error: Exception | None = None):
        super().__init__()
        self.reply = reply
        self.error = error
        self.calls = []

    async def chat(self, message, history, context_block):
        self.calls.append((message, list(history), context_block))
        if self.error is not None:
            raise self.error
        return self.reply

    async def verify(self):
        return True


SETTINGS = AppSettings(cache=CacheSettings(backend="memory"))


async def _service(store=None, ocr=None, chat_client=None):
    return await NotebookService.create(
        settings=SETTINGS,
        store=store or MemoryBlobStore(),
        ocr=ocr or FakeOCR(),
        chat_client=chat_client or FakeChatClient(),
    )


def _sources():
    return [
        TextSource(name="Pasted", content="pasted notes"),
        FileSource(name="notes.txt", media_type="text/plain", data=b"hello world"),
        FolderSource(
            name="scans",
            files=[FileSource(name="page.png", media_type="image/png", data=b"png")],
        ),
    ]


async def test_process_then_chat_with_citations():
    ocr = FakeOCR(["text in image"])
    client = FakeChatClient(reply="See [notes.txt] and [scans/page.png].")
    service = await _service(ocr=ocr, chat_client=client)

    processed = await service.process_sources(_sources())
    assert processed == {"notes.txt": "hello world", "scans/page.png": "text in image"}

    history = [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello")]
    result = await service.chat("What do my notes say?", history, _sources())

    assert result.answer == "See [notes.txt] and [scans/page.png]."
    assert result.document_index == ["Pasted", "notes.txt", "scans/page.png"]
    assert result.citations == ["notes.txt", "scans/page.png"]
    message, sent_history, context_block = client.calls[0]
    assert message == "What do my notes say?"
    assert len(sent_history) == 2
    assert "Document [notes.txt]:\nhello world" in context_block


async def test_second_process_call_extracts_nothing():
    service = await _service()
    await service.process_sources(_sources())

    assert await service.process_sources(_sources()) == {}


async def test_restart_reuses_persisted_extractions():
    store = MemoryBlobStore()
    first = await _service(store=store, ocr=FakeOCR(["image words"]))
    await first.process_sources(_sources())

    ocr = FakeOCR()
    restarted = await _service(store=store, ocr=ocr)

    assert await restarted.process_sources(_sources()) == {}
    assert ocr.calls == []
    assert restarted.get_processed_document("scans/page.png") == "image words"
    assert restarted.get_processed_document("page.png") == "image words"


async def test_llm_failure_leaves_cache_untouched():
    service = await _service(chat_client=FakeChatClient(error=LLMClientError("down")))
    await service.process_sources(_sources())
    before = service.cache.snapshot()

    with pytest.raises(LLMClientError):
        await service.chat("question", [], _sources())
    assert service.cache.snapshot() == before


async def test_chat_without_documents_uses_general_knowledge_context():
    client = FakeChatClient()
    service = await _service(chat_client=client)

    result = await service.chat("Tell me about tides", [], [])

    assert client.calls[0][2] == NO_CONTEXT_MESSAGE
    assert result.document_index == []
    assert result.citations == []


async def test_empty_message_is_rejected():
    service = await _service()

    with pytest.raises(PreconditionError):
        await service.chat("   ", [], _sources())


async def test_reprocess_folder_runs_ocr_again():
    ocr = FakeOCR(["first pass", "second pass"])
    service = await _service(ocr=ocr)
    sources = _sources()
    await service.process_sources(sources)

    result = await service.reprocess(sources[2])

    assert result == {"scans/page.png": "second pass"}
    assert len(ocr.calls) == 2
    assert service.get_processed_document("scans/page.png") == "second pass"


async def test_reprocess_file_and_pasted_text():
    service = await _service()
    sources = _sources()
    await service.process_sources(sources)

    assert await service.reprocess(sources[1]) == {"notes.txt": "hello world"}
    assert await service.reprocess(sources[0]) == {}


async def test_clear_cache_single_and_all():
    service = await _service()
    await service.process_sources(_sources())

    await service.clear_cache("notes.txt")
    assert service.get_processed_document("notes.txt") is None
    assert service.get_processed_document("notes.txt_11") is None
    assert service.get_processed_document("scans/page.png") == "ocr text"

    await service.clear_cache()
    assert len(service.cache) == 0
