import asyncio
import time
from datetime import timedelta

import pytest
from conftest import InMemoryStorage

from domain import AudioRef
from exceptions import UploadError
from pipeline import DurableStore


def test_upload_writes_both_sides(durable_store, storage):
    refs = asyncio.run(
        durable_store.upload("conv-1", "ex-1", b"hola", b"hello", "es", "en")
    )

    assert refs.original.value.startswith("voice-translations/conv-1/ex-1/original-es-")
    assert refs.original.value.endswith(".webm")
    assert refs.translated.value.startswith(
        "voice-translations/conv-1/ex-1/translated-en-"
    )
    assert refs.translated.value.endswith(".mp3")
    assert storage.objects[refs.original.value] == (b"hola", "audio/webm")
    assert storage.objects[refs.translated.value] == (b"hello", "audio/mpeg")


def test_upload_reads_ephemeral_refs_and_keeps_durable_ones(
    durable_store, storage, ephemeral_audio
):
    original = ephemeral_audio.put(b"bonjour", "audio/ogg")
    translated = AudioRef.durable("voice-translations/already/there.mp3")

    refs = asyncio.run(
        durable_store.upload("conv-1", "ex-1", original, translated, None, "en")
    )

    assert "original-auto-" in refs.original.value
    assert refs.original.value.endswith(".ogg")
    assert storage.objects[refs.original.value] == (b"bonjour", "audio/ogg")
    assert refs.translated == translated


def test_expired_ephemeral_audio_is_an_upload_error(durable_store):
    with pytest.raises(UploadError):
        asyncio.run(
            durable_store.upload(
                "conv-1", "ex-1", AudioRef.ephemeral("blob:gone"), b"x", "en", "es"
            )
        )


def test_storage_failure_is_an_upload_error(durable_store, storage):
    storage.fail_uploads = True

    with pytest.raises(UploadError) as exc_info:
        asyncio.run(durable_store.upload("conv-1", "ex-1", b"a", b"b", "en", "es"))

    assert exc_info.value.exchange_id == "ex-1"
    assert exc_info.value.cause is not None


def test_failed_side_removes_the_side_already_written(durable_store, storage):
    storage.fail_uploads_matching = "/translated-"

    with pytest.raises(UploadError):
        asyncio.run(durable_store.upload("conv-1", "ex-1", b"a", b"b", "en", "es"))

    assert storage.objects == {}
    assert len(storage.deleted) == 1
    assert "/original-en-" in storage.deleted[0]


class SlowStorage(InMemoryStorage):
    def upload(self, object_name, data, size, content_type):
        time.sleep(0.2)
        super().upload(object_name, data, size, content_type)


def test_slow_storage_times_out_and_removes_the_late_write(ephemeral_audio):
    storage = SlowStorage()
    store = DurableStore(storage, ephemeral_audio, upload_timeout_seconds=0.01)

    async def scenario():
        with pytest.raises(UploadError):
            await store.upload("conv-1", "ex-1", b"a", b"b", "en", "es")
        await asyncio.sleep(0.4)

    asyncio.run(scenario())

    assert storage.objects == {}
    assert len(storage.deleted) == 1


def test_resolve(storage, ephemeral_audio):
    store = DurableStore(
        storage,
        ephemeral_audio,
        url_ttl=timedelta(minutes=10),
        ephemeral_base_url="https://api.test/audio/ephemeral/",
    )
    live = ephemeral_audio.put(b"abc", "audio/webm")

    assert store.resolve(None) is None
    assert store.resolve(AudioRef.durable("a/b.mp3")) == (
        "https://storage.test/a/b.mp3?ttl=600"
    )
    assert store.resolve(live) == f"https://api.test/audio/ephemeral/{live.value}"
    assert store.resolve(AudioRef.ephemeral("blob:expired")) is None

    storage.fail_urls = True
    assert store.resolve(AudioRef.durable("a/b.mp3")) is None


def test_is_ephemeral():
    assert DurableStore.is_ephemeral(AudioRef.ephemeral("blob:1"))
    assert not DurableStore.is_ephemeral(AudioRef.durable("x/y.mp3"))
