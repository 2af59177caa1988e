import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from PIL import Image

from fortune_cookie.assets.resolver import (
    FALLBACK,
    AssetProbe,
    AssetResolver,
    FileProbe,
    HttpProbe,
    LocatorProbe,
)


class ScriptedProbe(AssetProbe):
    """Answers from a dict; raises for values that are exceptions."""

    def __init__(self, answers):
        self.answers = answers
        self.calls = []

    async def exists(self, locator):
        self.calls.append(locator)
        await asyncio.sleep(0)
        answer = self.answers.get(locator, False)
        if isinstance(answer, Exception):
            raise answer
        return answer


def test_second_candidate_wins_and_third_is_never_probed():
    probe = ScriptedProbe({"a.png": False, "b.png": True, "c.png": True})
    resolver = AssetResolver(["a.png", "b.png", "c.png"], probe)

    handle = asyncio.run(resolver.resolve())

    assert handle.locator == "b.png"
    assert not handle.is_fallback
    assert probe.calls == ["a.png", "b.png"]


def test_no_match_resolves_to_fallback_glyph():
    probe = ScriptedProbe({})
    resolver = AssetResolver(["a.png", "b.png"], probe)

    handle = asyncio.run(resolver.resolve())

    assert handle is FALLBACK
    assert handle.is_fallback
    assert handle.glyph == "🥠"


def test_empty_candidate_list_is_valid():
    resolver = AssetResolver([], ScriptedProbe({}))
    assert asyncio.run(resolver.resolve()).is_fallback


def test_probe_exception_counts_as_miss():
    probe = ScriptedProbe({"a.png": OSError("timeout"), "b.png": True})
    resolver = AssetResolver(["a.png", "b.png"], probe)

    assert asyncio.run(resolver.resolve()).locator == "b.png"


def test_result_is_cached_and_concurrent_callers_share_one_probe_run():
    probe = ScriptedProbe({"a.png": True})
    resolver = AssetResolver(["a.png"], probe)

    async def scenario():
        first, second = await asyncio.gather(resolver.resolve(), resolver.resolve())
        third = await resolver.resolve()
        return first, second, third

    first, second, third = asyncio.run(scenario())

    assert first == second == third
    assert probe.calls == ["a.png"]


def test_current_is_fallback_until_resolved():
    resolver = AssetResolver(["a.png"], ScriptedProbe({"a.png": True}))

    assert resolver.handle is None
    assert resolver.current.is_fallback
    asyncio.run(resolver.resolve())
    assert resolver.current.locator == "a.png"


def test_load_failure_downgrades_without_reprobing():
    probe = ScriptedProbe({"a.png": True})
    resolver = AssetResolver(["a.png"], probe)
    asyncio.run(resolver.resolve())

    handle = resolver.mark_load_failed()

    assert handle.is_fallback
    assert resolver.current.is_fallback
    assert asyncio.run(resolver.resolve()).is_fallback
    assert probe.calls == ["a.png"]


def test_file_probe_accepts_real_images_only(tmp_path):
    Image.new("RGB", (4, 4), "orange").save(tmp_path / "cookie.png")
    (tmp_path / "broken.png").write_bytes(b"not an image")
    probe = FileProbe(tmp_path, timeout=2.0)

    async def scenario():
        return (
            await probe.exists("cookie.png"),
            await probe.exists("/cookie.png"),
            await probe.exists("missing.png"),
        )

    assert asyncio.run(scenario()) == (True, True, False)

    resolver = AssetResolver(["broken.png", "cookie.png"], probe)
    assert asyncio.run(resolver.resolve()).locator == "cookie.png"


def test_locator_probe_routes_by_scheme():
    file_probe = MagicMock(spec=FileProbe)
    file_probe.exists = AsyncMock(return_value=False)
    http_probe = MagicMock(spec=HttpProbe)
    http_probe.exists = AsyncMock(return_value=True)
    probe = LocatorProbe(file_probe, http_probe)

    async def scenario():
        return await probe.exists("cookie.png"), await probe.exists("https://cdn.example/cookie.png")

    assert asyncio.run(scenario()) == (False, True)
    file_probe.exists.assert_awaited_once_with("cookie.png")
    http_probe.exists.assert_awaited_once_with("https://cdn.example/cookie.png")


def test_http_probe_treats_2xx_as_present():
    response = MagicMock(status=204)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock(closed=False)
    session.head.return_value = context

    probe = HttpProbe(timeout=1.0)
    with patch.object(probe, "_get_session", AsyncMock(return_value=session)):
        assert asyncio.run(probe.exists("https://cdn.example/a.png")) is True
        response.status = 404
        assert asyncio.run(probe.exists("https://cdn.example/a.png")) is False

    session.head.assert_called_with("https://cdn.example/a.png", allow_redirects=True)


def _response_context(status):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=MagicMock(status=status))
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def test_http_probe_retries_with_get_when_head_not_allowed():
    session = MagicMock(closed=False)
    session.head.return_value = _response_context(405)
    session.get.return_value = _response_context(200)

    probe = HttpProbe(timeout=1.0)
    with patch.object(probe, "_get_session", AsyncMock(return_value=session)):
        assert asyncio.run(probe.exists("https://cdn.example/a.png")) is True

    session.get.assert_called_once_with("https://cdn.example/a.png", allow_redirects=True)


def test_http_probe_does_not_retry_plain_misses():
    session = MagicMock(closed=False)
    session.head.return_value = _response_context(404)

    probe = HttpProbe(timeout=1.0)
    with patch.object(probe, "_get_session", AsyncMock(return_value=session)):
        assert asyncio.run(probe.exists("https://cdn.example/a.png")) is False

    session.get.assert_not_called()
