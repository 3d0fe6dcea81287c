import asyncio

import pytest

from voice_audit.session import InterviewSession, TranscriptEntry


def _reply(content):
    class _Msg:
        pass

    class _Choice:
        message = _Msg()

    class _Response:
        choices = [_Choice()]

    _Choice.message.content = content
    return _Response()


def _session():
    return InterviewSession(
        id="s-1",
        answers={"Strategie": "on fait des essais"},
        transcript=(
            TranscriptEntry(role="Agent", text="Où en êtes-vous ?"),
            TranscriptEntry(role="User", text="On fait quelques essais."),
        ),
    )


def test_parse_candidate_accepts_fenced_object():
    from voice_audit.normalization import parse_candidate

    parsed = parse_candidate('```json\n{"Strategie": "Tests"}\n```')
    assert parsed.ok
    assert parsed.value == {"Strategie": "Tests"}


def test_parse_candidate_rejects_unusable_replies():
    from voice_audit.normalization import parse_candidate

    for reply in ("", None, "not json", "[1, 2]", "{}", '"text"'):
        assert not parse_candidate(reply).ok


@pytest.mark.asyncio
async def test_propose_returns_candidate(monkeypatch: pytest.MonkeyPatch, small_catalogue):
    from voice_audit.normalization import candidate

    seen = {}

    async def _fake_create(*args, **kwargs):
        seen.update(kwargs)
        return _reply('{"Strategie": "Tests", "Consent": true}')

    monkeypatch.setattr(candidate.client.chat.completions, "create", _fake_create)

    mapper = candidate.SemanticMapper(model="test-model", timeout_sec=1.0)
    result = await mapper.propose(small_catalogue, _session())

    assert result == {"Strategie": "Tests", "Consent": True}
    assert seen["model"] == "test-model"
    assert seen["temperature"] == 0
    assert seen["response_format"] == {"type": "json_object"}
    assert "On fait quelques essais." in seen["messages"][1]["content"]


@pytest.mark.asyncio
async def test_propose_timeout_returns_none(monkeypatch: pytest.MonkeyPatch, small_catalogue):
    from voice_audit.normalization import candidate

    async def _slow(*args, **kwargs):
        await asyncio.sleep(1.0)
        return _reply('{"Strategie": "Tests"}')

    monkeypatch.setattr(candidate.client.chat.completions, "create", _slow)

    mapper = candidate.SemanticMapper(timeout_sec=5.0)
    assert await mapper.propose(small_catalogue, _session(), timeout_sec=0.05) is None


@pytest.mark.asyncio
async def test_propose_failure_returns_none(monkeypatch: pytest.MonkeyPatch, small_catalogue):
    from voice_audit.normalization import candidate

    async def _boom(*args, **kwargs):
        raise RuntimeError("forced")

    monkeypatch.setattr(candidate.client.chat.completions, "create", _boom)

    assert await candidate.SemanticMapper().propose(small_catalogue, _session()) is None


@pytest.mark.asyncio
async def test_propose_unusable_reply_returns_none(monkeypatch: pytest.MonkeyPatch, small_catalogue):
    from voice_audit.normalization import candidate

    async def _fake_create(*args, **kwargs):
        return _reply("Je ne peux pas répondre.")

    monkeypatch.setattr(candidate.client.chat.completions, "create", _fake_create)

    assert await candidate.SemanticMapper().propose(small_catalogue, _session()) is None
