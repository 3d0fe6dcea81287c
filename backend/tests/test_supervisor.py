import asyncio

import pytest

from conftest import wait_until
from voice_audit.turns import SilenceTimer, TurnSupervisor, is_apology, next_error_count


def test_apology_detection():
    assert is_apology("Désolé, je n'ai pas compris votre réponse.")
    assert is_apology("desole, je ne comprends pas")
    assert not is_apology("Désolé pour l'attente.")
    assert not is_apology("J'ai bien compris, merci.")


def test_error_count_rules():
    assert next_error_count(1, "", "Désolé, je n'ai pas compris.") == 2
    assert next_error_count(2, "Nous sommes une PME", "Merci.") == 0
    assert next_error_count(2, "ok", "Merci.") == 2
    assert next_error_count(0, "Oui tout à fait", "Désolé, je n'ai pas compris.") == 1


class _NullTimer:
    def __init__(self):
        self.armed_for = []
        self.cancelled = 0

    def arm(self, session_id):
        self.armed_for.append(session_id)

    def cancel(self):
        self.cancelled += 1


def test_turn_complete_appends_entries_and_rearms(machine):
    session = machine.begin().session
    timer = _NullTimer()
    supervisor = TurnSupervisor(machine, session.id, timer)

    supervisor.on_input("Nous avons ")
    supervisor.on_input("une stratégie.")
    supervisor.on_output("Très bien, ")
    supervisor.on_output("question suivante.")
    outcome = supervisor.on_turn_complete()

    assert outcome.user_text == "Nous avons une stratégie."
    assert outcome.recorded is True
    stored = machine.store.get(session.id)
    assert [(e.role, e.text) for e in stored.transcript] == [
        ("User", "Nous avons une stratégie."),
        ("Agent", "Très bien, question suivante."),
    ]
    assert supervisor.input_text == "" and supervisor.output_text == ""
    assert timer.armed_for == [session.id]
    assert timer.cancelled >= 2


def test_empty_turn_only_rearms(machine):
    session = machine.begin().session
    timer = _NullTimer()
    supervisor = TurnSupervisor(machine, session.id, timer)
    outcome = supervisor.on_turn_complete()
    assert outcome.recorded is False
    assert machine.store.get(session.id).transcript == ()
    assert timer.armed_for == [session.id]


def test_apology_turn_increments_persisted_counter(machine):
    session = machine.begin().session
    supervisor = TurnSupervisor(machine, session.id, _NullTimer())
    supervisor.on_output("Désolé, je n'ai pas compris.")
    assert supervisor.on_turn_complete().consecutive_errors == 1
    assert machine.store.get(session.id).consecutive_errors == 1


@pytest.mark.asyncio
async def test_silence_timer_fires_with_session_id():
    fired = []

    async def _on_fire(session_id):
        fired.append(session_id)

    timer = SilenceTimer(_on_fire, window_sec=0.02)
    timer.arm("s-1")
    assert timer.armed and timer.session_id == "s-1"
    assert await wait_until(lambda: fired == ["s-1"], timeout=1.0)
    assert timer.armed is False


@pytest.mark.asyncio
async def test_silence_timer_cancel_and_rearm():
    fired = []

    async def _on_fire(session_id):
        fired.append(session_id)

    timer = SilenceTimer(_on_fire, window_sec=0.05)
    timer.arm("old")
    timer.arm("new")
    await asyncio.sleep(0.02)
    timer.cancel()
    await asyncio.sleep(0.08)
    assert fired == []

    timer.arm("new")
    await asyncio.sleep(0.1)
    assert fired == ["new"]


@pytest.mark.asyncio
async def test_silence_handler_errors_are_contained():
    async def _on_fire(session_id):
        raise RuntimeError("channel gone")

    timer = SilenceTimer(_on_fire, window_sec=0.01)
    timer.arm("s-1")
    await asyncio.sleep(0.05)
    assert timer.armed is False
