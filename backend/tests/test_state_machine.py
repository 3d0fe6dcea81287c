import random

from voice_audit.core.state import AuditSessionState
from voice_audit.session import START_EVENT, InterviewStateMachine, SessionStore, StartKind, TranscriptEntry


def test_begin_creates_session_with_start_event(machine):
    assert machine.state == AuditSessionState.IDLE
    result = machine.begin()
    assert result.kind == StartKind.START
    assert result.event_text == START_EVENT
    assert machine.state == AuditSessionState.ACTIVE
    assert machine.current().id == result.session.id


def test_begin_resumes_active_session_at_pointer(machine):
    first = machine.begin()
    machine.commit_answer(0, {"Maturité – Stratégie": "2"})
    machine.commit_answer(1, {"Maturité – Données-Infrastructure": "3"})

    again = machine.begin()
    assert again.session.id == first.session.id
    assert again.kind == StartKind.RESUME
    assert again.event_text == "[EVENT: RESUME_AUDIT, ID: q03]"


def test_begin_after_finish_creates_new_session(store, small_catalogue):
    machine = InterviewStateMachine(store, small_catalogue)
    first = machine.begin().session
    machine.commit_answer(0, {"Strategie": "Tests"})
    result = machine.commit_answer(1, {"Consent": True})
    assert result.completed is True
    assert machine.state == AuditSessionState.FINISHED

    second = machine.begin()
    assert second.session.id != first.id
    assert second.kind == StartKind.START
    assert len(store.list()) == 2


def test_pointer_never_decreases_and_finishes_once(store, catalogue):
    machine = InterviewStateMachine(store, catalogue)
    machine.begin()
    rng = random.Random(7)

    previous = 0
    completions = 0
    for _ in range(200):
        index = rng.randrange(len(catalogue))
        result = machine.commit_answer(index, {catalogue[index].key: "x"})
        if result is None:
            break
        assert result.session.current_step >= previous
        previous = result.session.current_step
        completions += int(result.completed)

    for index in range(len(catalogue)):
        result = machine.commit_answer(index, {catalogue[index].key: "x"})
        if result is not None:
            completions += int(result.completed)

    assert completions == 1
    assert machine.current().finished is True
    assert machine.current().current_step == len(catalogue)


def test_commit_resets_error_counter(machine):
    session = machine.begin().session
    assert machine.bump_errors(session.id) == 1
    assert machine.bump_errors(session.id) == 2
    result = machine.commit_answer(0, {"Maturité – Stratégie": "1"})
    assert result.session.consecutive_errors == 0


def test_commit_without_active_session_is_rejected(machine):
    assert machine.commit_answer(0, {"x": 1}) is None


def test_technical_closure_only_once(machine):
    machine.begin()
    machine.commit_answer(0, {"Maturité – Stratégie": "1"})
    closed = machine.close_technically()
    assert closed.finished is True
    assert closed.answers == {"Maturité – Stratégie": "1"}
    assert machine.close_technically() is None


def test_append_turn_adds_entries(machine):
    session = machine.begin().session
    updated = machine.append_turn(
        session.id,
        [TranscriptEntry(role="User", text="Bonjour"), TranscriptEntry(role="Agent", text="Bienvenue")],
        consecutive_errors=1,
    )
    assert [e.text for e in updated.transcript] == ["Bonjour", "Bienvenue"]
    assert updated.consecutive_errors == 1


def test_archive_clears_selection_only_when_current(machine):
    first = machine.begin().session
    machine.close_technically()
    assert machine.archive("someone-else") is False
    assert machine.archive(first.id) is True
    assert machine.current() is None
    assert machine.store.get(first.id) is not None


def test_select_and_delete(machine):
    first = machine.new_session()
    second = machine.new_session()
    assert machine.select(first.id).id == first.id
    assert machine.delete(second.id) is True
    assert machine.delete(second.id) is False
    assert [s.id for s in machine.store.list()] == [first.id]


def test_state_machine_over_plain_store(small_catalogue):
    machine = InterviewStateMachine(SessionStore(), small_catalogue)
    machine.begin()
    result = machine.commit_answer(1, {"Consent": True})
    assert result.completed is True
    assert result.session.current_step == 2
