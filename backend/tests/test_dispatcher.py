import json

from voice_audit.live import ToolCall
from voice_audit.session import InterviewStateMachine
from voice_audit.tools import (
    AUDIT_COMPLETED,
    RECORD_SUCCESS,
    TECHNICAL_CLOSURE,
    ToolDispatcher,
    parse_affirmative,
    parse_record_answer,
)


def _call(name, **arguments):
    return ToolCall(call_id="c1", name=name, arguments=json.dumps(arguments))


def test_parse_record_answer_tagged_results():
    assert parse_record_answer('{"questionId": "q01", "value": "2"}').ok
    assert not parse_record_answer("{broken").ok
    assert not parse_record_answer("[1, 2]").ok
    assert not parse_record_answer({"value": "x"}).ok
    assert not parse_record_answer({"questionId": "q17", "multiValues": [{"a": 1}]}).ok
    assert not parse_record_answer({"questionId": "q01", "value": {"nested": True}}).ok

    parsed = parse_record_answer({"questionId": " q06 ", "value": "Autre", "otherFreeText": "Consultant"})
    assert parsed.value.question_id == "q06"
    assert parsed.value.other_text == "Consultant"


def test_affirmative_vocabulary():
    for token in ("Oui", "OK", " accord ", "yes", "true", True):
        assert parse_affirmative(token) is True
    for token in ("non", "peut-être", "", None, False):
        assert parse_affirmative(token) is False


def test_record_select_answer_advances(machine):
    session = machine.begin().session
    dispatcher = ToolDispatcher(machine)
    outcome = dispatcher.dispatch(_call("record_answer", questionId="q01", value="on teste un peu"))
    assert outcome.ack == RECORD_SUCCESS
    stored = machine.store.get(session.id)
    assert stored.current_step == 1
    assert stored.answers["Maturité – Stratégie"] == "on teste un peu"


def test_record_multi_select_and_escape(machine):
    session = machine.begin().session
    dispatcher = ToolDispatcher(machine)
    dispatcher.dispatch(_call("record_answer", questionId="q17", multiValues=["2", "Autre"], autreValue="Chatbot RH"))
    dispatcher.dispatch(_call("record_answer", questionId="q06", value="Autre", autreValue="Consultant"))
    answers = machine.store.get(session.id).answers
    assert answers["Objectifs IA-Digital"] == ["2", "Autre"]
    assert answers["Objectifs IA-Digital-Autre"] == "Chatbot RH"
    assert answers["Statut Répondant - Position"] == "Autre"
    assert answers["Statut Répondant – Autre"] == "Consultant"


def test_record_boolean_answer(machine):
    session = machine.begin().session
    ToolDispatcher(machine).dispatch(_call("record_answer", questionId="q21", value="Oui"))
    assert machine.store.get(session.id).answers["Consentement RGPD (Oui/Non)"] is True


def test_unknown_question_leaves_state_untouched(machine):
    session = machine.begin().session
    outcome = ToolDispatcher(machine).dispatch(_call("record_answer", questionId="q99", value="x"))
    assert outcome.failed
    assert "UNKNOWN_QUESTION" in outcome.ack
    assert machine.store.get(session.id).current_step == 0


def test_record_without_session_fails(machine):
    outcome = ToolDispatcher(machine).dispatch(_call("record_answer", questionId="q01", value="1"))
    assert outcome.failed
    assert outcome.completed is False


def test_malformed_arguments_are_reported():
    dispatcher = ToolDispatcher(machine=None)
    outcome = dispatcher.dispatch(ToolCall(call_id="c", name="record_answer", arguments="{oops"))
    assert outcome.ack == "[ERROR: INVALID_ARGUMENTS]"


def test_last_answer_completes_session(store, small_catalogue):
    machine = InterviewStateMachine(store, small_catalogue)
    machine.begin()
    dispatcher = ToolDispatcher(machine)
    assert dispatcher.dispatch(_call("record_answer", questionId="q01", value="2")).ack == RECORD_SUCCESS
    outcome = dispatcher.dispatch(_call("record_answer", questionId="q02", value="oui"))
    assert outcome.ack == AUDIT_COMPLETED
    assert outcome.completed is True
    assert outcome.session.finished is True


def test_technical_closure_marks_finished_once(machine):
    machine.begin()
    dispatcher = ToolDispatcher(machine)
    first = dispatcher.dispatch(ToolCall(call_id="c", name="technical_closure"))
    assert first.ack == TECHNICAL_CLOSURE
    assert first.completed is True
    assert machine.current().finished is True

    second = dispatcher.dispatch(ToolCall(call_id="c", name="technical_closure"))
    assert second.ack == TECHNICAL_CLOSURE
    assert second.completed is False


def test_unknown_tool_name(machine):
    outcome = ToolDispatcher(machine).dispatch(ToolCall(call_id="c", name="drop_tables"))
    assert outcome.failed
