import json
import logging

import pytest
from fastapi.testclient import TestClient

from relaybot.irc import formatting
from relaybot.main import create_app
from relaybot.tracker.webhook import (
    CreatedIssue,
    extract_created_issue,
    format_created_notice,
    handle_tracker_event,
    is_allowed_project,
)

from conftest import BROWSE_URL, make_context


def created_event(key="ZBX-42", summary="Crash on start", display="Jane Doe", login="jdoe"):
    user = {"displayName": display}
    if login is not None:
        user["name"] = login

    return {
        "webhookEvent": "jira:issue_created",
        "issue": {"key": key, "fields": {"summary": summary}},
        "user": user,
    }


class FakeLifecycle:
    def __init__(self):
        self.sent = []

    def send_reply(self, target, text):
        self.sent.append((target, text))
        return 1


@pytest.fixture
def lifecycle():
    return FakeLifecycle()


@pytest.fixture
def client(tmp_path, lifecycle):
    app = create_app("/jira-webhook")
    # No lifespan: the IRC side is replaced by a fake
    app.state.ctx = make_context(tmp_path)
    app.state.lifecycle = lifecycle
    return TestClient(app)


def test_created_issue_is_relayed(client, lifecycle):
    response = client.post("/jira-webhook", content=json.dumps(created_event()))

    assert response.status_code == 200
    assert response.text == "You requested /jira-webhook"
    assert response.headers["server"] == "Jira receiver"

    assert lifecycle.sent == [(
        "#zabbix",
        f"[{formatting.red('ZBX-42')}] "
        f"{formatting.green('Crash on start')} "
        f"{formatting.grey('created by Jane Doe/jdoe')} "
        f"({formatting.light_blue(BROWSE_URL + '/ZBX-42')})",
    )]


def test_other_projects_are_not_relayed(client, lifecycle):
    response = client.post("/jira-webhook", content=json.dumps(created_event(key="FOO-1")))

    assert response.status_code == 200
    assert lifecycle.sent == []


def test_malformed_body_still_acknowledged(client, lifecycle):
    response = client.post("/jira-webhook", content=b"{not json")

    assert response.status_code == 200
    assert lifecycle.sent == []


def test_other_event_types_are_ignored(client, lifecycle):
    event = created_event()
    event["webhookEvent"] = "jira:issue_updated"

    response = client.post("/jira-webhook", content=json.dumps(event))

    assert response.status_code == 200
    assert lifecycle.sent == []


def test_missing_summary_is_ignored(client, lifecycle):
    event = created_event()
    del event["issue"]["fields"]

    response = client.post("/jira-webhook", content=json.dumps(event))

    assert response.status_code == 200
    assert lifecycle.sent == []


def test_only_post_is_routed(client):
    assert client.get("/jira-webhook").status_code == 405


# ----- without HTTP -----

def test_reporter_without_login():
    issue = extract_created_issue(created_event(login=None))
    assert issue.reporter == "Jane Doe"


def test_reporter_login_same_as_display_name():
    issue = CreatedIssue(key="ZBX-1", summary="s", display_name="jdoe", login="jdoe")
    assert issue.reporter == "jdoe"


def test_empty_allow_list_relays_everything():
    assert is_allowed_project("FOO-1", ())
    assert is_allowed_project("zbx-1", ("ZBX",))
    assert not is_allowed_project("ZBXNEXT-1", ("ZBX",))


def test_notice_strips_to_plain_text():
    issue = CreatedIssue(key="ZBX-42", summary="Crash", display_name="Jane Doe")

    notice = format_created_notice(issue, "https://tracker/browse/")

    assert formatting.strip_formatting(notice) == (
        "[ZBX-42] Crash created by Jane Doe (https://tracker/browse/ZBX-42)"
    )


def test_handler_survives_failing_sender():
    def send(target, text):
        raise RuntimeError("no connection")

    result = handle_tracker_event(
        json.dumps(created_event()).encode("utf-8"),
        channel="#zabbix",
        browse_url=BROWSE_URL,
        projects=(),
        send=send,
    )

    assert result is None


def test_relayed_notice_is_logged_without_colour_codes(caplog):
    webhook_logger = logging.getLogger("relaybot.tracker.webhook")
    webhook_logger.addHandler(caplog.handler)

    try:
        with caplog.at_level(logging.INFO, logger="relaybot.tracker.webhook"):
            handle_tracker_event(
                json.dumps(created_event()).encode("utf-8"),
                channel="#zabbix",
                browse_url=BROWSE_URL,
                projects=("ZBX",),
                send=lambda target, text: 1,
            )
    finally:
        webhook_logger.removeHandler(caplog.handler)

    relayed = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Relaying")]
    assert relayed == [
        "Relaying to #zabbix: [ZBX-42] Crash on start created by Jane Doe/jdoe "
        f"({BROWSE_URL}/ZBX-42)"
    ]
