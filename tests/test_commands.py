import json

import pytest

from relaybot.commands.errors import BotError, Unauthorized
from relaybot.commands.help import cmd_help
from relaybot.commands.key import cmd_key
from relaybot.commands.reload import cmd_reload
from relaybot.commands.router import Invocation
from relaybot.commands.topic import cmd_topic
from relaybot.tables import ItemKeyTable, TopicTable, load_json_table

from conftest import channel_message


def _invocation(prefix="x", argument=None, nick="alice", identified=False):
    message = channel_message(f"!{prefix}", nick=nick, identified=identified)
    return Invocation(message=message, prefix=prefix, argument=argument)


# ----- help -----

@pytest.mark.asyncio
async def test_help_lists_commands(ctx):
    assert await cmd_help(ctx, _invocation()) == (
        "Available commands: help, issue, key, reload, topic."
    )


@pytest.mark.asyncio
async def test_help_for_prefix(ctx):
    assert await cmd_help(ctx, _invocation(), "iss") == (
        "issue <n|jira> - fetch issue description"
    )


@pytest.mark.asyncio
async def test_help_for_unknown_command(ctx):
    with pytest.raises(BotError) as err:
        await cmd_help(ctx, _invocation(), "nope")

    assert err.value.reply == 'ERROR: Command "nope" does not exist.'


# ----- key -----

@pytest.mark.asyncio
async def test_key_without_argument(ctx):
    assert await cmd_key(ctx, _invocation()) == (
        'Type "!key <item key>" to see item key description.'
    )


@pytest.mark.asyncio
async def test_key_unique_match(ctx):
    assert await cmd_key(ctx, _invocation(), "system") == (
        "system.uptime: System uptime in seconds."
    )


@pytest.mark.asyncio
async def test_key_multiple_matches(ctx):
    assert await cmd_key(ctx, _invocation(), "agent.") == (
        'Multiple item keys match "agent." (candidates are: agent.ping, agent.version).'
    )


@pytest.mark.asyncio
async def test_key_match_is_case_sensitive(ctx):
    with pytest.raises(BotError) as err:
        await cmd_key(ctx, _invocation(), "AGENT")

    assert err.value.reply == 'ERROR: Item key "AGENT" not known.'


# ----- topic -----

@pytest.mark.asyncio
async def test_topic_without_argument_lists_topics(ctx):
    assert await cmd_topic(ctx, _invocation()) == (
        "Available topics: docs, documentation, Faq, forum"
    )


@pytest.mark.asyncio
async def test_topic_alias_collapses_to_target(ctx):
    assert await cmd_topic(ctx, _invocation(), "DOC") == "docs: See the manual"
    assert await cmd_topic(ctx, _invocation(), "documentation") == "docs: See the manual"


@pytest.mark.asyncio
async def test_topic_is_case_insensitive(ctx):
    assert await cmd_topic(ctx, _invocation(), "faq") == "Faq: Frequently asked questions"


@pytest.mark.asyncio
async def test_topic_multiple_matches(ctx):
    assert await cmd_topic(ctx, _invocation(), "f") == (
        'Multiple topics match "f" (candidates are: Faq, forum).'
    )


@pytest.mark.asyncio
async def test_topic_unknown(ctx):
    with pytest.raises(BotError) as err:
        await cmd_topic(ctx, _invocation(), "zzz")

    assert err.value.reply == 'ERROR: Topic "zzz" not known.'


# ----- reload -----

@pytest.mark.asyncio
async def test_reload_requires_identification(ctx):
    with pytest.raises(Unauthorized) as err:
        await cmd_reload(ctx, _invocation(nick="admin", identified=False))

    assert err.value.reply == "ERROR: Not identified with NickServ"


@pytest.mark.asyncio
async def test_reload_requires_allow_list(ctx):
    with pytest.raises(Unauthorized) as err:
        await cmd_reload(ctx, _invocation(nick="alice", identified=True))

    assert err.value.reply == "ERROR: Not authorised to reload"


@pytest.mark.asyncio
async def test_reload_picks_up_new_topics(ctx, tmp_path):
    (tmp_path / "topics.json").write_text(json.dumps({"api": "API reference"}))

    reply = await cmd_reload(ctx, _invocation(nick="admin", identified=True))

    assert reply == "Topics reloaded"
    assert ctx.topics.names() == ["api"]


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_topics(ctx, tmp_path):
    (tmp_path / "topics.json").write_text("not json")

    with pytest.raises(BotError) as err:
        await cmd_reload(ctx, _invocation(nick="admin", identified=True))

    assert err.value.reply.startswith("ERROR: Could not reload topics")
    assert "docs" in ctx.topics.names()


# ----- tables -----

def test_load_json_table_missing_file(tmp_path):
    with pytest.raises(RuntimeError):
        load_json_table(str(tmp_path / "missing.json"))


def test_load_json_table_rejects_lists(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")

    with pytest.raises(RuntimeError):
        load_json_table(str(path))


def test_item_key_table_from_file(tmp_path):
    path = tmp_path / "keys.json"
    path.write_text(json.dumps({"agent.ping": "Ping"}))

    table = ItemKeyTable.from_file(str(path))

    assert len(table) == 1
    assert table.match("agent") == ["agent.ping"]


def test_topic_table_without_file_cannot_reload():
    with pytest.raises(RuntimeError):
        TopicTable({"a": "b"}).reload()
