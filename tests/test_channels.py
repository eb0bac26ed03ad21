import asyncio
import io

from reflex.bus import MessageBus, OutboundMessage
from reflex.channels.manager import ChannelManager
from reflex.channels.shell import ShellChannel


def test_manager_loads_enabled_known_channels():
    async def build():
        return ChannelManager({
            "shell": {"enabled": True},
            "irc": {"enabled": True},
            "other": {"enabled": False},
        }, MessageBus())

    manager = asyncio.run(build())
    assert manager.enabled == ["shell"]


def test_shell_hears_lines_and_skips_ignored():
    async def scenario():
        bus = MessageBus()
        ch = ShellChannel({"user": "bob", "ignore": ["bob"]}, bus, stdin=io.StringIO("hello\n"))
        await ch.start()
        ignored = bus.inbound_pending

        ch = ShellChannel({"user": "alice"}, bus, stdin=io.StringIO("hello\n\npizza\n"))
        await ch.start()
        heard = []
        while bus.inbound_pending:
            heard.append(await bus.consume_inbound())
        return ignored, heard

    ignored, heard = asyncio.run(scenario())
    assert ignored == 0
    assert [m.content for m in heard] == ["hello", "pizza"]
    assert heard[0].sender_id == "alice"
    assert heard[0].session_key == "shell:shell"


def test_shell_send_writes_line():
    out = io.StringIO()

    async def scenario():
        ch = ShellChannel({}, MessageBus(), stdout=out)
        await ch.send(OutboundMessage(channel="shell", chat_id="shell", content="I love pizza!"))

    asyncio.run(scenario())
    assert out.getvalue() == "I love pizza!\n"
