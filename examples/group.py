"""Group bot: /add /remove /name /help, group-change narration and an agent.

Set OPENAI_API_KEY to enable the agent and USE_FIXTURE_ROSTER=true to get
the demo users (@alix, @eva, @bo) in every conversation.
"""

from msgkit.adapters.llm import OpenAIGenerator
from msgkit.adapters.transport import InMemoryTransport
from msgkit.app import DEFAULT_BOT_ADDRESS, DEFAULT_BOT_INBOX, run
from msgkit.domain.roster import FIXTURE_USERS
from msgkit.kit import MessageKit


def main():
    transport = InMemoryTransport(DEFAULT_BOT_ADDRESS, DEFAULT_BOT_INBOX, directory=FIXTURE_USERS)
    kit = MessageKit.group_bot(transport, generator=OpenAIGenerator())
    run(kit=kit)


if __name__ == "__main__":
    main()
