"""CLI: chat with the relay server from a terminal, reply printed as it streams. Start the server with: python run_api.py."""
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from chatrelay.client import ClientSession, HttpChatTransport, SessionState
from chatrelay.core.config import get_settings

GREETING = "Hi, I am your assistant. Ask me anything."


class TerminalRenderer:
    """on_change listener: prints only the part of the reply not printed yet."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self._printed = 0

    def __call__(self, session: ClientSession, exchange) -> None:
        if exchange is None:
            return
        if session.state is SessionState.SENDING:
            self._printed = 0
            self.out.write("Bot: ")
            self.out.flush()
            return
        reply = exchange.assistant
        if reply.is_error:
            if session.state is SessionState.FAILED:
                self.out.write(("\n" if self._printed else "") + reply.content + "\n")
        elif session.state is SessionState.COMPLETED:
            self.out.write(reply.content[self._printed:] + "\n")
        else:
            self.out.write(reply.content[self._printed:])
        self._printed = len(reply.content)
        self.out.flush()


def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    session = ClientSession(
        HttpChatTransport(get_settings().chat_server_url),
        on_change=TerminalRenderer(),
        greeting=GREETING,
    )
    print("Bot:", GREETING)

    if len(sys.argv) > 1:
        session.submit(" ".join(sys.argv[1:]))
        return

    try:
        while True:
            prompt = input("You: ")
            if prompt.strip().lower() in {"exit", "quit"}:
                break
            if prompt.strip().lower() == "/clear":
                session.clear()
                continue
            session.submit(prompt)
    except (KeyboardInterrupt, EOFError):
        print()


if __name__ == "__main__":
    main()
