"""
Licence assistant entry point.

Runs the dialogue engine in the terminal. Speech-to-text and
text-to-speech are handled by the hosting voice platform, which only
needs ``DialogueStateMachine.process_input`` and the reply message.

Usage:
    Interactive:  python main.py console
    Scenario:     python main.py scenario booking
"""

import logging
import sys

from licence_assistant.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode() -> None:
    """Start the interactive console demo."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


def _run_scenario_mode(name: str) -> None:
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run_scenario(name)


if __name__ == "__main__":
    logger.info("Starting %s", settings.agent_name)
    if len(sys.argv) > 2 and sys.argv[1] == "scenario":
        _run_scenario_mode(sys.argv[2])
    elif len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode()
    else:
        print("Usage: python main.py console | python main.py scenario <booking|info|returning>")
        sys.exit(2)
