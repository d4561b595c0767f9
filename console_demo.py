"""
Offline console demo: runs licence office calls as typed text.

Drives the real dialogue state machine and memory store. No speech
services and no network calls; the memory store persists to
MEMORY_STORE_PATH when it is set, otherwise it lives for the process.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario returning
"""

import argparse
from typing import Optional

from licence_assistant.config import settings
from licence_assistant.conversation.state_machine import DialogueStateMachine
from licence_assistant.memory.persistence import create_backend
from licence_assistant.memory.store import MemoryStore
from licence_assistant.schemas.dialogue_schema import TurnResponse

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Plays one or more calls against a shared memory store in the terminal."""

    # Each scenario is a list of calls; each call is a list of caller lines.
    SCENARIOS: dict[str, list[list[str]]] = {
        "booking": [[
            "I want to book a new licence",
            "Priya Sharma",
            "tomorrow",
            "2 PM",
            "9876543210",
            "yes",
        ]],
        "info": [[
            "what documents do I need for renewal",
            "how much does it cost",
            "where is the office",
            "no thanks",
        ]],
        "returning": [
            [
                "I need to renew my licence",
                "Rahul Verma",
                "next monday",
                "10 in the morning",
                "nine one two three four five six seven eight zero",
                "yes",
            ],
            [
                "hi, my number is 91234 56780",
                "I'd like to book an appointment",
                "driving test",
                "the 28th",
                "morning",
                "yes",
            ],
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self, memory: Optional[MemoryStore] = None) -> None:
        self.memory = memory or MemoryStore(backend=create_backend())
        self.engine: Optional[DialogueStateMachine] = None

    def assistant_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.office.assistant_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str, hint: Optional[str] = None) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  LICENCE ASSISTANT - {title}{RESET}")
        print(f"{BOLD}  Office: {settings.office.authority_name}{RESET}")
        if hint:
            print(f"{BOLD}  {hint}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def _start_call(self, contact: Optional[str] = None) -> None:
        self.engine = DialogueStateMachine(memory=self.memory, contact=contact)
        self.assistant_say(self.engine.generate_initial_greeting())

    def _end_call(self) -> None:
        if self.engine is None:
            return
        self.system_log(f"Step trace: {' -> '.join(str(s) for s in self.engine.get_state_trace())}")
        self.engine.end_session()
        self.engine = None

    def _show(self, response: TurnResponse) -> None:
        self.assistant_say(response.message)
        state = self.engine.state
        self.system_log(f"Intent: {state.intent.value} | Step: {state.step} | Slots: {state.slots.filled()}")
        if response.completed and response.appointment:
            self.system_log(f"{YELLOW}Appointment booked: {response.appointment.model_dump()}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        calls = self.SCENARIOS.get(scenario)
        if not calls:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for number, lines in enumerate(calls, start=1):
            if len(calls) > 1:
                print(f"{BOLD}--- Call {number} ---{RESET}")
            self._start_call()
            for line in lines:
                print(f"\n{BLUE}[Caller] {RESET}{line}")
                self._show(self.engine.process_input(line))
            self._end_call()
            print()

        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        self._banner("Console Demo", "Type 'quit' to exit, 'new' to start another call")
        self._start_call()

        while True:
            user_input = input(f"\n{BLUE}[Caller] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                self._end_call()
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if user_input.lower() == "new":
                self._end_call()
                print()
                self._start_call()
                continue

            if len(user_input) > self.MAX_INPUT_LENGTH:
                self.assistant_say("That was quite long. Could you keep it brief for me?")
                continue

            self._show(self.engine.process_input(user_input))


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
