"""Control manual del dispositivo."""

from .broadcast import StatusBroadcaster
from .dispatcher import CommandDispatcher, MODE_ASSERT_COMMAND, chiller_command
from .sequencer import CommandSequencer

__all__ = [
    "StatusBroadcaster",
    "CommandDispatcher",
    "CommandSequencer",
    "MODE_ASSERT_COMMAND",
    "chiller_command",
]
