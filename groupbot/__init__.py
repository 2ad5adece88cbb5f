"""Features for a group chat bot: reminders, group management, MIDI and fun commands."""

__version__ = "0.1.0"