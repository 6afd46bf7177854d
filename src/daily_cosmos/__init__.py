"""daily-cosmos: a local to-do list with reminders and natural-language task entry."""

__version__ = "0.1.0"
