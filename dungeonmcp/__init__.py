"""A dungeon role-playing game played through tool calls, with LLM function-calling clients."""

__version__ = "1.0.0"