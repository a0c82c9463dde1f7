"""taskmaster: break tasks into subtasks with an LLM and merge them into a JSON task file."""

__version__ = "0.1.0"
