# src/taskmaster/tasks/prompts.py

from __future__ import annotations

from dataclasses import dataclass

from .task_models import Task

DEFAULT_SUBTASK_COUNT = 5

EXPANSION_SYSTEM_PROMPT = """
You are an AI assistant helping with task breakdown. Break down the given task into {count} specific subtasks.

Subtasks should:
1. Be specific and actionable implementation steps
2. Follow a logical sequence
3. Each handle a distinct part of the parent task
4. Include clear guidance on implementation approach
5. Have appropriate dependency chains between subtasks (use numerical IDs starting from {next_id})
6. Collectively cover all aspects of the parent task

Return exactly {count} subtasks with the following JSON structure:
[
  {{
    "id": {next_id},
    "title": "First subtask title",
    "description": "Detailed description",
    "dependencies": [],
    "details": "Implementation details"
  }},
  ...
]

Rules:
- ids start at {next_id} and increase by 1.
- "dependencies" lists ids of earlier subtasks only (numbers, never the subtask's own id).

IMPORTANT: Respond ONLY with the JSON array, nothing else. No Markdown.
""".strip()


@dataclass(frozen=True, slots=True)
class RenderedPrompt:
    system: str
    user: str
    next_id: int
    subtask_count: int

    @property
    def combined(self) -> str:
        """Single-string form for backends without a separate system channel."""
        return f"{self.system}\n\n{self.user}"


def build_expansion_prompt(
    task: Task,
    subtask_count: int | None = None,
    extra_context: str | None = "",
) -> RenderedPrompt:
    """
    Render the decomposition request for one task.

    Pure function of its inputs: no I/O, no clock, no randomness.
    """
    count = subtask_count if subtask_count and subtask_count > 0 else DEFAULT_SUBTASK_COUNT
    next_id = len(task.subtasks) + 1

    system = EXPANSION_SYSTEM_PROMPT.format(count=count, next_id=next_id)

    lines = [
        f"Break down this task into {count} subtasks:",
        f"Task ID: {task.id}",
        f"Title: {task.title}",
        f"Description: {task.description}",
        f"Details: {task.details or 'N/A'}",
    ]
    context = (extra_context or "").strip()
    if context:
        lines.extend(["", f"Additional context: {context}"])

    return RenderedPrompt(
        system=system,
        user="\n".join(lines),
        next_id=next_id,
        subtask_count=count,
    )
