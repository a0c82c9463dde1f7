"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, TaskCollection)
- task_store.py: JSON file storage with backup/restore
- prompts.py: decomposition prompt rendering
- parser.py: model output -> validated subtasks
- expand.py: the expansion use case (orchestrator)
"""
