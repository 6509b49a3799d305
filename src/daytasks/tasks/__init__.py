"""
Task subsystem.

Components:
- task_models.py: data structures (TaskTemplate, TaskStore, Occurrence)
- recurrence.py: pure expansion of templates into per-day occurrences
- task_lifecycle.py: create/edit/toggle/delete against a TaskRepo
- task_repo.py: HTTP client for the remote task store
- file_repo.py: local JSON-file task store
- task_scheduler.py: polling scheduler that emits due-task notifications
"""
