"""
Task subsystem.

Components:
- task_models.py: data structures (Task) + JSON schema + ordering rule
- task_store.py: JSON-file-backed store (single source of truth for the session)
- reminders.py: one-shot reminder scheduling keyed by task id
- notifications.py: in-process notification host + delivery loop
- ingestion.py: natural-language task creation via an LLM completion
"""
