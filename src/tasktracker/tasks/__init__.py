"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskKind, TaskStatus, request objects)
- id_allocator.py: monotonic task id counter
- schedule_index.py: sorted interval index used for overlap checks
- epic_rules.py: epic status/span derivation
- hierarchy.py: canonical task collection and epic <-> subtask links
- history.py: deduplicated view history
- task_codec.py: CSV encoding of the full state
- task_store.py: single-file byte storage with atomic replace
- task_manager.py: transactional facade used by the rest of the app
"""
