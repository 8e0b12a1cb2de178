"""
Task subsystem.

Components:
- task_models.py: data structures (Todo, PendingTask, ScheduleEntry, backend rows)
- task_store.py: SQLite-backed storage for todos and pending alerts
- reconciler.py: joins schedules with batches and keeps the day's checklist current
- task_scheduler.py: keyed daily timers + fire loop
- task_api.py: small high-level helpers (deep links, execution, manual todos)
"""
