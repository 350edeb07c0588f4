# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Only CONSOLE_ENABLED, HISTORY_LIMIT and TASKS_PATH are read from here.
"""

# Example: keep only the last 10 viewed tasks
# HISTORY_LIMIT = 10

# Example: point at a shared data file (prefer TASKTRACKER_TASKS_PATH in .env)
# TASKS_PATH = "~/Documents/tasks.csv"

# Example: load the file and wait without the REPL
# CONSOLE_ENABLED = False
