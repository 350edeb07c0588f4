# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKTRACKER_APP_NAME": "App display name (default: tasktracker).",
    "TASKTRACKER_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "TASKTRACKER_DATA_DIR": "Local data directory, also holds tasktracker.log (default: .local/tasktracker).",
    "TASKTRACKER_TASKS_PATH": "Task CSV file (default: <data_dir>/tasks.csv).",
    # Repository tuning
    "TASKTRACKER_HISTORY_LIMIT": "Max entries in view history; 0 keeps every viewed task (default: 0).",
    # Connectors
    "TASKTRACKER_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
}
