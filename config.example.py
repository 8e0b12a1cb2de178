# config.example.py

"""
Documentation-only module (safe to commit).

Settings are read from environment variables, optionally via a local .env file
(never committed). Nothing is required: without a backend URL the service runs
against an empty offline source and only handles manual todos.
"""

ENV_VARS = {
    # App / logging
    "FARM_APP_NAME": "App display name (default: farm-tasks).",
    "FARM_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "FARM_CONSOLE_ENABLED": "Enable the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "FARM_DATA_DIR": "Local data directory for the database and farm.log (default: .local/farm).",
    "FARM_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Store maintenance
    "FARM_TASKS_MAX_ENTRIES": (
        "Startup size guard: if todos or pending tasks exceed this count, both are wiped (default: 500)."
    ),
    # Backend (Supabase / PostgREST)
    "FARM_SUPABASE_URL": "Project URL; plain SUPABASE_URL is accepted too. Empty => offline source.",
    "FARM_SUPABASE_KEY": "Anon/service key sent as apikey + Bearer token; plain SUPABASE_KEY works too.",
    "FARM_HTTP_TIMEOUT_SECONDS": "Timeout for backend and push requests (default: 15).",
    "FARM_REFRESH_SECONDS": "How often batches and groups are re-read (default: 60).",
    # Notifications
    "FARM_NOTIFICATIONS_PERMISSION": "Initial permission: granted, denied or default (default: granted).",
    "FARM_PUSH_URL": "Optional webhook for background notifications (JSON POST).",
    "FARM_SOUND_ENABLED": "Ring the terminal bell with each notification (true/false, default: true).",
}
