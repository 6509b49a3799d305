# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real tokens. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "DAYTASKS_APP_NAME": "App display name (default: daytasks).",
    "DAYTASKS_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "DAYTASKS_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "DAYTASKS_NOTIFICATIONS": "Turn on due-task notifications at startup without asking (true/false).",
    # Remote task store
    "DAYTASKS_API_BASE_URL": "Task API base URL, e.g. http://localhost:3001/api (empty => local file).",
    "DAYTASKS_API_TOKEN": "Bearer token for the task API (else read from the token file).",
    "DAYTASKS_HTTP_TIMEOUT_SECONDS": "Per-request timeout (default: 10).",
    # Scheduler
    "DAYTASKS_NOTIFY_INTERVAL_SECONDS": "Due-task poll interval (default: 30).",
    # Paths (gitignored)
    "DAYTASKS_DATA_DIR": "Local data directory (default: .local/daytasks).",
    "DAYTASKS_TOKEN_PATH": "Token file (default: <data_dir>/token).",
    "DAYTASKS_LOCAL_STORE_PATH": "Local JSON task store (default: <data_dir>/tasks.json).",
}
