"""Command line interface for testing configuration loading"""
import sys
from pathlib import Path
from urllib.parse import urlparse

from . import load_settings_conf, SettingsError

EXAMPLE_SETTINGS = """[DEFAULT]
# CockroachDB connection URL
db_url = postgresql://root@localhost:26257/defaultdb?sslmode=disable

# Attempts per transaction before a write conflict is reported
max_transaction_attempts = 5

# Changefeed webhook endpoint
api_host = 0.0.0.0
api_port = 8000

# Create the offers changefeed on startup (leave empty to manage it elsewhere)
changefeed_sink_url =

log_level = INFO
"""

def _redact(db_url: str) -> str:
    """Hide the password in a database URL."""
    parsed = urlparse(db_url)
    if parsed.password:
        return db_url.replace(f":{parsed.password}@", ":****@", 1)
    return db_url

def main():
    """Display loaded configuration"""
    # Save example configuration file
    examples_dir = Path("examples")
    examples_dir.mkdir(exist_ok=True)
    with open(examples_dir / "settings.conf.example", "w") as f:
        f.write(EXAMPLE_SETTINGS)

    try:
        settings_conf = load_settings_conf()
    except SettingsError as e:
        print(f"\n{e}")
        sys.exit(1)

    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings_conf.items():
        if key == 'db_url':
            value = _redact(value)
        print(f"{key}: {value}")

if __name__ == "__main__":
    main()
