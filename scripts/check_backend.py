#!/usr/bin/env python3
"""
Quick checks so the service can start. Run from the repo root:
  python scripts/check_backend.py
"""
import sys
from pathlib import Path

repo_dir = Path(__file__).resolve().parent.parent
if str(repo_dir) not in sys.path:
    sys.path.insert(0, str(repo_dir))


def main():
    errors = []

    # 1) .env
    env_file = repo_dir / ".env"
    if not env_file.exists():
        print("WARN .env missing (settings must come from the environment)")
    else:
        print("OK  .env exists")

    # 2) Settings
    try:
        from botsync.config import Settings
        settings = Settings()
    except Exception as e:
        print("FAIL Settings:", e)
        return 1
    if settings.is_configured():
        print(f"OK  Settings (project={settings.firebase_project_id}, rtdb={settings.firebase_database_url})")
    else:
        errors.append("Set FIREBASE_PROJECT_ID, FIREBASE_DATABASE_URL, SA_CLIENT_EMAIL, SA_PRIVATE_KEY")
        print("FAIL Settings incomplete")

    # 3) Token exchange (signs the service-account assertion and calls the token endpoint)
    if settings.is_configured():
        try:
            from botsync.services.auth import ServiceAccountCredentials
            ServiceAccountCredentials(settings).get_access_token()
            print("OK  Service-account token exchange")
        except Exception as e:
            errors.append(f"Token exchange: {e}")
            print("FAIL Token exchange:", e)

    # 4) App import (catches missing deps, bad imports)
    try:
        from botsync.main import app  # noqa: F401
        print("OK  App import (botsync.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)

    if errors:
        print("\nFix the above, then run:")
        print("  uvicorn botsync.main:app --host 0.0.0.0 --port 8000")
        return 1
    print("\nAll checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
