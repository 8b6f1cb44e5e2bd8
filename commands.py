# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the package with test dependencies (includes httpx for TestClient)
# python -m pip install -e ".[test]"

# Run the full test suite (Postgres store tests skip unless DATABASE_URL is set)
# python -m pytest

# Run focused test files
# python -m pytest tests/test_credentials.py
# python -m pytest tests/test_auth_routes.py
# python -m pytest tests/test_user_store.py

# Start the API locally (with env vars loaded)
# python -m dotenv run -- python -m uvicorn app.api:app --reload

# Required env: DATABASE_URL, JWT_SECRET
# Optional env: PUBLIC_BASE_URL, EMAIL_USER, EMAIL_PASSWORD, EMAIL_FROM, SMTP_SERVER, SMTP_PORT,
#               JWT_ACCESS_TTL_MINUTES, JWT_REFRESH_TTL_DAYS, TOKEN_TTL_MINUTES, BCRYPT_ROUNDS

# Purge expired pending registrations (cron)
# python -m dotenv run -- python scripts/purge_expired_registrations.py

# Inspect the database (example query)
# python scripts/db_shell.py "SELECT id,name,email,role,email_token_expiry,refresh_token IS NOT NULL AS logged_in FROM users"
