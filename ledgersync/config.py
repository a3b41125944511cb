import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

SHEETS_WRITE_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
    GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"
    SHEETS_SCOPE = os.getenv("SHEETS_SCOPE", SHEETS_WRITE_SCOPE)

    SPREADSHEET_ID = os.getenv("SPREADSHEET_ID", "")
    SHEETS_TIMEOUT = float(os.getenv("SHEETS_TIMEOUT", "30"))
    APP_YEAR = int(os.getenv("APP_YEAR", "2025"))
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")

    # Salt for the key that encrypts the OAuth token inside the session cookie
    TOKEN_SALT = os.getenv("TOKEN_SALT", "ledgersync-session-token")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Replaced in tests; None wires the Google endpoints
    LEDGER_CLIENT_FACTORY = None
    IDENTITY_FACTORY = None
