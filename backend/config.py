import os
from dotenv import load_dotenv




load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///impacto_local.db")
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", 30))

EMAIL_API_URL = os.getenv("EMAIL_API_URL", "https://api.resend.com/emails")
EMAIL_API_KEY = os.getenv("EMAIL_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS")
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "ImpactoLocal")
EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", 10))

# quanto tempo o pedido de transição espera pelo resultado das notificações
NOTIFICATION_WAIT_SECONDS = float(os.getenv("NOTIFICATION_WAIT_SECONDS", 15))

# limite das leituras da candidatura antes de responder 503
STORE_READ_TIMEOUT_SECONDS = float(os.getenv("STORE_READ_TIMEOUT_SECONDS", 10))

SWEEP_REFRESH_SECONDS = float(os.getenv("SWEEP_REFRESH_SECONDS", 300))
SWEEP_WAIT_SECONDS = float(os.getenv("SWEEP_WAIT_SECONDS", 5))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://127.0.0.1:5173").split(",")
    if origin.strip()
]
SEED_TEST_DATA = os.getenv("SEED_TEST_DATA", "false").lower() in ("1", "true", "yes")
