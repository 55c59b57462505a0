import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///newton.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SITE_URL = os.getenv("SITE_URL", "https://www.newtonstudy.app")

    # File uploads
    UPLOAD_FOLDER = os.path.join(os.path.dirname(os.path.abspath(__file__)), "uploads")
    MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MB per file
    MAX_CONTENT_LENGTH = 52 * 1024 * 1024  # room for multipart overhead
    ALLOWED_UPLOAD_TYPES = [
        "application/pdf",
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/ogg",
        "audio/m4a",
        "audio/aac",
        "audio/webm",
    ]

    # OpenAI (any OpenAI-compatible endpoint)
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    NOTES_MODEL = os.getenv("NOTES_MODEL", "gpt-4o")
    FAST_MODEL = os.getenv("FAST_MODEL", "gpt-4o-mini")
    QUIZ_MODEL = os.getenv("QUIZ_MODEL", "gpt-4o")
    TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")

    # Whop
    WHOP_API_KEY = os.getenv("WHOP_API_KEY", "")
    WHOP_WEBHOOK_SECRET = os.getenv("WHOP_WEBHOOK_SECRET", "")
    WHOP_COMPANY_ID = os.getenv("WHOP_COMPANY_ID", "")
    WHOP_API_BASE_URL = os.getenv("WHOP_API_BASE_URL", "https://api.whop.com/api/v1")
    WHOP_WEBHOOK_TOLERANCE_SECONDS = int(os.getenv("WHOP_WEBHOOK_TOLERANCE_SECONDS", "300"))
    WHOP_PLANS = {
        "plan_rgupWHoVJKhDw": {"name": "Yearly", "interval": "yearly"},
        "plan_g5wnacjwa6tp3": {"name": "Lifetime", "interval": "lifetime"},
        "plan_AhTV9u0UD48Z0": {"name": "Monthly", "interval": "monthly"},
    }

    # Loops
    LOOPS_API_KEY = os.getenv("LOOPS_API_KEY", "")
    LOOPS_BASE_URL = "https://app.loops.so/api/v1"
    LOOPS_WELCOME_TEMPLATE_ID = os.getenv("LOOPS_WELCOME_TEMPLATE_ID", "cmighgw3rkfsczq0i6fqz3tat")
    LOOPS_PAYMENT_TEMPLATE_ID = os.getenv("LOOPS_PAYMENT_TEMPLATE_ID", "payment-confirmation")

    # Rate limiting (Flask-Limiter)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_STRATEGY = "moving-window"
    RATELIMIT_HEADERS_ENABLED = True
    NOTE_RATE_LIMIT_FREE = "3/hour"
    NOTE_RATE_LIMIT_PAID = "20/hour"
    IP_RATE_LIMIT = "10/hour"

    # Free tier limits
    FREE_MAX_NOTES = 3
    FREE_MAX_QUIZZES = 3
    FREE_MAX_FLASHCARDS = 10

    # Study stats
    DEFAULT_WEEKLY_GOAL = 72000  # 20 hours
