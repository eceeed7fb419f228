import os

from dotenv import load_dotenv

load_dotenv()


def _int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


class Settings:
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/?replicaSet=rs0")
    DB_NAME = os.getenv("DB_NAME", "eduflex")

    # Auth
    JWT_SECRET = os.getenv("JWT_SECRET") or "dev-secret-key-change-in-production"
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = _int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)

    # Payment gateway (Razorpay)
    RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_API_URL = os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")
    # minor units per major unit (paise per rupee)
    CURRENCY_MINOR_UNIT = _int("CURRENCY_MINOR_UNIT", 100)
    # smallest order the gateway accepts, in minor units
    PAYMENT_MIN_AMOUNT = _int("PAYMENT_MIN_AMOUNT", 100)
    PAYMENT_GATEWAY_TIMEOUT = _int("PAYMENT_GATEWAY_TIMEOUT", 10)

    # Certificates
    MEDIA_ROOT = os.getenv("MEDIA_ROOT", "media")
    MEDIA_URL = os.getenv("MEDIA_URL", "/media")
    CERTIFICATE_ID_PREFIX = os.getenv("CERTIFICATE_ID_PREFIX", "EDUFLEX")
    DEFAULT_PLATFORM_NAME = os.getenv("DEFAULT_PLATFORM_NAME", "EduFlex")

    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if o.strip()
    ]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
