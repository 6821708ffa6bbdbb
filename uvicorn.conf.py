from giftminer.core.config import get_settings

settings = get_settings()

app = "giftminer.main:app"
host = settings.BACKEND_HOST
port = settings.PORT
log_level = "debug" if settings.DEBUG else "info"
workers = 1 if settings.DEBUG else 2
