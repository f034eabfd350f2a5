import os

# Settings are read once at import time; configure the test environment first.
os.environ.setdefault("ENCRYPTION_KEY", "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY=")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_invoizo.db")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RETRY_INITIAL_DELAY_SECONDS", "0")
os.environ.setdefault("SCHEDULER_TIMEZONE", "Asia/Kolkata")
