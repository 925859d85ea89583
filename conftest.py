import os

# tests run against a private in-memory database, never the configured one
os.environ["ENVIRONTMENT"] = "os"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test_secret_key")
os.environ.setdefault("TZ", "Asia/Jerusalem")
