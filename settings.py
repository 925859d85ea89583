import os
from core.log import logger

if os.environ.get("ENVIRONTMENT") != "os":
    logger.info("load env from file")
    from dotenv import load_dotenv

    load_dotenv()
else:
    logger.info("load env from os")


def str_to_bool(string: str) -> bool:
    if string in ["true", "TRUE", "True"]:
        return True
    elif string in ["false", "FALSE", "False"]:
        return False
    else:
        raise Exception(
            f"{string} is not boolean, ex input true -> true, True, TRUE, ex input false -> false, False, FALSE"
        )


# Environtment
ENVIRONTMENT = os.environ.get("ENVIRONTMENT")

# JWT conf
SECRET_KEY = os.environ.get("SECRET_KEY", "kiosk_inventory_secret")
ALGORITHM = os.environ.get("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Timezone
TZ = os.environ.get("TZ", "Asia/Jerusalem")

# Postgresql conf
POSTGRES_USER = os.environ.get("POSTGRES_USER")
POSTGRES_PASSWORD = os.environ.get("POSTGRES_PASSWORD")
POSTGRES_HOST = os.environ.get("POSTGRES_HOST")
POSTGRES_PORT = os.environ.get("POSTGRES_PORT")
POSTGRES_DATABASE = os.environ.get("POSTGRES_DATABASE")

# DATABASE_URL wins over the POSTGRES_* parts (tests point it at sqlite)
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    f"postgresql+psycopg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DATABASE}",
)
IS_SQLITE = DATABASE_URL.startswith("sqlite")
DATABASE_SCHEMA = os.environ.get("DATABASE_SCHEMA", None if IS_SQLITE else "public")
DATABASE_ECHO = str_to_bool(os.environ.get("DATABASE_ECHO", "False"))

# Inventory conf
CODE_GENERATION_MAX_ATTEMPTS = int(os.environ.get("CODE_GENERATION_MAX_ATTEMPTS", 10))
STOCK_WRITE_MAX_ATTEMPTS = int(os.environ.get("STOCK_WRITE_MAX_ATTEMPTS", 3))
DEFAULT_MIN_THRESHOLD = int(os.environ.get("DEFAULT_MIN_THRESHOLD", 10))
