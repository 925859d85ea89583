from sqlalchemy import text

from core.log import logger
from settings import IS_SQLITE, POSTGRES_HOST, POSTGRES_PORT
from models import db


def health_check():
    logger.info("run app with")
    if IS_SQLITE:
        logger.info("database = sqlite")
    else:
        logger.info(f"postgres host = {POSTGRES_HOST}")
        logger.info(f"postgres port = {POSTGRES_PORT}")
    logger.info("try echo database")
    with db() as session:
        session.execute(text("SELECT 1"))
    logger.info("successfully connect to database")
