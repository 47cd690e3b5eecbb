from sqlalchemy.orm import sessionmaker
from database import Base, engine
import models  # noqa: F401
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def init_database(bind=None):
    try:
        bind = bind or engine
        logger.info(f"Initializing database ({bind.url.render_as_string(hide_password=True)})...")

        # Create all tables
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=bind)

        logger.info("Database initialization completed successfully!")

        # Create session for any additional setup if needed
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=bind)
        return SessionLocal()

    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise

if __name__ == "__main__":
    init_database().close()
