from sqlalchemy import text
from sqlalchemy.orm import sessionmaker
from database import Base, engine
import models  # noqa: F401
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def reset_database(bind=None):
    try:
        bind = bind or engine
        logger.info("Connecting to database...")

        # Drop all existing tables
        logger.info("Dropping all existing tables...")
        Base.metadata.drop_all(bind=bind)
        logger.info("All tables dropped successfully!")

        # Create all tables fresh
        logger.info("Creating new tables...")
        Base.metadata.create_all(bind=bind)
        logger.info("All tables created successfully!")

        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=bind)
        db = SessionLocal()

        # Verify tables exist by running a simple query
        try:
            for table in Base.metadata.tables.keys():
                db.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))
                logger.info(f"Table '{table}' verified successfully!")
        except Exception as e:
            logger.error(f"Error verifying tables: {str(e)}")
            raise
        finally:
            db.close()

        logger.info("Database reset completed successfully!")

    except Exception as e:
        logger.error(f"Error resetting database: {str(e)}")
        raise

if __name__ == "__main__":
    logger.info("Starting database reset process...")
    reset_database()
    logger.info("Database reset process completed!")
