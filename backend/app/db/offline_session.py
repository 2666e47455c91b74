from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from backend.app.core.settings import get_settings

settings = get_settings()

connect_args = {"check_same_thread": False} if settings.offline_database_url.startswith("sqlite") else {}
offline_engine = create_engine(settings.offline_database_url, connect_args=connect_args)
OfflineSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=offline_engine)
