from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Offline lead cache lives in its own database and has its own metadata.
OfflineBase = declarative_base()
