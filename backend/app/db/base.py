from backend.app.db.base_class import Base, OfflineBase  # noqa: F401

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.company import Company  # noqa: F401
from backend.app.models.user import User  # noqa: F401
from backend.app.models.mobile_user import MobileUser  # noqa: F401
from backend.app.models.lead import Lead  # noqa: F401
from backend.app.models.offline_lead import OfflineLead  # noqa: F401
