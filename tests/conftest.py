import os
import tempfile

# must be set before prm.db_models builds its engine
os.environ["PRM_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("PRM_LOG_LEVEL", "WARNING")
os.environ.setdefault("PRM_SETTINGS_FILE", os.path.join(tempfile.gettempdir(), "prm-test-settings.json"))

import pytest  # noqa: E402

from prm.db_models import Base, SessionLocal  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    yield
    s = SessionLocal()
    for table in reversed(Base.metadata.sorted_tables):
        s.execute(table.delete())
    s.commit()
    s.close()
