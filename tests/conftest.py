import os
import tempfile

import pytest

# Point the app at a throwaway database before anything imports app.config
_TEST_DIR = tempfile.mkdtemp(prefix="ppf-workflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.sqlite3"
os.environ["DATA_DIR"] = _TEST_DIR


@pytest.fixture(autouse=True, scope="session")
def setup_test_db():
    import asyncio

    # Disable API key auth for tests
    from app.config import settings
    settings.api_key = ""

    from app.database import create_tables

    asyncio.run(create_tables())
