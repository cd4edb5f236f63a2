import os, sys, pytest
# Ensure backend directory is on path so 'livestock' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from livestock import create_app, get_db
from livestock.models.base import Base
# Import all model modules to ensure tables are registered before create_all
import livestock.models.accounts  # noqa: F401
import livestock.models.order  # noqa: F401
import livestock.models.subscription  # noqa: F401
import livestock.models.token_transaction  # noqa: F401
import livestock.models.audit  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret',
        'TESTING': True,
    })
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance
