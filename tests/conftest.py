import pytest

from student_service.models.schemas import Identity, UserRole

from tests.helpers import NOW, Seeder, make_store


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def seed(store):
    return Seeder(store)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def student():
    return Identity(id="student-1", name="Alice Martin", email="alice@example.com", role=UserRole.STUDENT)


@pytest.fixture
def teacher():
    return Identity(id="teacher-1", name="Jean Dupont", email="jean@example.com", role=UserRole.TEACHER)


@pytest.fixture
def admin():
    return Identity(id="admin-1", name="Admin", role=UserRole.ADMIN)
