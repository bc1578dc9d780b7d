"""Read-side access to members, courses and class groups."""

from events.domain.models import ClassGroup, Course, User
from events.stores.cursor import Page, PageRequest
from events.stores.interfaces import UserStore


class UserService:
    def __init__(self, store: UserStore) -> None:
        self._store = store

    def list_users(self, page: PageRequest) -> Page[User]:
        """Return one page of members ordered by email."""
        return self._store.list_users(page)

    def get_user(self, uid: str) -> User | None:
        return self._store.get_users([uid]).get(uid)

    def resolve_caller(self, uid: str) -> User:
        """Return the member for ``uid``, or a bare identity without scope."""
        return self.get_user(uid) or User(uid=uid, email="")

    def list_courses(self) -> list[Course]:
        return self._store.list_courses()

    def list_classes(self, course_id: str | None = None) -> list[ClassGroup]:
        return self._store.list_classes(course_id)
