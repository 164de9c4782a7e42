"""
Typed query/command wrappers over the record store, one per entity kind.

Every method opens its own session and closes it before returning, so the
entities handed back are detached snapshots. Relationships are only usable
when the call asked for them to be resolved.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import joinedload, load_only, selectinload

from .errors import NotFoundError
from .models import Author, Book, BookInstance, Genre

logger = logging.getLogger(__name__)


def coerce_id(value):
    """Identity from a path or form value; None when it cannot be one."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    value = str(value).strip()
    return int(value) if value.isdigit() else None


class Repository:
    model = None
    kind = None
    columns = ()
    order_by = ()

    def __init__(self, store):
        self.store = store

    def _options(self, resolve):
        return []

    def _assign(self, target, source, session):
        for column in self.columns:
            setattr(target, column, getattr(source, column))

    def find_by_id(self, entity_id, resolve=False):
        key = coerce_id(entity_id)
        if key is None:
            return None
        with self.store.session() as session:
            q = (
                select(self.model)
                .where(self.model.id == key)
                .options(*self._options(resolve))
            )
            return session.execute(q).scalar_one_or_none()

    def get_by_id(self, entity_id, resolve=False):
        entity = self.find_by_id(entity_id, resolve=resolve)
        if entity is None:
            raise NotFoundError(self.kind, entity_id)
        return entity

    def find_all(self, resolve=False, **filters):
        with self.store.session() as session:
            q = (
                select(self.model)
                .filter_by(**filters)
                .options(*self._options(resolve))
                .order_by(*self.order_by)
            )
            return list(session.execute(q).scalars().all())

    def count(self, **filters):
        with self.store.session() as session:
            q = select(func.count()).select_from(self.model).filter_by(**filters)
            return session.execute(q).scalar_one()

    def save(self, candidate):
        with self.store.session() as session:
            entity = self.model()
            self._assign(entity, candidate, session)
            session.add(entity)
            session.commit()
            logger.info("Created %s %s", self.kind, entity.id)
            return entity

    def update_by_id(self, entity_id, candidate):
        """Full replace of every writable field; the identity never changes."""
        key = coerce_id(entity_id)
        with self.store.session() as session:
            entity = session.get(self.model, key) if key is not None else None
            if entity is None:
                raise NotFoundError(self.kind, entity_id)
            self._assign(entity, candidate, session)
            session.commit()
            logger.info("Updated %s %s", self.kind, entity.id)
            return entity

    def delete_by_id(self, entity_id):
        """Returns False when there was nothing to delete."""
        key = coerce_id(entity_id)
        with self.store.session() as session:
            entity = session.get(self.model, key) if key is not None else None
            if entity is None:
                logger.info("Nothing to delete for %s %s", self.kind, entity_id)
                return False
            session.delete(entity)
            session.commit()
            logger.info("Deleted %s %s", self.kind, key)
            return True


class AuthorRepository(Repository):
    model = Author
    kind = "Author"
    columns = ("first_name", "family_name", "date_of_birth", "date_of_death")
    order_by = (Author.family_name, Author.first_name)


class GenreRepository(Repository):
    model = Genre
    kind = "Genre"
    columns = ("name",)
    order_by = (Genre.name,)

    def find_by_ids(self, ids):
        keys = [k for k in (coerce_id(i) for i in ids) if k is not None]
        if not keys:
            return []
        with self.store.session() as session:
            q = select(Genre).where(Genre.id.in_(keys)).order_by(Genre.name)
            return list(session.execute(q).scalars().all())


class BookRepository(Repository):
    model = Book
    kind = "Book"
    columns = ("title", "author_id", "summary", "isbn")
    order_by = (Book.title,)

    def _options(self, resolve):
        if resolve:
            return [joinedload(Book.author), selectinload(Book.genres)]
        return []

    def _assign(self, target, source, session):
        super()._assign(target, source, session)
        # Re-read genres in this session; drop any that vanished meanwhile.
        genres = [session.get(Genre, g.id) for g in source.genres]
        target.genres = [g for g in genres if g is not None]

    def find_all_listing(self):
        """Title and author only, author resolved: the listing-page shape."""
        with self.store.session() as session:
            q = (
                select(Book)
                .options(
                    load_only(Book.id, Book.title, Book.author_id),
                    joinedload(Book.author),
                )
                .order_by(Book.title)
            )
            return list(session.execute(q).scalars().all())

    def find_by_genre(self, genre_id):
        key = coerce_id(genre_id)
        with self.store.session() as session:
            q = (
                select(Book)
                .where(Book.genres.any(Genre.id == key))
                .order_by(Book.title)
            )
            return list(session.execute(q).scalars().all())


class CopyRepository(Repository):
    model = BookInstance
    kind = "BookInstance"
    columns = ("book_id", "imprint", "status", "due_back")
    order_by = (BookInstance.id,)

    def _options(self, resolve):
        if resolve:
            return [joinedload(BookInstance.book)]
        return []


class Repositories:
    def __init__(self, store):
        self.authors = AuthorRepository(store)
        self.genres = GenreRepository(store)
        self.books = BookRepository(store)
        self.copies = CopyRepository(store)
