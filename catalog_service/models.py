# catalog_service/models.py
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Enum,
    ForeignKey,
    Table,
    Text,
)

Base = declarative_base()

COPY_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")


# No primary key on purpose: duplicates are filtered before writes, not here.
book_genre = Table(
    "book_genre",
    Base.metadata,
    Column("book_id", Integer, ForeignKey("book.id"), nullable=False),
    Column("genre_id", Integer, ForeignKey("genre.id"), nullable=False),
)


class Author(Base):
    __tablename__ = "author"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    family_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date)
    date_of_death = Column(Date)

    @property
    def name(self):
        return f"{self.family_name}, {self.first_name}"

    @property
    def lifespan(self):
        born = self.date_of_birth.isoformat() if self.date_of_birth else ""
        died = self.date_of_death.isoformat() if self.date_of_death else ""
        return f"{born} - {died}"

    @property
    def url(self):
        return f"/catalog/author/{self.id}"


class Genre(Base):
    __tablename__ = "genre"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)

    @property
    def url(self):
        return f"/catalog/genre/{self.id}"


class Book(Base):
    __tablename__ = "book"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    # Not a ForeignKey: author existence is checked by the controllers.
    author_id = Column(Integer, nullable=False)
    summary = Column(Text, nullable=False)
    isbn = Column(String(20), nullable=False)

    author = relationship(
        "Author",
        primaryjoin="foreign(Book.author_id) == Author.id",
        viewonly=True,
    )
    genres = relationship("Genre", secondary=book_genre)

    @property
    def url(self):
        return f"/catalog/book/{self.id}"


class BookInstance(Base):
    """
    A physical copy of a book. The book reference is checked when the copy
    is written and never again.
    """
    __tablename__ = "book_instance"

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(Integer, nullable=False)
    imprint = Column(String(255), nullable=False)
    status = Column(
        Enum(*COPY_STATUSES, name="book_instance_status"),
        nullable=False,
        default="Maintenance",
    )
    due_back = Column(Date)

    book = relationship(
        "Book",
        primaryjoin="foreign(BookInstance.book_id) == Book.id",
        viewonly=True,
    )

    @property
    def url(self):
        return f"/catalog/bookinstance/{self.id}"
