"""Record builders used across the test modules."""
from catalog_service.models import Author, Book, BookInstance, Genre


def add_author(repos, first_name="Frank", family_name="Herbert"):
    return repos.authors.save(Author(first_name=first_name, family_name=family_name))


def add_genre(repos, name):
    return repos.genres.save(Genre(name=name))


def add_book(repos, author, title="Dune", genres=()):
    book = Book(
        title=title,
        author_id=author.id,
        summary="desert planet",
        isbn="9780441013593",
    )
    book.genres = list(genres)
    return repos.books.save(book)


def add_copy(repos, book, status="Available", imprint="Ace, 1990"):
    return repos.copies.save(BookInstance(book_id=book.id, imprint=imprint, status=status))
