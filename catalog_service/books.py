"""
Book lifecycle: list, detail, create, update and delete flows.

Write flows sanitize first, then validate, and either re-render the form
with the entered values and field errors or persist and redirect. Store
failures and missing books are raised to the routing layer untouched.
"""
import logging

from .controller import Controller, Page, Redirect, genre_options, parse_refs
from .errors import NotFoundError
from .models import Book
from .repositories import coerce_id
from .validation import FieldError, required, sanitize, validate

logger = logging.getLogger(__name__)

LIST_URL = "/catalog/books"

BOOK_FIELDS = ("title", "author", "summary", "isbn")

BOOK_RULES = [
    required("title", "Title must not be empty."),
    required("author", "Author must not be empty"),
    required("summary", "Summary must not be empty"),
    required("isbn", "ISBN must not be empty"),
]


class BookController(Controller):

    def list(self):
        books = self.repos.books.find_all_listing()
        return Page("book_list.html", {"title": "Book List", "book_list": books})

    def detail(self, book_id):
        key = coerce_id(book_id)
        if key is None:
            raise NotFoundError("Book", book_id)
        results = self.aggregate(
            book=lambda: self.repos.books.find_by_id(key, resolve=True),
            book_instances=lambda: self.repos.copies.find_all(book_id=key),
        )
        if results["book"] is None:
            raise NotFoundError("Book", book_id)
        return Page(
            "book_detail.html",
            {
                "title": "Title",
                "book": results["book"],
                "book_instances": results["book_instances"],
            },
        )

    def create_form(self):
        return self._form("Create Book", None, [], [])

    def create(self, fields):
        data = sanitize(fields, BOOK_FIELDS)
        genre_refs = parse_refs(fields.get("genre"))
        book = self._candidate(data)

        errors = validate(data, BOOK_RULES)
        if not errors:
            errors = self._check_references(book, data["author"], genre_refs)
        if errors:
            return self._form("Create Book", book, genre_refs, errors)

        saved = self.repos.books.save(book)
        return Redirect(saved.url)

    def delete_form(self, book_id):
        results = self._with_instances(book_id)
        if results["book"] is None:
            return Redirect(LIST_URL)
        return self._delete_page(results["book"], results["book_instances"])

    def delete(self, book_id, fields):
        data = sanitize({"bookid": fields.get("bookid") or book_id}, ["bookid"])
        errors = validate(data, [required("bookid", "Book id must not be empty")])
        if errors:
            return self._delete_page(None, [], errors)

        results = self._with_instances(data["bookid"])
        book, instances = results["book"], results["book_instances"]
        if book is None:
            return Redirect(LIST_URL)
        if instances:
            logger.info(
                "Refusing to delete book %s: %d copies still reference it",
                book.id,
                len(instances),
            )
            return self._delete_page(book, instances)

        self.repos.books.delete_by_id(book.id)
        return Redirect(LIST_URL)

    def update_form(self, book_id):
        book_id = sanitize({"id": book_id}, ["id"])["id"]
        results = self.aggregate(
            book=lambda: self.repos.books.find_by_id(book_id, resolve=True),
            genres=self.repos.genres.find_all,
            authors=self.repos.authors.find_all,
        )
        book = results["book"]
        if book is None:
            raise NotFoundError("Book", book_id)
        return Page(
            "book_form.html",
            {
                "title": "Update Book",
                "authors": results["authors"],
                "genres": genre_options(results["genres"], [g.id for g in book.genres]),
                "book": book,
                "errors": [],
            },
        )

    def update(self, book_id, fields):
        book_id = sanitize({"id": book_id}, ["id"])["id"]
        data = sanitize(fields, BOOK_FIELDS)
        genre_refs = parse_refs(fields.get("genre"))
        book = self._candidate(data, book_id=coerce_id(book_id))

        errors = validate(data, BOOK_RULES)
        if not errors:
            errors = self._check_references(book, data["author"], genre_refs)
        if errors:
            return self._form("Update Book", book, genre_refs, errors)

        updated = self.repos.books.update_by_id(book_id, book)
        return Redirect(updated.url)

    # -----------------------------------------------------------------

    @staticmethod
    def _candidate(data, book_id=None):
        book = Book(
            id=book_id,
            title=data["title"],
            author_id=coerce_id(data["author"]),
            summary=data["summary"],
            isbn=data["isbn"],
        )
        book.genres = []
        return book

    def _check_references(self, book, author_ref, genre_refs):
        """
        Resolve the author and genres the candidate points at. Found genres
        are attached to ``book``; anything missing becomes a field error.
        """
        results = self.aggregate(
            author=lambda: self.repos.authors.find_by_id(author_ref),
            genres=lambda: self.repos.genres.find_by_ids(genre_refs),
        )
        errors = []
        if results["author"] is None:
            errors.append(FieldError("author", f"Author not found: {author_ref}"))

        found = {str(g.id): g for g in results["genres"]}
        missing = [ref for ref in genre_refs if ref not in found]
        if missing:
            errors.append(FieldError("genre", f"Genre not found: {', '.join(missing)}"))
        book.genres = [found[ref] for ref in genre_refs if ref in found]
        return errors

    def _form(self, title, book, genre_refs, errors):
        results = self.aggregate(
            authors=self.repos.authors.find_all,
            genres=self.repos.genres.find_all,
        )
        return Page(
            "book_form.html",
            {
                "title": title,
                "authors": results["authors"],
                "genres": genre_options(results["genres"], genre_refs),
                "book": book,
                "errors": errors,
            },
        )

    def _with_instances(self, book_id):
        return self.aggregate(
            book_instances=lambda: self.repos.copies.find_all(book_id=coerce_id(book_id)),
            book=lambda: self.repos.books.find_by_id(book_id),
        )

    @staticmethod
    def _delete_page(book, instances, errors=()):
        return Page(
            "book_delete.html",
            {
                "title": "Delete Book",
                "book": book,
                "book_instances": instances,
                "errors": list(errors),
            },
        )
