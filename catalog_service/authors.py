import logging

from .controller import Controller, Page, Redirect
from .errors import NotFoundError
from .models import Author
from .repositories import coerce_id
from .validation import optional_date, parse_date, required, sanitize, validate

logger = logging.getLogger(__name__)

LIST_URL = "/catalog/authors"

AUTHOR_FIELDS = ("first_name", "family_name", "date_of_birth", "date_of_death")

AUTHOR_RULES = [
    required("first_name", "First name must be specified."),
    required("family_name", "Family name must be specified."),
    optional_date("date_of_birth", "Invalid date of birth"),
    optional_date("date_of_death", "Invalid date of death"),
]


def _candidate(data, author_id=None):
    return Author(
        id=author_id,
        first_name=data["first_name"],
        family_name=data["family_name"],
        date_of_birth=parse_date(data["date_of_birth"]),
        date_of_death=parse_date(data["date_of_death"]),
    )


class AuthorController(Controller):

    def list(self):
        authors = self.repos.authors.find_all()
        return Page("author_list.html", {"title": "Author List", "author_list": authors})

    def detail(self, author_id):
        results = self._with_books(author_id)
        if results["author"] is None:
            raise NotFoundError("Author", author_id)
        return Page(
            "author_detail.html",
            {
                "title": "Author Detail",
                "author": results["author"],
                "author_books": results["author_books"],
            },
        )

    def create_form(self):
        return self._form("Create Author", None, [])

    def create(self, fields):
        data = sanitize(fields, AUTHOR_FIELDS)
        author = _candidate(data)
        errors = validate(data, AUTHOR_RULES)
        if errors:
            return self._form("Create Author", author, errors)
        return Redirect(self.repos.authors.save(author).url)

    def delete_form(self, author_id):
        results = self._with_books(author_id)
        if results["author"] is None:
            return Redirect(LIST_URL)
        return self._delete_page(results["author"], results["author_books"])

    def delete(self, author_id, fields):
        data = sanitize({"authorid": fields.get("authorid") or author_id}, ["authorid"])
        errors = validate(data, [required("authorid", "Author id must not be empty")])
        if errors:
            return self._delete_page(None, [], errors)

        results = self._with_books(data["authorid"])
        author, books = results["author"], results["author_books"]
        if author is None:
            return Redirect(LIST_URL)
        if books:
            logger.info("Refusing to delete author %s: %d books", author.id, len(books))
            return self._delete_page(author, books)

        self.repos.authors.delete_by_id(author.id)
        return Redirect(LIST_URL)

    def update_form(self, author_id):
        author_id = sanitize({"id": author_id}, ["id"])["id"]
        return self._form("Update Author", self.repos.authors.get_by_id(author_id), [])

    def update(self, author_id, fields):
        author_id = sanitize({"id": author_id}, ["id"])["id"]
        data = sanitize(fields, AUTHOR_FIELDS)
        author = _candidate(data, author_id=coerce_id(author_id))
        errors = validate(data, AUTHOR_RULES)
        if errors:
            return self._form("Update Author", author, errors)
        return Redirect(self.repos.authors.update_by_id(author_id, author).url)

    def _with_books(self, author_id):
        key = coerce_id(author_id)
        return self.aggregate(
            author=lambda: self.repos.authors.find_by_id(key),
            author_books=lambda: self.repos.books.find_all(author_id=key),
        )

    @staticmethod
    def _form(title, author, errors):
        return Page("author_form.html", {"title": title, "author": author, "errors": errors})

    @staticmethod
    def _delete_page(author, books, errors=()):
        return Page(
            "author_delete.html",
            {
                "title": "Delete Author",
                "author": author,
                "author_books": books,
                "errors": list(errors),
            },
        )
