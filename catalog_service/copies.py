"""Lifecycle flows for physical copies (book instances)."""
import logging

from .controller import Controller, Page, Redirect
from .errors import NotFoundError
from .models import COPY_STATUSES, BookInstance
from .repositories import coerce_id
from .validation import FieldError, one_of, optional_date, parse_date, required, sanitize, validate

logger = logging.getLogger(__name__)

LIST_URL = "/catalog/bookinstances"

COPY_FIELDS = ("book", "imprint", "status", "due_back")

COPY_RULES = [
    required("book", "Book must be specified"),
    required("imprint", "Imprint must be specified"),
    optional_date("due_back", "Invalid date"),
    one_of("status", COPY_STATUSES, "Invalid status"),
]


def _candidate(data, copy_id=None):
    return BookInstance(
        id=copy_id,
        book_id=coerce_id(data["book"]),
        imprint=data["imprint"],
        status=data["status"],
        due_back=parse_date(data["due_back"]),
    )


class CopyController(Controller):

    def list(self):
        copies = self.repos.copies.find_all(resolve=True)
        return Page(
            "bookinstance_list.html",
            {"title": "Book Instance List", "bookinstance_list": copies},
        )

    def detail(self, copy_id):
        copy = self.repos.copies.get_by_id(copy_id, resolve=True)
        return Page("bookinstance_detail.html", {"title": "Book:", "bookinstance": copy})

    def create_form(self):
        return self._form("Create BookInstance", self.repos.books.find_all(), None, [])

    def create(self, fields):
        copy, errors = self._validated(fields)
        if errors:
            return self._form("Create BookInstance", self.repos.books.find_all(), copy, errors)
        return Redirect(self.repos.copies.save(copy).url)

    def delete_form(self, copy_id):
        copy = self.repos.copies.find_by_id(copy_id, resolve=True)
        if copy is None:
            return Redirect(LIST_URL)
        return self._delete_page(copy)

    def delete(self, copy_id, fields):
        data = sanitize(
            {"bookinstanceid": fields.get("bookinstanceid") or copy_id}, ["bookinstanceid"]
        )
        errors = validate(data, [required("bookinstanceid", "Book instance id must not be empty")])
        if errors:
            return self._delete_page(None, errors)
        self.repos.copies.delete_by_id(data["bookinstanceid"])
        return Redirect(LIST_URL)

    def update_form(self, copy_id):
        copy_id = sanitize({"id": copy_id}, ["id"])["id"]
        results = self.aggregate(
            bookinstance=lambda: self.repos.copies.find_by_id(copy_id),
            books=self.repos.books.find_all,
        )
        if results["bookinstance"] is None:
            raise NotFoundError("BookInstance", copy_id)
        return self._form("Update BookInstance", results["books"], results["bookinstance"], [])

    def update(self, copy_id, fields):
        copy_id = sanitize({"id": copy_id}, ["id"])["id"]
        copy, errors = self._validated(fields, copy_id=coerce_id(copy_id))
        if errors:
            return self._form("Update BookInstance", self.repos.books.find_all(), copy, errors)
        return Redirect(self.repos.copies.update_by_id(copy_id, copy).url)

    def _validated(self, fields, copy_id=None):
        fields = dict(fields)
        fields["status"] = fields.get("status") or "Maintenance"
        data = sanitize(fields, COPY_FIELDS)
        copy = _candidate(data, copy_id=copy_id)
        errors = validate(data, COPY_RULES)
        if not errors and self.repos.books.find_by_id(data["book"]) is None:
            errors.append(FieldError("book", f"Book not found: {data['book']}"))
        return copy, errors

    @staticmethod
    def _form(title, books, copy, errors):
        return Page(
            "bookinstance_form.html",
            {
                "title": title,
                "book_list": books,
                "bookinstance": copy,
                "statuses": COPY_STATUSES,
                "errors": errors,
            },
        )

    @staticmethod
    def _delete_page(copy, errors=()):
        return Page(
            "bookinstance_delete.html",
            {"title": "Delete BookInstance", "bookinstance": copy, "errors": list(errors)},
        )
