import logging

from .controller import Controller, Page, Redirect
from .errors import NotFoundError
from .models import Genre
from .repositories import coerce_id
from .validation import min_length, required, sanitize, validate

logger = logging.getLogger(__name__)

LIST_URL = "/catalog/genres"

GENRE_RULES = [min_length("name", 3, "Genre name must contain at least 3 characters.")]


class GenreController(Controller):

    def list(self):
        genres = self.repos.genres.find_all()
        return Page("genre_list.html", {"title": "Genre List", "genre_list": genres})

    def detail(self, genre_id):
        results = self._with_books(genre_id)
        if results["genre"] is None:
            raise NotFoundError("Genre", genre_id)
        return Page(
            "genre_detail.html",
            {
                "title": "Genre Detail",
                "genre": results["genre"],
                "genre_books": results["genre_books"],
            },
        )

    def create_form(self):
        return self._form("Create Genre", None, [])

    def create(self, fields):
        data = sanitize(fields, ["name"])
        genre = Genre(name=data["name"])
        errors = validate(data, GENRE_RULES)
        if errors:
            return self._form("Create Genre", genre, errors)

        # Same name already stored: send the user to that genre instead.
        existing = self.repos.genres.find_all(name=data["name"])
        if existing:
            logger.info("Genre %r already exists as %s", data["name"], existing[0].id)
            return Redirect(existing[0].url)
        return Redirect(self.repos.genres.save(genre).url)

    def delete_form(self, genre_id):
        results = self._with_books(genre_id)
        if results["genre"] is None:
            return Redirect(LIST_URL)
        return self._delete_page(results["genre"], results["genre_books"])

    def delete(self, genre_id, fields):
        data = sanitize({"genreid": fields.get("genreid") or genre_id}, ["genreid"])
        errors = validate(data, [required("genreid", "Genre id must not be empty")])
        if errors:
            return self._delete_page(None, [], errors)

        results = self._with_books(data["genreid"])
        genre, books = results["genre"], results["genre_books"]
        if genre is None:
            return Redirect(LIST_URL)
        if books:
            logger.info("Refusing to delete genre %s: %d books", genre.id, len(books))
            return self._delete_page(genre, books)

        self.repos.genres.delete_by_id(genre.id)
        return Redirect(LIST_URL)

    def update_form(self, genre_id):
        genre_id = sanitize({"id": genre_id}, ["id"])["id"]
        return self._form("Update Genre", self.repos.genres.get_by_id(genre_id), [])

    def update(self, genre_id, fields):
        genre_id = sanitize({"id": genre_id}, ["id"])["id"]
        data = sanitize(fields, ["name"])
        genre = Genre(id=coerce_id(genre_id), name=data["name"])
        errors = validate(data, GENRE_RULES)
        if errors:
            return self._form("Update Genre", genre, errors)
        return Redirect(self.repos.genres.update_by_id(genre_id, genre).url)

    def _with_books(self, genre_id):
        key = coerce_id(genre_id)
        return self.aggregate(
            genre=lambda: self.repos.genres.find_by_id(key),
            genre_books=lambda: self.repos.books.find_by_genre(key),
        )

    @staticmethod
    def _form(title, genre, errors):
        return Page("genre_form.html", {"title": title, "genre": genre, "errors": errors})

    @staticmethod
    def _delete_page(genre, books, errors=()):
        return Page(
            "genre_delete.html",
            {
                "title": "Delete Genre",
                "genre": genre,
                "genre_books": books,
                "errors": list(errors),
            },
        )
