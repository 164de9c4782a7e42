"""Tests for the book lifecycle flows, driven without HTTP."""
import pytest

from catalog_service.books import BookController
from catalog_service.controller import HomeController, Page, Redirect, parse_refs
from catalog_service.errors import NotFoundError, StoreError
from helpers import add_author, add_book, add_copy, add_genre


@pytest.fixture
def books(repos):
    return BookController(repos)


@pytest.fixture
def herbert(repos):
    return add_author(repos)


def _form(author_record, **overrides):
    fields = {
        "title": "Dune",
        "author": str(author_record.id),
        "summary": "desert planet",
        "isbn": "9780441013593",
    }
    fields.update(overrides)
    return fields


def test_parse_refs():
    """Lists, delimited strings and absence all become a clean list."""
    assert parse_refs(None) == []
    assert parse_refs("") == []
    assert parse_refs("3, 1,3,,2") == ["3", "1", "2"]
    assert parse_refs(["1", "2,4", "1"]) == ["1", "2", "4"]


def test_create_without_genre_redirects_to_new_book(books, repos, herbert):
    """Scenario: no genre input means an empty genre set, not an error."""
    result = books.create(_form(herbert))

    assert isinstance(result, Redirect)
    stored = repos.books.find_all()[0]
    assert result.location == f"/catalog/book/{stored.id}"
    assert repos.books.find_by_id(stored.id, resolve=True).genres == []


def test_create_sanitizes_before_saving(books, repos, herbert):
    """Stored text is escaped and trimmed."""
    books.create(_form(herbert, title="  Dune <Deluxe>  "))
    assert repos.books.find_all()[0].title == "Dune &lt;Deluxe&gt;"


def test_create_with_empty_title_rerenders_form(books, repos, herbert):
    """Scenario: blank title gives a field error and nothing is saved."""
    add_genre(repos, "Science Fiction")
    result = books.create(_form(herbert, title="", summary="x", isbn="123"))

    assert isinstance(result, Page)
    assert result.template == "book_form.html"
    assert [e.field for e in result.context["errors"]] == ["title"]
    assert [a.id for a in result.context["authors"]] == [herbert.id]
    assert len(result.context["genres"]) == 1
    assert result.context["book"].title == ""
    assert result.context["book"].isbn == "123"
    assert repos.books.count() == 0


@pytest.mark.parametrize("field", ["title", "author", "summary", "isbn"])
def test_whitespace_required_field_is_rejected(books, repos, herbert, field):
    """Every required text field rejects whitespace-only input."""
    result = books.create(_form(herbert, **{field: "   "}))
    assert [e.field for e in result.context["errors"]] == [field]
    assert repos.books.count() == 0


def test_invalid_create_keeps_selected_genres_checked(books, repos, herbert):
    """Genres chosen before the failed submit are re-offered as checked."""
    fantasy = add_genre(repos, "Fantasy")
    horror = add_genre(repos, "Horror")
    poetry = add_genre(repos, "Poetry")

    result = books.create(_form(herbert, isbn="", genre=[str(fantasy.id), str(poetry.id)]))

    checked = {o.genre.id: o.checked for o in result.context["genres"]}
    assert checked == {fantasy.id: True, horror.id: False, poetry.id: True}


def test_create_with_unknown_author_or_genre(books, repos, herbert):
    """References are checked against the store before writing."""
    result = books.create(_form(herbert, author="999", genre="12345"))

    assert [e.field for e in result.context["errors"]] == ["author", "genre"]
    assert repos.books.count() == 0


def test_create_deduplicates_genres(books, repos, herbert):
    """A genre submitted twice is stored once."""
    fantasy = add_genre(repos, "Fantasy")
    books.create(_form(herbert, genre=[str(fantasy.id), str(fantasy.id)]))

    stored = repos.books.find_by_id(repos.books.find_all()[0].id, resolve=True)
    assert [g.id for g in stored.genres] == [fantasy.id]


def test_create_store_failure_propagates(books, repos, herbert, monkeypatch):
    """Store errors are not handled by the controller."""
    def broken(book):
        raise StoreError("disk full")

    monkeypatch.setattr(repos.books, "save", broken)
    with pytest.raises(StoreError):
        books.create(_form(herbert))


def test_update_store_failure_propagates(books, repos, herbert, monkeypatch):
    """A failed replace reaches the caller."""
    book = add_book(repos, herbert)

    def broken(book_id, candidate):
        raise StoreError("disk full")

    monkeypatch.setattr(repos.books, "update_by_id", broken)
    with pytest.raises(StoreError):
        books.update(str(book.id), _form(herbert))


def test_delete_store_failure_propagates(books, repos, herbert, monkeypatch):
    """A failed delete reaches the caller and the book is still there."""
    book = add_book(repos, herbert)

    def broken(book_id):
        raise StoreError("disk full")

    monkeypatch.setattr(repos.books, "delete_by_id", broken)
    with pytest.raises(StoreError):
        books.delete(str(book.id), {"bookid": str(book.id)})
    assert repos.books.count() == 1


def test_create_form_lists_authors_and_genres(books, repos, herbert):
    """The blank form offers every author and unchecked genre."""
    add_genre(repos, "Fantasy")
    result = books.create_form()

    assert result.context["book"] is None
    assert [a.id for a in result.context["authors"]] == [herbert.id]
    assert [o.checked for o in result.context["genres"]] == [False]


def test_list_uses_listing_shape(books, repos, herbert):
    """Titles with resolved authors."""
    add_book(repos, herbert)
    result = books.list()
    assert result.template == "book_list.html"
    assert result.context["book_list"][0].author.family_name == "Herbert"


def test_detail_joins_book_and_copies(books, repos, herbert):
    """The detail page gets the resolved book and its copies."""
    book = add_book(repos, herbert, genres=[add_genre(repos, "Fantasy")])
    add_copy(repos, book)
    other = add_book(repos, herbert, title="Other")
    add_copy(repos, other)

    result = books.detail(str(book.id))
    assert result.context["book"].author.id == herbert.id
    assert [g.name for g in result.context["book"].genres] == ["Fantasy"]
    assert [c.book_id for c in result.context["book_instances"]] == [book.id]


@pytest.mark.parametrize("book_id", ["999", "abc"])
def test_detail_not_found(books, book_id):
    """A missing book is a request error, not an empty page."""
    with pytest.raises(NotFoundError):
        books.detail(book_id)


def test_delete_with_copies_is_refused(books, repos, herbert):
    """Scenario: the confirmation page lists both copies, the book stays."""
    book = add_book(repos, herbert)
    copies = [add_copy(repos, book), add_copy(repos, book, status="Loaned")]

    result = books.delete(str(book.id), {"bookid": str(book.id)})

    assert isinstance(result, Page)
    assert result.template == "book_delete.html"
    assert [c.id for c in result.context["book_instances"]] == [c.id for c in copies]
    assert repos.books.find_by_id(book.id) is not None
    assert repos.books.count() == 1


def test_delete_without_copies_removes_book(books, repos, herbert):
    """Exactly the requested book goes away."""
    book = add_book(repos, herbert)
    keep = add_book(repos, herbert, title="Keep")

    result = books.delete(str(book.id), {"bookid": str(book.id)})

    assert result == Redirect("/catalog/books")
    assert [b.id for b in repos.books.find_all()] == [keep.id]


def test_delete_without_identity(books):
    """No identity at all re-renders the confirmation page with an error."""
    result = books.delete("", {"bookid": "  "})
    assert result.template == "book_delete.html"
    assert [e.field for e in result.context["errors"]] == ["bookid"]


def test_delete_form(books, repos, herbert):
    """Confirmation lists dependants; a vanished book sends you to the list."""
    book = add_book(repos, herbert)
    add_copy(repos, book)

    page = books.delete_form(str(book.id))
    assert page.context["book"].id == book.id
    assert len(page.context["book_instances"]) == 1
    assert books.delete_form("999") == Redirect("/catalog/books")


def test_update_form_marks_current_genres(books, repos, herbert):
    """Genres of the book are checked by identity, the rest are not."""
    fantasy = add_genre(repos, "Fantasy")
    horror = add_genre(repos, "Horror")
    book = add_book(repos, herbert, genres=[horror])

    result = books.update_form(f" {book.id} ")

    assert result.context["book"].id == book.id
    checked = {o.genre.id: o.checked for o in result.context["genres"]}
    assert checked == {fantasy.id: False, horror.id: True}


def test_update_form_not_found(books):
    with pytest.raises(NotFoundError):
        books.update_form("999")


def test_update_keeps_identity_and_replaces_genres(books, repos, herbert):
    """Full replace keyed by identity; genres come from a delimited list."""
    fantasy = add_genre(repos, "Fantasy")
    horror = add_genre(repos, "Horror")
    book = add_book(repos, herbert, genres=[fantasy])

    result = books.update(
        str(book.id),
        _form(herbert, title="Dune Messiah", genre=f"{horror.id},{fantasy.id}"),
    )

    assert result == Redirect(f"/catalog/book/{book.id}")
    stored = repos.books.find_by_id(book.id, resolve=True)
    assert stored.id == book.id
    assert stored.title == "Dune Messiah"
    assert sorted(g.id for g in stored.genres) == sorted([fantasy.id, horror.id])
    assert repos.books.count() == 1


def test_invalid_update_rerenders_with_identity(books, repos, herbert):
    """The candidate on the re-rendered form keeps the caller's identity."""
    fantasy = add_genre(repos, "Fantasy")
    book = add_book(repos, herbert)

    result = books.update(str(book.id), _form(herbert, summary="", genre=str(fantasy.id)))

    assert result.template == "book_form.html"
    assert result.context["title"] == "Update Book"
    assert result.context["book"].id == book.id
    assert [o.checked for o in result.context["genres"]] == [True]
    assert repos.books.find_by_id(book.id).summary == "desert planet"


def test_update_missing_book_propagates(books, herbert):
    with pytest.raises(NotFoundError):
        books.update("999", _form(herbert))


def test_home_counts(repos):
    """Scenario: every count lands under its own key."""
    authors = [add_author(repos), add_author(repos, "Isaac", "Asimov")]
    for name in ("Fantasy", "Horror", "Poetry", "Science Fiction"):
        add_genre(repos, name)
    books = [add_book(repos, authors[i % 2], title=f"Book {i}") for i in range(5)]
    statuses = ["Available"] * 3 + ["Loaned", "Maintenance", "Reserved", "Loaned", "Loaned"]
    for i, status in enumerate(statuses):
        add_copy(repos, books[i % 5], status=status)

    result = HomeController(repos).index()

    assert result.template == "index.html"
    assert result.context["data"] == {
        "book_count": 5,
        "book_instance_count": 8,
        "book_instance_available_count": 3,
        "author_count": 2,
        "genre_count": 4,
    }
