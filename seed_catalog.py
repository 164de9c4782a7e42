# seed_catalog.py
import re
import sys

import requests

CATALOG_BASE_URL = "http://localhost:5000"

AUTHORS = [
    {"first_name": "Patrick", "family_name": "Rothfuss", "date_of_birth": "1973-06-06"},
    {"first_name": "Ben", "family_name": "Bova", "date_of_birth": "1932-11-08"},
    {"first_name": "Isaac", "family_name": "Asimov", "date_of_birth": "1920-01-02", "date_of_death": "1992-04-06"},
    {"first_name": "Bob", "family_name": "Billings"},
    {"first_name": "Jim", "family_name": "Jones", "date_of_birth": "1971-12-16"},
]

GENRES = ["Fantasy", "Science Fiction", "French Poetry"]

# author / genre are indexes into AUTHORS / GENRES
BOOKS = [
    {
        "title": "The Name of the Wind (The Kingkiller Chronicle, #1)",
        "summary": "I have stolen princesses back from sleeping barrow kings.",
        "isbn": "9781473211896",
        "author": 0,
        "genre": [0],
    },
    {
        "title": "The Wise Man's Fear (The Kingkiller Chronicle, #2)",
        "summary": "Picking up the tale of Kvothe Kingkiller once again.",
        "isbn": "9788401352836",
        "author": 0,
        "genre": [0],
    },
    {
        "title": "Apes and Angels",
        "summary": "Humankind headed out to the stars not for conquest, but for science.",
        "isbn": "9780765379528",
        "author": 1,
        "genre": [1],
    },
    {
        "title": "Death Wave",
        "summary": "In Ben Bova's previous novel New Earth, Jordan Kell led the first human mission.",
        "isbn": "9780765379504",
        "author": 1,
        "genre": [1],
    },
    {
        "title": "Test Book 1",
        "summary": "Summary of test book 1",
        "isbn": "ISBN111111",
        "author": 4,
        "genre": [0, 1],
    },
]

# book is an index into BOOKS
COPIES = [
    {"book": 0, "imprint": "London Gollancz, 2014.", "status": "Available"},
    {"book": 1, "imprint": "Gollancz, 2011.", "status": "Loaned", "due_back": "2030-01-01"},
    {"book": 2, "imprint": "Gollancz, 2015.", "status": "Available"},
    {"book": 3, "imprint": "New York Tom Doherty Associates, 2016.", "status": "Available"},
    {"book": 3, "imprint": "New York Tom Doherty Associates, 2016.", "status": "Maintenance"},
    {"book": 4, "imprint": "Imprint XXX2", "status": "Reserved"},
]


def check_service(url):
    """Hit /api/health and return True/False."""
    health_url = f"{url.rstrip('/')}/api/health"
    try:
        r = requests.get(health_url, timeout=3)
        print(f"[CHECK] catalog -> {health_url} -> {r.status_code}")
        return r.ok
    except requests.RequestException as e:
        print(f"[ERROR] catalog not reachable at {health_url}: {e}")
        return False


def create(kind, fields):
    """
    POST a create form and return the new identity taken from the redirect
    location, or None when the form was re-rendered with errors.
    """
    resp = requests.post(
        f"{CATALOG_BASE_URL}/catalog/{kind}/create",
        data=fields,
        allow_redirects=False,
        timeout=5,
    )
    match = re.search(rf"/catalog/{kind}/(\d+)$", resp.headers.get("Location", ""))
    if resp.status_code != 302 or not match:
        print(f"  {kind}: {resp.status_code} (not created)")
        return None
    print(f"  {kind} {match.group(1)} <- {resp.headers['Location']}")
    return match.group(1)


def main():
    print("Checking catalog service...")
    if not check_service(CATALOG_BASE_URL):
        print("\nCatalog service is not reachable. Make sure it is running on 5000.")
        return 1

    print("\n== Authors ==")
    author_ids = [create("author", a) for a in AUTHORS]

    print("\n== Genres ==")
    genre_ids = [create("genre", {"name": name}) for name in GENRES]

    print("\n== Books ==")
    book_ids = []
    for book in BOOKS:
        fields = dict(book)
        fields["author"] = author_ids[book["author"]]
        fields["genre"] = [genre_ids[i] for i in book["genre"] if genre_ids[i]]
        book_ids.append(create("book", fields))

    print("\n== Copies ==")
    for copy in COPIES:
        fields = dict(copy)
        fields["book"] = book_ids[copy["book"]]
        create("bookinstance", fields)

    print("\nDone.")
    print(f"Try {CATALOG_BASE_URL}/catalog/ in the browser.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
