"""Integration tests driving the catalog pages through Flask's test client."""

from datetime import date

import pytest

from locallibrary import RATE_LIMIT, create_app


@pytest.fixture()
def genre_with_book(store):
    genre = store.insert("genre", {"name": "Fantasy"})
    author = store.insert("author", {"first_name": "Patrick", "family_name": "Rothfuss"})
    book = store.insert("book", {
        "title": "The Name of the Wind",
        "author": author,
        "summary": "Kvothe's tale.",
        "isbn": "9781473211896",
        "genre": [genre],
    })
    return {"genre": genre, "author": author, "book": book}


class TestNavigation:
    def test_root_redirects_to_catalog(self, client) -> None:
        response = client.get("/")
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/catalog/")

    def test_index_shows_counts(self, client, store, genre_with_book) -> None:
        store.insert("bookinstance", {"book": genre_with_book["book"], "imprint": "Gollancz", "status": "Available"})
        response = client.get("/catalog/")
        assert response.status_code == 200
        assert b"<strong>Books:</strong> 1" in response.data
        assert b"<strong>Copies available:</strong> 1" in response.data

    def test_empty_lists_render(self, client) -> None:
        for path in ("/catalog/genres", "/catalog/authors", "/catalog/books", "/catalog/bookinstances"):
            assert client.get(path).status_code == 200

    def test_security_headers_present(self, client) -> None:
        response = client.get("/catalog/genres")
        assert "cdn.jsdelivr.net" in response.headers["Content-Security-Policy"]


class TestGenrePages:
    def test_create_redirects_to_new_genre(self, client, store) -> None:
        response = client.post("/catalog/genre/create", data={"name": "Poetry"})
        assert response.status_code == 302
        genre_id = int(response.headers["Location"].rsplit("/", 1)[1])
        assert store.find_by_id("genre", genre_id)["name"] == "Poetry"

    def test_duplicate_create_redirects_to_existing(self, client, store) -> None:
        existing = store.insert("genre", {"name": "Science Fiction"})

        response = client.post("/catalog/genre/create", data={"name": "science fiction"})

        assert response.status_code == 302
        assert response.headers["Location"].endswith(f"/catalog/genre/{existing}")
        assert store.count("genre") == 1

    @pytest.mark.parametrize("first, second", [("Épopée", "Épopée"), ("Ölçü", "ölçü")])
    def test_non_ascii_duplicate_redirects_to_existing(self, client, store, first, second) -> None:
        client.post("/catalog/genre/create", data={"name": first})

        response = client.post("/catalog/genre/create", data={"name": second})

        [genre] = store.find("genre")
        assert response.status_code == 302
        assert response.headers["Location"].endswith(f"/catalog/genre/{genre['id']}")
        assert genre["name"] == first

    def test_short_name_redisplays_form(self, client, store) -> None:
        response = client.post("/catalog/genre/create", data={"name": "  ab  "})

        assert response.status_code == 200
        assert b"Genre name must contain at least 3 characters" in response.data
        assert b'value="ab"' in response.data
        assert store.count("genre") == 0

    def test_trimmed_name_rendered(self, client) -> None:
        response = client.post("/catalog/genre/create", data={"name": "  Sci-Fi  "}, follow_redirects=True)
        assert b"Genre: Sci-Fi</h1>" in response.data

    def test_html_escaped_before_storage(self, client, store) -> None:
        client.post("/catalog/genre/create", data={"name": "<i>Horror</i>"})
        [genre] = store.find("genre")
        assert genre["name"] == "&lt;i&gt;Horror&lt;/i&gt;"

    def test_detail_lists_books(self, client, genre_with_book) -> None:
        response = client.get(f"/catalog/genre/{genre_with_book['genre']}")
        assert response.status_code == 200
        assert b"The Name of the Wind" in response.data

    def test_detail_missing_is_404(self, client) -> None:
        assert client.get("/catalog/genre/999").status_code == 404

    def test_update_form_missing_is_404(self, client) -> None:
        assert client.get("/catalog/genre/999/update").status_code == 404

    def test_update_post_missing_is_404(self, client) -> None:
        assert client.post("/catalog/genre/999/update", data={"name": "Horror"}).status_code == 404

    def test_update_renames(self, client, store, genre_with_book) -> None:
        genre_id = genre_with_book["genre"]
        response = client.post(f"/catalog/genre/{genre_id}/update", data={"name": "High Fantasy"})
        assert response.headers["Location"].endswith(f"/catalog/genre/{genre_id}")
        assert store.find_by_id("genre", genre_id)["name"] == "High Fantasy"

    def test_delete_form_missing_redirects_to_list(self, client) -> None:
        response = client.get("/catalog/genre/999/delete")
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/catalog/genres")

    def test_delete_blocked_by_books(self, client, store, genre_with_book) -> None:
        genre_id = genre_with_book["genre"]

        response = client.post(f"/catalog/genre/{genre_id}/delete")

        assert response.status_code == 200
        assert b"Delete the following books" in response.data
        assert b"The Name of the Wind" in response.data
        assert store.find_by_id("genre", genre_id) is not None

    def test_delete_allowed_without_books(self, client, store) -> None:
        genre_id = store.insert("genre", {"name": "Poetry"})

        response = client.post(f"/catalog/genre/{genre_id}/delete")

        assert response.status_code == 302
        assert response.headers["Location"].endswith("/catalog/genres")
        assert store.find_by_id("genre", genre_id) is None

    def test_delete_post_on_missing_genre_redirects(self, client) -> None:
        response = client.post("/catalog/genre/999/delete")
        assert response.status_code == 302


class TestAuthorPages:
    def test_create_with_dates(self, client, store) -> None:
        response = client.post("/catalog/author/create", data={
            "first_name": "Isaac",
            "family_name": "Asimov",
            "date_of_birth": "1920-01-02",
            "date_of_death": "1992-04-06",
        })
        assert response.status_code == 302
        [author] = store.find("author")
        assert author["date_of_death"] == date(1992, 4, 6)

    def test_invalid_date_redisplays(self, client, store) -> None:
        response = client.post("/catalog/author/create", data={
            "first_name": "Isaac",
            "family_name": "Asimov",
            "date_of_birth": "02/01/1920x",
        })
        assert response.status_code == 200
        assert b"Invalid date of birth" in response.data
        assert store.count("author") == 0

    def test_list_shows_name_and_lifespan(self, client, genre_with_book) -> None:
        response = client.get("/catalog/authors")
        assert b"Rothfuss, Patrick" in response.data

    def test_delete_blocked_by_books(self, client, store, genre_with_book) -> None:
        author_id = genre_with_book["author"]
        response = client.post(f"/catalog/author/{author_id}/delete")
        assert b"Delete the following books" in response.data
        assert store.find_by_id("author", author_id) is not None

    def test_delete_form_shows_books(self, client, genre_with_book) -> None:
        response = client.get(f"/catalog/author/{genre_with_book['author']}/delete")
        assert response.status_code == 200
        assert b"The Name of the Wind" in response.data


class TestBookPages:
    def test_create_form_lists_authors_and_genres(self, client, genre_with_book) -> None:
        response = client.get("/catalog/book/create")
        assert b"Rothfuss, Patrick" in response.data
        assert b"Fantasy" in response.data

    def test_create_with_genres(self, client, store, genre_with_book) -> None:
        poetry = store.insert("genre", {"name": "Poetry"})
        response = client.post("/catalog/book/create", data={
            "title": "The Wise Man's Fear",
            "author": str(genre_with_book["author"]),
            "summary": "Kvothe again.",
            "isbn": "9788401352836",
            "genre": [str(genre_with_book["genre"]), str(poetry)],
        })
        assert response.status_code == 302
        book_id = int(response.headers["Location"].rsplit("/", 1)[1])
        book = store.find_by_id("book", book_id)
        assert sorted(book["genre"]) == sorted([genre_with_book["genre"], poetry])
        assert book["title"] == "The Wise Man&#39;s Fear"

    def test_invalid_create_keeps_checked_genres(self, client, store, genre_with_book) -> None:
        genre_id = genre_with_book["genre"]
        response = client.post("/catalog/book/create", data={
            "title": "",
            "author": str(genre_with_book["author"]),
            "summary": "Kvothe again.",
            "isbn": "1",
            "genre": [str(genre_id)],
        })
        assert response.status_code == 200
        assert b"Title must not be empty." in response.data
        assert b"checked" in response.data
        assert store.count("book") == 1

    def test_detail_shows_author_and_copies(self, client, store, genre_with_book) -> None:
        store.insert("bookinstance", {
            "book": genre_with_book["book"], "imprint": "Gollancz", "status": "Loaned", "due_back": date(2026, 11, 1),
        })
        response = client.get(f"/catalog/book/{genre_with_book['book']}")
        assert b"Rothfuss, Patrick" in response.data
        assert b"Nov 01, 2026" in response.data

    def test_update_form_preselects_author(self, client, genre_with_book) -> None:
        response = client.get(f"/catalog/book/{genre_with_book['book']}/update")
        assert response.status_code == 200
        assert b"selected" in response.data

    def test_delete_blocked_by_copies(self, client, store, genre_with_book) -> None:
        book_id = genre_with_book["book"]
        store.insert("bookinstance", {"book": book_id, "imprint": "Gollancz", "status": "Available"})
        response = client.post(f"/catalog/book/{book_id}/delete")
        assert b"Delete the following copies" in response.data
        assert store.find_by_id("book", book_id) is not None

    def test_delete_without_copies(self, client, store, genre_with_book) -> None:
        book_id = genre_with_book["book"]
        response = client.post(f"/catalog/book/{book_id}/delete")
        assert response.status_code == 302
        assert store.find_by_id("book", book_id) is None


class TestBookInstancePages:
    def test_create_defaults_status(self, client, store, genre_with_book) -> None:
        response = client.post("/catalog/bookinstance/create", data={
            "book": str(genre_with_book["book"]), "imprint": "Gollancz, 2014.", "status": "", "due_back": "",
        })
        assert response.status_code == 302
        [copy] = store.find("bookinstance")
        assert copy["status"] == "Maintenance"
        assert copy["due_back"] is None

    def test_invalid_due_back_redisplays(self, client, store, genre_with_book) -> None:
        response = client.post("/catalog/bookinstance/create", data={
            "book": str(genre_with_book["book"]), "imprint": "Gollancz", "status": "Loaned", "due_back": "soon",
        })
        assert response.status_code == 200
        assert b"Invalid date" in response.data
        assert store.count("bookinstance") == 0

    def test_delete_form_missing_redirects(self, client) -> None:
        response = client.get("/catalog/bookinstance/5/delete")
        assert response.headers["Location"].endswith("/catalog/bookinstances")

    def test_delete_is_unconditional(self, client, store, genre_with_book) -> None:
        copy_id = store.insert("bookinstance", {"book": genre_with_book["book"], "imprint": "Gollancz"})
        response = client.post(f"/catalog/bookinstance/{copy_id}/delete")
        assert response.status_code == 302
        assert store.find_by_id("bookinstance", copy_id) is None

    def test_detail_missing_is_404(self, client) -> None:
        assert client.get("/catalog/bookinstance/5").status_code == 404

    def test_oversized_book_id_redisplays(self, client, store) -> None:
        response = client.post("/catalog/bookinstance/create", data={
            "book": "99999999999999999999999", "imprint": "Gollancz", "status": "Available", "due_back": "",
        })
        assert response.status_code == 200
        assert b"Book must be a valid book." in response.data
        assert store.count("bookinstance") == 0

    def test_oversized_path_id_is_404(self, client) -> None:
        assert client.get("/catalog/bookinstance/99999999999999999999999").status_code == 404
        assert client.get("/catalog/genre/99999999999999999999999/update").status_code == 404


class TestResponseMiddleware:
    def test_pages_compressed_for_gzip_clients(self, client) -> None:
        response = client.get("/catalog/genres", headers={"Accept-Encoding": "gzip"})
        assert response.status_code == 200
        assert response.headers["Content-Encoding"] == "gzip"

    def test_rate_limit_per_client(self, tmp_path) -> None:
        app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'limited.db'}",
            "RATELIMIT_ENABLED": True,
        })
        client = app.test_client()
        allowed = int(RATE_LIMIT.split()[0])

        statuses = [client.get("/catalog/genres").status_code for _ in range(allowed + 1)]

        assert statuses[:allowed] == [200] * allowed
        assert statuses[allowed] == 429
