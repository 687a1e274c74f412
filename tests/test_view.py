"""Tests for the book list view."""
import logging

import pytest

from bookshelf.models import Book
from bookshelf.store import BookStore
from bookshelf.view import BookListView, collection_stats, filter_books


HOBBIT = Book("The Hobbit", "Tolkien", 12.0, id=1)
DUNE = Book("Dune", "Herbert", 9.99, id=2)


def test_filter_matches_title_or_author_case_insensitive():
    assert filter_books([HOBBIT, DUNE], "tol") == [HOBBIT]
    assert filter_books([HOBBIT, DUNE], "DUNE") == [DUNE]
    assert filter_books([HOBBIT, DUNE], "") == [HOBBIT, DUNE]
    assert filter_books([HOBBIT, DUNE], "austen") == []


def test_stats_empty_collection():
    stats = collection_stats([])

    assert stats.count == 0
    assert stats.total_value == 0
    assert stats.average_price == 0


def test_stats_sum_and_average():
    stats = collection_stats([Book("A", "X", 10), Book("B", "Y", 20)])

    assert stats.count == 2
    assert stats.total_value == 30
    assert stats.average_price == 15


async def open_view(api, client, *books, confirm=None) -> BookListView:
    api.seed(*books)
    store = await BookStore.open(client)
    return BookListView(store, confirm=confirm)


@pytest.mark.asyncio
async def test_visible_books_follow_search_term(api, client):
    view = await open_view(
        api, client,
        {"title": "The Hobbit", "author": "Tolkien", "price": 12.0},
        {"title": "Dune", "author": "Herbert", "price": 9.99},
    )

    view.search_term = "tol"

    assert [b.title for b in view.visible_books] == ["The Hobbit"]
    assert view.stats.count == 2
    # local filtering never goes to the server
    assert len(api.requests) == 1


@pytest.mark.asyncio
async def test_submit_new_resets_draft(api, client):
    view = await open_view(api, client)
    view.set_draft(title="Dune", author="Herbert", price="9.99")

    created = await view.submit_new()

    assert created.id == 1
    assert view.new_book == Book("", "", 0.0)
    assert view.store.books == [created]


@pytest.mark.asyncio
async def test_set_draft_bad_price_becomes_zero(api, client):
    view = await open_view(api, client)

    view.set_draft(price="not a number")

    assert view.new_book.price == 0.0


@pytest.mark.asyncio
async def test_submit_new_failure_keeps_draft_and_logs(api, client, caplog):
    view = await open_view(api, client)
    view.set_draft(title="Dune", author="Herbert", price=9.99)
    api.fail_status = 500

    with caplog.at_level(logging.ERROR, logger="bookshelf.view"):
        created = await view.submit_new()

    assert created is None
    assert view.new_book.title == "Dune"
    assert "Failed to add book" in caplog.text
    assert view.store.last_error


@pytest.mark.asyncio
async def test_start_edit_replaces_previous_edit(api, client):
    view = await open_view(
        api, client,
        {"title": "The Hobbit", "author": "Tolkien", "price": 12.0},
        {"title": "Dune", "author": "Herbert", "price": 9.99},
    )
    hobbit, dune = view.store.books

    view.start_edit(hobbit)
    view.edit(title="Unsaved change")
    view.start_edit(dune)

    assert view.editing.id == dune.id
    assert view.editing.title == "Dune"
    # editing works on a copy
    assert hobbit.title == "The Hobbit"


@pytest.mark.asyncio
async def test_submit_edit_saves_and_closes(api, client):
    view = await open_view(api, client, {"title": "Dune", "author": "Herbert", "price": 9.99})

    view.start_edit(view.store.books[0])
    view.edit(price=11.5)
    updated = await view.submit_edit()

    assert updated.price == 11.5
    assert view.editing is None
    assert view.store.books[0].price == 11.5


@pytest.mark.asyncio
async def test_submit_edit_failure_keeps_form_open(api, client, caplog):
    view = await open_view(api, client, {"title": "Dune", "author": "Herbert", "price": 9.99})
    view.start_edit(view.store.books[0])
    api.fail_status = 500

    with caplog.at_level(logging.ERROR, logger="bookshelf.view"):
        assert await view.submit_edit() is None

    assert view.editing is not None
    assert "Failed to update book" in caplog.text


@pytest.mark.asyncio
async def test_cancel_edit(api, client):
    view = await open_view(api, client, {"title": "Dune", "author": "Herbert", "price": 9.99})
    view.start_edit(view.store.books[0])

    view.cancel_edit()

    assert view.editing is None
    assert await view.submit_edit() is None


@pytest.mark.asyncio
async def test_delete_requires_confirmation(api, client):
    prompts = []

    def decline(prompt):
        prompts.append(prompt)
        return False

    view = await open_view(api, client, {"title": "Dune", "author": "Herbert", "price": 9.99}, confirm=decline)

    assert await view.delete(1) is False
    assert prompts
    assert len(view.store.books) == 1
    assert [r.method for r in api.requests] == ["GET"]


@pytest.mark.asyncio
async def test_delete_confirmed(api, client):
    view = await open_view(
        api, client, {"title": "Dune", "author": "Herbert", "price": 9.99}, confirm=lambda prompt: True
    )

    assert await view.delete(1) is True
    assert view.store.books == []


@pytest.mark.asyncio
async def test_delete_failure_is_logged(api, client, caplog):
    view = await open_view(api, client)

    with caplog.at_level(logging.ERROR, logger="bookshelf.view"):
        assert await view.delete(5) is False

    assert "Failed to delete book" in caplog.text


@pytest.mark.asyncio
async def test_render_states(api, client):
    view = await open_view(api, client)

    assert "Your library awaits" in view.render()

    await view.store.add(Book("Dune", "Herbert", 9.99))
    screen = view.render()
    assert "Dune" in screen
    assert "$9.99" in screen

    view.store.last_error = "Failed to fetch books"
    assert "Error: Failed to fetch books" in view.render()

    view.store.is_loading = True
    assert "Loading" in view.render()


def test_toggle_form():
    view = BookListView(BookStore(client=None))

    view.toggle_form()

    assert view.show_form is False


@pytest.mark.asyncio
async def test_negative_draft_price_is_rejected(api, client, caplog):
    view = await open_view(api, client)
    view.set_draft(title="Dune", author="Herbert", price=-5)

    with caplog.at_level(logging.ERROR, logger="bookshelf.view"):
        created = await view.submit_new()

    assert created is None
    assert view.new_book.price == -5
    assert view.store.books == []
    assert api.books == []
    assert "must not be negative" in caplog.text


@pytest.mark.asyncio
async def test_negative_edit_price_is_rejected(api, client):
    view = await open_view(api, client, {"title": "Dune", "author": "Herbert", "price": 9.99})
    view.start_edit(view.store.books[0])

    view.edit(price="-1")

    assert await view.submit_edit() is None
    assert view.editing is not None
    assert api.books[0]["price"] == 9.99


@pytest.mark.asyncio
async def test_submit_edit_without_id_sends_nothing(api, client, caplog):
    view = await open_view(api, client)
    view.start_edit(Book("Draft", "Nobody", 1.0))

    with caplog.at_level(logging.ERROR, logger="bookshelf.view"):
        assert await view.submit_edit() is None

    assert [r.method for r in api.requests] == ["GET"]
    assert "no ID" in caplog.text


@pytest.mark.asyncio
async def test_render_shows_add_form_only_when_open(api, client):
    view = await open_view(api, client)
    view.set_draft(title="Dune", author="Herbert", price=9.99)

    assert 'New book: title="Dune" author="Herbert" price=$9.99' in view.render()

    view.toggle_form()

    assert "New book" not in view.render()
