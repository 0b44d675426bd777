from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from textguard import db, guard
from textguard.models import Book


def count_by_name(name: str | None) -> int:
    """Conta livros pelo nome via ORM (caminho de bind tipado)."""
    return db.session.query(Book).filter(Book.name == name).count()


def count_by_name_raw(name: str | None) -> int:
    """Mesma contagem via fragmento SQL cru (``text()``), sem tipos.

    Parâmetros não passam pelo cast do ORM; quem os normaliza é o hook de
    serialização do engine.
    """
    if name is None:
        stmt = text("SELECT COUNT(*) FROM books WHERE name IS NULL")
        return int(db.session.execute(stmt).scalar_one())
    stmt = text("SELECT COUNT(*) FROM books WHERE name = :name")
    return int(db.session.execute(stmt, {"name": name}).scalar_one())


def get_book_by_id(book_id: int) -> Book | None:
    return db.session.get(Book, int(book_id))


def create_book(name: str, cover: bytes | None = None) -> Book:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Nome do livro é obrigatório.")
    book = Book(name=name, cover=cover)
    # Após o cast o nome pode ter ficado vazio (ex.: só NULs)
    if not (book.name or "").strip():
        raise ValueError("Nome do livro é obrigatório.")
    try:
        db.session.add(book)
        db.session.commit()
        return book
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ValueError(f"Falha ao criar livro: {exc}")


def import_books(names: Iterable[str]) -> list[Book]:
    """Cria vários livros numa única transação (tudo ou nada).

    Nomes vazios após normalização são ignorados.
    """
    try:
        books = [Book(name=n) for n in names]
        books = [b for b in books if (b.name or "").strip()]
        db.session.add_all(books)
        db.session.commit()
        return books
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ValueError(f"Falha ao importar livros: {exc}")


def list_names_raw() -> list[str | None]:
    """Lista nomes via SQL cru, normalizando cada linha lida."""
    rows = db.session.execute(
        text("SELECT name FROM books ORDER BY id")
    ).mappings()
    codecs = guard.codecs
    if codecs is None:
        return [row["name"] for row in rows]
    return [codecs.normalize_row(row)["name"] for row in rows]
