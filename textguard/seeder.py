from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from . import db
from .models import Book

SEED_BOOKS = (
    "Dom Casmurro",
    "Memórias Póstumas de Brás Cubas",
    "O Cortiço",
    "Vidas Secas",
)


def seed_books() -> int:
    """Insere os livros de exemplo que ainda não existem. Idempotente."""
    try:
        existing = {
            name for (name,) in db.session.query(Book.name).all()
        }
        novos = [Book(name=n) for n in SEED_BOOKS if n not in existing]
        db.session.add_all(novos)
        db.session.commit()
        return len(novos)
    except SQLAlchemyError:
        db.session.rollback()
        raise
