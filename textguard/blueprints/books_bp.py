from __future__ import annotations

from flask import Blueprint, Response, abort, jsonify, request

from textguard.services import book_service
from textguard.utils.decorators import boundary_exempt
from textguard.utils.params import nest_params

books_bp = Blueprint("books_bp", __name__)


def _search_name() -> str:
    """Extrai ``search[name]`` da query string (obrigatório)."""
    search = nest_params(request.args).get("search")
    if not isinstance(search, dict):
        abort(400, description="Parâmetro 'search' é obrigatório.")
    name = search.get("name")
    if not isinstance(name, str):
        abort(400, description="Parâmetro 'search[name]' é obrigatório.")
    return name


def _plain(value: object, status: int = 200) -> Response:
    return Response(str(value), status=status, mimetype="text/plain")


@books_bp.route("/book", methods=["GET"])
def show():  # pragma: no cover - thin controller (tested)
    """Conta livros com o nome buscado (ORM)."""
    return _plain(book_service.count_by_name(_search_name()))


@books_bp.route("/book/raw", methods=["GET"])
def show_raw():  # pragma: no cover - thin controller (tested)
    """Mesma busca via SQL cru, para exercitar o caminho de serialização."""
    return _plain(book_service.count_by_name_raw(_search_name()))


@books_bp.route("/books", methods=["GET"])
def index():  # pragma: no cover - thin controller (tested)
    return jsonify(book_service.list_names_raw())


@books_bp.route("/books", methods=["POST"])
def create():  # pragma: no cover - thin controller (tested)
    payload = request.get_json(silent=True) if request.is_json else None
    source = payload if isinstance(payload, dict) else request.form
    name = source.get("name")
    if not isinstance(name, str):
        abort(400, description="Campo 'name' é obrigatório.")
    try:
        book = book_service.create_book(name)
    except ValueError as exc:
        abort(400, description=str(exc))
    return jsonify({"id": book.id, "name": book.name}), 201


@books_bp.route("/books/import", methods=["POST"])
@boundary_exempt
def import_books():  # pragma: no cover - thin controller (tested)
    """Importação em lote no modo "sanitizar".

    Isenta do BoundaryFilter: NULs nos nomes são removidos na gravação em
    vez de rejeitar o lote inteiro.
    """
    payload = request.get_json(silent=True)
    names = payload.get("names") if isinstance(payload, dict) else payload
    if not isinstance(names, list) or not all(
        isinstance(n, str) for n in names
    ):
        abort(400, description="Envie uma lista de nomes (strings).")
    try:
        books = book_service.import_books(names)
    except ValueError as exc:
        abort(400, description=str(exc))
    return jsonify({"created": len(books), "names": [b.name for b in books]}), 201
