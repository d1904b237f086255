"""Helpers shared by the list endpoints: search, sort and paginate."""

from flask import current_app
from sqlalchemy import or_

from storefront.models.database import db


def apply_search(stmt, term, *columns):
    """Case-insensitive substring match against any of ``columns``."""
    if not term:
        return stmt
    return stmt.where(or_(*(column.icontains(term, autoescape=True) for column in columns)))


def apply_sort(stmt, sort, order, columns, default, tiebreak):
    """Order ``stmt`` by a whitelisted column.

    ``columns`` maps public sort names to columns and ``default`` is a
    ``(name, direction)`` pair used when ``sort`` is not recognised.
    ``tiebreak`` is appended in the same direction so pages never overlap.
    """
    default_sort, default_order = default
    column = columns.get(sort)
    if column is None:
        column, order = columns[default_sort], default_order
    elif order not in ("asc", "desc"):
        order = default_order

    if order == "asc":
        return stmt.order_by(column.asc(), tiebreak.asc())
    return stmt.order_by(column.desc(), tiebreak.desc())


def paginate(stmt, page=1, per_page=None, default_per_page=None):
    per_page = per_page or default_per_page or current_app.config["ADMIN_PER_PAGE"]
    return db.paginate(
        stmt,
        page=page or 1,
        per_page=per_page,
        max_per_page=current_app.config["MAX_PER_PAGE"],
        error_out=False,
    )
