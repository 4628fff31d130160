# Overview: Page/limit parsing and LIKE-style search helpers for list endpoints.

from __future__ import annotations

from flask import current_app


def parse_page_args(args, *, default_limit: int | None = None) -> tuple[int, int]:
    """
    Read ?page and ?limit from request args.

    page defaults to 1 and is clamped to >= 1; limit defaults to
    DEFAULT_PAGE_SIZE and is clamped to 1..MAX_PAGE_SIZE.
    """
    page = args.get("page", type=int) or 1
    limit = args.get("limit", type=int) or default_limit or current_app.config["DEFAULT_PAGE_SIZE"]

    page = max(page, 1)
    limit = max(1, min(limit, current_app.config["MAX_PAGE_SIZE"]))
    return page, limit


def like_term(search: str) -> str:
    """Wrap a search string for a case-insensitive substring match."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def paginate(query, *, page: int, limit: int) -> tuple[list, dict]:
    """
    Apply offset/limit to an ordered query.

    The total is counted on the same (filtered) query so totalPages always
    reflects the search.
    """
    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit

    rows = query.offset((page - 1) * limit).limit(limit).all()

    return rows, {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
    }
