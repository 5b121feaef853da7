from flask import current_app, request


def _int_arg(name, default):
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        current_app.logger.debug(f"Invalid {name} parameter, defaulting to {default}")
        return default


def page_args():
    """
    Read page/limit from the query string.

    - page: int (default: 1)
    - limit: int (default: DEFAULT_PAGE_SIZE, max: MAX_PAGE_SIZE)
    """
    default_limit = current_app.config.get('DEFAULT_PAGE_SIZE', 20)
    max_limit = current_app.config.get('MAX_PAGE_SIZE', 100)

    page = _int_arg('page', 1)
    if page < 1:
        page = 1

    limit = _int_arg('limit', default_limit)
    if limit < 1:
        limit = default_limit
    if limit > max_limit:
        limit = max_limit

    return page, limit


def paginate(query, serialize):
    """Run ``query`` for the requested page and wrap it in the list envelope."""
    page, limit = page_args()
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = (total + limit - 1) // limit if total > 0 else 0

    return {
        "data": [serialize(item) for item in items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
