def parse_page_args(page, limit, max_limit=100):
    try:
        page = max(int(page) if page else 1, 1)
        limit = max(int(limit) if limit else 20, 1)
    except (TypeError, ValueError):
        page, limit = 1, 20
    return page, min(limit, max_limit)


def paginate_query(query, page, limit):
    page, limit = parse_page_args(page, limit)
    items = query.offset((page-1)*limit).limit(limit).all()
    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit
    return items, {"total": total, "page": page, "limit": limit, "total_pages": total_pages}
