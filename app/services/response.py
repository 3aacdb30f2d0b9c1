class ListResponseMixin:
    """Adds ``list_response`` to a service whose ``list`` ends in limit, offset."""

    def list_response(self, db, *args, **kwargs):
        items = self.list(db, *args, **kwargs)
        if kwargs:
            limit = kwargs.get("limit")
            offset = kwargs.get("offset")
        else:
            limit, offset = args[-2], args[-1]
        count = getattr(items, "total", len(items))
        return {"items": list(items), "count": count, "limit": limit, "offset": offset}
