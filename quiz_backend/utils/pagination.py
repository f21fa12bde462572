import math

from flask import request

MAX_LIMIT = 100


def int_arg(name, default, minimum=1, maximum=MAX_LIMIT):
    value = request.args.get(name, type=int)
    if value is None:
        return default
    return max(minimum, min(value, maximum))


def page_args(default_limit=10):
    page = int_arg("page", 1, maximum=10**6)
    limit = int_arg("limit", default_limit)
    return page, limit, (page - 1) * limit


def total_pages(total, limit):
    return math.ceil(total / limit) if limit else 0
