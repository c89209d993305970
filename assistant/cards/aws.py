"""
Cards for query_aws_resources envelopes.
"""

from assistant.cards import base
from assistant.cards.listing import ResourceList, fields_search
from assistant.envelope import normalize

ITEMS_PER_PAGE = 5
MAX_PROPERTIES = 5


def short_type(resource_type: str | None) -> str:
    """AWS::EC2::Instance -> Instance"""
    return (resource_type or "").split("::")[-1]


def _property_rows(resource) -> list[tuple[str, object]]:
    if not isinstance(resource, dict):
        return [("value", resource)]
    properties = resource.get("properties") or {}
    if not isinstance(properties, dict):
        return [("value", properties)]
    return list(properties.items())[:MAX_PROPERTIES]


_SEARCH = {
    "list_resources": ("resources", fields_search(
        lambda r: r["identifier"],
        lambda r: " ".join(str(v) for v in (r.get("properties") or {}).values()),
    )),
    "list_stacks": ("stacks", fields_search(
        lambda s: s["stackName"], lambda s: s["stackStatus"], lambda s: s.get("templateDescription"),
    )),
    "describe_stack_resources": ("resources", fields_search(
        lambda r: r["logicalResourceId"], lambda r: r.get("physicalResourceId"),
        lambda r: r.get("resourceType"), lambda r: r.get("resourceStatus"),
    )),
    "list_log_groups": ("logGroups", fields_search(lambda g: g["logGroupName"], lambda g: g.get("arn"))),
    "list_s3_buckets": ("buckets", fields_search(lambda b: b["bucketName"], lambda b: b.get("region"))),
}


def render(data, search: str = "", page: int = 1) -> str:
    """Render an AWS envelope as an HTML card."""
    data = normalize(data)
    if not data.get("success"):
        return base.render("aws.html", view="error", error=data.get("error") or "Unknown error occurred")

    action = data.get("action")
    context = {"view": action, "data": data, "short_type": short_type, "property_rows": _property_rows}

    if action in _SEARCH:
        key, search_fn = _SEARCH[action]
        items = data.get(key)
        if isinstance(items, list) and all(isinstance(item, dict) for item in items):
            listing = ResourceList(items, search_fn, ITEMS_PER_PAGE, count=data.get("count"))
            return base.render("aws.html", page=listing.page(search, page), **context)

    if action == "get_resource" and data.get("resource"):
        return base.render("aws.html", **context)
    if action == "describe_stack" and data.get("stack"):
        return base.render("aws.html", **context)

    return base.render("aws.html", **{**context, "view": "fallback"})
